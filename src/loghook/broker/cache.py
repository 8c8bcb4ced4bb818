"""Bearer token cache with single-flight refresh.

Tokens are keyed by service identity. A cached token is handed out
while it has more than `refresh_margin` seconds left; past that point
one caller refreshes it under a per-identity lock while concurrent
callers wait and then pick up the freshly minted token instead of
starting their own exchange.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from loghook.models.credentials import BearerToken, ServiceCredential

logger = logging.getLogger("loghook.broker.cache")

Refresher = Callable[[], Awaitable[BearerToken]]


class TokenCache:
    """In-memory token store. One instance per process is enough."""

    def __init__(
        self,
        refresh_margin: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._tokens: dict[str, BearerToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def peek(self, credential: ServiceCredential) -> BearerToken | None:
        """Return the cached token if it is still fresh, else None."""
        token = self._tokens.get(credential.client_email)
        if token is not None and token.is_fresh(self.refresh_margin, self._clock()):
            return token
        return None

    async def get_or_refresh(
        self, credential: ServiceCredential, refresh: Refresher
    ) -> BearerToken:
        """Return a fresh token, calling `refresh` at most once at a time.

        Errors from `refresh` propagate to the caller that ran it; the
        cache keeps whatever it held before.
        """
        token = self.peek(credential)
        if token is not None:
            return token

        async with self._lock_for(credential.client_email):
            # Another task may have refreshed while we waited
            token = self.peek(credential)
            if token is not None:
                return token
            token = await refresh()
            self._tokens[credential.client_email] = token
            logger.debug("Bearer token refreshed for %s", credential.client_email)
            return token

    def invalidate(self, credential: ServiceCredential) -> None:
        self._tokens.pop(credential.client_email, None)

    def clear(self) -> None:
        self._tokens.clear()
