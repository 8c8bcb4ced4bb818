"""Credential broker.

Exchanges the service credential for a short-lived bearer token using
the OAuth 2.0 JWT-bearer grant (RFC 7523): sign an assertion, POST it
form-encoded to the token endpoint, read `access_token` from the JSON
reply.

One exchange per call and no retries -- retrying is the inbound
caller's decision. With a TokenCache injected, a still-fresh token is
reused instead of exchanging again.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from loghook.broker.assertion import INSERT_DATA_SCOPE, build_claims, sign_assertion
from loghook.broker.cache import TokenCache
from loghook.errors import BrokerError, BrokerErrorKind
from loghook.models.credentials import BearerToken, ServiceCredential

logger = logging.getLogger("loghook.broker")

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEFAULT_TOKEN_LIFETIME = 3600


class CredentialBroker:
    """Mints bearer tokens from a service credential.

    The httpx client is owned by the caller so one connection pool is
    shared with the row inserter.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_uri: str,
        scope: str = INSERT_DATA_SCOPE,
        cache: TokenCache | None = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self.token_uri = token_uri
        self.scope = scope
        self.cache = cache
        self.timeout = timeout
        self._clock = clock

    async def get_access_token(self, credential: ServiceCredential) -> BearerToken:
        """Return a bearer token for `credential`.

        Raises BrokerError:
            INVALID_CREDENTIAL   - identity or key missing
            INVALID_KEY_MATERIAL - key is not usable RSA PEM
            EXCHANGE_FAILED      - transport error, non-2xx, or bad reply
        """
        if not credential.client_email or not credential.private_key:
            raise BrokerError(
                BrokerErrorKind.INVALID_CREDENTIAL, "incomplete service credential"
            )
        if self.cache is None:
            return await self._exchange(credential)
        return await self.cache.get_or_refresh(
            credential, lambda: self._exchange(credential)
        )

    async def _exchange(self, credential: ServiceCredential) -> BearerToken:
        now = int(self._clock())
        claims = build_claims(credential, self.token_uri, now, self.scope)
        assertion = sign_assertion(claims, credential.private_key)

        try:
            resp = await self._client.post(
                self.token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("Token exchange transport error: %s", type(e).__name__)
            raise BrokerError(
                BrokerErrorKind.EXCHANGE_FAILED, f"token endpoint unreachable: {e}"
            ) from e

        if not resp.is_success:
            logger.error(
                "Token exchange rejected with HTTP %d",
                resp.status_code,
                extra={"upstream_status": resp.status_code},
            )
            raise BrokerError(
                BrokerErrorKind.EXCHANGE_FAILED,
                f"token endpoint returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            data = None
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            logger.error("Token exchange reply carried no access_token")
            raise BrokerError(
                BrokerErrorKind.EXCHANGE_FAILED,
                "token endpoint reply has no access_token",
                status_code=resp.status_code,
            )

        expires_in = data.get("expires_in", DEFAULT_TOKEN_LIFETIME)
        if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool):
            expires_in = DEFAULT_TOKEN_LIFETIME

        logger.info("Obtained bearer token for %s", credential.client_email)
        return BearerToken(value=access_token, expires_at=now + float(expires_in))
