"""Service credential and bearer token.

Both objects live only in memory. The private key and the access token
are excluded from repr() so they cannot end up in a log line through
an accidental %r or f-string.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field

from loghook.errors import BrokerError, BrokerErrorKind


@dataclass(frozen=True)
class ServiceCredential:
    """Service-account identity plus its PEM-encoded RSA private key."""
    client_email: str
    private_key: str = field(repr=False)

    @classmethod
    def from_json(cls, raw: str) -> ServiceCredential:
        """Build from a full service-account key JSON document."""
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise BrokerError(
                BrokerErrorKind.INVALID_CREDENTIAL,
                "service account JSON is not valid JSON",
            ) from None
        if not isinstance(parsed, dict):
            raise BrokerError(
                BrokerErrorKind.INVALID_CREDENTIAL,
                "service account JSON is not an object",
            )
        return cls.from_values(
            parsed.get("client_email"), parsed.get("private_key")
        )

    @classmethod
    def from_values(cls, client_email: object, private_key: object) -> ServiceCredential:
        """Build from discrete identity and key values."""
        if not isinstance(client_email, str) or not client_email:
            raise BrokerError(
                BrokerErrorKind.INVALID_CREDENTIAL, "missing client_email"
            )
        if not isinstance(private_key, str) or not private_key:
            raise BrokerError(
                BrokerErrorKind.INVALID_CREDENTIAL, "missing private_key"
            )
        return cls(client_email=client_email, private_key=private_key)


@dataclass(frozen=True)
class BearerToken:
    """Short-lived access token for the sink."""
    value: str = field(repr=False)
    expires_at: float

    def is_fresh(self, margin: float = 0.0, now: float | None = None) -> bool:
        """True while the token has more than `margin` seconds left."""
        current = time.time() if now is None else now
        return self.expires_at - margin > current

    @property
    def authorization(self) -> str:
        return f"Bearer {self.value}"
