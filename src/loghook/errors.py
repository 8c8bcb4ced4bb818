"""Error taxonomy for the ingest pipeline.

Every failure inside LOGHOOK is one of two kinds: the caller's fault
(ClientError, surfaced as a 4xx) or a collaborator's fault
(UpstreamError, surfaced as a 502). Deployment faults such as missing
credentials are upstream errors from the caller's point of view -- they
cannot be told apart from an outage without leaking configuration.

Messages on these exceptions are for server-side logs. Response bodies
are built from the short `code` attributes only.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class LoghookError(Exception):
    """Base for all LOGHOOK errors."""


class ClientError(LoghookError):
    """The inbound request is unacceptable. Never retried here."""

    status_code = 400

    @property
    def code(self) -> str:
        return "client_error"


class ValidationErrorKind(str, Enum):
    """Why a payload failed validation."""
    MALFORMED_JSON = "malformed_json"
    WRONG_SHAPE = "wrong_shape"
    MISSING_FIELD = "missing_field"
    WRONG_TYPE = "wrong_type"


class PayloadValidationError(ClientError):
    """The body is not a well-formed logging event."""

    def __init__(self, kind: ValidationErrorKind, field: Optional[str] = None):
        self.kind = kind
        self.field = field
        if field:
            super().__init__(f"{kind.value}: {field}")
        else:
            super().__init__(kind.value)

    @property
    def code(self) -> str:
        if self.field:
            return f"{self.kind.value} {self.field}"
        return self.kind.value


class UpstreamError(LoghookError):
    """A collaborator (token authority or sink) failed."""

    @property
    def is_configuration(self) -> bool:
        return False


class ConfigurationError(UpstreamError):
    """Deployment is missing something required to forward events."""

    @property
    def is_configuration(self) -> bool:
        return True


class BrokerErrorKind(str, Enum):
    """Why a bearer token could not be obtained."""
    INVALID_CREDENTIAL = "invalid_credential"
    EXCHANGE_FAILED = "exchange_failed"
    INVALID_KEY_MATERIAL = "invalid_key_material"


class BrokerError(UpstreamError):
    """Credential exchange with the token authority failed."""

    def __init__(
        self,
        kind: BrokerErrorKind,
        message: str = "",
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        super().__init__(message or kind.value)

    @property
    def is_configuration(self) -> bool:
        return self.kind in (
            BrokerErrorKind.INVALID_CREDENTIAL,
            BrokerErrorKind.INVALID_KEY_MATERIAL,
        )

    def summary(self) -> str:
        """Short, non-sensitive description suitable for a response body."""
        if self.status_code is not None:
            return f"token exchange failed (HTTP {self.status_code})"
        return "token exchange failed"
