"""Logging event and insert envelopes.

The event document is forwarded exactly as received -- no fields are
added, removed, renamed, or coerced. Only the top-level keys are
checked by the validator; `extra` is an open mapping whose shape is
owned by whoever emits the events. Python dicts keep insertion order,
so the row reaches the sink with the caller's key order intact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field

REQUIRED_FIELDS: tuple[str, ...] = (
    "schema_version",
    "source",
    "timestamp",
    "level",
    "logger",
    "message",
    "extra",
)


class LoggingEvent(BaseModel):
    """Validated envelope around one logging event document."""
    document: dict[str, Any] = Field(
        description="The parsed JSON object exactly as received -- never modified"
    )

    class Config:
        frozen = True

    @property
    def extra(self) -> Any:
        return self.document.get("extra")

    @property
    def request_id(self) -> Optional[str]:
        """`extra.request_id` when it is a non-empty string."""
        extra = self.extra
        if not isinstance(extra, dict):
            return None
        value = extra.get("request_id")
        if isinstance(value, str) and value:
            return value
        return None


class InsertRecord(BaseModel):
    """One row for the sink plus the key the sink deduplicates on."""
    event: LoggingEvent = Field(
        description="Event forwarded verbatim as the row's JSON"
    )
    insert_id: str = Field(
        min_length=1,
        description="Deduplication key (request_id or SHA-256 of the raw body)"
    )

    class Config:
        frozen = True

    def to_row(self) -> dict[str, Any]:
        """Row entry in insertAll wire format."""
        return {"json": self.event.document, "insertId": self.insert_id}


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a single insert attempt."""
    accepted: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> InsertResult:
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: str) -> InsertResult:
        return cls(accepted=False, reason=reason)
