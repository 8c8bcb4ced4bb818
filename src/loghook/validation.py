"""Payload validation.

The contract is presence-only: the body must be a JSON object carrying
every required top-level key, and the values are not inspected. Strict
mode (LOGHOOK_STRICT_TYPES) additionally checks value types, for
deployments whose table schema would reject a mistyped row anyway and
would rather see a 400 than a 502.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError, field_validator

from loghook.errors import PayloadValidationError, ValidationErrorKind
from loghook.models.events import REQUIRED_FIELDS, LoggingEvent

# Date and time with optional fraction, in UTC only: trailing Z or +00:00
_UTC_TIMESTAMP = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.\d{1,9})?(?:[Zz]|\+00:00)"
)


def _reject_constant(name: str) -> Any:
    # NaN/Infinity are not JSON and cannot be re-serialized for the sink
    raise ValueError(f"non-standard JSON constant {name}")


class StrictEventFields(BaseModel):
    """Value-type rules applied in strict mode only."""
    schema_version: StrictInt = Field(ge=1)
    source: StrictStr = Field(min_length=1)
    timestamp: StrictStr
    level: StrictStr
    logger: StrictStr
    message: StrictStr
    exc_info: Optional[StrictStr] = None
    extra: dict[str, Any]

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: str) -> str:
        match = _UTC_TIMESTAMP.fullmatch(value)
        if match is None:
            raise ValueError("timestamp must be ISO-8601 UTC (Z or +00:00)")
        # range check of the calendar fields, independent of fromisoformat
        datetime.strptime(match.group("base"), "%Y-%m-%dT%H:%M:%S")
        return value


def parse_json(raw: bytes) -> Any:
    """Decode UTF-8 and parse JSON, raising MALFORMED_JSON on any failure.

    A leading byte-order mark is dropped before parsing.
    """
    try:
        text = raw.decode("utf-8-sig")
        return json.loads(text, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError):
        raise PayloadValidationError(ValidationErrorKind.MALFORMED_JSON) from None


def check_types(document: dict[str, Any]) -> None:
    """Apply strict value-type rules, raising WRONG_TYPE naming the field."""
    try:
        StrictEventFields.model_validate(document)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ("",)
        raise PayloadValidationError(
            ValidationErrorKind.WRONG_TYPE, str(loc[0])
        ) from None


def validate_payload(raw: bytes, strict: bool = False) -> LoggingEvent:
    """Parse and validate a raw request body.

    Raises PayloadValidationError with kind:
        MALFORMED_JSON - not UTF-8, or not JSON
        WRONG_SHAPE    - JSON but not an object
        MISSING_FIELD  - a required key is absent (first one, in order)
        WRONG_TYPE     - strict mode only, a value has the wrong type
    """
    document = parse_json(raw)

    if not isinstance(document, dict):
        raise PayloadValidationError(ValidationErrorKind.WRONG_SHAPE)

    for key in REQUIRED_FIELDS:
        if key not in document:
            raise PayloadValidationError(ValidationErrorKind.MISSING_FIELD, key)

    if strict:
        check_types(document)

    return LoggingEvent(document=document)
