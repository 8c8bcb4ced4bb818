"""Ingest request handling.

One request runs a fixed sequence of checks and ends in exactly one
response:

    method -> content type -> signature -> parse/validate
           -> dedup key -> token exchange -> insert -> respond

Each step short-circuits on failure. The body is never parsed before
the content-type and signature checks pass, and nothing from the raw
body is ever copied into a response.

The handler is framework-agnostic; loghook.main adapts it to FastAPI.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from loghook.auth.signature import verify_signature
from loghook.broker.cache import TokenCache
from loghook.broker.token import CredentialBroker
from loghook.config import Settings
from loghook.errors import BrokerError, ClientError, UpstreamError
from loghook.models.credentials import ServiceCredential
from loghook.models.events import InsertRecord, LoggingEvent
from loghook.sink.bigquery import RowInserter
from loghook.validation import validate_payload

logger = logging.getLogger("loghook.handler")

JSON_CONTENT_TYPE = "application/json"
MAX_DETAIL_LENGTH = 500


@dataclass(frozen=True)
class IngestRequest:
    """The parts of an inbound HTTP request the pipeline looks at."""
    method: str
    content_type: Optional[str]
    signature: Optional[str]
    body: bytes


@dataclass(frozen=True)
class IngestResponse:
    status_code: int
    body: str


OK = IngestResponse(200, "OK")
METHOD_NOT_ALLOWED = IngestResponse(405, "Method Not Allowed")
UNSUPPORTED_MEDIA_TYPE = IngestResponse(415, "Unsupported Media Type")
UNAUTHORIZED = IngestResponse(401, "Unauthorized")


def compute_dedup_key(raw: bytes, event: LoggingEvent) -> str:
    """`extra.request_id` if present and non-empty, else SHA-256 of the body."""
    request_id = event.request_id
    if request_id:
        return request_id
    return hashlib.sha256(raw).hexdigest()


def _upstream_response(error: UpstreamError) -> IngestResponse:
    if error.is_configuration:
        return IngestResponse(502, "Upstream Error")
    if isinstance(error, BrokerError):
        detail = error.summary()
    else:
        detail = str(error)
    return IngestResponse(502, f"Upstream Error: {detail[:MAX_DETAIL_LENGTH]}")


class IngestHandler:
    """Validates one inbound event and forwards it to the sink."""

    def __init__(
        self,
        broker: CredentialBroker,
        credential_provider: Callable[[], ServiceCredential],
        inserter_provider: Callable[[], RowInserter],
        secret: str = "",
        strict: bool = False,
    ):
        self.broker = broker
        self.credential_provider = credential_provider
        self.inserter_provider = inserter_provider
        self.secret = secret
        self.strict = strict

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> IngestHandler:
        """Wire broker, cache and inserter from configuration."""
        cache = None
        if settings.token_cache_enabled:
            cache = TokenCache(refresh_margin=settings.token_refresh_margin)
        broker = CredentialBroker(
            client,
            token_uri=settings.token_uri,
            cache=cache,
            timeout=settings.outbound_timeout,
        )

        def inserter_provider() -> RowInserter:
            project_id, dataset, table = settings.table_ref()
            return RowInserter(
                client,
                base_url=settings.bigquery_base_url,
                project_id=project_id,
                dataset=dataset,
                table=table,
                timeout=settings.outbound_timeout,
            )

        return cls(
            broker=broker,
            credential_provider=settings.service_credential,
            inserter_provider=inserter_provider,
            secret=settings.webhook_secret,
            strict=settings.strict_types,
        )

    async def handle(self, request: IngestRequest) -> IngestResponse:
        started = time.monotonic()
        response = await self._process(request)
        logger.info(
            "%s ingest -> %d",
            request.method,
            response.status_code,
            extra={
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return response

    async def _process(self, request: IngestRequest) -> IngestResponse:
        if request.method.upper() != "POST":
            return METHOD_NOT_ALLOWED

        content_type = (request.content_type or "").lower()
        if JSON_CONTENT_TYPE not in content_type:
            return UNSUPPORTED_MEDIA_TYPE

        if not verify_signature(request.body, request.signature, self.secret):
            logger.warning("Signature verification failed")
            return UNAUTHORIZED

        try:
            event = validate_payload(request.body, strict=self.strict)
        except ClientError as e:
            logger.info("Rejected payload: %s", e.code)
            return IngestResponse(e.status_code, f"Bad Request: {e.code}")

        record = InsertRecord(event=event, insert_id=compute_dedup_key(request.body, event))
        return await self._forward(record)

    async def _forward(self, record: InsertRecord) -> IngestResponse:
        try:
            inserter = self.inserter_provider()
            credential = self.credential_provider()
            token = await self.broker.get_access_token(credential)
        except UpstreamError as e:
            logger.error(
                "Cannot forward event: %s",
                e,
                extra={"insert_id": record.insert_id},
            )
            return _upstream_response(e)

        result = await inserter.insert(record, token)
        if not result.accepted:
            detail = result.reason or "insert rejected"
            return IngestResponse(502, f"Upstream Error: {detail[:MAX_DETAIL_LENGTH]}")
        return OK
