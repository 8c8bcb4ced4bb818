"""LOGHOOK application entrypoint."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from loghook.auth.signature import SIGNATURE_HEADER
from loghook.config import Settings, settings as default_settings
from loghook.handler import IngestHandler, IngestRequest
from loghook.utils.logging import configure_logging

logger = logging.getLogger("loghook")

# Every method is routed to the handler so non-POST gets a 405 from
# the pipeline rather than from the framework.
INGEST_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the FastAPI app around one shared outbound HTTP client."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    client = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(settings.outbound_timeout)
    )
    handler = IngestHandler.from_settings(settings, client)

    app = FastAPI(
        title="LOGHOOK",
        description="Logging-event webhook forwarding to BigQuery",
        version=settings.version,
    )
    app.state.handler = handler

    @app.on_event("startup")
    async def startup():
        logger.info("LOGHOOK v%s starting", settings.version)
        logger.info("Ingest path: %s", settings.ingest_path)
        logger.info(
            "Signature auth: %s", "enabled" if settings.auth_enabled else "disabled"
        )
        logger.info(
            "Sink: %s.%s.%s",
            settings.bigquery_project_id or "-",
            settings.bigquery_dataset or "-",
            settings.bigquery_table or "-",
        )

    @app.on_event("shutdown")
    async def shutdown():
        if http_client is None:
            await client.aclose()

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": settings.version}

    @app.api_route(settings.ingest_path, methods=INGEST_METHODS)
    async def ingest(request: Request) -> PlainTextResponse:
        body = await request.body() if request.method == "POST" else b""
        result = await handler.handle(
            IngestRequest(
                method=request.method,
                content_type=request.headers.get("content-type"),
                signature=request.headers.get(SIGNATURE_HEADER),
                body=body,
            )
        )
        return PlainTextResponse(result.body, status_code=result.status_code)

    return app


app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "loghook.main:app",
        host="0.0.0.0",
        port=default_settings.api_port,
        log_level=default_settings.log_level.lower(),
    )
