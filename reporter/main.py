"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from reporter.config import get_settings
from reporter.dedup import DedupCache
from reporter.dispatcher import NotificationFailed, ReportDispatcher
from reporter.integrations.discord import DiscordWebhookClient
from reporter.logging import configure_logging, request_context
from reporter.schemas import HealthResponse, ReportSubmission

LOGGER = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request id to logging context and response headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        with request_context(request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared cache, sink and dispatcher once per process."""
    settings = get_settings()
    configure_logging(settings.log_level)

    cache = DedupCache()
    sink = DiscordWebhookClient(settings.webhook_url, timeout_seconds=settings.webhook_timeout_seconds)

    app.state.settings = settings
    app.state.dedup = cache
    app.state.dispatcher = ReportDispatcher(
        cache=cache,
        sink=sink,
        sender_name=settings.webhook_username,
        avatar_url=settings.webhook_avatar_url,
    )
    LOGGER.info("reporter started", extra={"event": "startup", "context": {"port": settings.port}})
    try:
        yield
    finally:
        await sink.aclose()


app = FastAPI(title="wnp-reporter", lifespan=lifespan)
app.add_middleware(RequestIDMiddleware)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Service health endpoint."""
    return HealthResponse(app=app.state.settings.app_name, cached_reports=len(app.state.dedup))


@app.post("/report", response_class=PlainTextResponse)
async def report(payload: ReportSubmission) -> str:
    """Relay a report from the extension to the webhook."""
    try:
        await app.state.dispatcher.handle(payload)
    except NotificationFailed as exc:
        raise HTTPException(status_code=500, detail="Internal Server Error") from exc
    return "OK"


def run() -> None:
    """Serve the app with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
