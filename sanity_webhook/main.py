"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from sanity_webhook.config import Settings, get_settings
from sanity_webhook.logging import clear_request_id, configure_logging, set_request_id
from sanity_webhook.middleware.signature import (
    SanityWebhookMiddleware,
    get_webhook_diagnostics,
    get_webhook_payload,
)
from sanity_webhook.schemas import HealthResponse, WebhookAck

LOGGER = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request id to logging context and response headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and report degraded webhook verification."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    if not settings.sanity_webhook_paths:
        LOGGER.warning(
            "webhook signature verification disabled",
            extra={
                "event": "security_degraded",
                "context": {"reason": "SANITY_WEBHOOK_PATHS not set - signature middleware skipped"},
            },
        )
    elif settings.sanity_webhook_secret is None:
        LOGGER.warning(
            "webhook secret not configured",
            extra={
                "event": "security_degraded",
                "context": {"reason": "SANITY_WEBHOOK_SECRET not set - webhook requests will be rejected"},
            },
        )
    yield


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the webhook receiver application."""
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    # Starlette adds latest middleware first, so add reverse of desired runtime order.
    app.add_middleware(
        SanityWebhookMiddleware,
        paths=settings.sanity_webhook_paths,
        secret=settings.sanity_webhook_secret,
        halt_on_error=settings.sanity_webhook_halt_on_error,
        body_limits=settings.body_limits(),
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Service health endpoint."""
        return HealthResponse(app=settings.app_name)

    for path in settings.sanity_webhook_paths:
        app.add_api_route(path, receive_webhook, methods=["POST"], response_model=WebhookAck)

    return app


async def receive_webhook(request: Request) -> WebhookAck:
    """Acknowledge a webhook that reached the app after verification."""
    diagnostics = get_webhook_diagnostics(request)
    if diagnostics is None or not diagnostics.ok:
        error = diagnostics.error if diagnostics else "Webhook was not verified"
        LOGGER.info("unverified webhook passed through", extra={"event": "webhook_unverified", "context": {}})
        return WebhookAck(status="rejected", error=str(error))

    payload = get_webhook_payload(request)
    document_id = str(payload["_id"]) if isinstance(payload, dict) and "_id" in payload else None
    return WebhookAck(
        status="accepted",
        document_id=document_id,
        payload=payload if isinstance(payload, dict) else None,
    )


app = create_app()
