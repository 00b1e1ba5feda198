"""Sanity webhook signature verification middleware."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from sanity_webhook.body import BodyReadLimits
from sanity_webhook.decoders import PayloadDecoder
from sanity_webhook.handler import WebhookHandler
from sanity_webhook.pipeline import Authenticated, VerificationPipeline
from sanity_webhook.schemas import ErrorResponse, WebhookDiagnostics
from sanity_webhook.secret import SecretSpec

DIAGNOSTICS_KEY = "sanity_webhook"
PAYLOAD_KEY = "webhook_payload"


def get_webhook_diagnostics(request: Request) -> WebhookDiagnostics | None:
    """Return the verification record, or None when verification never ran."""
    return getattr(request.state, DIAGNOSTICS_KEY, None)


def get_webhook_error(request: Request) -> str | bool | None:
    """Return False on success, the error message on failure, None if skipped."""
    diagnostics = get_webhook_diagnostics(request)
    if diagnostics is None:
        return None
    return diagnostics.error


def get_webhook_payload(request: Request) -> Any:
    """Return the decoded payload attached for downstream handlers."""
    return getattr(request.state, PAYLOAD_KEY, None)


class SanityWebhookMiddleware(BaseHTTPMiddleware):
    """Verifies Sanity webhook signatures on the configured paths."""

    def __init__(
        self,
        app,
        paths: str | Iterable[str] | None = None,
        secret: SecretSpec = None,
        halt_on_error: bool = True,
        body_limits: BodyReadLimits | None = None,
        payload_decoder: PayloadDecoder | None = None,
        handler: WebhookHandler | None = None,
    ):
        super().__init__(app)
        if isinstance(paths, str):
            paths = [paths]
        self.paths = frozenset(paths or ())
        self.halt_on_error = halt_on_error
        self.handler = handler
        self.pipeline = VerificationPipeline(secret=secret, limits=body_limits, decoder=payload_decoder)

    async def dispatch(self, request: Request, call_next):
        if not self.paths or request.url.path not in self.paths:
            return await call_next(request)

        result = await self.pipeline.run(request)
        setattr(request.state, DIAGNOSTICS_KEY, result.diagnostics)

        if isinstance(result, Authenticated):
            if self.handler is not None:
                return await self.handler.on_authenticated(request, result.payload)
            setattr(request.state, PAYLOAD_KEY, result.payload)
            return await call_next(request)

        if self.handler is not None:
            return await self.handler.on_rejected(request, result)
        if self.halt_on_error:
            return JSONResponse(ErrorResponse(error=result.message).model_dump(), status_code=400)
        return await call_next(request)
