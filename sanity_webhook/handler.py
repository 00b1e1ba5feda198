"""Capability interface for applications that take over webhook responses."""

from __future__ import annotations

from typing import Any, Protocol

from starlette.requests import Request
from starlette.responses import Response

from sanity_webhook.pipeline import Rejected


class WebhookHandler(Protocol):
    """Produces the final response for a verified or rejected webhook."""

    async def on_authenticated(self, request: Request, payload: Any) -> Response:
        """Handle an authenticity-validated webhook."""
        ...

    async def on_rejected(self, request: Request, error: Rejected) -> Response:
        """Handle an inauthentic or malformed webhook."""
        ...
