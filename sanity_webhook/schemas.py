"""Pydantic schemas for diagnostics and HTTP responses."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from sanity_webhook.errors import ErrorKind


class WebhookDiagnostics(BaseModel):
    """Per-request verification record kept on request.state.

    The secret is excluded from repr and from every serialized form.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    hash: str | None = None
    computed_hash: str | None = None
    timestamp: int | None = None
    raw_body: bytes | None = None
    secret: SecretStr | None = Field(default=None, repr=False, exclude=True)
    error: str | Literal[False] = False
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is False


class ErrorResponse(BaseModel):
    """Body of the 400 response sent when halting on a rejected webhook."""

    error: str


class WebhookAck(BaseModel):
    """Response returned by the webhook receiver route."""

    status: Literal["accepted", "rejected"]
    document_id: str | None = None
    error: str | None = None
    payload: dict[str, Any] | None = None


class HealthResponse(BaseModel):
    """Healthcheck response model."""

    status: Literal["ok"] = "ok"
    app: str
