"""Verify Sanity webhook signatures before application code sees the body."""

from __future__ import annotations

from sanity_webhook.body import BodyReadLimits
from sanity_webhook.errors import ErrorKind, WebhookVerificationError
from sanity_webhook.header import SIGNATURE_HEADER
from sanity_webhook.middleware.signature import (
    SanityWebhookMiddleware,
    get_webhook_diagnostics,
    get_webhook_error,
    get_webhook_payload,
)
from sanity_webhook.pipeline import Authenticated, Rejected, VerificationPipeline
from sanity_webhook.secret import CallableSecret, EnvironmentSecret, LiteralSecret
from sanity_webhook.signature import compute_signature, verify_signature

__all__ = [
    "SIGNATURE_HEADER",
    "Authenticated",
    "BodyReadLimits",
    "CallableSecret",
    "EnvironmentSecret",
    "ErrorKind",
    "LiteralSecret",
    "Rejected",
    "SanityWebhookMiddleware",
    "VerificationPipeline",
    "WebhookVerificationError",
    "compute_signature",
    "get_webhook_diagnostics",
    "get_webhook_error",
    "get_webhook_payload",
    "verify_signature",
]
