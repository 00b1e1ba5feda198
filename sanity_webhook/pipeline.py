"""Fixed-order verification of one inbound webhook request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import SecretStr
from starlette.requests import Request

from sanity_webhook.body import BodyReadLimits, read_body
from sanity_webhook.decoders import JsonPayloadDecoder, PayloadDecoder
from sanity_webhook.errors import (
    DecodeFailureError,
    ErrorKind,
    SignatureMismatchError,
    WebhookVerificationError,
)
from sanity_webhook.header import SIGNATURE_HEADER, SignatureHeader, parse_signature_header
from sanity_webhook.schemas import WebhookDiagnostics
from sanity_webhook.secret import SecretSpec, as_provider, resolve_secret
from sanity_webhook.signature import verify_signature

LOGGER = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Stages a request moves through while being verified."""

    PATH_MATCHED = "path_matched"
    SECRET_RESOLVED = "secret_resolved"
    BODY_READ = "body_read"
    HEADER_PARSED = "header_parsed"
    SIGNATURE_VERIFIED = "signature_verified"
    PAYLOAD_DECODED = "payload_decoded"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Authenticated:
    """Verified request with its decoded payload."""

    payload: Any
    diagnostics: WebhookDiagnostics

    state = PipelineState.AUTHENTICATED


@dataclass(frozen=True)
class Rejected:
    """Classified failure; `failed_at` is the last stage reached."""

    kind: ErrorKind
    message: str
    diagnostics: WebhookDiagnostics
    failed_at: PipelineState
    cause: BaseException | None = None

    state = PipelineState.REJECTED


VerificationResult = Authenticated | Rejected


class VerificationPipeline:
    """Resolves the secret, reads, authenticates and decodes a request."""

    def __init__(
        self,
        secret: SecretSpec = None,
        limits: BodyReadLimits | None = None,
        decoder: PayloadDecoder | None = None,
    ) -> None:
        self.secret_provider = as_provider(secret)
        self.limits = limits or BodyReadLimits()
        self.decoder = decoder or JsonPayloadDecoder()

    async def run(self, request: Request) -> VerificationResult:
        """Verify a request whose path already matched."""
        state = PipelineState.PATH_MATCHED
        secret: str | None = None
        body: bytes | None = None
        header: SignatureHeader | None = None
        computed: str | None = None
        try:
            secret = resolve_secret(self.secret_provider)
            state = PipelineState.SECRET_RESOLVED

            body = await read_body(request, self.limits)
            state = PipelineState.BODY_READ

            header = parse_signature_header(request.headers.getlist(SIGNATURE_HEADER))
            state = PipelineState.HEADER_PARSED

            computed = verify_signature(header.hash, header.timestamp, body, secret)
            state = PipelineState.SIGNATURE_VERIFIED

            payload = self._decode(body)
            state = PipelineState.PAYLOAD_DECODED
        except WebhookVerificationError as exc:
            if isinstance(exc, SignatureMismatchError):
                computed = exc.computed_hash
            diagnostics = WebhookDiagnostics(
                hash=header.hash if header else None,
                computed_hash=computed,
                timestamp=header.timestamp if header else None,
                raw_body=body,
                secret=SecretStr(secret) if secret else None,
                error=exc.message,
                error_kind=exc.kind,
            )
            LOGGER.warning(
                "webhook rejected",
                extra={
                    "event": "webhook_rejected",
                    "context": {"kind": exc.kind.value, "stage": state.value, "path": request.url.path},
                },
            )
            return Rejected(
                kind=exc.kind,
                message=exc.message,
                diagnostics=diagnostics,
                failed_at=state,
                cause=exc.__cause__ or exc,
            )

        diagnostics = WebhookDiagnostics(
            hash=header.hash,
            computed_hash=computed,
            timestamp=header.timestamp,
            secret=SecretStr(secret),
        )
        LOGGER.info(
            "webhook authenticated",
            extra={
                "event": "webhook_authenticated",
                "context": {"timestamp": header.timestamp, "path": request.url.path},
            },
        )
        return Authenticated(payload=payload, diagnostics=diagnostics)

    def _decode(self, body: bytes) -> Any:
        try:
            return self.decoder.decode(body)
        except DecodeFailureError:
            raise
        except Exception as exc:
            LOGGER.warning(
                "payload decoder failed",
                extra={"event": "decode_failed", "context": {"error_type": type(exc).__name__}},
                exc_info=True,
            )
            raise DecodeFailureError() from exc
