"""Classified webhook verification failures."""

from __future__ import annotations

from enum import Enum

NO_SECRET_MESSAGE = "No secret configured"
MISSING_HEADER_MESSAGE = "Could not find valid webhook signature header"
SIGNATURE_MISMATCH_MESSAGE = "Signature does not match expected"
GENERIC_DECODE_MESSAGE = "decoding error"


class ErrorKind(str, Enum):
    """Every way a webhook request can be rejected."""

    NO_SECRET = "no_secret"
    BODY_READ_FAILURE = "body_read_failure"
    MISSING_HEADER = "missing_header"
    TIMESTAMP_TOO_OLD = "timestamp_too_old"
    SIGNATURE_MISMATCH = "signature_mismatch"
    DECODE_FAILURE = "decode_failure"


class WebhookVerificationError(Exception):
    """Base class for request-local, recoverable verification failures."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoSecretError(WebhookVerificationError):
    kind = ErrorKind.NO_SECRET

    def __init__(self, message: str = NO_SECRET_MESSAGE) -> None:
        super().__init__(message)


class BodyReadError(WebhookVerificationError):
    kind = ErrorKind.BODY_READ_FAILURE


class MissingHeaderError(WebhookVerificationError):
    kind = ErrorKind.MISSING_HEADER

    def __init__(self, message: str = MISSING_HEADER_MESSAGE) -> None:
        super().__init__(message)


class TimestampTooOldError(WebhookVerificationError):
    kind = ErrorKind.TIMESTAMP_TOO_OLD

    def __init__(self, timestamp: int) -> None:
        super().__init__(f"Timestamp {timestamp} is too early to be a valid webhook")
        self.timestamp = timestamp


class SignatureMismatchError(WebhookVerificationError):
    kind = ErrorKind.SIGNATURE_MISMATCH

    def __init__(self, computed_hash: str) -> None:
        super().__init__(SIGNATURE_MISMATCH_MESSAGE)
        self.computed_hash = computed_hash


class DecodeFailureError(WebhookVerificationError):
    kind = ErrorKind.DECODE_FAILURE

    def __init__(self, message: str = GENERIC_DECODE_MESSAGE) -> None:
        super().__init__(message)
