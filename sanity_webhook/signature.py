"""Compute and verify Sanity webhook signatures."""

from __future__ import annotations

import base64
import hashlib
import hmac

from sanity_webhook.errors import SignatureMismatchError, TimestampTooOldError

# 2021-01-01T00:00:00Z in milliseconds.
MINIMUM_TIMESTAMP = 1_609_459_200_000


def base64url_encode(payload: bytes) -> str:
    """Encode bytes as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def base64url_decode(payload: str) -> bytes:
    """Decode URL-safe base64, with or without trailing padding."""
    stripped = payload.rstrip("=")
    return base64.urlsafe_b64decode(stripped + "=" * (-len(stripped) % 4))


def compute_signature(timestamp: int, body: bytes, secret: str) -> str:
    """Return the expected signature for a timestamp and raw body.

    Raises TimestampTooOldError before hashing anything when the timestamp
    falls below MINIMUM_TIMESTAMP.
    """
    if timestamp < MINIMUM_TIMESTAMP:
        raise TimestampTooOldError(timestamp)
    message = f"{timestamp}.".encode("ascii") + body
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()
    return base64url_encode(digest)


def verify_signature(presented_hash: str, timestamp: int, body: bytes, secret: str) -> str:
    """Check a presented hash and return the computed one when it matches."""
    computed = compute_signature(timestamp, body, secret)
    if not hmac.compare_digest(presented_hash.encode("utf-8"), computed.encode("ascii")):
        raise SignatureMismatchError(computed)
    return computed
