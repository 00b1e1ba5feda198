"""Bounded acquisition of the raw request body."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from starlette.requests import ClientDisconnect, Request

from sanity_webhook.errors import BodyReadError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BodyReadLimits:
    """Size and time budget for reading one request body."""

    max_length: int = 8_000_000
    chunk_length: int = 1_000_000
    read_timeout: float = 15.0

    def __post_init__(self) -> None:
        if self.max_length <= 0 or self.chunk_length <= 0:
            raise ValueError("body read lengths must be positive")
        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be positive")


async def read_body(request: Request, limits: BodyReadLimits) -> bytes:
    """Read the whole body into one buffer, reusing one read upstream.

    The result is cached on the request so handlers further down the
    stack see the same bytes.
    """
    cached = getattr(request, "_body", None)
    if cached is not None:
        if len(cached) > limits.max_length:
            raise BodyReadError(f"request body exceeds {limits.max_length} bytes")
        return cached

    buffer = bytearray()
    stream = request.stream()
    try:
        while True:
            try:
                chunk = await asyncio.wait_for(anext(stream), timeout=limits.read_timeout)
            except StopAsyncIteration:
                break
            for start in range(0, len(chunk), limits.chunk_length):
                buffer += chunk[start : start + limits.chunk_length]
                if len(buffer) > limits.max_length:
                    raise BodyReadError(f"request body exceeds {limits.max_length} bytes")
    except TimeoutError as exc:
        raise BodyReadError(f"timed out reading request body after {limits.read_timeout}s") from exc
    except ClientDisconnect as exc:
        raise BodyReadError("client disconnected while reading request body") from exc
    except RuntimeError as exc:
        # Starlette raises RuntimeError once the stream was consumed elsewhere.
        raise BodyReadError(str(exc)) from exc
    finally:
        await stream.aclose()

    body = bytes(buffer)
    request._body = body  # type: ignore[attr-defined]
    LOGGER.debug("request body read", extra={"event": "body_read", "context": {"bytes": len(body)}})
    return body
