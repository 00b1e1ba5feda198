"""Pluggable decoders for verified webhook bodies."""

from __future__ import annotations

import json
from typing import Any, Protocol

from sanity_webhook.errors import DecodeFailureError

JSON_DECODE_MESSAGE = "JSON decoding error"


class PayloadDecoder(Protocol):
    """Turns verified raw bytes into structured data."""

    def decode(self, body: bytes) -> Any:
        ...


class JsonPayloadDecoder:
    """Default decoder backed by the json module."""

    def decode(self, body: bytes) -> Any:
        try:
            return json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeFailureError(JSON_DECODE_MESSAGE) from exc
