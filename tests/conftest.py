"""Shared fixtures for building raw ASGI requests."""

from __future__ import annotations

import pytest
from starlette.requests import Request


@pytest.fixture
def make_request():
    """Build a Starlette request fed from a fixed list of body chunks."""

    def _make(
        chunks: list[bytes],
        headers: list[tuple[str, str]] | None = None,
        path: str = "/sanity",
        receive=None,
    ) -> Request:
        messages = [
            {"type": "http.request", "body": chunk, "more_body": index < len(chunks) - 1}
            for index, chunk in enumerate(chunks)
        ]

        async def _receive():
            if messages:
                return messages.pop(0)
            return {"type": "http.disconnect"}

        scope = {
            "type": "http",
            "method": "POST",
            "path": path,
            "query_string": b"",
            "headers": [(name.lower().encode(), value.encode()) for name, value in headers or []],
        }
        return Request(scope, receive or _receive)

    return _make
