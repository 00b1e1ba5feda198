"""Signature middleware tests."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.testclient import TestClient

from sanity_webhook.body import BodyReadLimits
from sanity_webhook.errors import ErrorKind, NoSecretError
from sanity_webhook.header import SIGNATURE_HEADER
from sanity_webhook.middleware.signature import (
    SanityWebhookMiddleware,
    get_webhook_diagnostics,
    get_webhook_error,
    get_webhook_payload,
)
from sanity_webhook.pipeline import Rejected
from sanity_webhook.signature import compute_signature
from tests.webhook_samples import ALTERED_TS, GOOD_BODY, GOOD_HASH, GOOD_SECRET, GOOD_SIGNATURE, GOOD_TS


def _build_app(**options: Any) -> FastAPI:
    app = FastAPI()
    config = {"paths": ["/sanity", "/webhook"], "secret": GOOD_SECRET, **options}
    app.add_middleware(SanityWebhookMiddleware, **config)

    async def _inspect(request: Request) -> dict[str, Any]:
        diagnostics = get_webhook_diagnostics(request)
        return {
            "error": get_webhook_error(request),
            "payload": get_webhook_payload(request),
            "verified": diagnostics is not None,
            "computed": diagnostics.computed_hash if diagnostics else None,
            "body": (await request.body()).decode("latin-1"),
        }

    for path in ("/sanity", "/webhook", "/other"):
        app.add_api_route(path, _inspect, methods=["POST"])
    return app


def _post(client: TestClient, body: bytes = GOOD_BODY, signature: str | None = GOOD_SIGNATURE, path: str = "/sanity"):
    headers = {"content-type": "application/json", "user-agent": "Sanity.io webhook delivery"}
    if signature is not None:
        headers[SIGNATURE_HEADER] = signature
    return client.post(path, content=body, headers=headers)


def test_valid_signature_passes_payload_downstream() -> None:
    res = _post(TestClient(_build_app()))

    assert res.status_code == 200
    data = res.json()
    assert data["error"] is False
    assert data["payload"] == {"_id": "resume"}
    assert data["computed"] == GOOD_HASH
    assert data["body"] == GOOD_BODY.decode()


def test_single_path_string() -> None:
    client = TestClient(_build_app(paths="/sanity"))
    assert _post(client).json()["error"] is False


def test_every_configured_path_is_verified() -> None:
    client = TestClient(_build_app())
    assert _post(client, path="/webhook").json()["error"] is False
    assert _post(client, path="/webhook", signature=None).status_code == 400


def test_unmatched_path_is_untouched() -> None:
    client = TestClient(_build_app(paths=["/no-matchy", "/no-matchy-2"]))
    res = _post(client, signature="t=1,v1=nope")

    assert res.status_code == 200
    assert res.json() == {
        "error": None,
        "payload": None,
        "verified": False,
        "computed": None,
        "body": GOOD_BODY.decode(),
    }


def test_no_paths_is_passthrough() -> None:
    client = TestClient(_build_app(paths=None))
    res = _post(client, signature=None)

    assert res.status_code == 200
    assert res.json()["verified"] is False


def test_missing_header_halts_with_json_error() -> None:
    client = TestClient(_build_app())
    res = _post(client, signature=None)

    assert res.status_code == 400
    assert res.headers["content-type"] == "application/json"
    assert res.json() == {"error": "Could not find valid webhook signature header"}


def test_duplicate_header_halts() -> None:
    client = TestClient(_build_app())
    res = client.post(
        "/sanity",
        content=GOOD_BODY,
        headers=[(SIGNATURE_HEADER, GOOD_SIGNATURE), (SIGNATURE_HEADER, GOOD_SIGNATURE)],
    )
    assert res.status_code == 400
    assert res.json() == {"error": "Could not find valid webhook signature header"}


def test_altered_timestamp_halts() -> None:
    res = _post(TestClient(_build_app()), signature=f"t={ALTERED_TS},v1={GOOD_HASH}")

    assert res.status_code == 400
    assert res.json() == {"error": "Signature does not match expected"}


def test_old_timestamp_halts() -> None:
    res = _post(TestClient(_build_app()), signature=f"t=123,v1={GOOD_HASH}")

    assert res.status_code == 400
    assert res.json() == {"error": "Timestamp 123 is too early to be a valid webhook"}


def test_oversized_timestamp_halts_as_missing_header() -> None:
    res = _post(TestClient(_build_app()), signature=f"t={'9' * 5000},v1={GOOD_HASH}")

    assert res.status_code == 400
    assert res.json() == {"error": "Could not find valid webhook signature header"}


def test_bad_hash_halts() -> None:
    res = _post(TestClient(_build_app()), signature=f"t={GOOD_TS},v1=badhash")
    assert res.json() == {"error": "Signature does not match expected"}


def test_tampered_body_halts() -> None:
    res = _post(TestClient(_build_app()), body=b'{"_id":"foo"}')

    assert res.status_code == 400
    assert res.json() == {"error": "Signature does not match expected"}


def test_json_decoding_error_halts() -> None:
    body = bytes(range(10))
    signature = compute_signature(GOOD_TS, body, GOOD_SECRET)
    res = _post(TestClient(_build_app()), body=body, signature=f"t={GOOD_TS},v1={signature}")

    assert res.status_code == 400
    assert res.json() == {"error": "JSON decoding error"}


def test_smaller_read_lengths_still_verify() -> None:
    client = TestClient(_build_app(body_limits=BodyReadLimits(chunk_length=8)))
    assert _post(client).status_code == 200


def test_oversized_body_halts() -> None:
    client = TestClient(_build_app(body_limits=BodyReadLimits(max_length=4)))
    res = _post(client)

    assert res.status_code == 400
    assert res.json() == {"error": "request body exceeds 4 bytes"}


def test_deferred_secrets() -> None:
    res = _post(TestClient(_build_app(secret=lambda: "test2")))
    assert res.json() == {"error": "Signature does not match expected"}

    def _error_secret() -> str:
        raise NoSecretError("no secret")

    res = _post(TestClient(_build_app(secret=_error_secret)))
    assert res.status_code == 400
    assert res.json() == {"error": "no secret"}

    res = _post(TestClient(_build_app(secret=lambda: GOOD_SECRET)))
    assert res.status_code == 200


def test_failing_secret_lookup_halts_as_no_secret() -> None:
    lookup: dict[str, str] = {}
    res = _post(TestClient(_build_app(secret=lambda: lookup["SANITY_WEBHOOK_SECRET"])))

    assert res.status_code == 400
    assert res.json() == {"error": "No secret configured"}


def test_missing_secret_halts(monkeypatch) -> None:
    monkeypatch.delenv("SANITY_WEBHOOK_SECRET", raising=False)
    res = _post(TestClient(_build_app(secret=None)))

    assert res.status_code == 400
    assert res.json() == {"error": "No secret configured"}


def test_halt_on_error_false_leaves_error_for_caller() -> None:
    client = TestClient(_build_app(halt_on_error=False))
    res = _post(client, body=b'{"_id":"foo"}')

    assert res.status_code == 200
    data = res.json()
    assert data["error"] == "Signature does not match expected"
    assert data["payload"] is None
    assert data["verified"] is True


class RecordingHandler:
    def __init__(self) -> None:
        self.rejections: list[Rejected] = []

    async def on_authenticated(self, request: Request, payload: Any) -> JSONResponse:
        return JSONResponse({"handled": payload}, status_code=202)

    async def on_rejected(self, request: Request, error: Rejected) -> PlainTextResponse:
        self.rejections.append(error)
        assert get_webhook_error(request) == error.message
        return PlainTextResponse(error.message, status_code=401)


def test_handler_takes_over_authenticated_requests() -> None:
    res = _post(TestClient(_build_app(handler=RecordingHandler())))

    assert res.status_code == 202
    assert res.json() == {"handled": {"_id": "resume"}}


def test_handler_takes_over_rejected_requests() -> None:
    handler = RecordingHandler()
    res = _post(TestClient(_build_app(handler=handler)), signature=None)

    assert res.status_code == 401
    assert res.text == "Could not find valid webhook signature header"
    assert [item.kind for item in handler.rejections] == [ErrorKind.MISSING_HEADER]
