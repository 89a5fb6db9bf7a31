import json
from urllib.parse import parse_qs

import httpx
import pytest

from formbackend.verification import VerificationClient


def _client(handler) -> VerificationClient:
    return VerificationClient(
        httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        paystack_secret_key="sk_live",
        recaptcha_secret_key="rc_secret",
        turnstile_secret_key="ts_secret",
    )


@pytest.mark.asyncio
async def test_payment_requires_success_status() -> None:
    statuses = {"good": "success", "abandoned": "abandoned"}

    def handler(request: httpx.Request) -> httpx.Response:
        reference = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={"status": True, "data": {"status": statuses[reference]}})

    client = _client(handler)
    assert await client.verify_payment("good") is True
    assert await client.verify_payment("abandoned") is False


@pytest.mark.asyncio
async def test_payment_lookup_failures_are_false() -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    def not_json(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    def no_data(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": True})

    for handler in (unreachable, not_json, no_data):
        assert await _client(handler).verify_payment("ref") is False
    assert await _client(no_data).verify_payment(None) is False


@pytest.mark.asyncio
async def test_recaptcha_posts_form_encoded_secret() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "hostname": "example.com"})

    assert await _client(handler).verify_recaptcha("tok-1") is True
    assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(seen[0].content.decode()) == {"secret": ["rc_secret"], "response": ["tok-1"]}


@pytest.mark.asyncio
async def test_turnstile_posts_json_secret() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})

    assert await _client(handler).verify_turnstile("tok-2") is False
    assert json.loads(seen[0].content) == {"secret": "ts_secret", "response": "tok-2"}


def test_verification_routes(client, external) -> None:
    external.paystack["ref-1"] = "success"
    assert client.post("/api/verify-payment", json={"reference": "ref-1"}).json() == {"valid": True}
    assert client.post("/api/verify-payment", json={"reference": "ref-2"}).json() == {"valid": False}

    assert client.post("/api/verify-recaptcha", json={"token": "t"}).json() == {"valid": True}
    external.turnstile_success = False
    response = client.post("/api/verify-turnstile", json={"token": "t"})
    assert response.status_code == 200
    assert response.json() == {"valid": False}
