import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

here = Path(__file__).resolve()
root = here.parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from formbackend.bindings import Bindings
from formbackend.config import Settings
from formbackend.db import Database
from formbackend.kv_store import SqliteKeyValueStore
from formbackend.main import create_app
from formbackend.object_store import LocalObjectStore

API_SECRET = "test-admin-secret"
ADMIN_HEADERS = {"Authorization": f"Bearer {API_SECRET}"}
WEBHOOK_URL = "https://hooks.example.com/forms"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def timestamp(self) -> float:
        return self.current.timestamp()

    def advance(self, **kwargs: Any) -> None:
        self.current += timedelta(**kwargs)


class ExternalApis:
    """Canned third-party endpoints; every outbound request is recorded."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.paystack: dict[str, str] = {}
        self.captcha_success = True
        self.turnstile_success = True
        self.webhook_down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "api.paystack.co":
            reference = request.url.path.rsplit("/", 1)[-1]
            status = self.paystack.get(reference)
            if status is None:
                return httpx.Response(
                    404, json={"status": False, "message": "Transaction reference not found"}
                )
            return httpx.Response(200, json={"status": True, "data": {"status": status}})
        if host == "www.google.com":
            return httpx.Response(200, json={"success": self.captcha_success})
        if host == "challenges.cloudflare.com":
            return httpx.Response(200, json={"success": self.turnstile_success})
        if host == "api.resend.com":
            return httpx.Response(200, json={"id": "email_123"})
        if host == "hooks.example.com":
            if self.webhook_down:
                raise httpx.ConnectError("webhook unreachable", request=request)
            return httpx.Response(204)
        return httpx.Response(404)

    def sent_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def external() -> ExternalApis:
    return ExternalApis()


@pytest.fixture
def make_bindings(tmp_path: Path, clock: FakeClock, external: ExternalApis):
    def factory(
        *, db: bool = True, kv: bool = True, bucket: bool = True, **overrides: Any
    ) -> Bindings:
        values: dict[str, Any] = {
            "API_SECRET": API_SECRET,
            "PAYSTACK_SECRET_KEY": "sk_test_paystack",
            "RECAPTCHA_SECRET_KEY": "recaptcha-secret",
            "TURNSTILE_SECRET_KEY": "turnstile-secret",
            "RESEND_API_KEY": None,
            "WEBHOOK_URL": None,
            "SQLITE_PATH": None,
            "KV_PATH": None,
            "UPLOADS_DIR": None,
        }
        values.update(overrides)
        settings = Settings(_env_file=None, **values)
        return Bindings(
            settings=settings,
            http=httpx.AsyncClient(transport=httpx.MockTransport(external.handler)),
            db=Database(tmp_path / "forms.sqlite") if db else None,
            kv=SqliteKeyValueStore(tmp_path / "kv.sqlite", clock=clock.timestamp) if kv else None,
            bucket=LocalObjectStore(tmp_path / "uploads") if bucket else None,
            clock=clock,
        )

    return factory


@pytest.fixture
def make_client(make_bindings):
    def factory(**kwargs: Any) -> TestClient:
        return TestClient(create_app(make_bindings(**kwargs)))

    return factory


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
