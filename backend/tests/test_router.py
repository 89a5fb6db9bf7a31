from fastapi.testclient import TestClient

from conftest import ADMIN_HEADERS
from formbackend.main import create_app

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, PUT, DELETE, OPTIONS",
    "access-control-allow-headers": "Content-Type, Authorization",
}


def _assert_cors(response) -> None:
    for name, value in CORS.items():
        assert response.headers[name] == value


def test_options_short_circuits_on_any_path(client) -> None:
    for path in ("/api/forms", "/api/submit-form", "/no/such/route"):
        response = client.options(path)
        assert response.status_code == 200
        assert response.content == b""
        _assert_cors(response)


def test_unmatched_route_is_plain_text_404(client) -> None:
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.text == "Not Found"
    assert response.headers["content-type"].startswith("text/plain")
    _assert_cors(response)


def test_wrong_method_on_known_path_is_404(client) -> None:
    response = client.patch("/api/forms", headers=ADMIN_HEADERS)
    assert response.status_code == 404
    assert response.text == "Not Found"

    assert client.get("/api/save-draft").status_code == 404


def test_prefix_routes_use_trailing_segment(client) -> None:
    client.post(
        "/api/forms",
        json={"id": "contact", "title": "Contact Us", "fields": []},
        headers=ADMIN_HEADERS,
    )
    assert client.get("/api/form/archive/contact").json()["title"] == "Contact Us"
    assert client.get("/api/form/").status_code == 404


def test_error_responses_carry_cors_headers(client) -> None:
    unauthorized = client.get("/api/submissions")
    assert unauthorized.status_code == 401
    assert unauthorized.json() == {"error": "Unauthorized"}
    _assert_cors(unauthorized)

    missing = client.get("/api/form/missing")
    assert missing.status_code == 404
    _assert_cors(missing)


def test_uncaught_failure_becomes_json_500(client) -> None:
    response = client.post(
        "/api/submit-form",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 500
    assert "error" in response.json()
    _assert_cors(response)


def test_invalid_body_is_rejected(client) -> None:
    response = client.post(
        "/api/forms", json={"title": "Broken", "fields": "nope"}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_verify_admin(client) -> None:
    for method in ("GET", "POST"):
        ok = client.request(method, "/api/verify-admin", headers=ADMIN_HEADERS)
        assert ok.status_code == 200
        assert ok.json() == {"valid": True}

        denied = client.request(method, "/api/verify-admin", headers={"Authorization": "Bearer other"})
        assert denied.status_code == 401
        assert denied.json() == {"valid": False}

    assert client.get("/api/verify-admin").status_code == 401


def test_unset_secret_rejects_everyone(make_client) -> None:
    client = make_client(API_SECRET=None)
    assert client.get("/api/verify-admin", headers={"Authorization": "Bearer None"}).status_code == 401
    assert client.get("/api/forms", headers={"Authorization": "Bearer "}).status_code == 401


def test_responses_carry_request_id(client) -> None:
    first = client.get("/health")
    second = client.get("/health")
    assert first.json() == {"status": "ok"}
    assert first.headers["x-request-id"]
    assert first.headers["x-request-id"] != second.headers["x-request-id"]


def test_trailing_slash_is_not_redirected(client) -> None:
    response = client.get("/api/submissions/", headers=ADMIN_HEADERS, follow_redirects=False)
    assert response.status_code == 404
    assert response.text == "Not Found"

    assert client.get("/api/forms/", headers=ADMIN_HEADERS, follow_redirects=False).status_code == 404


def test_shutdown_closes_outbound_client(make_bindings) -> None:
    bindings = make_bindings()
    with TestClient(create_app(bindings)) as client:
        assert client.get("/health").status_code == 200
        assert not bindings.http.is_closed
    assert bindings.http.is_closed
