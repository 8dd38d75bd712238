"""
Tests for the application shell: routing fallbacks, error bodies and
middleware.
"""

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

from bookcatalog.main import create_app
from bookcatalog.middleware import SECURITY_HEADERS
from tests.conftest import make_settings

NOT_FOUND = {"error": "Not Found", "code": "NOT_FOUND"}


class Note(BaseModel):
    text: str


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE", "PATCH"])
def test_unknown_route_is_not_found_for_any_method(client, method):
    response = client.request(method, "/no/such/route")

    assert response.status_code == 404
    assert response.json() == NOT_FOUND


@pytest.mark.parametrize("method,path", [("POST", "/health"), ("DELETE", "/api/books")])
def test_known_path_with_other_method_is_not_found(client, method, path):
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.json() == NOT_FOUND


def _add_failing_route(app):
    async def explode():
        raise RuntimeError("kaboom")

    app.add_api_route("/explode", explode)


def test_uncaught_error_is_server_error_with_detail_in_development(app, client):
    _add_failing_route(app)

    response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal Server Error",
        "code": "SERVER_ERROR",
        "message": "kaboom",
    }


def test_uncaught_error_hides_detail_in_production(context):
    settings = make_settings(environment="production")
    app = create_app(settings, context=context)
    _add_failing_route(app)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error", "code": "SERVER_ERROR"}


def test_security_headers_are_set(client):
    response = client.get("/health")

    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def test_security_headers_on_not_found(client):
    response = client.get("/missing")

    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_cors_preflight_allows_frontend_origin(client, settings):
    response = client.options(
        "/api/books",
        headers={
            "Origin": settings.frontend_url,
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == settings.frontend_url
    assert "GET" in response.headers["access-control-allow-methods"]


def test_cors_rejects_other_origin(client):
    response = client.get("/api/books", headers={"Origin": "http://evil.example"})

    assert "access-control-allow-origin" not in response.headers


def test_oversized_body_is_rejected(context):
    settings = make_settings(max_body_bytes=16)
    app = create_app(settings, context=context)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/api/books", content=b"x" * 64)

    assert response.status_code == 413
    assert response.json()["code"] == "PAYLOAD_TOO_LARGE"


def _app_with_upload_routes(context, limit):
    app = create_app(make_settings(max_body_bytes=limit), context=context)

    @app.post("/upload")
    async def upload(request: Request):
        return {"size": len(await request.body())}

    @app.post("/notes")
    async def notes(note: Note):
        return {"length": len(note.text)}

    return app


def test_chunked_body_over_limit_is_rejected(context):
    app = _app_with_upload_routes(context, limit=16)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/upload", content=iter([b"x" * 10, b"x" * 10]))

    assert "content-length" not in response.request.headers
    assert response.status_code == 413
    assert response.json() == {"error": "Payload Too Large", "code": "PAYLOAD_TOO_LARGE"}


def test_chunked_body_within_limit_is_accepted(context):
    app = _app_with_upload_routes(context, limit=16)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/upload", content=iter([b"x" * 5, b"x" * 5]))

    assert response.status_code == 200
    assert response.json() == {"size": 10}


def test_chunked_json_body_over_limit_is_rejected(context):
    app = _app_with_upload_routes(context, limit=16)
    payload = b'{"text": "' + b"x" * 64 + b'"}'

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post(
            "/notes",
            content=iter([payload[:20], payload[20:]]),
            headers={"Content-Type": "application/json"},
        )

    assert response.status_code == 413
    assert response.json()["code"] == "PAYLOAD_TOO_LARGE"


def test_requests_are_logged(client, caplog):
    with caplog.at_level("INFO", logger="bookcatalog.middleware"):
        client.get("/health?verbose=1")

    assert "GET /health?verbose=1" in caplog.text
