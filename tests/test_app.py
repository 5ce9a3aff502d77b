import json
import logging

from fastapi.testclient import TestClient

from conftest import make_settings
from main import create_app


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "OK"
    assert body["secure"] is False
    assert "http://localhost:3000" in body["allowed_origins"]


def test_security_headers_and_request_id(client):
    res = client.get("/")
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "DENY"
    assert "max-age" in res.headers["Strict-Transport-Security"]
    assert res.headers["X-Request-ID"]


def test_cors_allows_configured_origin_only(client):
    res = client.get("/cors-test", headers={"Origin": "http://localhost:3000"})
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert res.json()["origin"] == "http://localhost:3000"

    res = client.get("/cors-test", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in res.headers


def test_cors_preflight(client):
    res = client.options(
        "/payments/create",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization, Content-Type",
        },
    )
    assert res.status_code == 200
    assert res.headers["access-control-allow-credentials"] == "true"


def test_rate_limit_per_ip(database):
    app = create_app(make_settings(rate_limit_requests=3), database)
    with TestClient(app) as c:
        for _ in range(3):
            assert c.get("/health").status_code == 200
        res = c.get("/health")
        assert res.status_code == 429
        assert res.json()["detail"] == "Too many requests from this IP"
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["X-Request-ID"]


def test_unhandled_errors_are_generic_500(database):
    app = create_app(make_settings(), database)

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret connection string mongodb://user:pw@host")

    with TestClient(app, raise_server_exceptions=False) as c:
        res = c.get("/boom")
        assert res.status_code == 500
        assert res.json() == {"detail": "Internal server error"}


def test_database_closed_on_shutdown(app, database):
    with TestClient(app):
        assert database.connected
    assert not database.connected


def test_request_lifecycle_is_logged(database, caplog):
    app = create_app(make_settings(log_level="INFO"), database)
    caplog.set_level(logging.INFO)
    with TestClient(app) as c:
        request_id = c.get("/").headers["X-Request-ID"]

    events = []
    for message in caplog.messages:
        try:
            events.append(json.loads(message))
        except ValueError:
            continue
    for_request = [e["event"] for e in events if e.get("request_id") == request_id]
    assert for_request[0] == "request_started"
    assert for_request[-1] == "request_completed"
