from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from labops.auth import get_current_user
from labops.main import PUBLIC_PATHS, _depends_on, create_app
from labops.routes import auth as auth_routes

from .conftest import app, client, settings


def test_all_routes_protected():
    for route in app.routes:
        if not isinstance(route, APIRoute) or not route.path.startswith("/api"):
            continue
        if route.path in PUBLIC_PATHS:
            continue
        assert _depends_on(route.dependant, get_current_user), f"{route.path} missing authentication"


def test_protected_route_without_token(client):
    for path in ["/api/equipment", "/api/incidents", "/api/projects", "/api/iaq-records"]:
        resp = client.get(path)
        assert resp.status_code == 401, path


def test_metrics_is_public(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert b"request_count" in resp.content


def test_rate_limiting_follows_app_settings():
    limited = create_app(settings.model_copy(update={"testing": False, "rate_limit_enabled": True}))
    try:
        with TestClient(limited) as c:
            body = {"email": "nobody@example.com", "password": "secret1"}
            codes = [c.post("/api/auth/login", json=body).status_code for _ in range(11)]
        assert codes[:10] == [401] * 10
        assert codes[10] == 429
    finally:
        auth_routes.limiter.enabled = False
        auth_routes.limiter.reset()

    with TestClient(app) as c:
        codes = {c.post("/api/auth/login", json=body).status_code for _ in range(12)}
    assert codes == {401}
