"""
Tests for the ASGI middleware.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fail2ban_redux.integrations import Fail2BanMiddleware
from fail2ban_redux.ports.policy import PolicyDecision


def _app(engine) -> FastAPI:
    app = FastAPI()
    app.add_middleware(Fail2BanMiddleware, engine=engine)

    @app.get("/")
    async def index():
        return {"ok": True}

    @app.get("/wp-admin/users")
    async def admin_users():
        return {"ok": True}

    @app.post("/login")
    async def login(username: str, password: str):
        engine.authenticate(username)
        if password != "secret":
            engine.login_failed(username)
            return {"ok": False}
        engine.login(username)
        return {"ok": True}

    @app.post("/xmlrpc")
    async def xmlrpc(failures: int):
        for _ in range(failures):
            engine.xmlrpc_login_error()
        return {"failures": engine.current_request.xmlrpc_failures}

    return app


@pytest.fixture
def enumeration_engine(make_engine):
    return make_engine(PolicyDecision(block_user_enumeration=True, blocked_users=("admin",)))


class TestUserEnumeration:
    """Tests for enumeration checks on every request."""

    def test_probe_gets_empty_403(self, enumeration_engine, sink):
        client = TestClient(_app(enumeration_engine))
        response = client.get("/", params={"author": "1"})

        assert response.status_code == 403
        assert response.content == b""
        assert sink.lines[0].endswith("Blocked user enumeration attempt from testclient")

    def test_normal_request_passes(self, enumeration_engine, sink):
        client = TestClient(_app(enumeration_engine))
        response = client.get("/")

        assert response.status_code == 200
        assert sink.records == []

    def test_admin_path_exempt(self, enumeration_engine, sink):
        client = TestClient(_app(enumeration_engine))
        response = client.get("/wp-admin/users", params={"author": "1"})

        assert response.status_code == 200
        assert sink.records == []

    def test_detection_without_blocking(self, make_engine, sink):
        client = TestClient(_app(make_engine()))
        response = client.get("/", params={"author_name": "admin"})

        assert response.status_code == 200
        assert sink.records == []


class TestRouteHooks:
    """Hooks called from route handlers share the middleware's request."""

    def test_blocked_user_from_handler(self, enumeration_engine, sink):
        client = TestClient(_app(enumeration_engine))
        response = client.post("/login", params={"username": "admin", "password": "x"})

        assert response.status_code == 403
        assert response.content == b""
        assert len(sink.records) == 1

    def test_failed_login_carries_client_address(self, make_engine, sink):
        client = TestClient(_app(make_engine()))
        response = client.post("/login", params={"username": "bob", "password": "x"})

        assert response.status_code == 200
        assert sink.lines[0].endswith("Authentication attempt for unknown user bob from testclient")

    def test_xmlrpc_counter_is_per_request(self, make_engine, sink):
        client = TestClient(_app(make_engine()))

        assert client.post("/xmlrpc", params={"failures": 2}).json() == {"failures": 2}
        assert client.post("/xmlrpc", params={"failures": 1}).json() == {"failures": 1}
        assert len(sink.records) == 4
