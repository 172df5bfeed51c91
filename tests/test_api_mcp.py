# Tests for the protected MCP endpoint.
# Created: 2026-10-08

import pytest
from fastapi.testclient import TestClient

from agentconfig.api.oauth2.tokens import sign_access_token
from agentconfig.api.serve import create_api_app


def _jwt(secret, sub="user-1"):
    return sign_access_token({"sub": sub, "scope": "read", "client_id": "mcp_abc"}, secret)


class RecordingHandler:
    def __init__(self):
        self.calls = []

    async def __call__(self, message, identity, mode):
        self.calls.append((message, identity, mode))
        if "id" not in message:
            return None
        return {"jsonrpc": "2.0", "id": message["id"], "result": {"mode": mode}}


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def mcp_client(settings, handler):
    with TestClient(create_api_app(settings, mcp_handler=handler)) as c:
        yield c


class TestMcpEndpoint:
    @pytest.mark.parametrize("path", ["/mcp", "/mcp/oauth"])
    def test_anonymous_is_readonly(self, mcp_client, handler, path):
        resp = mcp_client.post(path, json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
        assert resp.status_code == 200
        assert resp.json()["result"] == {"mode": "readonly"}
        _, identity, _ = handler.calls[0]
        assert identity is None

    @pytest.mark.parametrize("path", ["/mcp", "/mcp/oauth"])
    def test_jwt_is_full(self, mcp_client, handler, settings, path):
        resp = mcp_client.post(
            path,
            json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"},
            headers={"Authorization": f"Bearer {_jwt(settings.jwt_secret)}"},
        )
        assert resp.json()["result"] == {"mode": "full"}
        _, identity, _ = handler.calls[0]
        assert identity.user_id == "user-1"

    def test_invalid_token(self, mcp_client, handler):
        resp = mcp_client.post(
            "/mcp/oauth",
            json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
            headers={"Authorization": "Bearer expired-or-garbage"},
        )
        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] == "invalid_token"
        assert body["auth_url"] == "http://testserver/mcp/oauth/authorize"
        assert resp.headers["www-authenticate"].startswith('Bearer error="invalid_token"')
        assert handler.calls == []

    def test_non_bearer_scheme(self, mcp_client):
        resp = mcp_client.post(
            "/mcp", json={"jsonrpc": "2.0", "id": 1}, headers={"Authorization": "Basic abc"}
        )
        assert resp.status_code == 401

    def test_notification_is_accepted(self, mcp_client):
        resp = mcp_client.post(
            "/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )
        assert resp.status_code == 202

    def test_batch(self, mcp_client):
        resp = mcp_client.post(
            "/mcp",
            json=[
                {"jsonrpc": "2.0", "id": 1, "method": "ping"},
                {"jsonrpc": "2.0", "method": "notifications/initialized"},
                {"jsonrpc": "2.0", "id": 2, "method": "ping"},
            ],
        )
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [1, 2]

    def test_parse_error(self, mcp_client):
        resp = mcp_client.post(
            "/mcp", content=b"{oops", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == -32700


class TestDefaultHandler:
    def test_initialize(self, client):
        resp = client.post(
            "/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}
        )
        result = resp.json()["result"]
        assert result["serverInfo"]["name"] == "agent-config-adapter"
        assert result["instructions"] == "Access mode: readonly"

    def test_ping(self, client):
        resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert resp.json() == {"jsonrpc": "2.0", "id": 7, "result": {}}

    def test_unknown_method(self, client):
        resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "configs/list"})
        assert resp.json()["error"]["code"] == -32601


class TestCors:
    def test_unauthorized_response_has_cors_headers(self, client):
        resp = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
            headers={"Authorization": "Bearer bad", "Origin": "http://localhost:3000"},
        )
        assert resp.status_code == 401
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "WWW-Authenticate" in resp.headers["access-control-expose-headers"]
