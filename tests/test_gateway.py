# Tests for the credential gateway and scope dependencies.
# Created: 2026-10-08

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from agentconfig.api.api_keys import ApiKeyAuthority
from agentconfig.api.credential_store import InMemoryCredentialStore
from agentconfig.api.deps import require_identity, require_scope
from agentconfig.api.gateway import (
    AuthGateway,
    AuthIdentity,
    AuthType,
    auth_middleware,
    is_protected_path,
)
from agentconfig.api.identity import SessionCookieResolver
from agentconfig.api.oauth2.errors import InvalidTokenError, register_error_handlers
from agentconfig.api.oauth2.tokens import sign_access_token
from agentconfig.api.services import Services
from agentconfig.security.session_tokens import create_session_token

SECRET = "gateway-secret-0123456789abcdef0123456789"


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "POST",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": "/mcp",
            "query_string": b"",
            "headers": raw,
        }
    )


def _jwt(sub="user-1", scope="read"):
    return sign_access_token(
        {"sub": sub, "scope": scope, "client_id": "mcp_abc", "jti": "j"}, SECRET
    )


class SpyAuthority(ApiKeyAuthority):
    def __init__(self, store):
        super().__init__(store)
        self.validated: list[str] = []

    async def validate(self, key):
        self.validated.append(key)
        return await super().validate(key)


@pytest.fixture
def api_keys():
    return SpyAuthority(InMemoryCredentialStore())


@pytest.fixture
def gateway(api_keys):
    return AuthGateway(
        secret=SECRET,
        api_keys=api_keys,
        identity_resolver=SessionCookieResolver(SECRET),
        base_url="https://aca.example",
    )


class TestAuthenticateToken:
    @pytest.mark.asyncio
    async def test_jwt(self, gateway):
        identity = await gateway.authenticate_token(_jwt(scope="read write"))
        assert identity.auth_type is AuthType.JWT
        assert identity.user_id == "user-1"
        assert identity.client_id == "mcp_abc"
        assert identity.scopes == frozenset({"read", "write"})
        assert identity.expires_at

    @pytest.mark.asyncio
    async def test_api_key(self, gateway, api_keys):
        created = await api_keys.create("user-2", "laptop")
        identity = await gateway.authenticate_token(created.key)
        assert identity.auth_type is AuthType.API_KEY
        assert identity.user_id == "user-2"
        assert identity.key_id == created.id
        await api_keys.flush()

    @pytest.mark.asyncio
    async def test_jwt_skips_api_key_lookup(self, gateway, api_keys):
        await gateway.authenticate_token(_jwt())
        assert api_keys.validated == []

    @pytest.mark.asyncio
    async def test_non_key_shaped_token_skips_lookup(self, gateway, api_keys):
        assert await gateway.authenticate_token("random-garbage") is None
        assert api_keys.validated == []

    @pytest.mark.asyncio
    async def test_no_secret_still_accepts_api_keys(self, api_keys):
        gateway = AuthGateway(secret=None, api_keys=api_keys)
        created = await api_keys.create("user-2", "laptop")
        assert (await gateway.authenticate_token(created.key)).user_id == "user-2"
        assert await gateway.authenticate_token(_jwt()) is None
        await api_keys.flush()


class TestAuthenticateRequest:
    @pytest.mark.asyncio
    async def test_anonymous(self, gateway):
        assert await gateway.authenticate(_request()) is None

    @pytest.mark.asyncio
    async def test_session_cookie(self, gateway):
        cookie = create_session_token("user-3", SECRET)
        identity = await gateway.authenticate(_request({"Cookie": f"aca_session={cookie}"}))
        assert identity.auth_type is AuthType.SESSION
        assert identity.user_id == "user-3"

    @pytest.mark.asyncio
    async def test_bearer_takes_precedence_over_session(self, gateway, api_keys):
        cookie = create_session_token("user-3", SECRET)
        identity = await gateway.authenticate(
            _request({"Authorization": f"Bearer {_jwt()}", "Cookie": f"aca_session={cookie}"})
        )
        assert identity.auth_type is AuthType.JWT
        assert identity.user_id == "user-1"
        assert api_keys.validated == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "header", ["Basic dXNlcjpwYXNz", "Bearer ", "Bearer not-a-token", "Token abc"]
    )
    async def test_rejected_headers(self, gateway, header):
        with pytest.raises(InvalidTokenError) as exc_info:
            await gateway.authenticate(_request({"Authorization": header}))
        assert exc_info.value.auth_url == "https://aca.example/mcp/oauth/authorize"

    @pytest.mark.asyncio
    async def test_revoked_key_rejected(self, gateway, api_keys):
        created = await api_keys.create("user-2", "laptop")
        await api_keys.revoke(created.id, "user-2")
        with pytest.raises(InvalidTokenError):
            await gateway.authenticate(_request({"Authorization": f"Bearer {created.key}"}))


class TestIsProtectedPath:
    def test_paths(self):
        assert is_protected_path("/mcp")
        assert is_protected_path("/mcp/oauth")
        assert is_protected_path("/mcp/tools")
        assert not is_protected_path("/mcp/oauth/token")
        assert not is_protected_path("/mcp/oauth/authorize")
        assert not is_protected_path("/.well-known/oauth-authorization-server")
        assert not is_protected_path("/profile/keys")
        assert not is_protected_path("/mcpx")


class TestIdentity:
    def test_full_access(self):
        for auth_type in AuthType:
            assert AuthIdentity(user_id="u", auth_type=auth_type).has_full_access()

    def test_scopes_empty(self):
        assert AuthIdentity(user_id="u", auth_type=AuthType.JWT).scopes == frozenset()


# ===================== Dependencies behind the middleware =====================


@pytest.fixture
def dep_client(gateway, settings):
    app = FastAPI()
    app.state.services = Services(
        settings=settings,
        oauth=None,
        api_keys=gateway.api_keys,
        gateway=gateway,
        identity=gateway.identity_resolver,
        mcp_handler=None,
    )
    register_error_handlers(app)
    app.middleware("http")(auth_middleware)

    @app.get("/mcp/whoami")
    async def whoami(identity: AuthIdentity = Depends(require_identity)):
        return {"user_id": identity.user_id, "auth_type": identity.auth_type.value}

    @app.get("/mcp/admin", dependencies=[Depends(require_scope("admin"))])
    async def admin():
        return {"ok": True}

    return TestClient(app)


class TestDependencies:
    def test_require_identity_anonymous(self, dep_client):
        resp = dep_client.get("/mcp/whoami")
        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] == "invalid_token"
        assert body["auth_url"] == "https://aca.example/mcp/oauth/authorize"
        assert resp.headers["WWW-Authenticate"].startswith("Bearer")

    def test_require_identity_jwt(self, dep_client):
        resp = dep_client.get("/mcp/whoami", headers={"Authorization": f"Bearer {_jwt()}"})
        assert resp.status_code == 200
        assert resp.json() == {"user_id": "user-1", "auth_type": "jwt"}

    def test_middleware_rejects_bad_bearer(self, dep_client):
        resp = dep_client.get("/mcp/whoami", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"

    def test_require_scope_jwt_not_enforced(self, dep_client):
        resp = dep_client.get("/mcp/admin", headers={"Authorization": f"Bearer {_jwt()}"})
        assert resp.status_code == 200

    def test_require_scope_session(self, dep_client):
        dep_client.cookies.set("aca_session", create_session_token("user-3", SECRET))
        assert dep_client.get("/mcp/admin").status_code == 200

    def test_require_scope_anonymous(self, dep_client):
        assert dep_client.get("/mcp/admin").status_code == 401
