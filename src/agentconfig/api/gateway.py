"""Credential gateway for the protected MCP endpoints.

Contains:
- ``AuthType`` / ``AuthIdentity``: the closed set of ways a request can be authenticated
- ``AuthGateway``: resolves a Bearer credential (JWT access token or API key)
- ``auth_middleware()``: HTTP middleware registered by the app factory

Requests without an ``Authorization`` header are not rejected here: they are
either recognised through the browser session or passed on as anonymous, and
downstream handlers decide what anonymous callers may do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import assert_never

from fastapi import Request

from agentconfig.api.api_keys import ApiKeyAuthority, looks_like_api_key
from agentconfig.api.identity import IdentityResolver
from agentconfig.api.oauth2.errors import InvalidTokenError, oauth_error_response
from agentconfig.api.oauth2.metadata import public_base_url
from agentconfig.api.oauth2.tokens import verify_access_token

logger = logging.getLogger(__name__)


class AuthType(str, Enum):
    JWT = "jwt"
    API_KEY = "api_key"
    SESSION = "session"


@dataclass(frozen=True)
class AuthIdentity:
    user_id: str
    auth_type: AuthType
    client_id: str | None = None
    scope: str | None = None
    key_id: str | None = None
    expires_at: int | None = None

    @property
    def scopes(self) -> frozenset[str]:
        return frozenset((self.scope or "").split())

    def has_full_access(self) -> bool:
        """API keys and browser sessions carry full access; JWT scopes are not narrowed yet."""
        match self.auth_type:
            case AuthType.API_KEY | AuthType.SESSION:
                return True
            case AuthType.JWT:
                return True
            case _:
                assert_never(self.auth_type)


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class AuthGateway:
    """Turns request credentials into an ``AuthIdentity``."""

    def __init__(
        self,
        secret: str | None,
        api_keys: ApiKeyAuthority,
        identity_resolver: IdentityResolver | None = None,
        base_url: str = "",
    ):
        self.secret = secret
        self.api_keys = api_keys
        self.identity_resolver = identity_resolver
        self.base_url = base_url

    async def authenticate_token(self, token: str) -> AuthIdentity | None:
        """Resolve a bare credential. JWT is tried before the API-key path."""
        if self.secret:
            claims = verify_access_token(token, self.secret)
            if claims is not None:
                return AuthIdentity(
                    user_id=claims.sub,
                    auth_type=AuthType.JWT,
                    client_id=claims.client_id,
                    scope=claims.scope,
                    expires_at=claims.exp,
                )

        if looks_like_api_key(token):
            result = await self.api_keys.validate(token)
            if result is not None:
                return AuthIdentity(
                    user_id=result.user_id,
                    auth_type=AuthType.API_KEY,
                    key_id=result.key_id,
                )

        return None

    async def authenticate(self, request: Request) -> AuthIdentity | None:
        """Authenticate a request; None means anonymous.

        Raises InvalidTokenError for a malformed or unverifiable Bearer credential.
        """
        auth_header = request.headers.get("Authorization")

        if auth_header is None:
            if self.identity_resolver is not None:
                user = await self.identity_resolver.resolve(request)
                if user is not None:
                    return AuthIdentity(user_id=user.id, auth_type=AuthType.SESSION)
            return None

        auth_url = self.authorization_url(request)
        if not auth_header.startswith("Bearer "):
            raise InvalidTokenError("Bearer token required", auth_url=auth_url)

        token = auth_header.removeprefix("Bearer ").strip()
        if not token:
            raise InvalidTokenError("Token is empty", auth_url=auth_url)

        identity = await self.authenticate_token(token)
        if identity is None:
            logger.debug("Rejected bearer credential on %s", request.url.path)
            raise InvalidTokenError("Invalid or expired token", auth_url=auth_url)
        return identity

    def authorization_url(self, request: Request) -> str:
        return f"{public_base_url(request, self.base_url)}/mcp/oauth/authorize"


# ---------------------------------------------------------------------------
# HTTP middleware (registered by the app factory via app.middleware)
# ---------------------------------------------------------------------------


def is_protected_path(path: str) -> bool:
    """The MCP endpoints are gated; the OAuth endpoints beneath them are not."""
    if path.startswith("/mcp/oauth/"):
        return False
    return path == "/mcp" or path.startswith("/mcp/")


async def auth_middleware(request: Request, call_next):
    if not is_protected_path(request.url.path):
        return await call_next(request)

    gateway: AuthGateway = request.app.state.services.gateway
    try:
        identity = await gateway.authenticate(request)
    except InvalidTokenError as exc:
        return oauth_error_response(exc)

    request.state.identity = identity
    return await call_next(request)
