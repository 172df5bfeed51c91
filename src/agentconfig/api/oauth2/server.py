# OAuth2 Authorization Server with PKCE support.
# Created: 2026-10-05
#
# Implements the authorization code flow with PKCE (RFC 7636) for MCP clients,
# plus the refresh_token grant. Access tokens are stateless JWTs; refresh
# tokens are opaque and reusable until their TTL lapses.

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from agentconfig.api.oauth2 import tokens
from agentconfig.api.oauth2.errors import (
    InvalidGrantError,
    InvalidRequestError,
    ServerError,
    UnsupportedGrantTypeError,
    UnsupportedResponseTypeError,
)
from agentconfig.api.oauth2.models import (
    CHALLENGE_METHODS,
    AuthorizationRequest,
    PendingAuthorization,
    RefreshTokenRecord,
)
from agentconfig.api.oauth2.storage import AuthorizationCodeStore, RefreshTokenStore

logger = logging.getLogger(__name__)

# Token lifetimes (seconds)
ACCESS_TOKEN_TTL = 3600
REFRESH_TOKEN_TTL = 60 * 60 * 24 * 30
CODE_TTL = 600

DEFAULT_SCOPE = "read"
GRANT_TYPES = ("authorization_code", "refresh_token")

# Redirect targets that cannot receive a browser redirect (native/CLI clients)
_OOB_PREFIX = "urn:ietf:wg:oauth:2.0:oob"
_LOOPBACK_PLACEHOLDER = "localhost"


def is_redirectable(redirect_uri: str) -> bool:
    return not (redirect_uri.startswith(_OOB_PREFIX) or redirect_uri == _LOOPBACK_PLACEHOLDER)


def parse_authorization_request(params: Mapping[str, Any]) -> AuthorizationRequest:
    """Validate authorization parameters.

    Raises an OAuthError carrying a human-readable ``title`` for the error page.
    """
    client_id = str(params.get("client_id") or "")
    redirect_uri = str(params.get("redirect_uri") or "")
    response_type = str(params.get("response_type") or "")
    code_challenge = str(params.get("code_challenge") or "")
    method = str(params.get("code_challenge_method") or "S256")

    if not client_id:
        raise InvalidRequestError("Missing client_id parameter", title="Invalid Request")
    if not redirect_uri:
        raise InvalidRequestError("Missing redirect_uri parameter", title="Invalid Request")
    if response_type != "code":
        raise UnsupportedResponseTypeError(
            "Only authorization code flow is supported", title="Unsupported Response Type"
        )
    if not code_challenge:
        raise InvalidRequestError("PKCE code_challenge is required", title="Invalid Request")
    if method not in CHALLENGE_METHODS:
        raise InvalidRequestError(
            "code_challenge_method must be S256 or plain", title="Invalid Request"
        )

    return AuthorizationRequest(
        client_id=client_id,
        redirect_uri=redirect_uri,
        scope=str(params.get("scope") or DEFAULT_SCOPE),
        code_challenge=code_challenge,
        code_challenge_method=method,
        state=str(params.get("state") or ""),
        response_type=response_type,
    )


class AuthorizationServer:
    """Issues authorization codes and exchanges them (or refresh tokens) for access tokens."""

    def __init__(
        self,
        codes: AuthorizationCodeStore,
        refresh_tokens: RefreshTokenStore,
        secret: str | None,
        *,
        access_token_ttl: int = ACCESS_TOKEN_TTL,
        refresh_token_ttl: int = REFRESH_TOKEN_TTL,
        code_ttl: int = CODE_TTL,
    ):
        self.codes = codes
        self.refresh_tokens = refresh_tokens
        self.secret = secret
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.code_ttl = code_ttl

    async def issue_code(self, user_id: str, request: AuthorizationRequest) -> str:
        """Store an approved request and return its one-time code."""
        code = tokens.random_token(32)
        pending = PendingAuthorization(
            user_id=user_id,
            client_id=request.client_id,
            redirect_uri=request.redirect_uri,
            scope=request.scope,
            code_challenge=request.code_challenge,
            code_challenge_method=request.code_challenge_method,
        )
        await self.codes.put(code, pending, ttl=self.code_ttl)
        logger.info("Issued authorization code for client %s (user %s)", request.client_id, user_id)
        return code

    async def token(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Handle a token request body; dispatch on grant_type."""
        if not self.secret:
            raise ServerError("JWT secret not configured")

        grant_type = body.get("grant_type")
        if grant_type not in GRANT_TYPES:
            raise UnsupportedGrantTypeError(
                "Only authorization_code and refresh_token are supported"
            )

        if grant_type == "refresh_token":
            return await self.refresh(str(body.get("refresh_token") or ""))
        return await self.exchange(
            code=str(body.get("code") or ""),
            code_verifier=str(body.get("code_verifier") or ""),
            redirect_uri=str(body.get("redirect_uri") or ""),
            client_id=str(body.get("client_id") or ""),
        )

    async def exchange(
        self,
        code: str,
        code_verifier: str,
        redirect_uri: str = "",
        client_id: str = "",
    ) -> dict[str, Any]:
        """Redeem an authorization code + PKCE verifier for a token pair."""
        if not self.secret:
            raise ServerError("JWT secret not configured")
        if not code:
            raise InvalidRequestError("code is required")
        if not code_verifier:
            raise InvalidRequestError("code_verifier is required for PKCE")

        pending = await self.codes.take_once(code)
        if pending is None:
            raise InvalidGrantError("Invalid or expired authorization code")

        if redirect_uri and redirect_uri != pending.redirect_uri:
            raise InvalidGrantError("redirect_uri does not match")
        if client_id and client_id != pending.client_id:
            raise InvalidGrantError("client_id does not match")

        if not tokens.verify_challenge(
            code_verifier, pending.code_challenge, pending.code_challenge_method
        ):
            logger.warning("PKCE verification failed for client %s", pending.client_id)
            raise InvalidGrantError("PKCE code verification failed")

        access_token = self._sign(pending.user_id, pending.scope, pending.client_id)

        refresh_token = tokens.random_token(64)
        await self.refresh_tokens.put(
            RefreshTokenRecord(
                token=refresh_token,
                user_id=pending.user_id,
                client_id=pending.client_id,
                scope=pending.scope,
            ),
            ttl=self.refresh_token_ttl,
        )
        logger.info(
            "Issued access token for client %s (user %s)", pending.client_id, pending.user_id
        )

        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": self.access_token_ttl,
            "refresh_token": refresh_token,
            "scope": pending.scope,
        }

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Mint a new access token. The refresh token stays valid."""
        if not self.secret:
            raise ServerError("JWT secret not configured")
        if not refresh_token:
            raise InvalidRequestError("refresh_token is required")

        record = await self.refresh_tokens.get(refresh_token)
        if record is None:
            raise InvalidGrantError("Invalid or expired refresh token")

        logger.info(
            "Refreshed access token for client %s (user %s)", record.client_id, record.user_id
        )
        return {
            "access_token": self._sign(record.user_id, record.scope, record.client_id),
            "token_type": "Bearer",
            "expires_in": self.access_token_ttl,
            "scope": record.scope,
        }

    async def revoke(self, token: str, token_type_hint: str | None = None) -> None:
        """Revoke a refresh token (RFC 7009). Access tokens are stateless and ignored."""
        if not token:
            return
        if token_type_hint in (None, "", "refresh_token"):
            if await self.refresh_tokens.delete(token):
                logger.info("Revoked refresh token")

    def _sign(self, user_id: str, scope: str, client_id: str) -> str:
        if not self.secret:
            raise ServerError("JWT secret not configured")
        return tokens.sign_access_token(
            {
                "sub": user_id,
                "scope": scope,
                "client_id": client_id,
                "jti": tokens.random_token(16),
            },
            self.secret,
            self.access_token_ttl,
        )
