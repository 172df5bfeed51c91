# OAuth2 schemas.
# Created: 2026-10-07

from __future__ import annotations

from pydantic import BaseModel


class TokenResponse(BaseModel):
    """OAuth2 token response (RFC 6749 §5.1)."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_token: str | None = None
    scope: str


class OAuthErrorResponse(BaseModel):
    """OAuth2 error response (RFC 6749 §5.2)."""

    error: str
    error_description: str | None = None


class ClientRegistrationResponse(BaseModel):
    """Dynamic client registration response (RFC 7591 §3.2.1)."""

    client_id: str
    client_id_issued_at: int
    client_name: str
    redirect_uris: list[str]
    grant_types: list[str]
    response_types: list[str]
    token_endpoint_auth_method: str
    registration_client_uri: str


class IntrospectionResponse(BaseModel):
    """Token introspection response (RFC 7662 §2.2)."""

    active: bool
    sub: str | None = None
    token_type: str | None = None
    client_id: str | None = None
    scope: str | None = None
    exp: int | None = None
