"""
OAuth error hierarchy and FastAPI exception handlers.

Each subclass carries the RFC 6749 / 7591 / 6750 error code. The handler
renders the §5.2 shape ``{"error": ..., "error_description": ...}``.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class OAuthError(Exception):
    """Base OAuth error."""

    status_code: int = 400
    error: str = "invalid_request"

    def __init__(self, description: str | None = None, *, title: str | None = None) -> None:
        super().__init__(description or self.error)
        self.description = description
        self.title = title

    def to_dict(self) -> dict:
        payload: dict = {"error": self.error}
        if self.description:
            payload["error_description"] = self.description
        return payload

    def headers(self) -> dict[str, str] | None:
        return None


class InvalidRequestError(OAuthError):
    error = "invalid_request"


class InvalidGrantError(OAuthError):
    error = "invalid_grant"


class UnsupportedGrantTypeError(OAuthError):
    error = "unsupported_grant_type"


class UnsupportedResponseTypeError(OAuthError):
    error = "unsupported_response_type"


class InvalidClientMetadataError(OAuthError):
    error = "invalid_client_metadata"


class AccessDeniedError(OAuthError):
    status_code = 403
    error = "access_denied"


class InvalidTokenError(OAuthError):
    status_code = 401
    error = "invalid_token"

    def __init__(self, description: str | None = None, *, auth_url: str | None = None) -> None:
        super().__init__(description)
        self.auth_url = auth_url

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.auth_url:
            payload["auth_url"] = self.auth_url
        return payload

    def headers(self) -> dict[str, str]:
        value = f'Bearer error="{self.error}"'
        if self.description:
            value += f', error_description="{self.description}"'
        return {"WWW-Authenticate": value}


class ServerError(OAuthError):
    status_code = 500
    error = "server_error"


def oauth_error_response(exc: OAuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers())


def register_error_handlers(app: FastAPI) -> None:
    """Register the OAuth exception handler on the FastAPI app."""

    @app.exception_handler(OAuthError)
    async def oauth_error_handler(request: Request, exc: OAuthError) -> JSONResponse:
        return oauth_error_response(exc)
