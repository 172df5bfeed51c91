# OAuth2 router: authorization, token and client endpoints.
# Created: 2026-10-07

from __future__ import annotations

import logging
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from agentconfig.api.deps import get_base_url, get_services
from agentconfig.api.gateway import AuthType
from agentconfig.api.oauth2 import templates
from agentconfig.api.oauth2.errors import (
    AccessDeniedError,
    InvalidClientMetadataError,
    InvalidRequestError,
    OAuthError,
    ServerError,
    oauth_error_response,
)
from agentconfig.api.oauth2.models import AuthorizationRequest
from agentconfig.api.oauth2.registration import register_client
from agentconfig.api.oauth2.server import is_redirectable, parse_authorization_request
from agentconfig.api.routes.schemas.oauth2 import (
    ClientRegistrationResponse,
    IntrospectionResponse,
    OAuthErrorResponse,
    TokenResponse,
)
from agentconfig.api.services import Services
from agentconfig.security.session_tokens import create_consent_token, verify_consent_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mcp/oauth", tags=["OAuth2"])

API_KEY_CLIENT_ID = "api_key_client"

_NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _append_query(uri: str, params: dict[str, str]) -> str:
    parts = urlsplit(uri)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def _login_redirect(services: Services, return_to: str) -> RedirectResponse:
    login_url = services.settings.login_url
    return RedirectResponse(f"{login_url}?return={quote(return_to, safe='')}", status_code=302)


def _error_page(exc: OAuthError) -> HTMLResponse:
    return HTMLResponse(
        templates.error_page(exc.title or "Invalid Request", exc.description),
        status_code=exc.status_code,
    )


def _consent_secret(services: Services) -> str:
    secret = services.settings.cookie_secret
    if not secret:
        raise ServerError("Session secret not configured", title="Server Error")
    return secret


async def _read_body(request: Request) -> dict[str, str]:
    """Parse a JSON or form-encoded body into string fields."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            raise InvalidRequestError("Malformed JSON body")
        if not isinstance(data, dict):
            raise InvalidRequestError("Request body must be a JSON object")
        return {k: str(v) for k, v in data.items() if v is not None}
    form = await request.form()
    return {k: str(v) for k, v in form.items()}


# ---------------------------------------------------------------------------
# Authorization endpoint
# ---------------------------------------------------------------------------


@router.get("/authorize", response_class=HTMLResponse)
async def authorize(request: Request, services: Services = Depends(get_services)):
    """Show the consent screen, or send the browser to log in first."""
    try:
        auth_request = parse_authorization_request(request.query_params)
    except OAuthError as exc:
        return _error_page(exc)

    user = await services.identity.resolve(request)
    if user is None:
        return_to = request.url.path
        if request.url.query:
            return_to += f"?{request.url.query}"
        return _login_redirect(services, return_to)

    try:
        secret = _consent_secret(services)
    except OAuthError as exc:
        return _error_page(exc)
    csrf_token = create_consent_token(user.id, auth_request.as_params(), secret)
    return HTMLResponse(templates.consent_page(auth_request, user.label, csrf_token))


@router.post("/authorize")
async def authorize_decision(request: Request, services: Services = Depends(get_services)):
    """Process the approve/deny form."""
    form = await request.form()
    params = {k: str(v) for k, v in form.items() if k not in ("action", "csrf_token")}

    user = await services.identity.resolve(request)
    if user is None:
        return _login_redirect(services, f"{router.prefix}/authorize?{urlencode(params)}")

    try:
        auth_request = parse_authorization_request(params)
        secret = _consent_secret(services)
    except OAuthError as exc:
        return _error_page(exc)

    csrf_token = str(form.get("csrf_token", ""))
    if not verify_consent_token(csrf_token, user.id, auth_request.as_params(), secret):
        logger.warning(
            "Rejected consent form for client %s: missing or invalid CSRF token",
            auth_request.client_id,
        )
        return _error_page(
            AccessDeniedError(
                "This request did not come from the consent page. Start the authorization again.",
                title="Invalid Consent Form",
            )
        )

    if form.get("action") != "approve":
        logger.info("User %s denied client %s", user.id, auth_request.client_id)
        return _deny(auth_request)

    code = await services.oauth.issue_code(user.id, auth_request)

    if not is_redirectable(auth_request.redirect_uri):
        return HTMLResponse(templates.success_page(code))

    redirect_params = {"code": code}
    if auth_request.state:
        redirect_params["state"] = auth_request.state
    return RedirectResponse(
        _append_query(auth_request.redirect_uri, redirect_params), status_code=302
    )


def _deny(auth_request: AuthorizationRequest):
    if not is_redirectable(auth_request.redirect_uri):
        return HTMLResponse(templates.denied_page())
    params = AccessDeniedError("User denied the authorization request").to_dict()
    if auth_request.state:
        params["state"] = auth_request.state
    return RedirectResponse(_append_query(auth_request.redirect_uri, params), status_code=302)


# ---------------------------------------------------------------------------
# Token endpoint
# ---------------------------------------------------------------------------


@router.post(
    "/token",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    responses={400: {"model": OAuthErrorResponse}, 500: {"model": OAuthErrorResponse}},
)
async def token_exchange(
    request: Request, response: Response, services: Services = Depends(get_services)
):
    """Exchange an authorization code or refresh token for an access token."""
    try:
        if not services.oauth.secret:
            raise ServerError("JWT secret not configured")
        body = await _read_body(request)
        result = await services.oauth.token(body)
    except OAuthError as exc:
        error_response = oauth_error_response(exc)
        error_response.headers.update(_NO_STORE)
        return error_response

    response.headers.update(_NO_STORE)
    return result


# ---------------------------------------------------------------------------
# Dynamic client registration
# ---------------------------------------------------------------------------


@router.post("/register", response_model=ClientRegistrationResponse, status_code=201)
async def register(request: Request, base_url: str = Depends(get_base_url)):
    """Register a public (PKCE-only) client."""
    try:
        metadata = await request.json()
    except ValueError:
        raise InvalidClientMetadataError("Request body must be JSON")
    if not isinstance(metadata, dict):
        raise InvalidClientMetadataError("Request body must be a JSON object")
    return register_client(metadata, base_url)


# ---------------------------------------------------------------------------
# Introspection and revocation
# ---------------------------------------------------------------------------


@router.post("/introspect", response_model=IntrospectionResponse, response_model_exclude_none=True)
async def introspect(request: Request, services: Services = Depends(get_services)):
    """Report whether a token is currently usable (RFC 7662)."""
    try:
        body = await _read_body(request)
    except InvalidRequestError:
        body = {}

    token = body.get("token", "")
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()

    identity = await services.gateway.authenticate_token(token) if token else None
    if identity is None:
        return IntrospectionResponse(active=False)

    client_id = (
        API_KEY_CLIENT_ID if identity.auth_type is AuthType.API_KEY else identity.client_id
    )
    return IntrospectionResponse(
        active=True,
        sub=identity.user_id,
        token_type="Bearer",
        client_id=client_id,
        scope=identity.scope,
        exp=identity.expires_at,
    )


@router.post("/revoke")
async def revoke(request: Request, services: Services = Depends(get_services)):
    """Revoke a refresh token (RFC 7009). Always answers 200."""
    try:
        body = await _read_body(request)
    except InvalidRequestError:
        return JSONResponse({})

    await services.oauth.revoke(body.get("token", ""), body.get("token_type_hint"))
    return JSONResponse({})
