# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-07

from __future__ import annotations

import logging
from typing import assert_never

from fastapi import Depends, HTTPException, Request

from agentconfig.api.gateway import AuthIdentity, AuthType
from agentconfig.api.identity import SessionUser
from agentconfig.api.oauth2.errors import InvalidTokenError
from agentconfig.api.oauth2.metadata import public_base_url
from agentconfig.api.services import Services

logger = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_base_url(request: Request, services: Services = Depends(get_services)) -> str:
    return public_base_url(request, services.settings.base_url)


def get_identity(request: Request) -> AuthIdentity | None:
    """Identity established by the gateway middleware (None when anonymous)."""
    return getattr(request.state, "identity", None)


async def require_identity(
    request: Request, identity: AuthIdentity | None = Depends(get_identity)
) -> AuthIdentity:
    """Reject anonymous callers with a hint pointing at the authorization endpoint."""
    if identity is None:
        services = get_services(request)
        raise InvalidTokenError(
            "Authentication required",
            auth_url=services.gateway.authorization_url(request),
        )
    return identity


def require_scope(*scopes: str):
    """FastAPI dependency enforcing coarse scopes.

    Usage::

        @router.post("/mcp/configs", dependencies=[Depends(require_scope("write"))])
        async def create_config(...): ...

    API keys and browser sessions have full access. JWT scope claims are
    accepted as-is for now; a missing scope is only logged.
    """

    async def _check(identity: AuthIdentity = Depends(require_identity)) -> AuthIdentity:
        match identity.auth_type:
            case AuthType.API_KEY | AuthType.SESSION:
                return identity
            case AuthType.JWT:
                granted = identity.scopes
                if "admin" not in granted and not granted & set(scopes):
                    logger.debug(
                        "JWT for client %s lacks scope %s; allowed (not enforced)",
                        identity.client_id,
                        " or ".join(sorted(scopes)),
                    )
                return identity
            case _:
                assert_never(identity.auth_type)

    return _check


async def require_user(
    request: Request, services: Services = Depends(get_services)
) -> SessionUser:
    """Signed-in browser user, for the account pages."""
    user = await services.identity.resolve(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return user
