# Browser-session identity resolution.
# Created: 2026-10-06
#
# The human login flow (GitHub OAuth / email OTP) lives outside this package.
# The authorization endpoint and the key-management pages only need to know
# which user, if any, the browser session belongs to.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from fastapi import Request

from agentconfig.security.session_tokens import verify_session_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    name: str | None = None
    email: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.email or self.id


@runtime_checkable
class IdentityResolver(Protocol):
    """Resolves the signed-in user of a browser request."""

    async def resolve(self, request: Request) -> SessionUser | None:
        ...


class SessionCookieResolver:
    """Reads an HMAC-signed session cookie."""

    def __init__(self, secret: str | None, cookie_name: str = "aca_session"):
        self.secret = secret
        self.cookie_name = cookie_name

    async def resolve(self, request: Request) -> SessionUser | None:
        if not self.secret:
            return None
        cookie = request.cookies.get(self.cookie_name)
        if not cookie:
            return None
        user_id = verify_session_token(cookie, self.secret)
        if user_id is None:
            logger.debug("Ignoring invalid or expired session cookie")
            return None
        return SessionUser(id=user_id)
