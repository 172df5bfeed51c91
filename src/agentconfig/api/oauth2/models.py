# OAuth2 data models.
# Created: 2026-10-05

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any

CHALLENGE_METHODS = ("S256", "plain")


@dataclass(frozen=True)
class PendingAuthorization:
    """Approved authorization request waiting to be redeemed (single use)."""

    user_id: str
    client_id: str
    redirect_uri: str
    scope: str
    code_challenge: str
    code_challenge_method: str  # "S256" or "plain"
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingAuthorization:
        return cls(
            user_id=data["user_id"],
            client_id=data["client_id"],
            redirect_uri=data["redirect_uri"],
            scope=data["scope"],
            code_challenge=data["code_challenge"],
            code_challenge_method=data.get("code_challenge_method", "S256"),
            created_at=data.get("created_at", 0.0),
        )


@dataclass(frozen=True)
class RefreshTokenRecord:
    """Long-lived refresh token binding (user, client, scope)."""

    token: str
    user_id: str
    client_id: str
    scope: str

    def to_dict(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "client_id": self.client_id, "scope": self.scope}

    @classmethod
    def from_dict(cls, token: str, data: dict[str, Any]) -> RefreshTokenRecord:
        return cls(
            token=token,
            user_id=data["user_id"],
            client_id=data["client_id"],
            scope=data["scope"],
        )


@dataclass(frozen=True)
class AccessTokenClaims:
    """Verified claim set of a JWT access token."""

    sub: str
    scope: str
    client_id: str
    jti: str
    iat: int
    exp: int

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AccessTokenClaims:
        return cls(
            sub=str(payload["sub"]),
            scope=str(payload.get("scope", "")),
            client_id=str(payload.get("client_id", "")),
            jti=str(payload.get("jti", "")),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
        )


@dataclass
class AuthorizationRequest:
    """Validated parameters of an authorization request."""

    client_id: str
    redirect_uri: str
    scope: str
    code_challenge: str
    code_challenge_method: str
    state: str = ""
    response_type: str = "code"

    def as_params(self) -> dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": self.scope,
            "state": self.state,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }
