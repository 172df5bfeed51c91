# Access-token codec and PKCE helpers.
# Created: 2026-10-05
#
# Access tokens are HS256 JWTs: self-contained, valid until exp, not revocable
# individually. PKCE follows RFC 7636 (S256 = BASE64URL(SHA256(verifier))).

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import time
from typing import Any

import jwt

from agentconfig.api.oauth2.models import AccessTokenClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def sign_access_token(
    claims: dict[str, Any],
    secret: str,
    ttl_seconds: int = 3600,
    now: int | None = None,
) -> str:
    """Sign *claims* with iat=now and exp=now+ttl_seconds."""
    issued = int(time.time()) if now is None else int(now)
    payload = {**claims, "iat": issued, "exp": issued + ttl_seconds}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_access_token(token: str, secret: str) -> AccessTokenClaims | None:
    """Return the verified claims, or None for any bad, malformed or expired token."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
        return AccessTokenClaims.from_payload(payload)
    except jwt.PyJWTError as exc:
        logger.debug("Access token rejected: %s", exc.__class__.__name__)
        return None
    except (KeyError, TypeError, ValueError):
        logger.debug("Access token rejected: unusable claims")
        return None


def random_token(length: int = 43) -> str:
    """Cryptographically random string of *length* base64url characters."""
    return secrets.token_urlsafe(length)[:length]


def challenge_from_verifier(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode()).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()


def verify_challenge(verifier: str, challenge: str, method: str = "S256") -> bool:
    """Check a PKCE verifier against the stored challenge.

    ``plain`` compares directly and exists only for clients that cannot hash.
    """
    if method == "plain":
        return hmac.compare_digest(verifier.encode(), challenge.encode())
    if method == "S256":
        return hmac.compare_digest(challenge_from_verifier(verifier).encode(), challenge.encode())
    return False
