"""HMAC-signed browser session tokens carrying a user id.

Token format: ``{user_id}:{expires_unix}:{hex_hmac}``

The web login flow (GitHub OAuth / email OTP) is not part of this package;
it only has to call :func:`create_session_token` and set the result as the
session cookie. Verification is all the authorization server needs.

Consent tokens are HMACs over the user id and the authorization request
parameters. The consent page embeds one and the form POST must echo it back,
so another site cannot submit an approval on the user's behalf.
"""

import hashlib
import hmac
import time
from collections.abc import Mapping
from urllib.parse import urlencode

__all__ = [
    "create_consent_token",
    "create_session_token",
    "verify_consent_token",
    "verify_session_token",
]


def create_session_token(
    user_id: str, secret: str, ttl_hours: int = 24, now: float | None = None
) -> str:
    """Issue a session token for *user_id* that expires after *ttl_hours*."""
    issued = time.time() if now is None else now
    expires = int(issued) + ttl_hours * 3600
    payload = f"{user_id}:{expires}"
    return f"{payload}:{_sign(secret, payload)}"


def verify_session_token(token: str, secret: str, now: float | None = None) -> str | None:
    """Return the user id if *token* is authentic and unexpired, else None."""
    parts = token.rsplit(":", 2)
    if len(parts) != 3:
        return None

    user_id, expires_str, sig = parts
    if not user_id:
        return None
    try:
        expires = int(expires_str)
    except ValueError:
        return None

    current = time.time() if now is None else now
    if current > expires:
        return None

    expected = _sign(secret, f"{user_id}:{expires_str}")
    if not hmac.compare_digest(sig, expected):
        return None
    return user_id


def create_consent_token(user_id: str, params: Mapping[str, str], secret: str) -> str:
    """Bind a consent form to *user_id* and the exact authorization parameters."""
    return _sign(secret, _consent_message(user_id, params))


def verify_consent_token(
    token: str, user_id: str, params: Mapping[str, str], secret: str
) -> bool:
    if not token:
        return False
    expected = _sign(secret, _consent_message(user_id, params))
    return hmac.compare_digest(token.encode(), expected.encode())


def _consent_message(user_id: str, params: Mapping[str, str]) -> str:
    return "consent\n" + user_id + "\n" + urlencode(sorted(params.items()))


def _sign(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()
