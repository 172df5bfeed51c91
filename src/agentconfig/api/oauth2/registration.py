# Dynamic client registration (RFC 7591).
# Created: 2026-10-06
#
# Public, PKCE-only clients: no secret is issued and nothing is stored.
# The client_id is an opaque tracking handle. Registered redirect URIs are
# echoed back but not re-checked at authorization time.

from __future__ import annotations

import logging
import time
from typing import Any

from agentconfig.api.oauth2.errors import InvalidClientMetadataError
from agentconfig.api.oauth2.tokens import random_token

logger = logging.getLogger(__name__)

CLIENT_ID_PREFIX = "mcp_"
DEFAULT_GRANT_TYPES = ["authorization_code", "refresh_token"]


def _string_list(value: Any, field: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidClientMetadataError(f"{field} must be an array of strings")
    return value


def register_client(metadata: dict[str, Any], base_url: str) -> dict[str, Any]:
    """Synthesize client metadata for a registration request."""
    client_name = metadata.get("client_name")
    if not client_name or not isinstance(client_name, str):
        raise InvalidClientMetadataError("client_name is required")

    redirect_uris = _string_list(metadata.get("redirect_uris"), "redirect_uris")
    grant_types = _string_list(metadata.get("grant_types"), "grant_types")

    client_id = f"{CLIENT_ID_PREFIX}{random_token(16)}"
    logger.info("Registered public client %s (%s)", client_id, client_name)

    return {
        "client_id": client_id,
        "client_id_issued_at": int(time.time()),
        "client_name": client_name,
        "redirect_uris": redirect_uris or [],
        "grant_types": grant_types or list(DEFAULT_GRANT_TYPES),
        "response_types": ["code"],
        "token_endpoint_auth_method": "none",
        "registration_client_uri": f"{base_url}/mcp/oauth/register/{client_id}",
    }
