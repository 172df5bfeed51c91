# Service wiring for the API layer.
# Created: 2026-10-07
#
# Everything stateful is built once per application and hung off app.state,
# so tests can swap in memory stores and fake clocks.

from __future__ import annotations

import logging
from dataclasses import dataclass

from agentconfig.api.api_keys import ApiKeyAuthority
from agentconfig.api.credential_store import (
    CredentialStoreProtocol,
    FileCredentialStore,
    InMemoryCredentialStore,
)
from agentconfig.api.gateway import AuthGateway
from agentconfig.api.identity import IdentityResolver, SessionCookieResolver
from agentconfig.api.mcp import McpHandler, default_mcp_handler
from agentconfig.api.oauth2.server import AuthorizationServer
from agentconfig.api.oauth2.storage import (
    AuthorizationCodeStore,
    KeyValueStoreProtocol,
    MemoryKeyValueStore,
    RefreshTokenStore,
)
from agentconfig.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    oauth: AuthorizationServer
    api_keys: ApiKeyAuthority
    gateway: AuthGateway
    identity: IdentityResolver
    mcp_handler: McpHandler


def build_services(
    settings: Settings,
    *,
    credential_store: CredentialStoreProtocol | None = None,
    code_kv: KeyValueStoreProtocol | None = None,
    identity: IdentityResolver | None = None,
    mcp_handler: McpHandler | None = None,
) -> Services:
    """Assemble the authorization subsystem from *settings* and optional overrides."""
    if credential_store is None:
        if settings.storage_backend == "file":
            path = settings.resolved_data_dir() / "credentials"
            credential_store = FileCredentialStore(path)
            logger.info("Using file credential store at %s", path)
        else:
            credential_store = InMemoryCredentialStore()
            logger.info("Using in-memory credential store")

    if settings.signing_secret is None:
        logger.warning("No JWT_SECRET or BETTER_AUTH_SECRET set; token endpoint will fail")

    api_keys = ApiKeyAuthority(credential_store)
    if identity is None:
        identity = SessionCookieResolver(
            settings.cookie_secret, cookie_name=settings.session_cookie_name
        )
    if code_kv is None:
        code_kv = MemoryKeyValueStore()
    if mcp_handler is None:
        mcp_handler = default_mcp_handler

    oauth = AuthorizationServer(
        codes=AuthorizationCodeStore(code_kv),
        refresh_tokens=RefreshTokenStore(credential_store),
        secret=settings.signing_secret,
        access_token_ttl=settings.access_token_ttl_seconds,
        refresh_token_ttl=settings.refresh_token_ttl_seconds,
        code_ttl=settings.auth_code_ttl_seconds,
    )
    gateway = AuthGateway(
        secret=settings.signing_secret,
        api_keys=api_keys,
        identity_resolver=identity,
        base_url=settings.base_url,
    )

    return Services(
        settings=settings,
        oauth=oauth,
        api_keys=api_keys,
        gateway=gateway,
        identity=identity,
        mcp_handler=mcp_handler,
    )
