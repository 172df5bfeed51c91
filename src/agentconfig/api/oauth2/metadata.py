# Discovery documents.
# Created: 2026-10-06
#
# RFC 8414 authorization-server metadata plus the MCP service descriptor.
# Pure functions of the deployment base URL.

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentconfig import __version__

if TYPE_CHECKING:
    from fastapi import Request

SCOPES_SUPPORTED = ["read", "write", "admin"]
SERVICE_DOCUMENTATION = "https://github.com/PrashamTrivedi/agent-config-adapter"


def public_base_url(request: Request, configured: str = "") -> str:
    """Configured base URL, or the origin the request arrived on."""
    if configured:
        return configured.rstrip("/")
    return f"{request.url.scheme}://{request.url.netloc}"


def oauth_metadata(base_url: str) -> dict[str, Any]:
    """Authorization server metadata for *base_url*."""
    return {
        "issuer": base_url,
        "authorization_endpoint": f"{base_url}/mcp/oauth/authorize",
        "token_endpoint": f"{base_url}/mcp/oauth/token",
        "registration_endpoint": f"{base_url}/mcp/oauth/register",
        "introspection_endpoint": f"{base_url}/mcp/oauth/introspect",
        "revocation_endpoint": f"{base_url}/mcp/oauth/revoke",
        "scopes_supported": list(SCOPES_SUPPORTED),
        "response_types_supported": ["code"],
        "response_modes_supported": ["query"],
        "grant_types_supported": ["authorization_code", "refresh_token"],
        "token_endpoint_auth_methods_supported": ["none"],
        "revocation_endpoint_auth_methods_supported": ["none"],
        "code_challenge_methods_supported": ["S256", "plain"],
        "service_documentation": SERVICE_DOCUMENTATION,
    }


def service_metadata(base_url: str) -> dict[str, Any]:
    """MCP server discovery document for *base_url*."""
    return {
        "name": "Agent Config Adapter",
        "version": __version__,
        "description": "Universal configuration adapter for AI coding agents",
        "authentication": "required",
        "oauth_metadata_url": f"{base_url}/.well-known/oauth-authorization-server",
        "mcp_endpoint": f"{base_url}/mcp",
        "authorization_endpoint": f"{base_url}/mcp/oauth/authorize",
        "capabilities": ["configs", "skills", "extensions", "marketplaces"],
    }
