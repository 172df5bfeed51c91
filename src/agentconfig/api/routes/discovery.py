# Discovery router: RFC 8414 metadata and the MCP service document.
# Created: 2026-10-07

from __future__ import annotations

from fastapi import APIRouter, Depends

from agentconfig.api.deps import get_base_url
from agentconfig.api.oauth2.metadata import oauth_metadata, service_metadata

router = APIRouter(tags=["Discovery"])


@router.get("/.well-known/oauth-authorization-server")
async def authorization_server_metadata(base_url: str = Depends(get_base_url)):
    return oauth_metadata(base_url)


@router.get("/mcp/oauth/metadata")
async def mcp_service_metadata(base_url: str = Depends(get_base_url)):
    return service_metadata(base_url)
