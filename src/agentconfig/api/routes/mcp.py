# MCP router: JSON-RPC entry point gated by the auth middleware.
# Created: 2026-10-07

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from agentconfig.api.deps import get_identity, get_services
from agentconfig.api.gateway import AuthIdentity
from agentconfig.api.mcp import access_mode
from agentconfig.api.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["MCP"])

PARSE_ERROR = -32700
INVALID_REQUEST = -32600


def _rpc_error(code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": None, "error": {"code": code, "message": message}}


@router.post("/mcp/oauth")
@router.post("/mcp")
async def mcp_endpoint(
    request: Request,
    identity: AuthIdentity | None = Depends(get_identity),
    services: Services = Depends(get_services),
):
    """Dispatch one JSON-RPC message (or a batch) to the tool server.

    Authenticated callers get ``full`` mode, anonymous callers ``readonly``.
    """
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(_rpc_error(PARSE_ERROR, "Parse error"), status_code=400)

    mode = access_mode(identity)
    handler = services.mcp_handler

    if isinstance(payload, list):
        if not payload:
            return JSONResponse(_rpc_error(INVALID_REQUEST, "Empty batch"), status_code=400)
        replies = []
        for message in payload:
            if not isinstance(message, dict):
                replies.append(_rpc_error(INVALID_REQUEST, "Invalid request"))
                continue
            reply = await handler(message, identity, mode)
            if reply is not None:
                replies.append(reply)
        if not replies:
            return Response(status_code=202)
        return JSONResponse(replies)

    if not isinstance(payload, dict):
        return JSONResponse(_rpc_error(INVALID_REQUEST, "Invalid request"), status_code=400)

    reply = await handler(payload, identity, mode)
    if reply is None:
        return Response(status_code=202)
    return JSONResponse(reply)
