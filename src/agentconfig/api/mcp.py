# MCP tool-server seam.
# Created: 2026-10-07
#
# The tool server (configs, skills, extensions, marketplaces) is a collaborator.
# This module defines the handler signature the protected endpoint calls and a
# minimal default that answers the JSON-RPC handshake.

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal, Protocol

from agentconfig import __version__

if TYPE_CHECKING:
    from agentconfig.api.gateway import AuthIdentity

logger = logging.getLogger(__name__)

AccessMode = Literal["full", "readonly"]

PROTOCOL_VERSION = "2025-03-26"


class McpHandler(Protocol):
    async def __call__(
        self, message: dict[str, Any], identity: AuthIdentity | None, mode: AccessMode
    ) -> dict[str, Any] | None:
        """Handle one JSON-RPC message. Return None for notifications."""
        ...


def access_mode(identity: AuthIdentity | None) -> AccessMode:
    if identity is not None and identity.has_full_access():
        return "full"
    return "readonly"


def _result(msg_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def _error(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


async def default_mcp_handler(
    message: dict[str, Any], identity: AuthIdentity | None, mode: AccessMode
) -> dict[str, Any] | None:
    msg_id = message.get("id")
    method = message.get("method")

    if msg_id is None:
        return None

    if method == "initialize":
        return _result(
            msg_id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "serverInfo": {"name": "agent-config-adapter", "version": __version__},
                "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
                "instructions": f"Access mode: {mode}",
            },
        )
    if method == "ping":
        return _result(msg_id, {})

    logger.debug("Unhandled MCP method %s", method)
    return _error(msg_id, -32601, f"Method not found: {method}")
