# Router aggregation.
# Created: 2026-10-07
#
# mount_routers(app) registers every domain router at its root path. The
# OAuth endpoints live under /mcp/oauth because MCP clients discover them there.

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_ROUTERS: list[tuple[str, str]] = [
    # (module_path, tag)
    ("agentconfig.api.routes.discovery", "Discovery"),
    ("agentconfig.api.routes.oauth2", "OAuth2"),
    ("agentconfig.api.routes.mcp", "MCP"),
    ("agentconfig.api.routes.api_keys", "API Keys"),
]


def mount_routers(app: FastAPI) -> None:
    """Mount all domain routers on *app*.

    Discovery is mounted before the OAuth router so ``/mcp/oauth/metadata``
    is never shadowed.
    """
    for module_path, tag in _ROUTERS:
        mod = importlib.import_module(module_path)
        app.include_router(mod.router)
        logger.debug("Mounted router: %s (%s)", module_path, tag)
