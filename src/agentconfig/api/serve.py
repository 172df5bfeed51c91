"""Application factory and server runner for ``agentconfig serve``.

Builds the FastAPI app with the discovery, OAuth, MCP and profile routers,
the credential gateway middleware and CORS. Stateful services are created
once here and attached to ``app.state.services``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentconfig import __version__
from agentconfig.api.gateway import auth_middleware
from agentconfig.api.oauth2.errors import register_error_handlers
from agentconfig.api.routes import mount_routers
from agentconfig.api.services import Services, build_services
from agentconfig.config import Settings, get_settings

logger = logging.getLogger(__name__)

_BUILTIN_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8787",
]


def create_api_app(
    settings: Settings | None = None,
    services: Services | None = None,
    **overrides: Any,
) -> FastAPI:
    """Build the application.

    *overrides* are passed to ``build_services`` (``credential_store``,
    ``code_kv``, ``identity``, ``mcp_handler``) and ignored when a complete
    *services* object is supplied.
    """
    if services is None:
        settings = settings or get_settings()
        services = build_services(settings, **overrides)
    settings = services.settings

    app = FastAPI(
        title="Agent Config Adapter",
        description="OAuth 2.0 authorization server and credential gateway for MCP clients.",
        version=__version__,
    )
    app.state.services = services

    # --- Errors and auth ------------------------------------------------
    register_error_handlers(app)
    app.middleware("http")(auth_middleware)

    # --- CORS (outermost) ------------------------------------------------
    origins = sorted(set(_BUILTIN_ORIGINS + list(settings.cors_origins)))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Mcp-Session-Id"],
        expose_headers=["WWW-Authenticate"],
    )

    # --- Routers ----------------------------------------------------------
    mount_routers(app)

    return app


def run_api_server(
    host: str = "127.0.0.1",
    port: int = 8787,
    dev: bool = False,
) -> None:
    """Start the server with uvicorn."""
    import uvicorn

    display_host = "localhost" if host in ("127.0.0.1", "0.0.0.0") else host
    logger.info("Agent Config Adapter %s", __version__)
    logger.info(
        "OAuth metadata: http://%s:%d/.well-known/oauth-authorization-server", display_host, port
    )

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "agentconfig.api.serve:create_api_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        uvicorn.run(create_api_app(), host=host, port=port, log_config=None)
