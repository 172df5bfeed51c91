"""Agent Config Adapter entry point.

Changes:
  - 2026-10-08: Added ``serve`` subcommand (uvicorn on the app factory).
  - 2026-10-08: --version reads from package metadata.
"""

import argparse
import logging
from importlib.metadata import version as get_version

from agentconfig.config import get_settings
from agentconfig.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Agent Config Adapter - OAuth authorization server for MCP clients",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  agentconfig serve                  Start the server on 127.0.0.1:8787
  agentconfig serve --port 9000      Start on another port
  agentconfig serve --dev            Start with auto-reload (dev mode)
""",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=8787,
        help="Port to bind (default: 8787)",
    )
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {get_version('agent-config-adapter')}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["serve"],
        help="Subcommand: 'serve' starts the HTTP server",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        raise SystemExit(1)

    settings = get_settings()
    setup_logging(level="DEBUG" if args.dev else settings.log_level)

    try:
        from agentconfig.api.serve import run_api_server

        run_api_server(host=args.host, port=args.port, dev=args.dev)
    except KeyboardInterrupt:
        logger.info("Agent Config Adapter stopped.")


if __name__ == "__main__":
    main()
