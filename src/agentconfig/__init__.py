"""Agent Config Adapter: OAuth 2.0 authorization server and credential gateway for MCP clients."""

__version__ = "1.0.0"
