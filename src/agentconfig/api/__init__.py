# Agent Config Adapter HTTP layer
# Created: 2026-10-05
#
# OAuth 2.0 authorization server, credential gateway and API-key management.
# The application factory lives in serve.py; routers are in routes/.
