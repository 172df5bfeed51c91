# OAuth 2.0 authorization server (authorization code + PKCE).
# Created: 2026-10-05
