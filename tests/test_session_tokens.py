# Tests for HMAC-signed session tokens.
# Created: 2026-10-08

from agentconfig.security.session_tokens import (
    create_consent_token,
    create_session_token,
    verify_consent_token,
    verify_session_token,
)

SECRET = "session-secret-0123456789abcdef0123456789"


class TestSessionTokens:
    def test_roundtrip(self):
        token = create_session_token("user-1", SECRET)
        assert verify_session_token(token, SECRET) == "user-1"

    def test_format(self):
        token = create_session_token("user-1", SECRET, ttl_hours=1, now=1000)
        user_id, expires, sig = token.split(":")
        assert user_id == "user-1"
        assert expires == str(1000 + 3600)
        assert len(sig) == 64

    def test_user_id_with_colon(self):
        token = create_session_token("github:42", SECRET)
        assert verify_session_token(token, SECRET) == "github:42"

    def test_expired(self):
        token = create_session_token("user-1", SECRET, ttl_hours=1, now=1000)
        assert verify_session_token(token, SECRET, now=1000 + 3601) is None
        assert verify_session_token(token, SECRET, now=1000 + 3599) == "user-1"

    def test_wrong_secret(self):
        token = create_session_token("user-1", SECRET)
        assert verify_session_token(token, "another-secret-0123456789abcdef012") is None

    def test_tampered_user(self):
        token = create_session_token("user-1", SECRET)
        _, expires, sig = token.split(":")
        assert verify_session_token(f"user-2:{expires}:{sig}", SECRET) is None

    def test_malformed(self):
        assert verify_session_token("garbage", SECRET) is None
        assert verify_session_token("a:b", SECRET) is None
        assert verify_session_token("user:notanumber:abc", SECRET) is None
        assert verify_session_token(":123:abc", SECRET) is None


class TestConsentTokens:
    PARAMS = {
        "client_id": "mcp_abc",
        "redirect_uri": "https://client.example/callback",
        "code_challenge": "challenge",
        "state": "s-1",
    }

    def test_roundtrip(self):
        token = create_consent_token("user-1", self.PARAMS, SECRET)
        assert verify_consent_token(token, "user-1", self.PARAMS, SECRET)

    def test_bound_to_user(self):
        token = create_consent_token("user-1", self.PARAMS, SECRET)
        assert not verify_consent_token(token, "user-2", self.PARAMS, SECRET)

    def test_bound_to_params(self):
        token = create_consent_token("user-1", self.PARAMS, SECRET)
        tampered = {**self.PARAMS, "redirect_uri": "https://evil.example/cb"}
        assert not verify_consent_token(token, "user-1", tampered, SECRET)

    def test_param_order_does_not_matter(self):
        token = create_consent_token("user-1", self.PARAMS, SECRET)
        reordered = dict(reversed(list(self.PARAMS.items())))
        assert verify_consent_token(token, "user-1", reordered, SECRET)

    def test_rejects_empty_and_non_ascii(self):
        assert not verify_consent_token("", "user-1", self.PARAMS, SECRET)
        assert not verify_consent_token("tokén", "user-1", self.PARAMS, SECRET)
