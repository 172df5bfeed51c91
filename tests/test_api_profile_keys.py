# Tests for the /profile/keys endpoints.
# Created: 2026-10-08

from agentconfig.security.session_tokens import create_session_token


def _create(client, name="laptop", **extra):
    return client.post("/profile/keys", json={"name": name, **extra})


class TestProfileKeysAuth:
    def test_requires_session(self, client):
        resp = client.get("/profile/keys")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not signed in"

    def test_bearer_is_not_a_session(self, client, signed_in):
        key = _create(signed_in).json()["key"]
        client.cookies.clear()
        resp = client.get("/profile/keys", headers={"Authorization": f"Bearer {key}"})
        assert resp.status_code == 401


class TestProfileKeys:
    def test_create(self, signed_in):
        resp = _create(signed_in, expires_in_days=30)
        assert resp.status_code == 201
        body = resp.json()
        assert body["key"].startswith("aca_")
        assert body["prefix"] == body["key"][:12]
        assert body["name"] == "laptop"
        assert body["expires_at"]

    def test_create_validation(self, signed_in):
        assert _create(signed_in, name="").status_code == 422
        assert _create(signed_in, expires_in_days=0).status_code == 422

    def test_list_hides_secrets(self, signed_in):
        created = _create(signed_in).json()
        resp = signed_in.get("/profile/keys")
        assert resp.status_code == 200
        keys = resp.json()["keys"]
        assert len(keys) == 1
        assert keys[0]["id"] == created["id"]
        assert keys[0]["is_active"] is True
        assert "key" not in keys[0]
        assert "key_hash" not in keys[0]

    def test_quota(self, signed_in, settings):
        for i in range(settings.max_api_keys_per_user):
            assert _create(signed_in, name=f"k{i}").status_code == 201
        resp = _create(signed_in, name="one-too-many")
        assert resp.status_code == 400
        assert "Maximum of 10 API keys" in resp.json()["detail"]

    def test_revoked_keys_count_toward_quota(self, signed_in, settings):
        ids = [
            _create(signed_in, name=f"k{i}").json()["id"]
            for i in range(settings.max_api_keys_per_user)
        ]
        signed_in.post(f"/profile/keys/{ids[0]}/revoke")
        assert _create(signed_in).status_code == 400

        signed_in.delete(f"/profile/keys/{ids[0]}")
        assert _create(signed_in).status_code == 201

    def test_get_and_rename(self, signed_in):
        key_id = _create(signed_in).json()["id"]
        resp = signed_in.patch(f"/profile/keys/{key_id}", json={"name": "desktop"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "desktop"
        assert signed_in.get(f"/profile/keys/{key_id}").json()["name"] == "desktop"

    def test_revoke_and_reactivate(self, signed_in):
        created = _create(signed_in).json()
        auth = {"Authorization": f"Bearer {created['key']}"}
        ping = {"jsonrpc": "2.0", "id": 1, "method": "ping"}

        assert signed_in.post("/mcp", json=ping, headers=auth).status_code == 200

        resp = signed_in.post(f"/profile/keys/{created['id']}/revoke")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert signed_in.post("/mcp", json=ping, headers=auth).status_code == 401

        assert signed_in.post(f"/profile/keys/{created['id']}/reactivate").status_code == 200
        assert signed_in.post("/mcp", json=ping, headers=auth).status_code == 200

    def test_delete(self, signed_in):
        key_id = _create(signed_in).json()["id"]
        assert signed_in.delete(f"/profile/keys/{key_id}").status_code == 200
        assert signed_in.get(f"/profile/keys/{key_id}").status_code == 404
        assert signed_in.delete(f"/profile/keys/{key_id}").status_code == 404

    def test_unknown_key(self, signed_in):
        for method, path in [
            ("get", "/profile/keys/nope"),
            ("post", "/profile/keys/nope/revoke"),
            ("post", "/profile/keys/nope/reactivate"),
            ("delete", "/profile/keys/nope"),
        ]:
            resp = signed_in.request(method, path)
            assert resp.status_code == 404
            assert resp.json()["detail"] == "API key not found"
        assert signed_in.patch("/profile/keys/nope", json={"name": "x"}).status_code == 404

    def test_other_users_keys_are_invisible(self, signed_in, settings):
        key_id = _create(signed_in).json()["id"]

        signed_in.cookies.set(
            "aca_session", create_session_token("user-2", settings.jwt_secret)
        )
        assert signed_in.get("/profile/keys").json() == {"keys": []}
        assert signed_in.get(f"/profile/keys/{key_id}").status_code == 404
        assert signed_in.post(f"/profile/keys/{key_id}/revoke").status_code == 404
        assert signed_in.delete(f"/profile/keys/{key_id}").status_code == 404
