# Shared fixtures for the API tests.
# Created: 2026-10-08

import pytest
from fastapi.testclient import TestClient

from agentconfig.api.serve import create_api_app
from agentconfig.config import Settings
from agentconfig.security.session_tokens import create_session_token

TEST_SECRET = "test-signing-secret-with-at-least-32-bytes!"
SESSION_COOKIE = "aca_session"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        better_auth_secret="",
        session_secret="",
        base_url="",
        storage_backend="memory",
        data_dir=tmp_path,
    )


@pytest.fixture
def app(settings):
    return create_api_app(settings)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signed_in(client):
    """Client carrying a valid browser session for user ``user-1``."""
    client.cookies.set(SESSION_COOKIE, create_session_token("user-1", TEST_SECRET))
    return client
