# Application settings.
# Created: 2026-10-05
#
# Loaded from environment variables (and an optional .env file) via pydantic-settings.
# JWT_SECRET wins over BETTER_AUTH_SECRET when both are set.

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_config_dir() -> Path:
    """Return the default data directory (~/.agentconfig)."""
    return Path.home() / ".agentconfig"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Deployment
    base_url: str = ""  # empty: derive from the request origin
    cors_origins: list[str] = []
    log_level: str = "INFO"

    # Signing secrets
    jwt_secret: str = ""
    better_auth_secret: str = ""
    session_secret: str = ""
    session_cookie_name: str = "aca_session"

    # Human login flow (external)
    login_url: str = "/auth/login"

    # Persistence
    storage_backend: Literal["memory", "file"] = "file"
    data_dir: Path | None = None

    # Lifetimes
    access_token_ttl_seconds: int = 3600
    refresh_token_ttl_seconds: int = 60 * 60 * 24 * 30
    auth_code_ttl_seconds: int = 600

    # API key policy
    max_api_keys_per_user: int = 10

    @classmethod
    def load(cls) -> Settings:
        return cls()

    @property
    def signing_secret(self) -> str | None:
        """Secret used for access-token signatures, or None when unconfigured."""
        return self.jwt_secret or self.better_auth_secret or None

    @property
    def cookie_secret(self) -> str | None:
        return self.session_secret or self.signing_secret

    def resolved_data_dir(self) -> Path:
        return self.data_dir if self.data_dir is not None else get_config_dir()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.load()
