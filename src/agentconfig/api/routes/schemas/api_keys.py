# API key schemas.
# Created: 2026-10-07

from __future__ import annotations

from pydantic import BaseModel, Field

from agentconfig.api.api_keys import APIKeyInfo


class CreateKeyRequest(BaseModel):
    """Create a new API key."""

    name: str = Field(..., min_length=1, max_length=100)
    expires_in_days: int | None = Field(default=None, ge=1, le=3650)


class RenameKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class APIKeyListResponse(BaseModel):
    keys: list[APIKeyInfo]


class SuccessResponse(BaseModel):
    success: bool = True
