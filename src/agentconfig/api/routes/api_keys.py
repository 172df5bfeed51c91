# Profile API keys router: session-authenticated key management.
# Created: 2026-10-07

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from agentconfig.api.api_keys import APIKeyInfo, CreatedAPIKey
from agentconfig.api.deps import get_services, require_user
from agentconfig.api.identity import SessionUser
from agentconfig.api.routes.schemas.api_keys import (
    APIKeyListResponse,
    CreateKeyRequest,
    RenameKeyRequest,
    SuccessResponse,
)
from agentconfig.api.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile/keys", tags=["API Keys"])

_NOT_FOUND = "API key not found"


@router.post("", response_model=CreatedAPIKey, status_code=201)
async def create_api_key(
    body: CreateKeyRequest,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    """Create a new API key. The plaintext key is returned only once."""
    limit = services.settings.max_api_keys_per_user
    if await services.api_keys.count_by_user(user.id) >= limit:
        raise HTTPException(status_code=400, detail=f"Maximum of {limit} API keys reached")

    return await services.api_keys.create(user.id, body.name, body.expires_in_days)


@router.get("", response_model=APIKeyListResponse)
async def list_api_keys(
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    """List the caller's keys, newest first (no secrets exposed)."""
    return APIKeyListResponse(keys=await services.api_keys.list_by_user(user.id))


@router.get("/{key_id}", response_model=APIKeyInfo)
async def get_api_key(
    key_id: str,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    info = await services.api_keys.get(key_id, user.id)
    if info is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return info


@router.patch("/{key_id}", response_model=APIKeyInfo)
async def rename_api_key(
    key_id: str,
    body: RenameKeyRequest,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    if not await services.api_keys.rename(key_id, user.id, body.name):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return await services.api_keys.get(key_id, user.id)


@router.post("/{key_id}/revoke", response_model=SuccessResponse)
async def revoke_api_key(
    key_id: str,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    """Deactivate a key. It can be reactivated later."""
    if not await services.api_keys.revoke(key_id, user.id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return SuccessResponse()


@router.post("/{key_id}/reactivate", response_model=SuccessResponse)
async def reactivate_api_key(
    key_id: str,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    if not await services.api_keys.reactivate(key_id, user.id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return SuccessResponse()


@router.delete("/{key_id}", response_model=SuccessResponse)
async def delete_api_key(
    key_id: str,
    user: SessionUser = Depends(require_user),
    services: Services = Depends(get_services),
):
    """Delete a key permanently."""
    if not await services.api_keys.delete(key_id, user.id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return SuccessResponse()
