# API key authority: issue, check and manage long-lived user API keys.
# Created: 2026-10-06
#
# API keys use the format aca_<32-char-random> for easy identification in logs.
# Only sha256 hashes are stored; the plaintext is shown once at creation (like GitHub PATs).
# The per-user key quota is enforced by callers of create(), not here.

from __future__ import annotations

import asyncio
import hashlib
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel

from agentconfig.api.credential_store import CredentialStoreProtocol

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "aca_"
API_KEY_KIND = "api_keys"
_KEY_LENGTH = 32  # Random part length
_DISPLAY_PREFIX_LENGTH = 12  # "aca_" + first 8 random chars


class APIKeyRecord(BaseModel):
    """Stored API key record (no plaintext)."""

    id: str
    key_hash: str
    user_id: str
    name: str
    prefix: str
    created_at: str
    last_used_at: str | None = None
    expires_at: str | None = None
    is_active: bool = True


class APIKeyInfo(BaseModel):
    """Listing view of a key, never includes the secret or its hash."""

    id: str
    name: str
    prefix: str
    created_at: str
    last_used_at: str | None = None
    expires_at: str | None = None
    is_active: bool


class CreatedAPIKey(BaseModel):
    """Result of create(): the only time the plaintext key is available."""

    id: str
    name: str
    key: str
    prefix: str
    created_at: str
    expires_at: str | None = None


class ValidatedKey(BaseModel):
    user_id: str
    key_id: str


def hash_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()


def looks_like_api_key(token: str) -> bool:
    return token.startswith(API_KEY_PREFIX)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _random_part(length: int) -> str:
    return secrets.token_urlsafe(length)[:length]


class ApiKeyAuthority:
    """Issues and checks long-lived API keys against a credential store."""

    def __init__(
        self,
        store: CredentialStoreProtocol,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._clock = clock
        self._pending_touches: set[asyncio.Task] = set()

    async def create(
        self, user_id: str, name: str, expires_in_days: int | None = None
    ) -> CreatedAPIKey:
        """Create a new key for *user_id*. The plaintext is returned only here."""
        key_id = secrets.token_hex(6)
        plaintext = f"{API_KEY_PREFIX}{_random_part(_KEY_LENGTH)}"
        now = self._clock()
        expires_at = (
            (now + timedelta(days=expires_in_days)).isoformat() if expires_in_days else None
        )

        record = APIKeyRecord(
            id=key_id,
            key_hash=hash_key(plaintext),
            user_id=user_id,
            name=name,
            prefix=plaintext[:_DISPLAY_PREFIX_LENGTH],
            created_at=now.isoformat(),
            expires_at=expires_at,
        )
        await self._store.create(API_KEY_KIND, key_id, record.model_dump())
        logger.info("Created API key %s (%s) for user %s", key_id, record.prefix, user_id)

        return CreatedAPIKey(
            id=key_id,
            name=name,
            key=plaintext,
            prefix=record.prefix,
            created_at=record.created_at,
            expires_at=expires_at,
        )

    async def validate(self, key: str) -> ValidatedKey | None:
        """Resolve a plaintext key to its owner, or None if unknown, revoked or expired.

        Stamps ``last_used_at`` in the background; that write never affects the result.
        """
        data = await self._store.find_one(API_KEY_KIND, key_hash=hash_key(key))
        if data is None:
            return None

        record = APIKeyRecord(**data)
        if not record.is_active:
            logger.debug("Rejected revoked API key %s", record.id)
            return None

        now = self._clock()
        if record.expires_at and datetime.fromisoformat(record.expires_at) < now:
            logger.debug("Rejected expired API key %s", record.id)
            return None

        self._schedule_touch(record.id, now)
        return ValidatedKey(user_id=record.user_id, key_id=record.id)

    async def get(self, key_id: str, user_id: str) -> APIKeyInfo | None:
        data = await self._store.get(API_KEY_KIND, key_id)
        if data is None or data.get("user_id") != user_id:
            return None
        return _info(APIKeyRecord(**data))

    async def revoke(self, key_id: str, user_id: str) -> bool:
        """Deactivate a key. Reversible with reactivate()."""
        changed = await self._store.update(
            API_KEY_KIND, key_id, {"is_active": False}, user_id=user_id
        )
        if changed:
            logger.info("Revoked API key %s for user %s", key_id, user_id)
        return changed

    async def reactivate(self, key_id: str, user_id: str) -> bool:
        changed = await self._store.update(
            API_KEY_KIND, key_id, {"is_active": True}, user_id=user_id
        )
        if changed:
            logger.info("Reactivated API key %s for user %s", key_id, user_id)
        return changed

    async def rename(self, key_id: str, user_id: str, name: str) -> bool:
        return await self._store.update(API_KEY_KIND, key_id, {"name": name}, user_id=user_id)

    async def delete(self, key_id: str, user_id: str) -> bool:
        """Remove a key permanently."""
        deleted = await self._store.delete(API_KEY_KIND, key_id, user_id=user_id)
        if deleted:
            logger.info("Deleted API key %s for user %s", key_id, user_id)
        return deleted

    async def count_by_user(self, user_id: str) -> int:
        return await self._store.count(API_KEY_KIND, user_id=user_id)

    async def list_by_user(self, user_id: str) -> list[APIKeyInfo]:
        """List a user's keys, newest first (no secrets exposed)."""
        rows = await self._store.find(API_KEY_KIND, user_id=user_id)
        records = [APIKeyRecord(**row) for row in rows]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [_info(r) for r in records]

    # -- last_used_at ------------------------------------------------------

    def _schedule_touch(self, key_id: str, when: datetime) -> None:
        task = asyncio.get_running_loop().create_task(self._touch(key_id, when))
        self._pending_touches.add(task)
        task.add_done_callback(self._pending_touches.discard)

    async def _touch(self, key_id: str, when: datetime) -> None:
        try:
            await self._store.update(API_KEY_KIND, key_id, {"last_used_at": when.isoformat()})
        except Exception:
            logger.warning("Failed to update last_used_at for API key %s", key_id, exc_info=True)

    async def flush(self) -> None:
        """Wait for outstanding last_used_at updates (shutdown and tests)."""
        if self._pending_touches:
            await asyncio.gather(*list(self._pending_touches))


def _info(record: APIKeyRecord) -> APIKeyInfo:
    return APIKeyInfo(
        id=record.id,
        name=record.name,
        prefix=record.prefix,
        created_at=record.created_at,
        last_used_at=record.last_used_at,
        expires_at=record.expires_at,
        is_active=record.is_active,
    )
