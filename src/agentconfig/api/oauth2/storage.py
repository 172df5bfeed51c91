# OAuth2 code and refresh-token storage.
# Created: 2026-10-05
#
# Authorization codes live in an ephemeral key-value store (10 min TTL, single use).
# Refresh tokens live in the durable credential store (30 day TTL, reusable).

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from agentconfig.api.credential_store import CredentialStoreProtocol
from agentconfig.api.oauth2.models import PendingAuthorization, RefreshTokenRecord

logger = logging.getLogger(__name__)

CODE_KEY_PREFIX = "auth_code:"
REFRESH_TOKEN_KIND = "refresh_tokens"


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """Ephemeral key-value store with per-key TTL."""

    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    async def put(self, key: str, value: dict[str, Any], ttl: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@runtime_checkable
class SupportsAtomicPop(Protocol):
    """Backends that can delete a key and return its prior value in one step."""

    async def pop(self, key: str) -> dict[str, Any] | None:
        ...


class MemoryKeyValueStore:
    """In-process TTL store. ``pop`` is atomic."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._items: dict[str, tuple[dict[str, Any], float | None]] = {}

    def _alive(self, expires_at: float | None) -> bool:
        return expires_at is None or self._clock() < expires_at

    async def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if not self._alive(expires_at):
                del self._items[key]
                return None
            return dict(value)

    async def put(self, key: str, value: dict[str, Any], ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._cleanup_expired()
            self._items[key] = (dict(value), expires_at)

    def _cleanup_expired(self) -> int:
        """Drop expired items. Caller holds the lock."""
        stale = [key for key, (_, exp) in self._items.items() if not self._alive(exp)]
        for key in stale:
            del self._items[key]
        if stale:
            logger.debug("Evicted %d expired entries", len(stale))
        return len(stale)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    async def pop(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._items.pop(key, None)
        if item is None:
            return None
        value, expires_at = item
        return dict(value) if self._alive(expires_at) else None

    def __len__(self) -> int:
        return len(self._items)


class AuthorizationCodeStore:
    """Single-use store for pending authorizations, keyed by one-time code."""

    def __init__(self, kv: KeyValueStoreProtocol):
        self._kv = kv

    async def put(self, code: str, record: PendingAuthorization, ttl: int) -> None:
        await self._kv.put(CODE_KEY_PREFIX + code, record.to_dict(), ttl=ttl)

    async def take_once(self, code: str) -> PendingAuthorization | None:
        """Return the pending authorization and remove it.

        Atomic when the backend supports ``pop``. Otherwise this is a read
        followed by a delete, and two concurrent redemptions of the same
        code can both observe the record.
        """
        key = CODE_KEY_PREFIX + code
        if isinstance(self._kv, SupportsAtomicPop):
            data = await self._kv.pop(key)
        else:
            data = await self._kv.get(key)
            if data is not None:
                await self._kv.delete(key)
        if data is None:
            return None
        return PendingAuthorization.from_dict(data)

    async def discard(self, code: str) -> None:
        await self._kv.delete(CODE_KEY_PREFIX + code)


class RefreshTokenStore:
    """Refresh tokens kept in the durable credential store."""

    def __init__(self, store: CredentialStoreProtocol):
        self._store = store

    async def put(self, record: RefreshTokenRecord, ttl: int) -> None:
        await self._store.create(REFRESH_TOKEN_KIND, record.token, record.to_dict(), ttl=ttl)

    async def get(self, token: str) -> RefreshTokenRecord | None:
        data = await self._store.get(REFRESH_TOKEN_KIND, token)
        if data is None:
            return None
        return RefreshTokenRecord.from_dict(token, data)

    async def delete(self, token: str) -> bool:
        return await self._store.delete(REFRESH_TOKEN_KIND, token)
