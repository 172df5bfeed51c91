"""Durable credential record store.

Created: 2026-10-05
Holds the two durable record kinds of the authorization subsystem:

- ``api_keys``        keyed by key id, looked up by ``key_hash``
- ``refresh_tokens``  keyed by the token itself, with a TTL

Following the protocol-first storage design, backends are swappable:
- InMemoryCredentialStore: process memory (tests, ephemeral deployments)
- FileCredentialStore: one JSON file per kind (default)

Every read honours the optional TTL given at creation time. Filters are
plain equality matches on record fields, which is how ownership scoping
(``user_id=...``) is expressed.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@runtime_checkable
class CredentialStoreProtocol(Protocol):
    """Interface for durable credential storage backends."""

    async def create(
        self, kind: str, record_id: str, data: dict[str, Any], ttl: int | None = None
    ) -> None:
        """Insert a record. Overwrites an existing record with the same id."""
        ...

    async def get(self, kind: str, record_id: str) -> dict[str, Any] | None:
        """Return a copy of the record, or None if missing or expired."""
        ...

    async def find_one(self, kind: str, **match: Any) -> dict[str, Any] | None:
        ...

    async def find(self, kind: str, **match: Any) -> list[dict[str, Any]]:
        """Return all live records matching every filter, in insertion order."""
        ...

    async def count(self, kind: str, **match: Any) -> int:
        ...

    async def update(
        self, kind: str, record_id: str, changes: dict[str, Any], **match: Any
    ) -> bool:
        """Apply *changes* if the record exists and matches. Returns True if affected."""
        ...

    async def delete(self, kind: str, record_id: str, **match: Any) -> bool:
        """Delete the record if it exists and matches. Returns True if affected."""
        ...


class InMemoryCredentialStore:
    """Process-local credential store with an injectable clock."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        # kind -> record_id -> {"data": {...}, "expires_at": float | None}
        self._kinds: dict[str, dict[str, dict[str, Any]]] = {}

    # -- internals ---------------------------------------------------------

    def _records(self, kind: str) -> dict[str, dict[str, Any]]:
        return self._kinds.setdefault(kind, {})

    def _live(self, envelope: dict[str, Any]) -> bool:
        expires_at = envelope.get("expires_at")
        return expires_at is None or self._clock() < expires_at

    def _lookup(self, kind: str, record_id: str, match: dict[str, Any]) -> dict[str, Any] | None:
        envelope = self._records(kind).get(record_id)
        if envelope is None or not self._live(envelope):
            return None
        if not _matches(envelope["data"], match):
            return None
        return envelope

    def _persist(self, kind: str) -> None:
        """Hook for durable subclasses."""

    # -- protocol ----------------------------------------------------------

    async def create(
        self, kind: str, record_id: str, data: dict[str, Any], ttl: int | None = None
    ) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        records = self._records(kind)
        self._drop_expired(records)
        records[record_id] = {"data": copy.deepcopy(data), "expires_at": expires_at}
        self._persist(kind)

    async def get(self, kind: str, record_id: str) -> dict[str, Any] | None:
        envelope = self._lookup(kind, record_id, {})
        return copy.deepcopy(envelope["data"]) if envelope else None

    async def find_one(self, kind: str, **match: Any) -> dict[str, Any] | None:
        for envelope in self._records(kind).values():
            if self._live(envelope) and _matches(envelope["data"], match):
                return copy.deepcopy(envelope["data"])
        return None

    async def find(self, kind: str, **match: Any) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(envelope["data"])
            for envelope in self._records(kind).values()
            if self._live(envelope) and _matches(envelope["data"], match)
        ]

    async def count(self, kind: str, **match: Any) -> int:
        return len(await self.find(kind, **match))

    async def update(
        self, kind: str, record_id: str, changes: dict[str, Any], **match: Any
    ) -> bool:
        envelope = self._lookup(kind, record_id, match)
        if envelope is None:
            return False
        envelope["data"].update(copy.deepcopy(changes))
        self._persist(kind)
        return True

    async def delete(self, kind: str, record_id: str, **match: Any) -> bool:
        if self._lookup(kind, record_id, match) is None:
            return False
        del self._records(kind)[record_id]
        self._persist(kind)
        return True

    def purge_expired(self) -> int:
        """Drop expired records from every kind. Returns the number removed."""
        removed = 0
        for kind, records in self._kinds.items():
            stale = self._drop_expired(records)
            if stale:
                removed += stale
                self._persist(kind)
        if removed:
            logger.info("Purged %d expired credential records", removed)
        return removed

    def _drop_expired(self, records: dict[str, dict[str, Any]]) -> int:
        stale = [rid for rid, env in records.items() if not self._live(env)]
        for rid in stale:
            del records[rid]
        return len(stale)


class FileCredentialStore(InMemoryCredentialStore):
    """JSON-file backed credential store.

    Storage layout::

        <base_path>/
            api_keys.json
            refresh_tokens.json

    Files are written atomically (temp file + rename) and restricted to 0600.
    """

    def __init__(self, base_path: Path, clock: Clock = time.time):
        super().__init__(clock=clock)
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        for path in sorted(self.base_path.glob("*.json")):
            self._load(path)
        self.purge_expired()

    def _path(self, kind: str) -> Path:
        return self.base_path / f"{kind}.json"

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to load credentials from %s: %s", path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed credential file %s", path)
            return
        self._kinds[path.stem] = data
        logger.debug("Loaded %d %s records from %s", len(data), path.stem, path)

    def _persist(self, kind: str) -> None:
        path = self._path(kind)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(self._records(kind), indent=2), encoding="utf-8")
        try:
            temp_path.chmod(0o600)
        except OSError:
            logger.warning("Could not restrict permissions on %s", temp_path)
        temp_path.replace(path)


def _matches(data: dict[str, Any], match: dict[str, Any]) -> bool:
    return all(data.get(key) == value for key, value in match.items())
