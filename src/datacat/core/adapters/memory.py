"""In-memory storage lister and catalog index.

The catalog index keeps one record per (key, version) and implements the
transactional pieces the engine relies on: per-key locks, check-and-insert
persistence and the latest-version flag swap. The JSON file index builds on
it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterable, Iterator

from datacat.core.errors import ConflictError, DataNotFoundError
from datacat.core.keys import CatalogKey
from datacat.core.models import RegisteredData


class InMemoryStorageLister:
    """Storage lister over a fixed set of object keys per storage root."""

    def __init__(self, objects: dict[str, Iterable[str]] | None = None) -> None:
        self.objects: dict[str, list[str]] = {
            root: list(keys) for root, keys in (objects or {}).items()
        }
        self.calls: list[tuple[str, str]] = []

    def add(self, root: str, *keys: str) -> None:
        """Add object keys to a storage root."""
        self.objects.setdefault(root, []).extend(keys)

    def list_keys(self, root: str, prefix: str) -> list[str]:
        """Return keys in `root` starting with `prefix` (plain string prefix, like S3)."""
        self.calls.append((root, prefix))
        return sorted(k for k in self.objects.get(root, []) if k.startswith(prefix))


class InMemoryCatalogIndex:
    """Catalog index held in process memory."""

    def __init__(self, entries: Iterable[RegisteredData] = ()) -> None:
        self._data: dict[CatalogKey, dict[int, RegisteredData]] = self._by_key(entries)
        self._guard = threading.Lock()
        self._key_locks: dict[CatalogKey, threading.RLock] = {}

    @staticmethod
    def _by_key(
        entries: Iterable[RegisteredData],
    ) -> dict[CatalogKey, dict[int, RegisteredData]]:
        data: dict[CatalogKey, dict[int, RegisteredData]] = {}
        for entry in entries:
            data.setdefault(entry.key, {})[entry.version] = entry
        return data

    def _key_lock(self, key: CatalogKey) -> threading.RLock:
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.RLock()
            return lock

    @contextmanager
    def lock(self, key: CatalogKey) -> Iterator[None]:
        """Hold the per-key lock for the duration of the block."""
        with self._key_lock(key):
            yield

    def _refresh(self) -> None:
        """Hook for subclasses whose entries can change outside this process."""

    def _commit(self, data: dict[CatalogKey, dict[int, RegisteredData]]) -> None:
        """Hook for subclasses that persist the whole index before a change is applied."""

    def _install(self, key: CatalogKey, versions: dict[int, RegisteredData]) -> None:
        # Caller holds the guard. Memory only changes once the commit succeeded.
        staged = dict(self._data)
        staged[key] = versions
        self._commit(staged)
        self._data = staged

    def existing_versions(self, key: CatalogKey) -> set[int]:
        self._refresh()
        with self._guard:
            return set(self._data.get(key, {}))

    def find(self, key: CatalogKey) -> list[RegisteredData]:
        self._refresh()
        with self._guard:
            versions = self._data.get(key, {})
            return [versions[v] for v in sorted(versions)]

    def get(self, key: CatalogKey, version: int) -> RegisteredData | None:
        self._refresh()
        with self._guard:
            return self._data.get(key, {}).get(version)

    def keys(self) -> list[CatalogKey]:
        self._refresh()
        with self._guard:
            return list(self._data)

    def persist(self, data: RegisteredData) -> RegisteredData:
        """
        Insert a new (key, version).

        The previous latest entry is un-flagged and the new one flagged in the
        same step when the new version is the highest for the key.

        Raises:
            ConflictError: if the (key, version) already exists.
        """
        self._refresh()
        with self._guard:
            versions = dict(self._data.get(data.key, {}))
            if data.version in versions:
                raise ConflictError(
                    f"Data version {data.version} of {data.key} already exists",
                    key=data.key,
                    storage_name=data.storage_name,
                    version=data.version,
                )

            is_latest = data.version > max(versions, default=-1)
            if is_latest:
                for v, entry in list(versions.items()):
                    if entry.latest_version:
                        versions[v] = replace(entry, latest_version=False)
            stored = replace(data, latest_version=is_latest)
            versions[data.version] = stored
            self._install(data.key, versions)
            return stored

    def replace(self, data: RegisteredData) -> RegisteredData:
        """
        Store a new value for an existing (key, version). The latest flag is
        owned by the index and carried over unchanged.

        Raises:
            DataNotFoundError: if the (key, version) does not exist.
        """
        self._refresh()
        with self._guard:
            versions = dict(self._data.get(data.key, {}))
            current = versions.get(data.version)
            if current is None:
                raise DataNotFoundError(
                    f"Data version {data.version} of {data.key} is not registered",
                    key=data.key,
                    version=data.version,
                )
            stored = replace(data, latest_version=current.latest_version)
            versions[data.version] = stored
            self._install(data.key, versions)
            return stored
