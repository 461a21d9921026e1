"""Catalog index persisted as a JSON document on local disk.

Several `datacat` processes may share one catalog file. Writers serialize on
a `filelock` lock next to the file and re-read the document under it, so a
version handed out by one process is always visible to the next one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from datacat.core.adapters.memory import InMemoryCatalogIndex
from datacat.core.errors import ConflictError
from datacat.core.keys import CatalogKey
from datacat.core.models import RegisteredData
from datacat.core.records import data_from_record, data_to_record

logger = logging.getLogger(__name__)


class JsonFileCatalogIndex(InMemoryCatalogIndex):
    """Catalog index persisted as a single JSON document on local disk."""

    _CATALOG_PATH_ENV = "DATACAT_CATALOG_PATH"
    _FORMAT_VERSION = 1

    def __init__(self, path: str | Path | None = None, *, lock_timeout: float = 30.0) -> None:
        """Load the catalog from `path` (or the default location) if it exists."""
        self.path = Path(path) if path else self.default_path()
        self.lock_timeout = lock_timeout
        self._file_lock = FileLock(str(self.path.with_suffix(self.path.suffix + ".lock")))
        super().__init__(self._load())

    @classmethod
    def default_path(cls) -> Path:
        """Return the catalog file path, honoring env overrides."""
        explicit = os.getenv(cls._CATALOG_PATH_ENV)
        if explicit:
            return Path(explicit)
        xdg = os.getenv("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
        return base / "datacat" / "catalog.json"

    def _load(self) -> list[RegisteredData]:
        """Read entries from disk; a missing file is an empty catalog."""
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Catalog file {self.path} is not valid JSON: {exc}") from exc
        entries = [data_from_record(item) for item in payload.get("entries", [])]
        logger.debug("Loaded %d catalog entries from %s", len(entries), self.path)
        return entries

    def _refresh(self) -> None:
        with self._guard:
            self._data = self._by_key(self._load())

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the cross-process catalog file lock (re-entrant per thread)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._file_lock.acquire(timeout=self.lock_timeout)
        except Timeout as exc:
            raise ConflictError(
                f"Catalog file {self.path} is locked by another writer "
                f"(waited {self.lock_timeout}s)"
            ) from exc
        try:
            yield
        finally:
            self._file_lock.release()

    @contextmanager
    def lock(self, key: CatalogKey) -> Iterator[None]:
        """Hold the per-key lock and the catalog file lock for the block."""
        with super().lock(key), self._locked():
            yield

    def persist(self, data: RegisteredData) -> RegisteredData:
        with self._locked():
            return super().persist(data)

    def replace(self, data: RegisteredData) -> RegisteredData:
        with self._locked():
            return super().replace(data)

    def _commit(self, data: dict[CatalogKey, dict[int, RegisteredData]]) -> None:
        """Rewrite the catalog file atomically."""
        payload = {
            "format": self._FORMAT_VERSION,
            "entries": [
                data_to_record(entry)
                for versions in data.values()
                for _, entry in sorted(versions.items())
            ],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".catalog-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
