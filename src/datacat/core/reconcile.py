"""Storage/catalog reconciliation.

This module contains the engine that detects data written directly to an
object store under a catalog key's prefix and registers it in the catalog,
plus a small batch runner that reconciles many keys in parallel. The engine
is synchronous and talks to storage and the catalog only through the
collaborator protocols below, so frontends (CLI, automation, tests) can plug
in whatever backends they need.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterable, Iterator, Mapping, Protocol

from datacat.core.errors import (
    CatalogError,
    ReconciliationTimeoutError,
    UnsupportedPlatformError,
)
from datacat.core.grouping import StorageObjectGroup, group_storage_keys
from datacat.core.keys import CatalogKey, validate_key, validate_storage_name
from datacat.core.matching import match_prefix
from datacat.core.models import PlatformKind, RegisteredData, StorageLocation
from datacat.core.prefix import DEFAULT_KEY_PREFIX_TEMPLATE, build_key_prefix
from datacat.core.status import creation_status
from datacat.core.versions import VersionPlan, plan_versions

logger = logging.getLogger(__name__)


class StorageLister(Protocol):
    """Interface for listing object keys from a storage backend."""

    def list_keys(self, root: str, prefix: str) -> list[str]:
        """Return every object key under `prefix` in the storage root."""
        ...


class CatalogIndex(Protocol):
    """Interface to the registered data of the catalog."""

    def lock(self, key: CatalogKey) -> ContextManager[None]:
        """Per-key mutual exclusion for version assignment."""
        ...

    def existing_versions(self, key: CatalogKey) -> set[int]:
        """Return every registered version of the key, in any status."""
        ...

    def find(self, key: CatalogKey) -> list[RegisteredData]:
        """Return the registered data of the key, ascending by version."""
        ...

    def get(self, key: CatalogKey, version: int) -> RegisteredData | None:
        """Return one registered version, or None."""
        ...

    def persist(self, data: RegisteredData) -> RegisteredData:
        """Insert a new version; raise ConflictError if it already exists."""
        ...

    def replace(self, data: RegisteredData) -> RegisteredData:
        """Store a new value for an existing (key, version)."""
        ...


class StorageLocationResolver(Protocol):
    """Interface for resolving storage location names."""

    def resolve(self, storage_name: str) -> StorageLocation:
        """Return the storage location; raise StorageNotFoundError if unknown."""
        ...


@dataclass(frozen=True)
class ReconciliationPlan:
    """Everything a reconciliation run found for one key, before persisting."""

    key: CatalogKey
    storage_name: str
    prefix: str
    groups: tuple[StorageObjectGroup, ...]
    versions: VersionPlan

    @property
    def new_versions(self) -> list[int]:
        return [a.version for a in self.versions.assignments]


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of reconciling one key in a batch."""

    key: CatalogKey
    registered: tuple[RegisteredData, ...] = ()
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _check_deadline(deadline: float | None, key: CatalogKey, storage_name: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise ReconciliationTimeoutError(
            "Reconciliation timed out before registering any data",
            key=key,
            storage_name=storage_name,
        )


@contextmanager
def _error_context(key: CatalogKey, storage_name: str) -> Iterator[None]:
    """Fill in the key and storage name of catalog errors raised in the block."""
    try:
        yield
    except CatalogError as exc:
        exc.key = exc.key or key
        exc.storage_name = exc.storage_name or storage_name
        raise


class ReconciliationEngine:
    """Registers object-store data that exists physically but not in the catalog."""

    def __init__(
        self,
        resolver: StorageLocationResolver,
        index: CatalogIndex,
        listers: Mapping[PlatformKind, StorageLister],
    ) -> None:
        self.resolver = resolver
        self.index = index
        self.listers = dict(listers)

    def _listable_location(self, storage_name: str, key: CatalogKey) -> StorageLocation:
        location = self.resolver.resolve(storage_name)
        if not location.prefix_listable:
            raise UnsupportedPlatformError(
                f"The specified storage '{storage_name}' is not an object-store platform.",
                key=key,
                storage_name=storage_name,
            )
        if PlatformKind(location.platform) not in self.listers:
            raise UnsupportedPlatformError(
                f"No storage lister is configured for platform "
                f"'{PlatformKind(location.platform).value}' of storage '{storage_name}'.",
                key=key,
                storage_name=storage_name,
            )
        return location

    @staticmethod
    def _prefix_for(key: CatalogKey, location: StorageLocation) -> str:
        return build_key_prefix(
            key, location.key_prefix_template or DEFAULT_KEY_PREFIX_TEMPLATE
        )

    def build_prefix(self, key: CatalogKey, storage_name: str) -> str:
        """Return the canonical key prefix of `key` in the named storage (read-only)."""
        key = validate_key(key)
        storage_name = validate_storage_name(storage_name)
        location = self.resolver.resolve(storage_name)
        return self._prefix_for(key, location)

    def _scan(
        self, key: CatalogKey, location: StorageLocation
    ) -> tuple[str, list[StorageObjectGroup]]:
        prefix = self._prefix_for(key, location)
        lister = self.listers[PlatformKind(location.platform)]

        raw_keys = lister.list_keys(location.root, prefix)
        matched = match_prefix(prefix, raw_keys)
        groups = group_storage_keys(prefix, matched)
        logger.debug(
            "Listed %d keys under %s (%d matched, %d groups)",
            len(raw_keys),
            prefix,
            len(matched),
            len(groups),
        )
        return prefix, groups

    def plan(self, key: CatalogKey, storage_name: str) -> ReconciliationPlan:
        """
        Compute what `reconcile` would register, without persisting anything.

        Raises:
            ValidationError, StorageNotFoundError, UnsupportedPlatformError,
            StorageUnavailableError, AmbiguousVersionError.
        """
        key = validate_key(key)
        storage_name = validate_storage_name(storage_name)
        with _error_context(key, storage_name):
            location = self._listable_location(storage_name, key)
            prefix, groups = self._scan(key, location)
            versions = plan_versions(
                self.index.existing_versions(key), self.index.find(key), groups
            )
        return ReconciliationPlan(
            key=key,
            storage_name=location.name,
            prefix=prefix,
            groups=tuple(groups),
            versions=versions,
        )

    def reconcile(
        self,
        key: CatalogKey,
        storage_name: str,
        *,
        deadline: float | None = None,
    ) -> list[RegisteredData]:
        """
        Register every newly discovered data version of `key` in `storage_name`.

        Validation happens before any I/O. Version assignment and persistence
        run under the catalog's per-key lock; nothing is persisted until all
        groups for the key are resolved.

        Args:
            key: Catalog key to reconcile.
            storage_name: Name of an object-store storage location.
            deadline: Optional `time.monotonic()` deadline; when exceeded
                before persisting, the run fails and the catalog is untouched.

        Returns:
            The newly registered data, ascending by version. Empty when nothing
            new was found or registration was suppressed by a version gap.
        """
        key = validate_key(key)
        storage_name = validate_storage_name(storage_name)
        with _error_context(key, storage_name):
            return self._reconcile(key, storage_name, deadline)

    def _reconcile(
        self, key: CatalogKey, storage_name: str, deadline: float | None
    ) -> list[RegisteredData]:
        location = self._listable_location(storage_name, key)

        prefix, groups = self._scan(key, location)
        _check_deadline(deadline, key, storage_name)

        with self.index.lock(key):
            _check_deadline(deadline, key, storage_name)
            existing = set(self.index.existing_versions(key))
            versions = plan_versions(existing, self.index.find(key), groups)

            if versions.gap_detected:
                logger.warning(
                    "Version gap under %s; nothing registered for %s", prefix, key
                )
                return []

            for assignment in versions.assignments:
                data = RegisteredData(
                    key=key,
                    version=assignment.version,
                    status=creation_status(discovered=True),
                    storage_name=location.name,
                    storage_key_prefix=assignment.group.directory,
                    storage_files=assignment.group.keys,
                    latest_version=assignment.version > max(existing | {-1}),
                )
                self.index.persist(data)
                existing.add(assignment.version)
                logger.info(
                    "Registered %s version %d from %s (%d objects)",
                    key,
                    assignment.version,
                    assignment.group.directory,
                    len(assignment.group.keys),
                )

            registered = [self.index.get(key, a.version) for a in versions.assignments]

        return [r for r in registered if r is not None]


def reconcile_many(
    engine: ReconciliationEngine,
    keys: Iterable[CatalogKey],
    storage_name: str,
    *,
    max_parallel: int = 4,
    timeout: float | None = None,
    on_done: Callable[[ReconcileOutcome], None] | None = None,
) -> list[ReconcileOutcome]:
    """
    Reconcile many keys in parallel.

    Each key runs in its own worker with its own deadline; a failure or
    timeout for one key is recorded in its outcome and never affects the
    others.

    Args:
        engine: Reconciliation engine.
        keys: Keys to reconcile.
        storage_name: Storage location shared by all keys.
        max_parallel: Maximum number of keys reconciled concurrently.
        timeout: Per-key timeout in seconds, counted from when the key starts.
        on_done: Optional callback invoked with each outcome as it completes.

    Returns:
        One outcome per key, in input order.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be >= 1")
    key_list = list(keys)
    if not key_list:
        return []

    def _one(key: CatalogKey) -> ReconcileOutcome:
        deadline = time.monotonic() + timeout if timeout is not None else None
        try:
            registered = engine.reconcile(key, storage_name, deadline=deadline)
            outcome = ReconcileOutcome(key=key, registered=tuple(registered))
        except Exception as e:  # noqa: BLE001  per-key errors go in the outcome
            logger.error("Reconciliation of %s failed: %s", key, e)
            outcome = ReconcileOutcome(key=key, error=str(e), error_type=type(e).__name__)
        if on_done is not None:
            on_done(outcome)
        return outcome

    with ThreadPoolExecutor(max_workers=max_parallel) as pool:
        futures = [pool.submit(_one, k) for k in key_list]
        return [f.result() for f in futures]
