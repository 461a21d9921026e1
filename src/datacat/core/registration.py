"""Ordinary (non-reconciliation) registration flows.

Pre-registration reserves the next data version of a key in UPLOADING and
hands back the storage directory to write to; the writer later completes the
registration as VALID or INVALID. Both steps share the status state machine
and the per-key lock with the reconciliation engine, so the two can never
hand out the same version.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from datacat.core.errors import DataNotFoundError, ValidationError
from datacat.core.keys import CatalogKey, validate_key, validate_storage_name
from datacat.core.models import RegisteredData
from datacat.core.prefix import (
    DEFAULT_KEY_PREFIX_TEMPLATE,
    build_key_prefix,
    data_version_directory,
)
from datacat.core.reconcile import CatalogIndex, StorageLocationResolver
from datacat.core.status import DataStatus, creation_status, transition
from datacat.core.versions import resolve_versions

logger = logging.getLogger(__name__)


class RegistrationService:
    """Pre-register, complete, delete and look up registered data versions."""

    def __init__(self, resolver: StorageLocationResolver, index: CatalogIndex) -> None:
        self.resolver = resolver
        self.index = index

    def pre_register(self, key: CatalogKey, storage_name: str) -> RegisteredData:
        """
        Reserve the next data version of `key` in UPLOADING.

        Returns:
            The new entry; its `storage_key_prefix` is the directory the
            caller should write the data to.
        """
        key = validate_key(key)
        storage_name = validate_storage_name(storage_name)
        location = self.resolver.resolve(storage_name)
        prefix = build_key_prefix(
            key, location.key_prefix_template or DEFAULT_KEY_PREFIX_TEMPLATE
        )

        with self.index.lock(key):
            (version,) = resolve_versions(self.index.existing_versions(key), 1)
            data = RegisteredData(
                key=key,
                version=version,
                status=creation_status(discovered=False),
                storage_name=location.name,
                storage_key_prefix=data_version_directory(prefix, version),
                latest_version=True,
            )
            stored = self.index.persist(data)

        logger.info("Pre-registered %s version %d", key, version)
        return stored

    def _require(self, key: CatalogKey, version: int) -> RegisteredData:
        data = self.index.get(key, version)
        if data is None:
            raise DataNotFoundError(
                f"Data version {version} of {key} is not registered",
                key=key,
                version=version,
            )
        return data

    def _change_status(
        self, key: CatalogKey, version: int, status: DataStatus, **changes
    ) -> RegisteredData:
        key = validate_key(key)
        with self.index.lock(key):
            current = self._require(key, version)
            updated = self.index.replace(replace(transition(current, status), **changes))
        logger.info(
            "Changed status of %s version %d: %s -> %s",
            key,
            version,
            DataStatus(current.status).value,
            DataStatus(status).value,
        )
        return updated

    def complete(
        self,
        key: CatalogKey,
        version: int,
        status: DataStatus = DataStatus.VALID,
        *,
        storage_files: tuple[str, ...] | None = None,
    ) -> RegisteredData:
        """
        Complete a pre-registration as VALID or INVALID.

        Raises:
            ValidationError: if `status` is not VALID or INVALID.
            InvalidTransitionError: if the version is not UPLOADING.
        """
        status = DataStatus(status)
        if status not in (DataStatus.VALID, DataStatus.INVALID):
            raise ValidationError(
                "A registration can only be completed as VALID or INVALID",
                field="status",
                version=version,
            )
        changes = {}
        if storage_files is not None:
            changes["storage_files"] = tuple(storage_files)
        return self._change_status(key, version, status, **changes)

    def delete(self, key: CatalogKey, version: int) -> RegisteredData:
        """Logically remove a data version (its number is never reused)."""
        return self._change_status(key, version, DataStatus.DELETED)

    def versions(self, key: CatalogKey) -> list[RegisteredData]:
        """Return every registered version of `key`, ascending."""
        return self.index.find(validate_key(key))

    def latest(self, key: CatalogKey) -> RegisteredData | None:
        """Return the version currently flagged latest, or None."""
        for data in self.index.find(validate_key(key)):
            if data.latest_version:
                return data
        return None
