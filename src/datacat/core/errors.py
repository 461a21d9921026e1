"""Error taxonomy for the catalog core.

Every error raised by the core derives from CatalogError and carries enough
structured context (key, storage name, offending field or version) for the
calling layer to log it and decide on a retry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datacat.core.keys import CatalogKey


class CatalogError(RuntimeError):
    """Base class for catalog core errors."""

    def __init__(
        self,
        message: str,
        *,
        key: CatalogKey | None = None,
        storage_name: str | None = None,
        field: str | None = None,
        version: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.storage_name = storage_name
        self.field = field
        self.version = version

    def context(self) -> dict[str, object]:
        """Return the non-empty structured context of this error."""
        items = {
            "key": self.key,
            "storage_name": self.storage_name,
            "field": self.field,
            "version": self.version,
        }
        return {k: v for k, v in items.items() if v is not None}


class ValidationError(CatalogError, ValueError):
    """Raised when a catalog key or request field is missing or blank."""


class InvalidKeyError(CatalogError, ValueError):
    """Raised when a key cannot be rendered into an unambiguous storage path."""


class StorageNotFoundError(CatalogError, LookupError):
    """Raised when a storage location name is not configured."""


class DataNotFoundError(CatalogError, LookupError):
    """Raised when a (key, version) pair is not registered."""


class UnsupportedPlatformError(CatalogError):
    """Raised when a storage location does not support prefix listing."""


class StorageUnavailableError(CatalogError):
    """Raised when the storage backend cannot be listed (transient I/O)."""


class AmbiguousVersionError(CatalogError):
    """Raised when more than one undetermined grouping is found in one run."""


class ConflictError(CatalogError):
    """Raised when a concurrent writer created the same (key, version) or holds the catalog."""


class InvalidTransitionError(CatalogError):
    """Raised on an illegal status change."""


class ReconciliationTimeoutError(CatalogError):
    """Raised when a reconciliation run exceeds its deadline before persisting."""
