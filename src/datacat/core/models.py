"""Core domain records.

These records describe registered data and storage locations in a simple,
immutable form. They are intentionally free of SDK types and CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from datacat.core.keys import CatalogKey
from datacat.core.status import DataStatus


class PlatformKind(str, Enum):
    """Storage platform backing a storage location."""

    S3 = "S3"
    VOLUMES = "VOLUMES"
    FILESYSTEM = "FILESYSTEM"
    GLACIER = "GLACIER"


OBJECT_STORE_PLATFORMS = frozenset({PlatformKind.S3, PlatformKind.VOLUMES})


@dataclass(frozen=True)
class StorageLocation:
    """A named storage location as resolved from configuration."""

    name: str
    platform: PlatformKind
    root: str
    key_prefix_template: str | None = None
    endpoint_url: str | None = None
    region: str | None = None
    profile: str | None = None

    @property
    def prefix_listable(self) -> bool:
        return PlatformKind(self.platform) in OBJECT_STORE_PLATFORMS


@dataclass(frozen=True)
class RegisteredData:
    """
    One registered data version of a catalog key.

    Attributes:
        key: Catalog key this version belongs to.
        version: Data version, unique per key.
        status: Current lifecycle status.
        storage_name: Storage location holding the bytes.
        storage_key_prefix: Directory (key prefix) of this version in storage.
        storage_files: Concrete object keys, when known.
        latest_version: True for the single latest version of the key.
    """

    key: CatalogKey
    version: int
    status: DataStatus
    storage_name: str
    storage_key_prefix: str | None = None
    storage_files: tuple[str, ...] = ()
    latest_version: bool = False
