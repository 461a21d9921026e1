"""Configuration loading and storage location resolution.

Configuration is a single JSON document:

    {
      "catalog_path": "/var/lib/datacat/catalog.json",
      "storages": [
        {"name": "raw", "platform": "S3", "root": "my-bucket", "region": "eu-west-1"},
        {"name": "lake", "platform": "VOLUMES", "root": "/Volumes/main/raw/files",
         "profile": "prod"}
      ]
    }

The file path comes from an explicit argument, else `DATACAT_CONFIG`, else
`$XDG_CONFIG_HOME/datacat/config.json`. A missing file is an empty
configuration.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from datacat.core.errors import StorageNotFoundError, ValidationError
from datacat.core.keys import validate_storage_name
from datacat.core.models import PlatformKind, StorageLocation
from datacat.core.prefix import check_template

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "DATACAT_CONFIG"


@dataclass(frozen=True)
class AppConfig:
    storages: tuple[StorageLocation, ...] = ()
    catalog_path: str | None = None
    source: Path | None = field(default=None, compare=False)


def default_config_path() -> Path:
    explicit = os.getenv(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit)
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "datacat" / "config.json"


def storage_from_record(record: Mapping[str, Any]) -> StorageLocation:
    """
    Build a storage location from a config record.

    Raises:
        ValidationError: if the name, platform or root is missing or invalid.
    """
    name = validate_storage_name(record.get("name"))

    raw_platform = str(record.get("platform") or "").strip().upper()
    try:
        platform = PlatformKind(raw_platform)
    except ValueError as exc:
        raise ValidationError(
            f"Storage '{name}' has unknown platform '{record.get('platform')}'",
            storage_name=name,
            field="platform",
        ) from exc

    root = str(record.get("root") or "").strip()
    if not root:
        raise ValidationError(
            f"Storage '{name}' has no root", storage_name=name, field="root"
        )

    template = record.get("key_prefix_template") or None
    if template:
        check_template(template)

    return StorageLocation(
        name=name,
        platform=platform,
        root=root,
        key_prefix_template=template,
        endpoint_url=record.get("endpoint_url") or None,
        region=record.get("region") or None,
        profile=record.get("profile") or None,
    )


def storage_to_record(location: StorageLocation) -> dict[str, Any]:
    record = {
        "name": location.name,
        "platform": PlatformKind(location.platform).value,
        "root": location.root,
    }
    for attr in ("key_prefix_template", "endpoint_url", "region", "profile"):
        value = getattr(location, attr)
        if value:
            record[attr] = value
    return record


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load the configuration file; a missing file yields an empty config."""
    source = Path(path) if path else default_config_path()
    if not source.exists():
        logger.debug("No configuration file at %s", source)
        return AppConfig(source=source)

    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Configuration file {source} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"Configuration file {source} must contain a JSON object")

    storages = tuple(storage_from_record(r) for r in payload.get("storages") or [])
    names = [s.name for s in storages]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValidationError(
            f"Duplicate storage names in {source}: {', '.join(duplicates)}",
            field="storages",
        )

    logger.debug("Loaded %d storage locations from %s", len(storages), source)
    return AppConfig(
        storages=storages,
        catalog_path=payload.get("catalog_path") or None,
        source=source,
    )


class ConfigStorageLocationResolver:
    """Resolves storage location names against a fixed set of locations."""

    def __init__(self, locations: Iterable[StorageLocation]) -> None:
        self._locations = {loc.name: loc for loc in locations}

    @classmethod
    def from_config(cls, config: AppConfig) -> "ConfigStorageLocationResolver":
        return cls(config.storages)

    def names(self) -> list[str]:
        return sorted(self._locations)

    def resolve(self, storage_name: str) -> StorageLocation:
        name = validate_storage_name(storage_name)
        location = self._locations.get(name)
        if location is None:
            raise StorageNotFoundError(
                f'Storage with name "{name}" doesn\'t exist.', storage_name=name
            )
        return location
