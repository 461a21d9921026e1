"""Catalog key construction from CLI input.

Translates command-line options and keys files into CatalogKey instances.
Field validation is left to the core so the CLI reports exactly the same
messages as any other caller.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from datacat.core.errors import ValidationError
from datacat.core.keys import CatalogKey
from datacat.core.records import key_from_record


def build_key(
    *,
    namespace: str | None,
    definition: str | None,
    usage: str | None,
    file_type: str | None,
    format_version: int | None,
    partition_value: str | None,
    partition_key: str = "partition",
    sub_partitions: Iterable[str] = (),
    sub_partition_keys: Iterable[str] = (),
) -> CatalogKey:
    """
    Build a catalog key from user-provided options.

    Missing options are passed through as empty values; `validate_key`
    reports the first one that is missing.
    """
    return CatalogKey(
        namespace=namespace or "",
        definition_name=definition or "",
        format_usage=usage or "",
        format_file_type=file_type or "",
        format_version=format_version,
        partition_value=partition_value or "",
        sub_partition_values=tuple(sub_partitions),
        partition_key=partition_key,
        sub_partition_keys=tuple(sub_partition_keys),
    )


def load_keys_file(path: str | Path) -> list[CatalogKey]:
    """
    Read a JSON keys file: either a list of key records or an object with a
    `keys` list. Duplicate keys are dropped, first occurrence wins.

    Raises:
        ValidationError: if the file cannot be read or a record is invalid.
    """
    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"Cannot read keys file {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Keys file {source} is not valid JSON: {exc}") from exc

    records = payload.get("keys") if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise ValidationError(f"Keys file {source} must contain a list of keys")

    keys: list[CatalogKey] = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"Key record [{i}] in {source} must be an object")
        key = key_from_record(record)
        if key not in keys:
            keys.append(key)
    return keys
