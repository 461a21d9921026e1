"""Plain-record (dict) conversion for catalog keys and registered data.

Used by the JSON catalog file, the CLI keys file and `--json` output. Field
names follow the domain model.
"""

from __future__ import annotations

from typing import Any, Mapping

from datacat.core.errors import ValidationError
from datacat.core.keys import CatalogKey
from datacat.core.models import RegisteredData
from datacat.core.status import DataStatus

_KEY_FIELDS = (
    "namespace",
    "definition_name",
    "format_usage",
    "format_file_type",
    "format_version",
    "partition_value",
)


def key_to_record(key: CatalogKey) -> dict[str, Any]:
    """Return the catalog key as a JSON-compatible dict."""
    return {
        "namespace": key.namespace,
        "definition_name": key.definition_name,
        "format_usage": key.format_usage,
        "format_file_type": key.format_file_type,
        "format_version": key.format_version,
        "partition_key": key.partition_key,
        "partition_value": key.partition_value,
        "sub_partition_values": list(key.sub_partition_values),
        "sub_partition_keys": list(key.sub_partition_keys),
    }


def key_from_record(record: Mapping[str, Any]) -> CatalogKey:
    """
    Build a catalog key from a dict.

    Raises:
        ValidationError: if a required field is absent or has the wrong type.
    """
    missing = [f for f in _KEY_FIELDS if f not in record]
    if missing:
        raise ValidationError(
            f"Catalog key record is missing: {', '.join(missing)}", field=missing[0]
        )
    try:
        format_version = int(record["format_version"])
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "The format version must be an integer", field="format_version"
        ) from exc

    return CatalogKey(
        namespace=str(record["namespace"]),
        definition_name=str(record["definition_name"]),
        format_usage=str(record["format_usage"]),
        format_file_type=str(record["format_file_type"]),
        format_version=format_version,
        partition_value=str(record["partition_value"]),
        sub_partition_values=tuple(str(v) for v in record.get("sub_partition_values") or ()),
        partition_key=str(record.get("partition_key") or "partition"),
        sub_partition_keys=tuple(str(k) for k in record.get("sub_partition_keys") or ()),
    )


def data_to_record(data: RegisteredData) -> dict[str, Any]:
    """Return registered data as a JSON-compatible dict."""
    return {
        "key": key_to_record(data.key),
        "version": data.version,
        "status": DataStatus(data.status).value,
        "storage_name": data.storage_name,
        "storage_key_prefix": data.storage_key_prefix,
        "storage_files": list(data.storage_files),
        "latest_version": data.latest_version,
    }


def data_from_record(record: Mapping[str, Any]) -> RegisteredData:
    """Build registered data from a dict written by `data_to_record`."""
    return RegisteredData(
        key=key_from_record(record["key"]),
        version=int(record["version"]),
        status=DataStatus(record["status"]),
        storage_name=str(record["storage_name"]),
        storage_key_prefix=record.get("storage_key_prefix"),
        storage_files=tuple(record.get("storage_files") or ()),
        latest_version=bool(record.get("latest_version", False)),
    )
