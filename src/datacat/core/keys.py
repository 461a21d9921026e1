"""Catalog key model and validation.

A CatalogKey identifies one logical, versioned dataset: the business object
definition, its format and the partition it lives in. Keys are immutable and
compared field by field; trimming is the only normalization ever applied.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from datacat.core.errors import ValidationError

MAX_SUB_PARTITIONS = 4


@dataclass(frozen=True)
class CatalogKey:
    """
    Identity of a logical dataset.

    Attributes:
        namespace: Namespace the definition belongs to.
        definition_name: Business object definition name.
        format_usage: Format usage code (e.g. PRC).
        format_file_type: Format file type code (e.g. PARQUET).
        format_version: Non-negative format (schema) version.
        partition_value: Primary partition value.
        sub_partition_values: Optional sub-partition values, in order.
        partition_key: Name of the primary partition column.
        sub_partition_keys: Optional names for the sub-partition columns,
              used only to render `name=value` path segments.
    """

    namespace: str
    definition_name: str
    format_usage: str
    format_file_type: str
    format_version: int
    partition_value: str
    sub_partition_values: tuple[str, ...] = ()
    partition_key: str = "partition"
    sub_partition_keys: tuple[str, ...] = ()

    @property
    def partition_values(self) -> tuple[str, ...]:
        """Primary partition value followed by the sub-partition values."""
        return (self.partition_value, *self.sub_partition_values)

    def normalized(self) -> CatalogKey:
        """Return a copy with every string field trimmed."""
        return replace(
            self,
            namespace=_strip(self.namespace),
            definition_name=_strip(self.definition_name),
            format_usage=_strip(self.format_usage),
            format_file_type=_strip(self.format_file_type),
            partition_value=_strip(self.partition_value),
            sub_partition_values=tuple(_strip(v) for v in self.sub_partition_values),
            partition_key=_strip(self.partition_key),
            sub_partition_keys=tuple(_strip(k) for k in self.sub_partition_keys),
        )

    def describe(self) -> str:
        """Short human-readable rendering used in logs and tables."""
        parts = "|".join(self.partition_values)
        return (
            f"{self.namespace}:{self.definition_name}:{self.format_usage}:"
            f"{self.format_file_type}:v{self.format_version}:{parts}"
        )

    def __str__(self) -> str:
        return self.describe()


def _strip(value: str | None) -> str:
    return value.strip() if isinstance(value, str) else ""


def _require(value: str, field: str, label: str) -> None:
    if not value:
        raise ValidationError(f"The {label} is required", field=field)


def validate_key(key: CatalogKey) -> CatalogKey:
    """
    Validate a catalog key and return its trimmed form.

    Required fields are checked in a fixed order so the first missing one is
    always the one reported.

    Raises:
        ValidationError: naming the first missing, blank or out-of-range field.
    """
    if isinstance(key.sub_partition_values, (str, bytes)) or not isinstance(
        key.sub_partition_values, (tuple, list)
    ):
        raise ValidationError(
            "The sub-partition values must be a sequence",
            field="sub_partition_values",
        )

    norm = key.normalized()

    _require(norm.namespace, "namespace", "namespace")
    _require(norm.definition_name, "definition_name", "definition name")
    _require(norm.format_usage, "format_usage", "format usage")
    _require(norm.format_file_type, "format_file_type", "format file type")

    if norm.format_version is None:
        raise ValidationError(
            "The format version is required", field="format_version"
        )
    if isinstance(norm.format_version, bool) or not isinstance(norm.format_version, int):
        raise ValidationError(
            "The format version must be an integer", field="format_version"
        )
    if norm.format_version < 0:
        raise ValidationError(
            "The format version must be greater than or equal to 0",
            field="format_version",
        )

    _require(norm.partition_key, "partition_key", "partition key")
    _require(norm.partition_value, "partition_value", "partition value")

    if len(norm.sub_partition_values) > MAX_SUB_PARTITIONS:
        raise ValidationError(
            f"At most {MAX_SUB_PARTITIONS} sub-partition values are allowed",
            field="sub_partition_values",
        )
    for i, value in enumerate(norm.sub_partition_values):
        if not value:
            raise ValidationError(
                f"The sub-partition value [{i}] must not be blank",
                field="sub_partition_values",
            )

    if norm.sub_partition_keys:
        if len(norm.sub_partition_keys) != len(norm.sub_partition_values):
            raise ValidationError(
                "The number of sub-partition keys must match the number of "
                "sub-partition values",
                field="sub_partition_keys",
            )
        for i, name in enumerate(norm.sub_partition_keys):
            if not name:
                raise ValidationError(
                    f"The sub-partition key [{i}] must not be blank",
                    field="sub_partition_keys",
                )

    return norm


def validate_storage_name(storage_name: str | None) -> str:
    """Return the trimmed storage name or raise ValidationError."""
    name = _strip(storage_name)
    if not name:
        raise ValidationError("The storage name is required", field="storage_name")
    return name
