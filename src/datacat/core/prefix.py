"""Storage key prefix construction.

The prefix for a catalog key is rendered from a path template over a fixed,
explicitly enumerated set of key fields. The same key always yields the same
prefix, which is what makes reconciliation idempotent and prefix matching
reliable.
"""

from __future__ import annotations

from string import Formatter

from datacat.core.errors import InvalidKeyError
from datacat.core.keys import CatalogKey

SEPARATOR = "/"

DEFAULT_KEY_PREFIX_TEMPLATE = (
    "{namespace}/{format_usage}/{format_file_type}/{definition_name}"
    "/schm-v{format_version}/{partitions}"
)

TEMPLATE_FIELDS = frozenset(
    {
        "namespace",
        "definition_name",
        "format_usage",
        "format_file_type",
        "format_version",
        "partitions",
    }
)

DATA_VERSION_SEGMENT = "data-v{version}"

_RESERVED_SEGMENTS = {".", ".."}


def _segment(value: str, field: str, key: CatalogKey) -> str:
    """Trim and check one path segment value."""
    text = str(value).strip()
    if not text:
        raise InvalidKeyError(
            f"The {field} must not be empty in a storage path", key=key, field=field
        )
    if SEPARATOR in text:
        raise InvalidKeyError(
            f"The {field} '{text}' must not contain '{SEPARATOR}'",
            key=key,
            field=field,
        )
    if text in _RESERVED_SEGMENTS:
        raise InvalidKeyError(
            f"The {field} '{text}' is not a valid path segment", key=key, field=field
        )
    return text


def _partition_segments(key: CatalogKey) -> list[str]:
    name = _segment(key.partition_key, "partition_key", key)
    value = _segment(key.partition_value, "partition_value", key)
    segments = [f"{name}={value}"]

    names = tuple(key.sub_partition_keys)
    for i, raw in enumerate(key.sub_partition_values):
        sub_value = _segment(raw, f"sub_partition_values[{i}]", key)
        if names:
            if i >= len(names):
                raise InvalidKeyError(
                    "The sub-partition keys do not cover every sub-partition value",
                    key=key,
                    field="sub_partition_keys",
                )
            sub_name = _segment(names[i], f"sub_partition_keys[{i}]", key)
            segments.append(f"{sub_name}={sub_value}")
        else:
            segments.append(sub_value)
    return segments


def check_template(template: str) -> str:
    """
    Validate that a template only uses the enumerated key fields.

    Raises:
        InvalidKeyError: on unknown fields, positional fields, conversions or
            format specs.
    """
    try:
        parsed = list(Formatter().parse(template))
    except ValueError as exc:
        raise InvalidKeyError(f"Malformed key prefix template: {exc}") from exc

    for _, field, spec, conversion in parsed:
        if field is None:
            continue
        if field not in TEMPLATE_FIELDS:
            raise InvalidKeyError(
                f"Unknown key prefix template field '{{{field}}}'", field=field or None
            )
        if spec or conversion:
            raise InvalidKeyError(
                f"Key prefix template field '{{{field}}}' must not use a "
                "conversion or format spec",
                field=field,
            )
    return template


def build_key_prefix(
    key: CatalogKey, template: str = DEFAULT_KEY_PREFIX_TEMPLATE
) -> str:
    """
    Render the canonical storage key prefix for a catalog key.

    The prefix has no leading or trailing separator. Values are substituted
    verbatim (trimmed, never case-folded) so distinct keys never collide.

    Raises:
        InvalidKeyError: if any segment is empty, contains the separator, or
            the template is invalid.
    """
    check_template(template)

    if isinstance(key.format_version, bool) or not isinstance(key.format_version, int):
        raise InvalidKeyError(
            "The format version must be an integer", key=key, field="format_version"
        )
    if key.format_version < 0:
        raise InvalidKeyError(
            "The format version must not be negative", key=key, field="format_version"
        )

    fields = {
        "namespace": _segment(key.namespace, "namespace", key),
        "definition_name": _segment(key.definition_name, "definition_name", key),
        "format_usage": _segment(key.format_usage, "format_usage", key),
        "format_file_type": _segment(key.format_file_type, "format_file_type", key),
        "format_version": str(key.format_version),
        "partitions": SEPARATOR.join(_partition_segments(key)),
    }
    prefix = template.format(**fields).strip(SEPARATOR)
    if not prefix or "" in prefix.split(SEPARATOR):
        raise InvalidKeyError(
            f"Key prefix '{prefix}' contains an empty path segment", key=key
        )
    return prefix


def data_version_directory(prefix: str, version: int) -> str:
    """Return the directory holding one data version below a key prefix."""
    if version < 0:
        raise ValueError("version must be >= 0")
    base = prefix.rstrip(SEPARATOR)
    return f"{base}{SEPARATOR}{DATA_VERSION_SEGMENT.format(version=version)}"
