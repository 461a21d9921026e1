"""Grouping of matched storage keys into data version directories."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from datacat.core.prefix import SEPARATOR

VERSION_SEGMENT_RE = re.compile(r"^data-v=?(\d+)$")


@dataclass(frozen=True)
class StorageObjectGroup:
    """
    Objects found under one data version directory during a scan.

    Attributes:
        directory: Storage prefix of the group (no trailing separator).
        keys: Sorted object keys belonging to the group.
        apparent_version: Version encoded in the directory name, or None
              when the directory does not encode one (undetermined).
    """

    directory: str
    keys: tuple[str, ...]
    apparent_version: int | None = None

    @property
    def undetermined(self) -> bool:
        return self.apparent_version is None


def parse_version_segment(segment: str) -> int | None:
    """Return the data version encoded by a path segment, or None."""
    m = VERSION_SEGMENT_RE.match(segment)
    return int(m.group(1)) if m else None


def group_storage_keys(prefix: str, matched_keys: Iterable[str]) -> list[StorageObjectGroup]:
    """
    Group keys (already matched against `prefix`) by their first segment.

    - `data-v<n>/...` keys form a versioned group per version directory.
    - keys inside any other first-level directory form one undetermined
      group per directory.
    - files directly under the prefix, `prefix/` markers and the zero-depth
      placeholder form the root undetermined group.

    Returns:
        Versioned groups by ascending apparent version, then undetermined
        groups by directory.
    """
    base = prefix.rstrip(SEPARATOR)
    buckets: dict[tuple[str, int | None], set[str]] = {}

    for key in matched_keys:
        rest = key[len(base) :].lstrip(SEPARATOR)
        first, sep, _ = rest.partition(SEPARATOR)

        if not sep:
            # File directly under the prefix, or the placeholder itself.
            bucket = (base, None)
        else:
            directory = f"{base}{SEPARATOR}{first}"
            bucket = (directory, parse_version_segment(first))

        buckets.setdefault(bucket, set()).add(key)

    groups = [
        StorageObjectGroup(directory=d, keys=tuple(sorted(keys)), apparent_version=v)
        for (d, v), keys in buckets.items()
    ]
    versioned = sorted(
        (g for g in groups if not g.undetermined),
        key=lambda g: (g.apparent_version, g.directory),
    )
    undetermined = sorted((g for g in groups if g.undetermined), key=lambda g: g.directory)
    return versioned + undetermined
