"""Data version assignment for newly discovered storage groups.

The catalog only ever moves forward from its own highest known version:
new versions are `max(existing) + 1, + 2, ...`, never a value that back-fills
a hole left by a logically removed version. Version numbers implied by the
storage layout are informational; they decide ordering, not numbering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from datacat.core.errors import AmbiguousVersionError
from datacat.core.grouping import StorageObjectGroup
from datacat.core.models import RegisteredData
from datacat.core.prefix import SEPARATOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionAssignment:
    """A storage group paired with the catalog version it will be registered as."""

    version: int
    group: StorageObjectGroup


@dataclass(frozen=True)
class VersionPlan:
    """
    Outcome of version resolution for one key.

    Attributes:
        assignments: New versions to register, ascending.
        known: Groups already attributed to registered data.
        gap_detected: True when registration was suppressed because the
              earliest discovered version is not contiguous with an empty
              catalog.
        unassigned: New groups left unregistered because of a gap.
    """

    assignments: tuple[VersionAssignment, ...] = ()
    known: tuple[StorageObjectGroup, ...] = ()
    gap_detected: bool = False
    unassigned: tuple[StorageObjectGroup, ...] = ()


def resolve_versions(existing_versions: Iterable[int], number_of_new_groups: int) -> list[int]:
    """
    Return `number_of_new_groups` consecutive versions after the current maximum.

    Args:
        existing_versions: Every version known for the key, in any status.
        number_of_new_groups: How many new versions are needed.

    Returns:
        Strictly increasing versions starting at `max(existing | {-1}) + 1`.
    """
    if number_of_new_groups < 0:
        raise ValueError("number_of_new_groups must be >= 0")
    next_version = max(set(existing_versions) | {-1}) + 1
    return list(range(next_version, next_version + number_of_new_groups))


def _is_known(
    group: StorageObjectGroup,
    max_version: int,
    registered_prefixes: set[str],
    registered_files: set[str],
) -> bool:
    if group.apparent_version is not None and group.apparent_version <= max_version:
        return True
    if group.directory in registered_prefixes:
        return True
    return any(k in registered_files for k in group.keys)


def plan_versions(
    existing_versions: Iterable[int],
    registered: Iterable[RegisteredData],
    groups: Iterable[StorageObjectGroup],
) -> VersionPlan:
    """
    Decide which discovered groups become which new catalog versions.

    Raises:
        AmbiguousVersionError: if more than one new undetermined group is
            found, or two new groups claim the same apparent version.
    """
    existing = set(existing_versions)
    max_version = max(existing | {-1})

    entries = list(registered)
    registered_prefixes = {
        e.storage_key_prefix.rstrip(SEPARATOR) for e in entries if e.storage_key_prefix
    }
    registered_files = {f for e in entries for f in e.storage_files}

    known: list[StorageObjectGroup] = []
    versioned: list[StorageObjectGroup] = []
    undetermined: list[StorageObjectGroup] = []
    for g in groups:
        if _is_known(g, max_version, registered_prefixes, registered_files):
            known.append(g)
        elif g.undetermined:
            undetermined.append(g)
        else:
            versioned.append(g)

    if len(undetermined) > 1:
        dirs = ", ".join(g.directory for g in undetermined)
        raise AmbiguousVersionError(
            f"Found {len(undetermined)} undetermined version groupings: {dirs}"
        )

    versioned.sort(key=lambda g: (g.apparent_version, g.directory))
    seen: set[int] = set()
    for g in versioned:
        if g.apparent_version in seen:
            raise AmbiguousVersionError(
                f"More than one storage directory encodes data version "
                f"{g.apparent_version}",
                version=g.apparent_version,
            )
        seen.add(g.apparent_version)

    new_groups = versioned + undetermined

    if not existing and versioned and versioned[0].apparent_version > 0:
        logger.warning(
            "Earliest discovered data version is %s but no version is registered; "
            "skipping registration",
            versioned[0].apparent_version,
        )
        return VersionPlan(
            known=tuple(known), gap_detected=True, unassigned=tuple(new_groups)
        )

    versions = resolve_versions(existing, len(new_groups))
    for g, v in zip(new_groups, versions):
        if g.apparent_version is not None and g.apparent_version != v:
            logger.info(
                "Storage directory %s encodes version %s; registering as version %s",
                g.directory,
                g.apparent_version,
                v,
            )

    return VersionPlan(
        assignments=tuple(
            VersionAssignment(version=v, group=g) for g, v in zip(new_groups, versions)
        ),
        known=tuple(known),
    )
