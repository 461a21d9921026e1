"""Lifecycle status of a registered data version.

Both the reconciliation engine and the ordinary registration flows move
entries through the same small state machine:

    UPLOADING -> VALID | INVALID | DELETED
    VALID     -> DELETED
    INVALID   -> DELETED
    DELETED   (terminal)

Data discovered by reconciliation is created directly in
UNREGISTERED_STATUS; it already exists physically, so it never passes
through UPLOADING.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING

from datacat.core.errors import InvalidTransitionError

if TYPE_CHECKING:
    from datacat.core.models import RegisteredData


class DataStatus(str, Enum):
    """
    Enumeration of registered data statuses.

    Values:
        UPLOADING: Pre-registered; bytes are still being written.
        VALID: Confirmed, readable data.
        INVALID: Not confirmed; also the status of data found by reconciliation.
        DELETED: Logically removed. Terminal.
    """

    UPLOADING = "UPLOADING"
    VALID = "VALID"
    INVALID = "INVALID"
    DELETED = "DELETED"


UNREGISTERED_STATUS = DataStatus.INVALID

ALLOWED_TRANSITIONS: dict[DataStatus, frozenset[DataStatus]] = {
    DataStatus.UPLOADING: frozenset(
        {DataStatus.VALID, DataStatus.INVALID, DataStatus.DELETED}
    ),
    DataStatus.VALID: frozenset({DataStatus.DELETED}),
    DataStatus.INVALID: frozenset({DataStatus.DELETED}),
    DataStatus.DELETED: frozenset(),
}


def can_transition(current: DataStatus, target: DataStatus) -> bool:
    """Return True if `current -> target` is an allowed status change."""
    return DataStatus(target) in ALLOWED_TRANSITIONS[DataStatus(current)]


def creation_status(*, discovered: bool) -> DataStatus:
    """Initial status for a new entry (discovered by reconciliation or pre-registered)."""
    return UNREGISTERED_STATUS if discovered else DataStatus.UPLOADING


def transition(data: RegisteredData, target: DataStatus | str) -> RegisteredData:
    """
    Return a copy of `data` moved to `target`.

    Raises:
        InvalidTransitionError: if the change is not allowed, including any
            change out of DELETED and same-status "changes".
    """
    try:
        new_status = DataStatus(target)
    except ValueError as exc:
        raise InvalidTransitionError(
            f"Unknown status '{target}'",
            key=data.key,
            storage_name=data.storage_name,
            version=data.version,
        ) from exc

    if not can_transition(data.status, new_status):
        raise InvalidTransitionError(
            f"Cannot change status of version {data.version} from "
            f"{DataStatus(data.status).value} to {new_status.value}",
            key=data.key,
            storage_name=data.storage_name,
            version=data.version,
        )
    return replace(data, status=new_status)
