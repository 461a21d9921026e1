import pytest

from datacat.core.errors import InvalidTransitionError
from datacat.core.keys import CatalogKey
from datacat.core.models import RegisteredData
from datacat.core.status import (
    UNREGISTERED_STATUS,
    DataStatus,
    can_transition,
    creation_status,
    transition,
)

KEY = CatalogKey("ns", "def", "PRC", "TXT", 0, "1")


def _data(status: DataStatus) -> RegisteredData:
    return RegisteredData(KEY, 0, status, "raw")


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (DataStatus.UPLOADING, DataStatus.VALID),
        (DataStatus.UPLOADING, DataStatus.INVALID),
        (DataStatus.UPLOADING, DataStatus.DELETED),
        (DataStatus.VALID, DataStatus.DELETED),
        (DataStatus.INVALID, DataStatus.DELETED),
    ],
)
def test_allowed_transitions(current: DataStatus, target: DataStatus):
    assert can_transition(current, target) is True
    assert transition(_data(current), target).status == target


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (DataStatus.DELETED, DataStatus.VALID),
        (DataStatus.DELETED, DataStatus.UPLOADING),
        (DataStatus.VALID, DataStatus.INVALID),
        (DataStatus.INVALID, DataStatus.VALID),
        (DataStatus.VALID, DataStatus.UPLOADING),
        (DataStatus.VALID, DataStatus.VALID),
    ],
)
def test_illegal_transitions_raise(current: DataStatus, target: DataStatus):
    with pytest.raises(InvalidTransitionError):
        transition(_data(current), target)


def test_transition_rejects_unknown_status():
    with pytest.raises(InvalidTransitionError, match="Unknown status"):
        transition(_data(DataStatus.UPLOADING), "ARCHIVED")


def test_transition_accepts_status_values():
    assert transition(_data(DataStatus.UPLOADING), "VALID").status is DataStatus.VALID


def test_creation_status():
    assert creation_status(discovered=True) is UNREGISTERED_STATUS is DataStatus.INVALID
    assert creation_status(discovered=False) is DataStatus.UPLOADING
