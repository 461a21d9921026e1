import pytest

from datacat.core.errors import AmbiguousVersionError
from datacat.core.grouping import StorageObjectGroup
from datacat.core.keys import CatalogKey
from datacat.core.models import RegisteredData
from datacat.core.status import DataStatus
from datacat.core.versions import plan_versions, resolve_versions

P = "ns/def/p=1"
KEY = CatalogKey("ns", "def", "PRC", "TXT", 0, "1")


def _group(name: str, version: int | None = None) -> StorageObjectGroup:
    directory = f"{P}/{name}" if name else P
    return StorageObjectGroup(directory, (f"{directory}/file",), version)


@pytest.mark.parametrize(
    ("existing", "n", "expected"),
    [
        (set(), 1, [0]),
        ({0}, 2, [1, 2]),
        ({0, 2}, 1, [3]),
        ({5}, 0, []),
    ],
)
def test_resolve_versions(existing: set[int], n: int, expected: list[int]):
    assert resolve_versions(existing, n) == expected


def test_resolve_versions_rejects_negative_count():
    with pytest.raises(ValueError):
        resolve_versions(set(), -1)


def test_plan_versions_never_backfills_removed_version():
    plan = plan_versions({0, 2}, [], [_group("loose")])

    assert [a.version for a in plan.assignments] == [3]


def test_plan_versions_skips_groups_at_or_below_max_version():
    plan = plan_versions({0}, [], [_group("data-v0", 0), _group("data-v1", 1)])

    assert [(a.version, a.group.apparent_version) for a in plan.assignments] == [(1, 1)]
    assert [g.apparent_version for g in plan.known] == [0]


def test_plan_versions_attributes_groups_by_registered_prefix_and_files():
    registered = [
        RegisteredData(KEY, 0, DataStatus.VALID, "raw", storage_key_prefix=P),
        RegisteredData(
            KEY, 1, DataStatus.VALID, "raw", storage_files=(f"{P}/other/file",)
        ),
    ]

    plan = plan_versions({0, 1}, registered, [_group(""), _group("other")])

    assert plan.assignments == ()
    assert len(plan.known) == 2


def test_plan_versions_suppresses_registration_on_initial_gap():
    plan = plan_versions(set(), [], [_group("data-v1", 1), _group("loose")])

    assert plan.gap_detected is True
    assert plan.assignments == ()
    assert len(plan.unassigned) == 2


def test_plan_versions_renumbers_apparent_versions_after_existing():
    plan = plan_versions({0, 1, 2}, [], [_group("data-v5", 5), _group("data-v7", 7)])

    assert [(a.version, a.group.apparent_version) for a in plan.assignments] == [
        (3, 5),
        (4, 7),
    ]


def test_plan_versions_orders_versioned_before_undetermined():
    plan = plan_versions(set(), [], [_group("loose"), _group("data-v0", 0)])

    assert [(a.version, a.group.undetermined) for a in plan.assignments] == [
        (0, False),
        (1, True),
    ]


def test_plan_versions_rejects_two_undetermined_groups():
    with pytest.raises(AmbiguousVersionError, match="2 undetermined"):
        plan_versions(set(), [], [_group("a"), _group("b")])


def test_plan_versions_rejects_duplicate_apparent_versions():
    with pytest.raises(AmbiguousVersionError):
        plan_versions(set(), [], [_group("data-v0", 0), _group("data-v=0", 0)])
