from datacat.core.grouping import group_storage_keys, parse_version_segment

P = "ns/def/p=1"


def test_parse_version_segment():
    assert parse_version_segment("data-v0") == 0
    assert parse_version_segment("data-v=12") == 12
    assert parse_version_segment("data-vx") is None
    assert parse_version_segment("v1") is None


def test_group_storage_keys_orders_versioned_then_undetermined():
    groups = group_storage_keys(
        P,
        [
            f"{P}/data-v1/b.parquet",
            f"{P}/loose/c.parquet",
            f"{P}/data-v0/a.parquet",
            f"{P}/data-v0/a2.parquet",
        ],
    )

    assert [(g.directory, g.apparent_version) for g in groups] == [
        (f"{P}/data-v0", 0),
        (f"{P}/data-v1", 1),
        (f"{P}/loose", None),
    ]
    assert groups[0].keys == (f"{P}/data-v0/a.parquet", f"{P}/data-v0/a2.parquet")


def test_group_storage_keys_puts_root_files_and_markers_in_one_group():
    groups = group_storage_keys(P, [P, f"{P}/", f"{P}/file.txt"])

    assert len(groups) == 1
    assert groups[0].directory == P
    assert groups[0].undetermined is True
    assert groups[0].keys == (P, f"{P}/", f"{P}/file.txt")


def test_group_storage_keys_empty():
    assert group_storage_keys(P, []) == []
