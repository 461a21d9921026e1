import pytest

from datacat.core.errors import InvalidKeyError
from datacat.core.keys import CatalogKey
from datacat.core.prefix import (
    build_key_prefix,
    check_template,
    data_version_directory,
)

KEY = CatalogKey("ns", "orders", "PRC", "PARQUET", 3, "2024-01-01")


def test_build_key_prefix_default_layout():
    assert build_key_prefix(KEY) == "ns/PRC/PARQUET/orders/schm-v3/partition=2024-01-01"


def test_build_key_prefix_is_deterministic():
    assert build_key_prefix(KEY) == build_key_prefix(
        CatalogKey("ns", "orders", "PRC", "PARQUET", 3, "2024-01-01")
    )


def test_build_key_prefix_renders_sub_partitions():
    bare = CatalogKey("ns", "orders", "PRC", "PARQUET", 0, "p", ("eu", "web"))
    named = CatalogKey(
        "ns",
        "orders",
        "PRC",
        "PARQUET",
        0,
        "p",
        ("eu",),
        partition_key="day",
        sub_partition_keys=("region",),
    )

    assert build_key_prefix(bare).endswith("/partition=p/eu/web")
    assert build_key_prefix(named).endswith("/day=p/region=eu")


def test_build_key_prefix_keeps_case():
    upper = CatalogKey("NS", "orders", "PRC", "PARQUET", 0, "p")
    lower = CatalogKey("ns", "orders", "PRC", "PARQUET", 0, "p")

    assert build_key_prefix(upper) != build_key_prefix(lower)


@pytest.mark.parametrize("value", ["a/b", "..", ".", "  "])
def test_build_key_prefix_rejects_unsafe_segments(value: str):
    with pytest.raises(InvalidKeyError):
        build_key_prefix(CatalogKey("ns", value, "PRC", "PARQUET", 0, "p"))


def test_build_key_prefix_with_custom_template():
    prefix = build_key_prefix(KEY, "/data/{namespace}/{definition_name}/{partitions}/")

    assert prefix == "data/ns/orders/partition=2024-01-01"


@pytest.mark.parametrize(
    "template",
    ["{namespace}/{owner}", "{namespace!r}", "{format_version:03d}", "{0}", "{namespace"],
)
def test_check_template_rejects_unsupported_fields(template: str):
    with pytest.raises(InvalidKeyError):
        check_template(template)


def test_data_version_directory():
    assert data_version_directory("a/b/", 2) == "a/b/data-v2"
    with pytest.raises(ValueError):
        data_version_directory("a/b", -1)
