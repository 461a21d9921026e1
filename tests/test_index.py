import json
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest
from filelock import FileLock

from datacat.core.adapters import jsonfile
from datacat.core.adapters.jsonfile import JsonFileCatalogIndex
from datacat.core.adapters.memory import InMemoryCatalogIndex, InMemoryStorageLister
from datacat.core.config import ConfigStorageLocationResolver
from datacat.core.errors import ConflictError, DataNotFoundError, ValidationError
from datacat.core.keys import CatalogKey
from datacat.core.models import PlatformKind, RegisteredData, StorageLocation
from datacat.core.records import data_from_record, data_to_record, key_from_record
from datacat.core.registration import RegistrationService
from datacat.core.status import DataStatus

KEY = CatalogKey("ns", "orders", "PRC", "PARQUET", 0, "2024-01-01", ("eu",))
RESOLVER = ConfigStorageLocationResolver([StorageLocation("raw", PlatformKind.S3, "bucket")])


def _data(version: int, status: DataStatus = DataStatus.VALID) -> RegisteredData:
    return RegisteredData(KEY, version, status, "raw", f"p/data-v{version}", (f"p/data-v{version}/a",))


def test_persist_rejects_existing_version():
    index = InMemoryCatalogIndex()
    index.persist(_data(0))

    with pytest.raises(ConflictError) as exc_info:
        index.persist(_data(0))

    assert exc_info.value.version == 0


def test_persist_moves_latest_flag_to_highest_version():
    index = InMemoryCatalogIndex()
    index.persist(_data(0))
    index.persist(_data(2))
    index.persist(_data(1))

    assert [(d.version, d.latest_version) for d in index.find(KEY)] == [
        (0, False),
        (1, False),
        (2, True),
    ]
    assert index.existing_versions(KEY) == {0, 1, 2}


def test_replace_keeps_latest_flag_and_requires_existing_version():
    index = InMemoryCatalogIndex()
    index.persist(_data(0))

    updated = index.replace(_data(0, DataStatus.DELETED))

    assert updated.status == DataStatus.DELETED
    assert updated.latest_version is True
    with pytest.raises(DataNotFoundError):
        index.replace(_data(5))


def test_key_lock_is_reentrant():
    index = InMemoryCatalogIndex()

    with index.lock(KEY):
        with index.lock(KEY):
            index.persist(_data(0))

    assert index.get(KEY, 0) is not None


def test_memory_lister_uses_plain_string_prefix():
    lister = InMemoryStorageLister()
    lister.add("bucket", "a/b/c", "a/bb/c", "x/y")

    assert lister.list_keys("bucket", "a/b") == ["a/b/c", "a/bb/c"]
    assert lister.list_keys("other", "a") == []


def test_json_index_survives_reload(tmp_path):
    path = tmp_path / "nested" / "catalog.json"
    index = JsonFileCatalogIndex(path)
    index.persist(_data(0))
    index.persist(_data(1, DataStatus.UPLOADING))

    reloaded = JsonFileCatalogIndex(path)

    assert reloaded.find(KEY) == index.find(KEY)
    assert reloaded.get(KEY, 1).latest_version is True
    payload = json.loads(path.read_text())
    assert payload["format"] == 1
    assert len(payload["entries"]) == 2
    assert not list(tmp_path.joinpath("nested").glob(".catalog-*"))


def test_failed_commit_leaves_index_unchanged():
    class _FailingIndex(InMemoryCatalogIndex):
        fail = False

        def _commit(self, data):
            if self.fail:
                raise OSError("disk full")

    index = _FailingIndex()
    index.persist(_data(0))
    index.fail = True

    with pytest.raises(OSError):
        index.persist(_data(1))
    with pytest.raises(OSError):
        index.replace(_data(0, DataStatus.DELETED))

    (only,) = index.find(KEY)
    assert only.version == 0
    assert only.status == DataStatus.VALID
    assert only.latest_version is True


def test_json_index_write_failure_keeps_catalog_consistent(tmp_path, monkeypatch):
    path = tmp_path / "catalog.json"
    index = JsonFileCatalogIndex(path)

    def _no_space(*args, **kwargs):
        raise OSError("No space left on device")

    monkeypatch.setattr(jsonfile.tempfile, "mkstemp", _no_space)

    with pytest.raises(OSError):
        RegistrationService(RESOLVER, index).pre_register(KEY, "raw")

    assert index.find(KEY) == []
    assert index.existing_versions(KEY) == set()
    assert not path.exists()


def test_json_indexes_sharing_a_file_hand_out_distinct_versions(tmp_path):
    path = tmp_path / "catalog.json"
    first = RegistrationService(RESOLVER, JsonFileCatalogIndex(path))
    second = RegistrationService(RESOLVER, JsonFileCatalogIndex(path))

    a = first.pre_register(KEY, "raw")
    b = second.pre_register(KEY, "raw")

    assert (a.version, b.version) == (0, 1)
    assert [(d.version, d.latest_version) for d in JsonFileCatalogIndex(path).find(KEY)] == [
        (0, False),
        (1, True),
    ]


def test_json_index_write_never_erases_entries_of_another_instance(tmp_path):
    path = tmp_path / "catalog.json"
    other_key = replace(KEY, partition_value="2024-01-02")
    first = JsonFileCatalogIndex(path)
    second = JsonFileCatalogIndex(path)

    first.persist(_data(0))
    second.persist(replace(_data(0), key=other_key))

    reloaded = JsonFileCatalogIndex(path)
    assert [d.version for d in reloaded.find(KEY)] == [0]
    assert [d.version for d in reloaded.find(other_key)] == [0]
    with pytest.raises(ConflictError):
        second.persist(_data(0))


def test_json_indexes_sharing_a_file_under_concurrent_pre_registration(tmp_path):
    path = tmp_path / "catalog.json"
    services = [RegistrationService(RESOLVER, JsonFileCatalogIndex(path)) for _ in range(2)]
    start = threading.Barrier(8)

    def _pre_register(i: int) -> int:
        start.wait()
        return services[i % 2].pre_register(KEY, "raw").version

    with ThreadPoolExecutor(max_workers=8) as pool:
        versions = list(pool.map(_pre_register, range(8)))

    assert sorted(versions) == list(range(8))
    entries = JsonFileCatalogIndex(path).find(KEY)
    assert [d.version for d in entries] == list(range(8))
    assert [d.version for d in entries if d.latest_version] == [7]


def test_json_index_reports_busy_catalog(tmp_path):
    path = tmp_path / "catalog.json"
    index = JsonFileCatalogIndex(path, lock_timeout=0.1)

    with FileLock(f"{path}.lock"):
        with pytest.raises(ConflictError, match="locked by another writer"):
            index.persist(_data(0))

    assert index.find(KEY) == []


def test_json_index_missing_file_is_empty(tmp_path):
    index = JsonFileCatalogIndex(tmp_path / "catalog.json")

    assert index.keys() == []
    assert not (tmp_path / "catalog.json").exists()


def test_json_index_rejects_corrupt_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text("{not json")

    with pytest.raises(ValueError, match="not valid JSON"):
        JsonFileCatalogIndex(path)


def test_json_index_default_path(monkeypatch, tmp_path):
    monkeypatch.delenv("DATACAT_CATALOG_PATH", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert JsonFileCatalogIndex.default_path() == tmp_path / "datacat" / "catalog.json"

    monkeypatch.setenv("DATACAT_CATALOG_PATH", str(tmp_path / "c.json"))
    assert JsonFileCatalogIndex.default_path() == tmp_path / "c.json"


def test_data_record_round_trip():
    data = _data(3, DataStatus.INVALID)

    assert data_from_record(json.loads(json.dumps(data_to_record(data)))) == data


def test_key_from_record_defaults_partition_key():
    key = key_from_record(
        {
            "namespace": "ns",
            "definition_name": "orders",
            "format_usage": "PRC",
            "format_file_type": "PARQUET",
            "format_version": "2",
            "partition_value": "p",
        }
    )

    assert key.partition_key == "partition"
    assert key.format_version == 2
    assert key.sub_partition_values == ()


def test_key_from_record_reports_missing_fields():
    with pytest.raises(ValidationError, match="missing: namespace"):
        key_from_record({})

    with pytest.raises(ValidationError, match="must be an integer"):
        key_from_record(
            {
                "namespace": "ns",
                "definition_name": "orders",
                "format_usage": "PRC",
                "format_file_type": "PARQUET",
                "format_version": "two",
                "partition_value": "p",
            }
        )
