import json

import pytest
from typer.testing import CliRunner

from datacat.cli import cli
from datacat.cli.common import context
from datacat.core.adapters.jsonfile import JsonFileCatalogIndex
from datacat.core.adapters.memory import InMemoryStorageLister
from datacat.core.keys import CatalogKey
from datacat.core.models import PlatformKind
from datacat.core.status import DataStatus

KEY = CatalogKey("ns", "orders", "PRC", "PARQUET", 0, "2024-01-01")
PREFIX = "ns/PRC/PARQUET/orders/schm-v0/partition=2024-01-01"
KEY_ARGS = ["-N", "ns", "-d", "orders", "-u", "PRC", "-t", "PARQUET", "-f", "0", "-P", "2024-01-01"]

runner = CliRunner()


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("COLUMNS", "400")
    catalog_path = tmp_path / "catalog.json"
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "catalog_path": str(catalog_path),
                "storages": [
                    {"name": "raw", "platform": "S3", "root": "bucket"},
                    {"name": "archive", "platform": "GLACIER", "root": "vault"},
                ],
            }
        )
    )
    lister = InMemoryStorageLister({"bucket": [f"{PREFIX}/data-v0/part-0.parquet"]})

    def _listers(location):
        if location.platform == PlatformKind.S3:
            return {PlatformKind.S3: lister}
        return {}

    monkeypatch.setattr(context, "build_listers", _listers)

    def _invoke(*args: str):
        return runner.invoke(cli.app, ["--config", str(config_path), *args])

    _invoke.catalog_path = catalog_path
    _invoke.lister = lister
    return _invoke


def _catalog(env):
    return JsonFileCatalogIndex(env.catalog_path).find(KEY)


def test_prefix_prints_key_prefix(env):
    result = env("prefix", "-s", "raw", *KEY_ARGS)

    assert result.exit_code == 0, result.output
    assert result.output.strip() == PREFIX


def test_reconcile_registers_discovered_data(env):
    result = env("reconcile", "-s", "raw", *KEY_ARGS, "--no-confirm")

    assert result.exit_code == 0, result.output
    assert "Registered 1 data version(s)" in result.output
    (data,) = _catalog(env)
    assert data.version == 0
    assert data.status == DataStatus.INVALID


def test_reconcile_dry_run_registers_nothing(env):
    result = env("reconcile", "-s", "raw", *KEY_ARGS, "--dry-run")

    assert result.exit_code == 0, result.output
    assert "Dry-run" in result.output
    assert _catalog(env) == []


def test_reconcile_twice_reports_up_to_date(env):
    env("reconcile", "-s", "raw", *KEY_ARGS, "--no-confirm")
    result = env("reconcile", "-s", "raw", *KEY_ARGS, "--no-confirm")

    assert result.exit_code == 0, result.output
    assert "up to date" in result.output
    assert len(_catalog(env)) == 1


def test_reconcile_missing_field_exits_with_usage_error(env):
    args = ["-d", "orders", "-u", "PRC", "-t", "PARQUET", "-f", "0", "-P", "2024-01-01"]

    result = env("reconcile", "-s", "raw", *args, "--no-confirm")

    assert result.exit_code == 2
    assert "The namespace is required" in result.output
    assert env.lister.calls == []


def test_reconcile_rejects_non_object_store(env):
    result = env("reconcile", "-s", "archive", *KEY_ARGS, "--no-confirm")

    assert result.exit_code == 1
    assert "object-store platform" in result.output


def test_reconcile_unknown_storage(env):
    result = env("reconcile", "-s", "nope", *KEY_ARGS, "--no-confirm")

    assert result.exit_code == 1
    assert "doesn't exist" in result.output


def test_storages_lists_configured_locations(env):
    result = env("storages")

    assert result.exit_code == 0, result.output
    assert "raw" in result.output
    assert "archive" in result.output


def test_data_lifecycle(env):
    pre = env("data", "pre-register", "-s", "raw", *KEY_ARGS)
    assert pre.exit_code == 0, pre.output
    assert "Pre-registered version 0" in pre.output

    listed = env("data", "list", *KEY_ARGS, "--json")
    assert listed.exit_code == 0, listed.output
    assert '"UPLOADING"' in listed.output

    done = env("data", "complete", "0", *KEY_ARGS, "--file", f"{PREFIX}/data-v0/part-0.parquet")
    assert done.exit_code == 0, done.output
    assert "VALID" in done.output

    latest = env("data", "latest", *KEY_ARGS, "--json")
    assert latest.exit_code == 0, latest.output
    assert '"version": 0' in latest.output

    deleted = env("data", "delete", "0", *KEY_ARGS, "--no-confirm")
    assert deleted.exit_code == 0, deleted.output

    (data,) = _catalog(env)
    assert data.status == DataStatus.DELETED
    assert data.storage_files == (f"{PREFIX}/data-v0/part-0.parquet",)


def test_data_complete_unknown_version_fails(env):
    result = env("data", "complete", "3", *KEY_ARGS)

    assert result.exit_code == 1
    assert "is not registered" in result.output


def test_data_latest_without_data_fails(env):
    result = env("data", "latest", *KEY_ARGS)

    assert result.exit_code == 1


def test_reconcile_batch_reports_per_key_results(env, tmp_path):
    keys_file = tmp_path / "keys.json"
    good = {
        "namespace": "ns",
        "definition_name": "orders",
        "format_usage": "PRC",
        "format_file_type": "PARQUET",
        "format_version": 0,
        "partition_value": "2024-01-01",
    }
    empty = dict(good, partition_value="2024-01-02")
    keys_file.write_text(json.dumps([good, empty, good]))

    result = env("reconcile-batch", "-s", "raw", "-k", str(keys_file), "--no-confirm")

    assert result.exit_code == 0, result.output
    assert "1 data version(s) registered for 2 key(s)" in result.output
    assert len(_catalog(env)) == 1


def test_reconcile_batch_fails_when_a_key_fails(env, tmp_path):
    keys_file = tmp_path / "keys.json"
    bad = {
        "namespace": "ns",
        "definition_name": " ",
        "format_usage": "PRC",
        "format_file_type": "PARQUET",
        "format_version": 0,
        "partition_value": "2024-01-01",
    }
    keys_file.write_text(json.dumps({"keys": [bad]}))

    result = env("reconcile-batch", "-s", "raw", "-k", str(keys_file), "--no-confirm")

    assert result.exit_code == 1
    assert "1 key(s) failed" in result.output


def test_reconcile_batch_rejects_invalid_keys_file(env, tmp_path):
    keys_file = tmp_path / "keys.json"
    keys_file.write_text("{}")

    result = env("reconcile-batch", "-s", "raw", "-k", str(keys_file), "--no-confirm")

    assert result.exit_code == 2
    assert "list of keys" in result.output
