"""Commands for managing registered data versions."""

from __future__ import annotations

import typer

from datacat.cli.common.context import AppContext
from datacat.cli.common.exits import catalog_errors, ok_exit, warn_exit
from datacat.cli.common.key_builder import build_key
from datacat.cli.common.options import (
    ConfirmOpt,
    DefinitionOpt,
    FileOpt,
    FileTypeOpt,
    FormatVersionOpt,
    InvalidOpt,
    JsonOpt,
    NamespaceOpt,
    PartitionKeyOpt,
    PartitionValueOpt,
    StorageOpt,
    SubPartitionKeyOpt,
    SubPartitionOpt,
    UsageOpt,
    VersionArg,
)
from datacat.cli.common.output import out
from datacat.core.records import data_to_record
from datacat.core.status import DataStatus

data_app = typer.Typer(
    help="Registered data versions: list, pre-register, complete, delete.",
    no_args_is_help=True,
)


@data_app.command("list")
def list_versions(
    ctx: typer.Context,
    namespace: str | None = NamespaceOpt,
    definition: str | None = DefinitionOpt,
    usage: str | None = UsageOpt,
    file_type: str | None = FileTypeOpt,
    format_version: int | None = FormatVersionOpt,
    partition_key: str = PartitionKeyOpt,
    partition_value: str | None = PartitionValueOpt,
    sub_partition: list[str] = SubPartitionOpt,
    sub_partition_key: list[str] = SubPartitionKeyOpt,
    as_json: bool = JsonOpt,
):
    """List every registered version of a key."""
    appctx: AppContext = ctx.obj
    key = build_key(
        namespace=namespace,
        definition=definition,
        usage=usage,
        file_type=file_type,
        format_version=format_version,
        partition_value=partition_value,
        partition_key=partition_key,
        sub_partitions=sub_partition,
        sub_partition_keys=sub_partition_key,
    )
    with catalog_errors():
        entries = appctx.registration().versions(key)

    if as_json:
        out.json([data_to_record(e) for e in entries])
        return
    if not entries:
        warn_exit("No data registered for this key", code=0)
    out.data_table(entries)


@data_app.command("latest")
def latest(
    ctx: typer.Context,
    namespace: str | None = NamespaceOpt,
    definition: str | None = DefinitionOpt,
    usage: str | None = UsageOpt,
    file_type: str | None = FileTypeOpt,
    format_version: int | None = FormatVersionOpt,
    partition_key: str = PartitionKeyOpt,
    partition_value: str | None = PartitionValueOpt,
    sub_partition: list[str] = SubPartitionOpt,
    sub_partition_key: list[str] = SubPartitionKeyOpt,
    as_json: bool = JsonOpt,
):
    """Show the latest version of a key."""
    appctx: AppContext = ctx.obj
    key = build_key(
        namespace=namespace,
        definition=definition,
        usage=usage,
        file_type=file_type,
        format_version=format_version,
        partition_value=partition_value,
        partition_key=partition_key,
        sub_partitions=sub_partition,
        sub_partition_keys=sub_partition_key,
    )
    with catalog_errors():
        entry = appctx.registration().latest(key)

    if entry is None:
        warn_exit("No data registered for this key", code=1)
    if as_json:
        out.json(data_to_record(entry))
        return
    out.data_table([entry], title="Latest")


@data_app.command("pre-register")
def pre_register(
    ctx: typer.Context,
    storage: str = StorageOpt,
    namespace: str | None = NamespaceOpt,
    definition: str | None = DefinitionOpt,
    usage: str | None = UsageOpt,
    file_type: str | None = FileTypeOpt,
    format_version: int | None = FormatVersionOpt,
    partition_key: str = PartitionKeyOpt,
    partition_value: str | None = PartitionValueOpt,
    sub_partition: list[str] = SubPartitionOpt,
    sub_partition_key: list[str] = SubPartitionKeyOpt,
):
    """
    Reserve the next data version of a key (UPLOADING) and print where to write it.
    """
    appctx: AppContext = ctx.obj
    key = build_key(
        namespace=namespace,
        definition=definition,
        usage=usage,
        file_type=file_type,
        format_version=format_version,
        partition_value=partition_value,
        partition_key=partition_key,
        sub_partitions=sub_partition,
        sub_partition_keys=sub_partition_key,
    )
    with catalog_errors():
        entry = appctx.registration().pre_register(key, storage)

    out.success(f"Pre-registered version {entry.version}")
    out.kv({"Storage": entry.storage_name, "Directory": entry.storage_key_prefix})


@data_app.command("complete")
def complete(
    ctx: typer.Context,
    version: int = VersionArg,
    namespace: str | None = NamespaceOpt,
    definition: str | None = DefinitionOpt,
    usage: str | None = UsageOpt,
    file_type: str | None = FileTypeOpt,
    format_version: int | None = FormatVersionOpt,
    partition_key: str = PartitionKeyOpt,
    partition_value: str | None = PartitionValueOpt,
    sub_partition: list[str] = SubPartitionOpt,
    sub_partition_key: list[str] = SubPartitionKeyOpt,
    invalid: bool = InvalidOpt,
    file: list[str] = FileOpt,
):
    """Complete a pre-registered version as VALID (or INVALID)."""
    appctx: AppContext = ctx.obj
    key = build_key(
        namespace=namespace,
        definition=definition,
        usage=usage,
        file_type=file_type,
        format_version=format_version,
        partition_value=partition_value,
        partition_key=partition_key,
        sub_partitions=sub_partition,
        sub_partition_keys=sub_partition_key,
    )
    status = DataStatus.INVALID if invalid else DataStatus.VALID
    with catalog_errors():
        entry = appctx.registration().complete(
            key, version, status, storage_files=tuple(file) if file else None
        )

    out.success(f"Version {entry.version} is now {DataStatus(entry.status).value}")


@data_app.command("delete")
def delete(
    ctx: typer.Context,
    version: int = VersionArg,
    namespace: str | None = NamespaceOpt,
    definition: str | None = DefinitionOpt,
    usage: str | None = UsageOpt,
    file_type: str | None = FileTypeOpt,
    format_version: int | None = FormatVersionOpt,
    partition_key: str = PartitionKeyOpt,
    partition_value: str | None = PartitionValueOpt,
    sub_partition: list[str] = SubPartitionOpt,
    sub_partition_key: list[str] = SubPartitionKeyOpt,
    confirm: bool = ConfirmOpt,
):
    """
    Mark a data version DELETED. The version number is never reused.
    """
    appctx: AppContext = ctx.obj
    key = build_key(
        namespace=namespace,
        definition=definition,
        usage=usage,
        file_type=file_type,
        format_version=format_version,
        partition_value=partition_value,
        partition_key=partition_key,
        sub_partitions=sub_partition,
        sub_partition_keys=sub_partition_key,
    )
    if confirm and not out.confirm(f"Delete version {version} of {key}?"):
        ok_exit("Cancelled")

    with catalog_errors():
        entry = appctx.registration().delete(key, version)

    out.success(f"Version {entry.version} is now {DataStatus(entry.status).value}")
