"""Commands for reconciling storage with the catalog."""

from __future__ import annotations

import typer

from datacat.cli.common.context import AppContext
from datacat.cli.common.exits import catalog_errors, ok_exit, warn_exit
from datacat.cli.common.key_builder import build_key, load_keys_file
from datacat.cli.common.options import (
    ConfirmOpt,
    DefinitionOpt,
    DryRunOpt,
    FileTypeOpt,
    FormatVersionOpt,
    KeysFileOpt,
    NamespaceOpt,
    ParallelOpt,
    PartitionKeyOpt,
    PartitionValueOpt,
    SelectOpt,
    StorageOpt,
    SubPartitionKeyOpt,
    SubPartitionOpt,
    TimeoutOpt,
    UsageOpt,
)
from datacat.cli.common.output import out
from datacat.cli.common.progress import reconcile_with_progress
from datacat.cli.tui import select_keys


def register(app: typer.Typer) -> None:
    """Attach the catalog commands to the root app."""
    app.command("prefix")(prefix)
    app.command("reconcile")(reconcile)
    app.command("reconcile-batch")(reconcile_batch)
    app.command("storages")(storages)


def prefix(
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
    Print the storage key prefix of a catalog key.
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
        key_prefix = appctx.engine(storage, listing=False).build_prefix(key, storage)
    typer.echo(key_prefix)


def reconcile(
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
    confirm: bool = ConfirmOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Register data found in storage under a key's prefix but missing from the catalog.
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
    engine = appctx.engine(storage)

    with catalog_errors():
        with out.status("Scanning storage..."):
            plan = engine.plan(key, storage)

    out.kv({"Key": plan.key, "Storage": plan.storage_name, "Prefix": plan.prefix})

    if not plan.groups:
        warn_exit("No data found under the prefix", code=0)

    out.plan_table(plan)

    if plan.versions.gap_detected:
        warn_exit(
            "The earliest data version in storage is not 0 and the catalog is empty; "
            "nothing will be registered",
            code=0,
        )

    if not plan.versions.assignments:
        ok_exit("Catalog is up to date")

    if dry_run:
        warn_exit("Dry-run enabled: nothing was registered", code=0)

    count = len(plan.versions.assignments)
    if confirm and not out.confirm(f"Register {count} new data version(s)?"):
        ok_exit("Cancelled")

    with catalog_errors():
        with out.status("Registering..."):
            registered = engine.reconcile(key, storage)

    if not registered:
        warn_exit("Nothing was registered (storage or catalog changed meanwhile)", code=0)

    out.success(f"Registered {len(registered)} data version(s)")
    out.data_table(registered, title="Registered")


def reconcile_batch(
    ctx: typer.Context,
    storage: str = StorageOpt,
    keys_file: str = KeysFileOpt,
    parallel: int = ParallelOpt,
    timeout: float | None = TimeoutOpt,
    select: bool = SelectOpt,
    confirm: bool = ConfirmOpt,
):
    """
    Reconcile every key listed in a keys file, in parallel.
    """
    appctx: AppContext = ctx.obj

    with catalog_errors():
        keys = load_keys_file(keys_file)

    if not keys:
        warn_exit("No keys in the keys file", code=0)

    if select:
        keys = select_keys(keys)
        if not keys:
            warn_exit("No keys selected", code=0)

    if confirm and not out.confirm(f"Reconcile {len(keys)} key(s) in storage '{storage}'?"):
        ok_exit("Cancelled")

    engine = appctx.engine(storage)
    outcomes = reconcile_with_progress(
        engine, keys, storage, max_parallel=parallel, timeout=timeout
    )

    out.outcomes_table(outcomes)

    registered = sum(len(o.registered) for o in outcomes)
    failed = [o for o in outcomes if not o.ok]
    out.info(f"{registered} data version(s) registered for {len(outcomes)} key(s)")
    if failed:
        out.error(f"{len(failed)} key(s) failed")
        raise typer.Exit(1)


def storages(ctx: typer.Context):
    """
    List configured storage locations.
    """
    appctx: AppContext = ctx.obj
    locations = appctx.config.storages
    if not locations:
        warn_exit(f"No storages configured in {appctx.config.source}", code=0)
    out.storages_table(locations)
