"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    None,
    "--config",
    "-c",
    help="Configuration file (default: $DATACAT_CONFIG or ~/.config/datacat/config.json)",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable debug logging",
)

StorageOpt = typer.Option(
    ...,
    "--storage",
    "-s",
    help="Name of a configured storage location",
)

NamespaceOpt = typer.Option(None, "--namespace", "-N", help="Namespace")

DefinitionOpt = typer.Option(None, "--definition", "-d", help="Business object definition name")

UsageOpt = typer.Option(None, "--usage", "-u", help="Format usage (e.g. PRC)")

FileTypeOpt = typer.Option(None, "--file-type", "-t", help="Format file type (e.g. PARQUET)")

FormatVersionOpt = typer.Option(None, "--format-version", "-f", help="Format (schema) version")

PartitionKeyOpt = typer.Option("partition", "--partition-key", help="Primary partition column name")

PartitionValueOpt = typer.Option(None, "--partition-value", "-P", help="Primary partition value")

SubPartitionOpt = typer.Option(
    [],
    "--sub-partition",
    help="Sub-partition value, in order. This is reusable (up to 4).",
    show_default=False,
)

SubPartitionKeyOpt = typer.Option(
    [],
    "--sub-partition-key",
    help="Sub-partition column name, one per --sub-partition. This is reusable.",
    show_default=False,
)

VersionArg = typer.Argument(..., help="Data version")

KeysFileOpt = typer.Option(
    ...,
    "--keys-file",
    "-k",
    help="JSON file with a list of catalog key records",
)

ParallelOpt = typer.Option(
    4,
    "--parallel",
    "-n",
    min=1,
    help="Number of keys to reconcile in parallel",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    help="Per-key timeout in seconds",
)

SelectOpt = typer.Option(
    False,
    "--select",
    help="Interactively pick which keys to reconcile",
)

ConfirmOpt = typer.Option(
    True,
    "--confirm/--no-confirm",
    help="Ask for confirmation before registering data",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show what would be registered, but don't register anything",
)

JsonOpt = typer.Option(
    False,
    "--json",
    help="Print JSON instead of a table",
)

InvalidOpt = typer.Option(
    False,
    "--invalid",
    help="Complete the registration as INVALID instead of VALID",
)

FileOpt = typer.Option(
    [],
    "--file",
    help="Storage file written for this version. This is reusable.",
    show_default=False,
)
