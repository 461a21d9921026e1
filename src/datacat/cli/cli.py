"""CLI application for the datacat catalog tooling."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from datacat.cli.commands import catalog
from datacat.cli.commands.data import data_app
from datacat.cli.common.context import build_app_context
from datacat.cli.common.options import ConfigOpt, VerboseOpt

app = typer.Typer(
    help="datacat - versioned data catalog and storage reconciliation",
    no_args_is_help=True,
)


def setup_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@app.callback()
def _init(
    ctx: typer.Context,
    config: str | None = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """Load configuration and the catalog once per invocation."""
    setup_logging(verbose)
    ctx.obj = build_app_context(config)


catalog.register(app)
app.add_typer(data_app, name="data")


if __name__ == "__main__":
    app()
