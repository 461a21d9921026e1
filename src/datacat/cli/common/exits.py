"""Exit handling utilities for the CLI."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, NoReturn

import typer
from rich.markup import escape

from datacat.cli.common.output import out
from datacat.core.errors import CatalogError

logger = logging.getLogger(__name__)

USAGE_ERROR_CODE = 2


def ok_exit(msg: str | None = None) -> NoReturn:
    """Exit successfully with an optional informational message."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = 1) -> NoReturn:
    """Exit with an error message and optional exit code."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Exit with a warning message and optional exit code."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = 1) -> NoReturn:
    """Print an error message and exit with a given code, chaining `exc`."""
    out.error(message)
    raise typer.Exit(code) from exc


def exit_code_for(exc: CatalogError) -> int:
    """Bad user input (validation, invalid keys) exits with 2, anything else with 1."""
    return USAGE_ERROR_CODE if isinstance(exc, ValueError) else 1


@contextmanager
def catalog_errors() -> Iterator[None]:
    """Turn catalog errors raised in the block into a red message and exit code."""
    try:
        yield
    except CatalogError as exc:
        logger.debug("%s context: %s", type(exc).__name__, exc.context())
        exit_from_exc(exc, message=escape(str(exc)), code=exit_code_for(exc))

