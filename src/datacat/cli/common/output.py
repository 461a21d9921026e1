"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from datacat.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_SELECT,
)
from datacat.core.status import DataStatus

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

_STATUS_STYLES = {
    DataStatus.VALID: "ok",
    DataStatus.UPLOADING: "warn",
    DataStatus.INVALID: "err",
    DataStatus.DELETED: "meta",
}

console = Console(theme=_THEME)


def _status_cell(status: Any) -> str:
    value = DataStatus(status)
    style = _STATUS_STYLES[value]
    return f"[{style}]{value.value}[/{style}]"


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "checked_icon", "unchecked_icon", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        return f"[datacat] {message}"

    def info(self, msg: str) -> None:
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def json(self, payload: Any) -> None:
        """Print a JSON document (for `--json` output)."""
        console.print_json(json.dumps(payload))

    def select_many(self, message: str, choices: list[str]) -> list[str]:
        """
        Prompt the user to select multiple items from a list.

        Returns a list of selected values.
        """
        if not choices:
            return []

        prompt = self._q_try(
            questionary.checkbox,
            self._q(message),
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
            qmark="✦",
            instruction="Use ↑/↓, space, a (all), i (invert), enter",
            pointer="❯",
            checked_icon="▣",
            unchecked_icon="▢",
        )
        picked = prompt.ask()
        return list(picked or [])

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        # Questionary renders `instruction=...` inline next to the echoed answer.
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def data_table(self, entries: Iterable[Any], title: str = "Registered data") -> None:
        """
        Expects RegisteredData-like objects (.key .version .status
        .storage_name .storage_key_prefix .storage_files .latest_version).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Key", style="meta")
        t.add_column("Version", style="ok", no_wrap=True, justify="right")
        t.add_column("Status")
        t.add_column("Latest", justify="center")
        t.add_column("Storage", style="meta")
        t.add_column("Directory")
        t.add_column("Files", justify="right")

        for d in entries:
            t.add_row(
                str(d.key),
                str(d.version),
                _status_cell(d.status),
                "★" if d.latest_version else "",
                d.storage_name,
                d.storage_key_prefix or "",
                str(len(d.storage_files)),
            )

        console.print(t)

    def plan_table(self, plan: Any, title: str = "Reconciliation plan") -> None:
        """
        Render one row per discovered storage group of a ReconciliationPlan:
        the version it would be registered as, or why it is skipped.
        """
        assigned = {a.group.directory: a.version for a in plan.versions.assignments}
        known = {g.directory for g in plan.versions.known}

        t = Table(title=title, show_lines=False)
        t.add_column("Directory", style="ok")
        t.add_column("Apparent", style="meta", justify="right")
        t.add_column("Objects", justify="right")
        t.add_column("Action")

        for g in plan.groups:
            apparent = "" if g.apparent_version is None else str(g.apparent_version)
            if g.directory in assigned:
                action = f"[ok]register as v{assigned[g.directory]}[/]"
            elif g.directory in known:
                action = "[meta]already registered[/]"
            else:
                action = "[warn]skipped (version gap)[/]"
            t.add_row(g.directory, apparent, str(len(g.keys)), action)

        console.print(t)

    def outcomes_table(self, outcomes: Iterable[Any], title: str = "Reconciliation results") -> None:
        """Expects ReconcileOutcome-like objects (.key .registered .ok .error)."""
        t = Table(title=title, show_lines=False)
        t.add_column("Key", style="ok")
        t.add_column("Registered")
        t.add_column("Result")

        for o in outcomes:
            versions = ", ".join(str(d.version) for d in o.registered) or "-"
            t.add_row(
                str(o.key),
                versions,
                "[ok]OK[/]" if o.ok else f"[err]FAIL[/] {o.error_type}: {o.error}",
            )

        console.print(t)

    def storages_table(self, locations: Iterable[Any], title: str = "Storages") -> None:
        """Expects StorageLocation-like objects."""
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok")
        t.add_column("Platform")
        t.add_column("Root", style="meta")
        t.add_column("Reconcilable", justify="center")

        for loc in locations:
            t.add_row(
                loc.name,
                getattr(loc.platform, "value", str(loc.platform)),
                loc.root,
                "yes" if loc.prefix_listable else "no",
            )

        console.print(t)


out = Out()
