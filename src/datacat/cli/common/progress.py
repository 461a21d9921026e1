"""Progress formatting utilities for the CLI."""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from datacat.core.keys import CatalogKey
from datacat.core.reconcile import ReconcileOutcome, ReconciliationEngine, reconcile_many

console = Console()
_MAX_KEY_WIDTH = 72


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def reconcile_with_progress(
    engine: ReconciliationEngine,
    keys: list[CatalogKey],
    storage_name: str,
    *,
    max_parallel: int = 4,
    timeout: float | None = None,
) -> list[ReconcileOutcome]:
    """
    Reconcile keys in parallel while showing:
      - an overall progress bar (x/y done + failures)
      - per-key rows with the registered versions or the failure

    Returns the outcomes in input order.
    """
    overall = Progress(
        TextColumn("[bold]Overall[/]"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("failures=[bold red]{task.fields[failures]}[/]"),
        TimeElapsedColumn(),
        console=console,
    )
    per_key = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.fields[label]}[/]"),
        TextColumn(
            "[{task.fields[style]}]{task.fields[status]}[/{task.fields[style]}]"
        ),
        TimeElapsedColumn(),
        console=console,
    )

    overall_task_id = overall.add_task("overall", total=max(len(keys), 1), failures=0)
    width = min(max((len(str(k)) for k in keys), default=0), _MAX_KEY_WIDTH)
    task_ids: dict[CatalogKey, int] = {}
    for k in keys:
        task_ids[k] = per_key.add_task(
            "",
            total=1,
            label=_truncate(str(k), _MAX_KEY_WIDTH).ljust(width),
            status="PENDING",
            style="yellow",
        )

    failures = 0

    # Outcomes arrive from worker threads; rich progress updates are locked.
    def _on_done(outcome: ReconcileOutcome) -> None:
        nonlocal failures
        if outcome.ok:
            versions = ", ".join(str(d.version) for d in outcome.registered)
            status = f"registered {versions}" if versions else "up to date"
            style = "green"
        else:
            failures += 1
            overall.update(overall_task_id, failures=failures)
            status = f"FAILED {outcome.error_type}"
            style = "red"
        task_id = task_ids.get(outcome.key)
        if task_id is not None:
            per_key.update(task_id, status=status, style=style, completed=1)
        overall.advance(overall_task_id, 1)

    with Live(Group(overall, per_key), console=console, refresh_per_second=10, transient=True):
        outcomes = reconcile_many(
            engine,
            keys,
            storage_name,
            max_parallel=max_parallel,
            timeout=timeout,
            on_done=_on_done,
        )
        overall.update(overall_task_id, completed=len(keys))

    return outcomes
