"""Terminal UI utilities for datacat."""

from __future__ import annotations

import questionary

from datacat.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from datacat.core.keys import CatalogKey


def select_keys(keys: list[CatalogKey]) -> list[CatalogKey]:
    """Display a checkbox prompt to select catalog keys.

    Returns:
        The selected keys in their original order, or an empty list.
    """
    choices = [questionary.Choice(title=str(key), value=key) for key in keys]
    picked = (
        questionary.checkbox(
            "Select keys to reconcile:",
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
        ).ask()
        or []
    )
    return [k for k in keys if k in picked]
