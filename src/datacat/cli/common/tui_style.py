"""Prompt styles for datacat: green for key selection, yellow for confirmations."""

from __future__ import annotations

from prompt_toolkit.styles import Style

_MUTED = "ansibrightblack"


def _prompt_style(accent: str) -> Style:
    return Style.from_dict(
        {
            "question": f"bold {accent}",
            "answer": f"bold {accent}",
            "pointer": f"bold {accent}",
            "highlighted": f"bold {accent}",
            "checkbox-selected": f"bold {accent}",
            "checkbox": _MUTED,
            "instruction": _MUTED,
            "error": "bold ansired",
        }
    )


QUESTIONARY_STYLE_SELECT = _prompt_style("ansibrightgreen")
QUESTIONARY_STYLE_CONFIRM = _prompt_style("ansibrightyellow")
