"""Prompt style for pgterm's interactive menus: blue questions, green picks."""

from __future__ import annotations

from prompt_toolkit.styles import Style

SELECT_STYLE = Style.from_dict(
    {
        "qmark": "ansibrightblue",
        "question": "bold ansiblue",
        "answer": "bold ansigreen",
        "pointer": "bold ansibrightgreen",
        "highlighted": "bold ansibrightgreen",
        "selected": "ansigreen",
        "separator": "ansibrightblack",
        "instruction": "italic ansibrightblack",
        "error": "bold ansired",
        "disabled": "ansibrightblack",
    }
)
