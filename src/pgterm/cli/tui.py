"""Terminal UI utilities for interactive browsing."""

from __future__ import annotations

import questionary

from pgterm.core.models import RowBatch
from pgterm.core.views import ViewCache, view_key

_MAX_NAME_WIDTH = 64

BACK = "‹ Back"
LOAD_MORE = "Load more"


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _table_choice_title(table: str, *, name_width: int, opened: bool) -> str:
    """Format one table choice, marking tables whose view is already loaded."""
    short_name = _truncate(table, _MAX_NAME_WIDTH)
    if not opened:
        return short_name
    return f"{short_name.ljust(name_width)}  (open)"


def table_choices(
    views: ViewCache,
    connection_name: str,
    schema: str,
    tables: list[str],
) -> list[questionary.Choice]:
    """Build select choices for tables, plus a trailing Back entry."""
    name_width = max((len(_truncate(t, _MAX_NAME_WIDTH)) for t in tables), default=0)
    choices = [
        questionary.Choice(
            title=_table_choice_title(
                table,
                name_width=name_width,
                opened=views.exists(view_key(connection_name, schema, table)),
            ),
            value=table,
        )
        for table in tables
    ]
    choices.append(questionary.Choice(title=BACK, value=BACK))
    return choices


def name_choices(names: list[str]) -> list[questionary.Choice]:
    """Build select choices for plain names, plus a trailing Back entry."""
    choices = [
        questionary.Choice(title=_truncate(n, _MAX_NAME_WIDTH), value=n) for n in names
    ]
    choices.append(questionary.Choice(title=BACK, value=BACK))
    return choices


def row_actions(batch: RowBatch) -> list[str]:
    """Actions offered under a rows table."""
    if batch.exhausted:
        return [BACK]
    return [LOAD_MORE, BACK]
