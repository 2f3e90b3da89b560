"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable

import questionary
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from pgterm.cli.common.tui_style import SELECT_STYLE
from pgterm.core.models import Column, ConstraintType, RowBatch

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
        "null": "dim italic",
    }
)

# Constraint kind -> row style in the columns table.
CONSTRAINT_STYLES: dict[ConstraintType, str] = {
    ConstraintType.CHECK: "green",
    ConstraintType.FOREIGN_KEY: "magenta",
    ConstraintType.PRIMARY_KEY: "red",
    ConstraintType.UNIQUE: "cyan",
}

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer",):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be PGTERM consistent."""
        return f"[PGTERM] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def select_one(self, message: str, choices: list[Any]) -> Any | None:
        """
        Prompt the user to select a single item from a list (radio list).

        Choices may be plain strings or `questionary.Choice` objects.

        Returns:
            The selected value, or None if cancelled.
        """
        if not choices:
            return None

        prompt = self._q_try(
            questionary.select,
            self._q(message),
            choices=choices,
            style=SELECT_STYLE,
            qmark="✦",
            instruction="Use ↑/↓ then Enter",
            pointer="❯",
        )
        return prompt.ask()

    def names_table(self, names: Iterable[str], *, column: str, title: str) -> None:
        """Render a single-column table of names (schemas, tables, connections)."""
        t = Table(title=title, show_lines=False)
        t.add_column(column, style="ok")

        for name in names:
            t.add_row(str(name))

        console.print(t)

    def columns_table(self, columns: Iterable[Column], title: str = "Columns") -> None:
        """
        Render column metadata, one row per column in ordinal order.

        Columns taking part in a constraint are colored by constraint kind.
        """
        t = Table(title=title, show_lines=False)
        t.add_column("#", style="meta", justify="right")
        t.add_column("Name")
        t.add_column("Type")
        t.add_column("Size", justify="right")
        t.add_column("Null", justify="right")
        t.add_column("Constraint")

        for c in columns:
            style = CONSTRAINT_STYLES.get(c.constraint) if c.constraint else None
            t.add_row(
                str(c.ordinal_position),
                c.name,
                c.data_type,
                c.size_text,
                "YES" if c.nullable else "NO",
                c.constraint.value if c.constraint else "",
                style=style,
            )

        console.print(t)

    def rows_table(self, batch: RowBatch, title: str | None = None) -> None:
        """
        Render the loaded rows of a batch.

        Numeric cells are right-aligned (decided from the first loaded row),
        NULL cells are dimmed.
        """
        t = Table(
            title=title or f'Contents of table "{batch.table}"',
            caption=f"{batch.loaded}/{batch.total} rows loaded",
            show_lines=False,
        )
        first = batch.rows[0] if batch.rows else {}
        for name in batch.header:
            cell = first.get(name)
            justify = "right" if cell is not None and cell.right_aligned else "left"
            t.add_column(name, justify=justify, header_style="bold yellow")

        for row in batch.rows:
            t.add_row(
                *(
                    Text(row[name].text, style="null" if row[name].kind == "null" else "")
                    for name in batch.header
                )
            )

        console.print(t)


out = Out()
