"""Core domain models for database browsing.

These models represent catalog entities and browsing state in a simple form.
They are intentionally free of psycopg types and UI/CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pgterm.core.formatting import FormattedValue


class ConstraintType(str, Enum):
    """
    Constraint kinds surfaced on a column.

    Declaration order is precedence order: when a column takes part in more
    than one constraint, the earliest member wins.
    """

    PRIMARY_KEY = "PRIMARY KEY"
    FOREIGN_KEY = "FOREIGN KEY"
    UNIQUE = "UNIQUE"
    CHECK = "CHECK"

    @classmethod
    def parse(cls, raw: str | None) -> ConstraintType | None:
        """Return the matching member, or None for NULL/unknown kinds."""
        if raw is None:
            return None
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return None

    @property
    def rank(self) -> int:
        return list(ConstraintType).index(self)


@dataclass(frozen=True)
class Column:
    """
    Represents one column of a table.

    Attributes:
        name: Column name.
        nullable: True when the column accepts NULL.
        data_type: Declared data type name (e.g. `integer`, `character varying`).
        size_text: Length, `precision[,scale]`, or empty string.
        ordinal_position: 1-based declared position, defines display order.
        constraint: Highest-precedence constraint the column takes part in.
    """

    name: str
    nullable: bool
    data_type: str
    size_text: str
    ordinal_position: int
    constraint: ConstraintType | None = None


@dataclass
class RowBatch:
    """
    Incrementally loaded rows of one table.

    `rows` only grows: every successful load appends and advances `loaded`.
    `loaded` never exceeds `total`.
    """

    schema: str
    table: str
    header: tuple[str, ...]
    total: int
    batch_size: int
    rows: list[dict[str, FormattedValue]] = field(default_factory=list)
    loaded: int = 0

    @property
    def exhausted(self) -> bool:
        return self.loaded >= self.total

    def texts(self) -> list[dict[str, str]]:
        """Return rows as plain `column -> display string` mappings."""
        return [{k: v.text for k, v in row.items()} for row in self.rows]


@dataclass
class View:
    """
    A memoized browsing view of one table.

    Attributes:
        key: Composite identity `connection.schema.table`.
        connection_name: Name of the connection the view reads from. The view
            does not own the connection.
        batch: Row state, mutated only by load-more operations.
        handle: Slot for the presentation layer's rendering object.
    """

    key: str
    connection_name: str
    schema: str
    table: str
    batch: RowBatch
    handle: Any = None
