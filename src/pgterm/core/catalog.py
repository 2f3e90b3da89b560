"""Catalog reads: schemas, tables and columns of one connection.

Queries go to `information_schema` and return lightweight domain records.
Failures surface as `CatalogError` (cancellation as `Cancelled`); nothing is
retried here.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pgterm.core.adapters.postgres import QueryResult
from pgterm.core.cancel import CancelToken
from pgterm.core.errors import Cancelled, CatalogError
from pgterm.core.models import Column, ConstraintType
from pgterm.core.registry import Connection

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("information_schema", "pg_catalog", "pg_toast")

DATABASES_QUERY = """
SELECT datname
FROM pg_database
WHERE datistemplate = false
ORDER BY datname
"""

SCHEMAS_QUERY = """
SELECT schema_name
FROM information_schema.schemata
WHERE schema_name NOT IN ('information_schema', 'pg_catalog', 'pg_toast')
  AND schema_name NOT LIKE 'pg_temp_%'
  AND schema_name NOT LIKE 'pg_toast_temp_%'
ORDER BY schema_name
"""

TABLES_QUERY = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema = %s
  AND table_type = 'BASE TABLE'
ORDER BY table_name
"""

# key_column_usage carries the constrained columns of PK/FK/UNIQUE;
# CHECK constraints are only visible through constraint_column_usage.
# Constraint names are only unique per table, so both joins match on the table too.
COLUMNS_QUERY = """
SELECT c.column_name,
       c.is_nullable,
       c.data_type,
       c.character_maximum_length,
       c.numeric_precision,
       c.numeric_scale,
       c.ordinal_position,
       k.constraint_type
FROM information_schema.columns c
LEFT JOIN (
    SELECT kcu.table_schema, kcu.table_name, kcu.column_name, tc.constraint_type
    FROM information_schema.key_column_usage kcu
    JOIN information_schema.table_constraints tc
      ON tc.constraint_schema = kcu.constraint_schema
     AND tc.constraint_name = kcu.constraint_name
     AND tc.table_schema = kcu.table_schema
     AND tc.table_name = kcu.table_name
    UNION
    SELECT ccu.table_schema, ccu.table_name, ccu.column_name, tc.constraint_type
    FROM information_schema.constraint_column_usage ccu
    JOIN information_schema.table_constraints tc
      ON tc.constraint_schema = ccu.constraint_schema
     AND tc.constraint_name = ccu.constraint_name
     AND tc.table_schema = ccu.table_schema
     AND tc.table_name = ccu.table_name
    WHERE tc.constraint_type = 'CHECK'
) k
  ON k.table_schema = c.table_schema
 AND k.table_name = c.table_name
 AND k.column_name = c.column_name
WHERE c.table_schema = %s
  AND c.table_name = %s
ORDER BY c.ordinal_position
"""

_COLUMN_ROW_WIDTH = 8


def parse_table_full_name(table_full_name: str) -> tuple[str, str]:
    """Split `schema.table` into (schema, table)."""
    parts = table_full_name.strip().split(".")
    if len(parts) != 2:
        raise ValueError("Table must be in the form `schema.table`.")
    schema, table = parts
    if not schema or not table:
        raise ValueError("Table must be in the form `schema.table`.")
    return schema, table


def _run(
    conn: Connection,
    operation: str,
    target: str,
    statement: str,
    params: Sequence[Any] = (),
    cancel: CancelToken | None = None,
) -> QueryResult:
    """Run a catalog query, converting any failure into CatalogError."""
    try:
        return conn.query(statement, params, cancel=cancel)
    except Cancelled:
        raise
    except Exception as exc:  # noqa: BLE001
        raise CatalogError(operation, target, exc) from exc


def _first_column(result: QueryResult, operation: str, target: str) -> list[str]:
    names: list[str] = []
    for row in result.rows:
        if not row or not isinstance(row[0], str):
            raise CatalogError(operation, target, f"unexpected row {row!r}")
        names.append(row[0])
    return names


def list_databases(conn: Connection, *, cancel: CancelToken | None = None) -> list[str]:
    """Return the databases served by the connection's server, templates excluded."""
    target = f"connection {conn.name}"
    result = _run(conn, "list databases", target, DATABASES_QUERY, cancel=cancel)
    return _first_column(result, "list databases", target)


def list_schemas(conn: Connection, *, cancel: CancelToken | None = None) -> list[str]:
    """Return user-visible schema names, system schemas excluded."""
    target = f"connection {conn.name}"
    result = _run(conn, "list schemas", target, SCHEMAS_QUERY, cancel=cancel)
    schemas = [
        s
        for s in _first_column(result, "list schemas", target)
        if s not in SYSTEM_SCHEMAS
    ]
    logger.debug("%s: %d schemas", conn.name, len(schemas))
    return schemas


def list_tables(
    conn: Connection, schema: str, *, cancel: CancelToken | None = None
) -> list[str]:
    """Return base table names in `schema`."""
    target = f"schema {schema}"
    result = _run(conn, "list tables", target, TABLES_QUERY, (schema,), cancel)
    return _first_column(result, "list tables", target)


def derive_size_text(
    char_length: int | None,
    precision: int | None,
    scale: int | None,
) -> str:
    """
    Describe a column's size.

    Character length wins; otherwise numeric precision with an optional
    `,scale` suffix; otherwise the empty string.
    """
    if char_length is not None:
        return str(char_length)
    if precision is not None:
        if scale is not None:
            return f"{precision},{scale}"
        return str(precision)
    return ""


def _parse_column(row: Sequence[Any]) -> Column:
    (
        name,
        is_nullable,
        data_type,
        char_length,
        precision,
        scale,
        ordinal,
        constraint,
    ) = row
    return Column(
        name=str(name),
        nullable=str(is_nullable).upper() == "YES",
        data_type=str(data_type),
        size_text=derive_size_text(char_length, precision, scale),
        ordinal_position=int(ordinal),
        constraint=ConstraintType.parse(constraint),
    )


def _merge(current: Column, other: Column) -> Column:
    """Keep the higher-precedence constraint of two rows for the same column."""
    if other.constraint is None:
        return current
    if current.constraint is None or other.constraint.rank < current.constraint.rank:
        return other
    return current


def list_columns(
    conn: Connection,
    schema: str,
    table: str,
    *,
    cancel: CancelToken | None = None,
) -> list[Column]:
    """
    Return the columns of `schema.table` ordered by ordinal position.

    The constraint join can produce several rows per column (composite keys,
    a column that is both primary and foreign key); they collapse into one
    Column carrying the highest-precedence constraint
    (PRIMARY KEY, FOREIGN KEY, UNIQUE, CHECK).
    """
    target = f"table {schema}.{table}"
    result = _run(conn, "list columns", target, COLUMNS_QUERY, (schema, table), cancel)

    by_position: dict[int, Column] = {}
    for row in result.rows:
        if len(row) != _COLUMN_ROW_WIDTH:
            raise CatalogError("list columns", target, f"unexpected row {row!r}")
        try:
            column = _parse_column(row)
        except (TypeError, ValueError) as exc:
            raise CatalogError("list columns", target, exc) from exc

        seen = by_position.get(column.ordinal_position)
        by_position[column.ordinal_position] = (
            column if seen is None else _merge(seen, column)
        )

    return [by_position[pos] for pos in sorted(by_position)]
