"""SQL identifier validation and quoting.

Schema and table names end up in query text (`SELECT * FROM schema.table`),
so they are checked against a strict grammar and then quoted with
`psycopg.sql.Identifier` before any statement is built.
"""

from __future__ import annotations

import re

from psycopg import sql

from pgterm.core.errors import QueryError

# NAMEDATALEN - 1
MAX_IDENTIFIER_LENGTH = 63

_IDENTIFIER_RX = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# PostgreSQL keywords listed as "reserved" (not usable as bare identifiers).
RESERVED_WORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric both case cast check
    collate column constraint create current_catalog current_date current_role
    current_time current_timestamp current_user default deferrable desc distinct
    do else end except false fetch for foreign from grant group having in
    initially intersect into lateral leading limit localtime localtimestamp not
    null offset on only or order placing primary references returning select
    session_user some symmetric system_user table then to trailing true union
    unique user using variadic when where window with
    """.split()
)


def validate_identifier(name: str, *, kind: str = "identifier") -> str:
    """
    Check that `name` is a plain SQL identifier.

    Args:
        name: The schema or table name to check.
        kind: Label used in the error message (e.g. "schema", "table").

    Returns:
        The name, unchanged.

    Raises:
        QueryError: If the name is empty, too long, contains characters other
            than letters, digits and underscore, starts with a digit, or is a
            reserved word.
    """
    if not isinstance(name, str) or not name:
        raise QueryError("validate identifier", kind, "name is empty")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise QueryError(
            "validate identifier",
            f"{kind} {name[:16]}...",
            f"longer than {MAX_IDENTIFIER_LENGTH} characters",
        )
    if not _IDENTIFIER_RX.fullmatch(name):
        raise QueryError(
            "validate identifier",
            f"{kind} {name!r}",
            "only letters, digits and underscore are allowed",
        )
    if name.lower() in RESERVED_WORDS:
        raise QueryError(
            "validate identifier", f"{kind} {name!r}", "reserved word"
        )
    return name


def qualified_table(schema: str, table: str) -> sql.Composed:
    """Return `"schema"."table"` as a composable after validating both parts."""
    validate_identifier(schema, kind="schema")
    validate_identifier(table, kind="table")
    return sql.SQL("{}.{}").format(sql.Identifier(schema), sql.Identifier(table))
