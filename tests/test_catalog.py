import itertools

import pytest

from pgterm.core.adapters.postgres import QueryResult
from pgterm.core.cancel import CancelToken
from pgterm.core.catalog import (
    derive_size_text,
    list_columns,
    list_databases,
    list_schemas,
    list_tables,
    parse_table_full_name,
)
from pgterm.core.errors import Cancelled, CatalogError, DriverError
from pgterm.core.models import ConstraintType


class _CatalogConnection:
    name = "generic"

    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple] = []

    def query(self, statement, params=(), *, cancel=None):
        self.calls.append((statement, tuple(params)))
        if cancel is not None:
            cancel.raise_if_cancelled("catalog")
        if self.error is not None:
            raise self.error
        return QueryResult(columns=("x",), rows=list(self.rows))

    def scalar(self, statement, params=(), *, cancel=None):
        raise AssertionError("catalog reads never use scalar")

    def close(self):
        return None


def _column_row(name, position, *, nullable="YES", data_type="integer",
                char_len=None, precision=None, scale=None, constraint=None):
    return (name, nullable, data_type, char_len, precision, scale, position, constraint)


@pytest.mark.parametrize("value", ["users", "public.users.extra", "public.", ".users", ""])
def test_parse_table_full_name_rejects_invalid_input(value: str):
    with pytest.raises(ValueError, match="schema.table"):
        parse_table_full_name(value)


def test_parse_table_full_name_accepts_valid_input():
    assert parse_table_full_name(" public.users ") == ("public", "users")


def test_list_schemas_excludes_system_schemas():
    conn = _CatalogConnection(
        rows=[("app",), ("information_schema",), ("pg_catalog",), ("public",), ("pg_toast",)]
    )

    assert list_schemas(conn) == ["app", "public"]


def test_list_schemas_query_filters_and_orders():
    conn = _CatalogConnection(rows=[])
    list_schemas(conn)

    statement, params = conn.calls[0]
    assert "'pg_catalog'" in statement
    assert "ORDER BY schema_name" in statement
    assert params == ()


def test_list_tables_binds_schema_and_restricts_to_base_tables():
    conn = _CatalogConnection(rows=[("orders",), ("users",)])

    assert list_tables(conn, "public") == ["orders", "users"]
    statement, params = conn.calls[0]
    assert params == ("public",)
    assert "BASE TABLE" in statement


def test_list_databases_skips_templates():
    conn = _CatalogConnection(rows=[("app",), ("postgres",)])

    assert list_databases(conn) == ["app", "postgres"]
    statement, params = conn.calls[0]
    assert "pg_database" in statement
    assert "datistemplate = false" in statement
    assert params == ()


def test_list_databases_wraps_failures():
    conn = _CatalogConnection(error=DriverError("SELECT datname", RuntimeError("denied")))

    with pytest.raises(CatalogError, match="list databases failed for connection generic"):
        list_databases(conn)


def test_list_columns_scopes_constraint_joins_to_the_table():
    # a CHECK on one table may share its name with a FK on another table
    conn = _CatalogConnection(rows=[])
    list_columns(conn, "public", "users")

    statement, params = conn.calls[0]
    assert params == ("public", "users")
    assert "tc.table_name = kcu.table_name" in statement
    assert "tc.table_schema = kcu.table_schema" in statement
    assert "tc.table_name = ccu.table_name" in statement
    assert "tc.table_schema = ccu.table_schema" in statement


@pytest.mark.parametrize(
    "char_len,precision,scale,expected",
    [
        (50, None, None, "50"),
        (None, 10, 2, "10,2"),
        (None, 32, None, "32"),
        (None, None, None, ""),
        (255, 10, 2, "255"),
    ],
)
def test_derive_size_text(char_len, precision, scale, expected):
    assert derive_size_text(char_len, precision, scale) == expected


def test_list_columns_builds_typed_records():
    conn = _CatalogConnection(
        rows=[
            _column_row("id", 1, nullable="NO", precision=32, scale=0, constraint="PRIMARY KEY"),
            _column_row("email", 2, data_type="character varying", char_len=50),
            _column_row("balance", 3, data_type="numeric", precision=10, scale=2),
        ]
    )

    columns = list_columns(conn, "public", "users")

    assert [c.name for c in columns] == ["id", "email", "balance"]
    assert columns[0].nullable is False
    assert columns[0].constraint is ConstraintType.PRIMARY_KEY
    assert columns[1].size_text == "50"
    assert columns[1].constraint is None
    assert columns[2].size_text == "10,2"
    assert conn.calls[0][1] == ("public", "users")


def test_list_columns_orders_by_ordinal_for_any_permutation():
    rows = [
        _column_row("a", 1),
        _column_row("b", 2),
        _column_row("c", 3),
        _column_row("d", 4),
    ]
    for permutation in itertools.permutations(rows):
        conn = _CatalogConnection(rows=list(permutation))
        columns = list_columns(conn, "public", "t")
        assert [c.ordinal_position for c in columns] == [1, 2, 3, 4]
        assert [c.name for c in columns] == ["a", "b", "c", "d"]


def test_list_columns_collapses_duplicate_constraint_rows():
    conn = _CatalogConnection(
        rows=[
            _column_row("user_id", 1, constraint="FOREIGN KEY"),
            _column_row("user_id", 1, constraint="PRIMARY KEY"),
            _column_row("user_id", 1, constraint="FOREIGN KEY"),
            _column_row("code", 2, constraint="CHECK"),
            _column_row("code", 2, constraint="UNIQUE"),
            _column_row("note", 3, constraint=None),
        ]
    )

    columns = list_columns(conn, "public", "memberships")

    assert [c.constraint for c in columns] == [
        ConstraintType.PRIMARY_KEY,
        ConstraintType.UNIQUE,
        None,
    ]


def test_list_columns_wraps_driver_errors():
    conn = _CatalogConnection(error=DriverError("SELECT ...", RuntimeError("severed")))

    with pytest.raises(CatalogError) as excinfo:
        list_columns(conn, "public", "users")

    assert excinfo.value.operation == "list columns"
    assert excinfo.value.target == "table public.users"
    assert "severed" in str(excinfo.value)


def test_list_columns_rejects_unexpected_row_shape():
    conn = _CatalogConnection(rows=[("id", "NO")])

    with pytest.raises(CatalogError, match="unexpected row"):
        list_columns(conn, "public", "users")


def test_catalog_reads_propagate_cancellation():
    token = CancelToken()
    token.cancel()

    with pytest.raises(Cancelled):
        list_schemas(_CatalogConnection(), cancel=token)


def test_list_tables_wraps_failures_with_operation():
    conn = _CatalogConnection(error=RuntimeError("boom"))

    with pytest.raises(CatalogError, match="list tables failed for schema public"):
        list_tables(conn, "public")
