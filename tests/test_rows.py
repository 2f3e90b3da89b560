import pytest

from pgterm.core.adapters.postgres import QueryResult
from pgterm.core.cancel import CancelToken
from pgterm.core.errors import Cancelled, DriverError, QueryError
from pgterm.core.rows import load_more, open_table


class _TableConnection:
    """Serves a fake `users` table; `scalar` answers the count query."""

    name = "generic"

    def __init__(self, total: int, *, stored: int | None = None):
        self.total = total
        stored = total if stored is None else stored
        self.rows = [(i, f"user{i}", None) for i in range(1, stored + 1)]
        self.calls: list[tuple] = []
        self.fail_next: Exception | None = None

    def scalar(self, statement, params=(), *, cancel=None):
        if cancel is not None:
            cancel.raise_if_cancelled("count")
        self.calls.append(("count",))
        return self.total

    def query(self, statement, params=(), *, cancel=None):
        if cancel is not None:
            cancel.raise_if_cancelled("fetch")
        limit, offset = params
        self.calls.append(("fetch", limit, offset))
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
        return QueryResult(
            columns=("id", "name", "email"),
            rows=self.rows[offset : offset + limit],
        )

    def close(self):
        return None


def test_open_table_then_load_more_end_to_end():
    conn = _TableConnection(150)

    batch = open_table(conn, "public", "users", batch_size=80)
    assert (batch.loaded, batch.total) == (80, 150)
    assert batch.header == ("id", "name", "email")

    load_more(conn, batch)
    assert (batch.loaded, batch.total) == (150, 150)

    calls_before = list(conn.calls)
    load_more(conn, batch)
    assert (batch.loaded, batch.total) == (150, 150)
    assert conn.calls == calls_before


def test_open_table_issues_count_then_bounded_fetch():
    conn = _TableConnection(150)

    open_table(conn, "public", "users", batch_size=80)

    assert conn.calls == [("count",), ("fetch", 80, 0)]


def test_load_more_continues_at_loaded_offset_and_clamps_limit():
    conn = _TableConnection(150)
    batch = open_table(conn, "public", "users", batch_size=80)

    load_more(conn, batch)

    assert conn.calls[-1] == ("fetch", 70, 80)


@pytest.mark.parametrize("total,batch_size", [(0, 80), (1, 80), (80, 80), (81, 80), (250, 80), (7, 3)])
def test_loaded_count_after_k_loads(total: int, batch_size: int):
    conn = _TableConnection(total)
    batch = open_table(conn, "public", "users", batch_size=batch_size)

    for k in range(1, 6):
        load_more(conn, batch)
        assert batch.loaded == min((k + 1) * batch_size, total)
        assert batch.loaded <= batch.total


def test_rows_are_formatted_and_appended_in_order():
    conn = _TableConnection(5)
    batch = open_table(conn, "public", "users", batch_size=2)
    load_more(conn, batch)

    texts = batch.texts()
    assert [r["id"] for r in texts] == ["1", "2", "3", "4"]
    assert texts[0] == {"id": "1", "name": "user1", "email": "NULL"}
    assert batch.rows[0]["id"].kind == "integer"


def test_empty_table_still_has_header():
    conn = _TableConnection(0)

    batch = open_table(conn, "public", "users")

    assert batch.exhausted
    assert batch.header == ("id", "name", "email")
    assert batch.rows == []


@pytest.mark.parametrize("table", ["users; DROP TABLE users", "my users", "users\t"])
def test_invalid_table_name_is_rejected_before_any_query(table: str):
    conn = _TableConnection(10)

    with pytest.raises(QueryError):
        open_table(conn, "public", table)

    assert conn.calls == []


def test_failed_load_leaves_batch_unchanged():
    conn = _TableConnection(150)
    batch = open_table(conn, "public", "users", batch_size=80)
    conn.fail_next = DriverError("SELECT ...", RuntimeError("connection reset"))

    with pytest.raises(QueryError, match="fetch rows failed for table public.users"):
        load_more(conn, batch)

    assert batch.loaded == 80
    assert len(batch.rows) == 80


def test_cancelled_load_leaves_batch_unchanged():
    conn = _TableConnection(150)
    batch = open_table(conn, "public", "users", batch_size=80)
    token = CancelToken()
    token.cancel()

    with pytest.raises(Cancelled):
        load_more(conn, batch, cancel=token)

    assert batch.loaded == 80
    assert len(batch.rows) == 80


def test_expired_deadline_cancels_open():
    conn = _TableConnection(10)

    with pytest.raises(Cancelled):
        open_table(conn, "public", "users", cancel=CancelToken(timeout=0))

    assert conn.calls == []


def test_short_fetch_clamps_total_so_later_loads_are_noops():
    conn = _TableConnection(150, stored=100)
    batch = open_table(conn, "public", "users", batch_size=80)

    load_more(conn, batch)
    assert (batch.loaded, batch.total) == (100, 100)

    calls_before = list(conn.calls)
    load_more(conn, batch)
    assert conn.calls == calls_before


def test_open_table_rejects_non_positive_batch_size():
    with pytest.raises(ValueError, match="batch_size"):
        open_table(_TableConnection(1), "public", "users", batch_size=0)
