"""Paginated row loading for a single table.

A table is opened with one `COUNT(*)` and one bounded `SELECT *`; later
loads continue at the current offset. Offset and limit are bound parameters;
schema and table names are validated and quoted before they reach the query
text. Rows are committed to a batch only after a complete fetch, so a
failed or cancelled load leaves the batch as it was.
"""

from __future__ import annotations

import logging

from psycopg import sql

from pgterm.core.cancel import CancelToken
from pgterm.core.errors import Cancelled, QueryError
from pgterm.core.formatting import MISSING, FormattedValue, format_value
from pgterm.core.identifiers import qualified_table
from pgterm.core.models import RowBatch
from pgterm.core.registry import Connection

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 80


def _count_query(schema: str, table: str) -> sql.Composed:
    return sql.SQL("SELECT COUNT(*) FROM {}").format(qualified_table(schema, table))


def _fetch_query(schema: str, table: str) -> sql.Composed:
    return sql.SQL("SELECT * FROM {} LIMIT %s OFFSET %s").format(
        qualified_table(schema, table)
    )


def _format_row(
    header: tuple[str, ...], values: tuple[object, ...]
) -> dict[str, FormattedValue]:
    row: dict[str, FormattedValue] = {}
    for i, name in enumerate(header):
        row[name] = format_value(values[i] if i < len(values) else MISSING)
    return row


def _fetch(
    conn: Connection,
    schema: str,
    table: str,
    *,
    limit: int,
    offset: int,
    cancel: CancelToken | None,
) -> tuple[tuple[str, ...], list[dict[str, FormattedValue]]]:
    target = f"table {schema}.{table}"
    query = _fetch_query(schema, table)
    try:
        result = conn.query(query, (limit, offset), cancel=cancel)
    except Cancelled:
        raise
    except Exception as exc:  # noqa: BLE001
        raise QueryError("fetch rows", target, exc) from exc
    header = tuple(result.columns)
    return header, [_format_row(header, tuple(r)) for r in result.rows]


def open_table(
    conn: Connection,
    schema: str,
    table: str,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: CancelToken | None = None,
) -> RowBatch:
    """
    Count the rows of `schema.table` and load the first batch.

    Raises:
        QueryError: If an identifier is rejected (before any query runs) or
            the count/fetch fails.
        Cancelled: If `cancel` fires.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    target = f"table {schema}.{table}"
    count_query = _count_query(schema, table)

    try:
        raw_total = conn.scalar(count_query, cancel=cancel)
    except Cancelled:
        raise
    except Exception as exc:  # noqa: BLE001
        raise QueryError("count rows", target, exc) from exc
    try:
        total = int(raw_total or 0)
    except (TypeError, ValueError) as exc:
        raise QueryError("count rows", target, exc) from exc

    # LIMIT 0 on an empty table still yields the header
    header, rows = _fetch(
        conn,
        schema,
        table,
        limit=min(batch_size, total),
        offset=0,
        cancel=cancel,
    )

    batch = RowBatch(
        schema=schema,
        table=table,
        header=header,
        total=total,
        batch_size=batch_size,
    )
    _commit(batch, header, rows, requested=min(batch_size, total))
    logger.debug("opened %s: %d/%d rows", target, batch.loaded, batch.total)
    return batch


def load_more(
    conn: Connection,
    batch: RowBatch,
    *,
    cancel: CancelToken | None = None,
) -> RowBatch:
    """
    Append the next `batch_size` rows to `batch` and return it.

    No query is issued once every row has been loaded.
    """
    if batch.exhausted:
        return batch

    requested = min(batch.batch_size, batch.total - batch.loaded)
    header, rows = _fetch(
        conn,
        batch.schema,
        batch.table,
        limit=requested,
        offset=batch.loaded,
        cancel=cancel,
    )
    _commit(batch, header, rows, requested=requested)
    logger.debug(
        "loaded more %s.%s: %d/%d rows",
        batch.schema,
        batch.table,
        batch.loaded,
        batch.total,
    )
    return batch


def _commit(
    batch: RowBatch,
    header: tuple[str, ...],
    rows: list[dict[str, FormattedValue]],
    *,
    requested: int,
) -> None:
    """Append fetched rows; a short fetch means the table shrank."""
    if not batch.header and header:
        batch.header = header
    rows = rows[:requested]
    batch.rows.extend(rows)
    batch.loaded += len(rows)
    if len(rows) < requested:
        batch.total = batch.loaded
