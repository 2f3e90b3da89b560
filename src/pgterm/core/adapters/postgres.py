from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Sequence

import psycopg
from psycopg import sql

from pgterm.core.cancel import CancelToken
from pgterm.core.errors import Cancelled, DatabaseConnectionError, DriverError

logger = logging.getLogger(__name__)

Statement = str | sql.Composable

READ_ONLY_OPTIONS = "-c default_transaction_read_only=on"


@dataclass(frozen=True)
class QueryResult:
    """Column names in result order plus the fetched rows as tuples."""

    columns: tuple[str, ...]
    rows: list[tuple[Any, ...]]


class PostgresConnection:
    """Adapter around one psycopg connection (read-only, serialized queries)."""

    def __init__(self, name: str, conn: psycopg.Connection) -> None:
        self.name = name
        self._conn = conn
        # one in-flight statement per connection
        self._lock = threading.Lock()
        self._abort = getattr(conn, "cancel_safe", conn.cancel)

    @classmethod
    def connect(cls, name: str, url: str) -> PostgresConnection:
        """Open a read-only autocommit connection to `url`."""
        try:
            conn = psycopg.connect(url, autocommit=True, options=READ_ONLY_OPTIONS)
        except psycopg.Error as exc:
            raise DatabaseConnectionError(
                f"Could not connect '{name}': {exc}"
            ) from exc
        return cls(name, conn)

    @property
    def closed(self) -> bool:
        return bool(self._conn.closed)

    def close(self) -> None:
        """Close the underlying handle (idempotent)."""
        if not self._conn.closed:
            self._conn.close()

    def _text(self, statement: Statement) -> str:
        if isinstance(statement, sql.Composable):
            try:
                return statement.as_string(self._conn)
            except psycopg.Error:
                return repr(statement)
        return statement

    def query(
        self,
        statement: Statement,
        params: Sequence[Any] = (),
        *,
        cancel: CancelToken | None = None,
    ) -> QueryResult:
        """
        Execute one statement and fetch every row it returns.

        A deadline on `cancel` is applied as a transaction-local
        `statement_timeout`; `cancel.cancel()` from another thread aborts the
        statement server-side.

        Raises:
            DatabaseConnectionError: If the handle is already closed.
            Cancelled: If the token fires before, during or right after the call.
            DriverError: For any other driver failure.
        """
        text = self._text(statement)
        if self.closed:
            raise DatabaseConnectionError(f"Connection '{self.name}' is closed.")
        if cancel is not None:
            cancel.raise_if_cancelled(text)

        with self._lock:
            if cancel is not None:
                cancel.register(self._abort)
            try:
                logger.debug("[%s] %s %s", self.name, text, list(params))
                timeout = cancel.remaining() if cancel is not None else None
                if timeout is None:
                    result = self._execute(statement, params)
                else:
                    with self._conn.transaction():
                        self._set_statement_timeout(timeout)
                        result = self._execute(statement, params)
            except psycopg.errors.QueryCanceled as exc:
                raise Cancelled(f"{text} cancelled") from exc
            except psycopg.OperationalError as exc:
                if self.closed:
                    raise DatabaseConnectionError(
                        f"Connection '{self.name}' is unusable: {exc}"
                    ) from exc
                raise DriverError(text, exc) from exc
            except psycopg.Error as exc:
                raise DriverError(text, exc) from exc
            finally:
                if cancel is not None:
                    cancel.unregister(self._abort)

        # results fetched after a cancel are discarded
        if cancel is not None:
            cancel.raise_if_cancelled(text)
        return result

    def scalar(
        self,
        statement: Statement,
        params: Sequence[Any] = (),
        *,
        cancel: CancelToken | None = None,
    ) -> Any:
        """Return the first column of the first row (or None for no rows)."""
        result = self.query(statement, params, cancel=cancel)
        if not result.rows:
            return None
        return result.rows[0][0]

    def _set_statement_timeout(self, seconds: float) -> None:
        millis = max(int(seconds * 1000), 1)
        with self._conn.cursor() as cur:
            cur.execute(
                "SELECT set_config('statement_timeout', %s, true)", (str(millis),)
            )

    def _execute(self, statement: Statement, params: Sequence[Any]) -> QueryResult:
        with self._conn.cursor() as cur:
            cur.execute(statement, list(params) or None)
            if cur.description is None:
                return QueryResult(columns=(), rows=[])
            columns = tuple(d.name for d in cur.description)
            return QueryResult(columns=columns, rows=list(cur.fetchall()))
