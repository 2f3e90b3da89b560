"""Memoized table views.

Opening a table materializes a View once per (connection, schema, table);
revisiting it is a dictionary lookup with no query. Views live for the whole
session: there is no eviction, TTL or size bound.
"""

from __future__ import annotations

import logging

from pgterm.core.cancel import CancelToken
from pgterm.core.models import View
from pgterm.core.registry import ConnectionRegistry
from pgterm.core.rows import DEFAULT_BATCH_SIZE, load_more, open_table

logger = logging.getLogger(__name__)


def view_key(connection_name: str, schema: str, table: str) -> str:
    """Composite view identity, e.g. `generic.public.users`."""
    return f"{connection_name}.{schema}.{table}"


class ViewCache:
    """Cache of materialized table views keyed by `view_key`."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.registry = registry
        self.batch_size = batch_size
        self._views: dict[str, View] = {}

    def open(
        self,
        connection_name: str,
        schema: str,
        table: str,
        *,
        cancel: CancelToken | None = None,
    ) -> View:
        """
        Return the view for a table, materializing it on first use.

        A cached view is returned as-is (no re-query, no re-count). A failed
        materialization stores nothing.
        """
        key = view_key(connection_name, schema, table)
        view = self._views.get(key)
        if view is not None:
            logger.debug("view cache hit %s", key)
            return view

        conn = self.registry.lookup(connection_name)
        batch = open_table(
            conn, schema, table, batch_size=self.batch_size, cancel=cancel
        )
        view = View(
            key=key,
            connection_name=connection_name,
            schema=schema,
            table=table,
            batch=batch,
        )
        self._views[key] = view
        logger.debug("view cache stored %s", key)
        return view

    def exists(self, key: str) -> bool:
        return key in self._views

    def keys(self) -> list[str]:
        return list(self._views)

    def load_more(self, key: str, *, cancel: CancelToken | None = None) -> View:
        """Append the next batch to a cached view."""
        view = self._views.get(key)
        if view is None:
            raise KeyError(key)
        conn = self.registry.lookup(view.connection_name)
        load_more(conn, view.batch, cancel=cancel)
        return view

    def __len__(self) -> int:
        return len(self._views)
