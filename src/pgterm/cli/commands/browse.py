"""Interactive browsing: connection -> schema -> table -> columns and rows.

Every navigation step is one request to the core; errors are shown and the
user stays on the current level instead of the program exiting.
"""

from __future__ import annotations

import logging

import typer

from pgterm.cli.common.context import BrowseAppContext
from pgterm.cli.common.options import DatabaseOpt
from pgterm.cli.common.output import out
from pgterm.cli.tui import BACK, LOAD_MORE, name_choices, row_actions, table_choices
from pgterm.core.catalog import list_columns, list_schemas, list_tables
from pgterm.core.errors import Cancelled, PgtermError
from pgterm.core.registry import Connection
from pgterm.core.views import view_key

logger = logging.getLogger(__name__)


def _report(exc: PgtermError) -> None:
    if isinstance(exc, Cancelled):
        out.warn(f"Query cancelled: {exc}")
    else:
        out.error(str(exc))


def _show_table(
    appctx: BrowseAppContext,
    conn: Connection,
    connection_name: str,
    schema: str,
    table: str,
) -> None:
    """Show columns, then rows with load-more until the user goes back."""
    key = view_key(connection_name, schema, table)

    try:
        with out.status("Loading columns..."):
            columns = list_columns(conn, schema, table, cancel=appctx.token())
        out.columns_table(columns, title=f"Columns of {schema}.{table}")

        if appctx.views.exists(key):
            view = appctx.views.open(connection_name, schema, table)
        else:
            with out.status("Loading rows..."):
                view = appctx.views.open(
                    connection_name, schema, table, cancel=appctx.token()
                )
    except PgtermError as exc:
        _report(exc)
        return

    out.rows_table(view.batch)
    while True:
        action = out.select_one(
            f"{view.batch.loaded}/{view.batch.total} rows of {schema}.{table}",
            row_actions(view.batch),
        )
        if action != LOAD_MORE:
            return
        try:
            with out.status("Loading rows..."):
                appctx.views.load_more(key, cancel=appctx.token())
        except PgtermError as exc:
            _report(exc)
            continue
        out.rows_table(view.batch)


def _browse_schema(
    appctx: BrowseAppContext, conn: Connection, connection_name: str, schema: str
) -> None:
    while True:
        try:
            with out.status("Loading tables..."):
                tables = list_tables(conn, schema, cancel=appctx.token())
        except PgtermError as exc:
            _report(exc)
            return
        if not tables:
            out.warn(f"No tables in schema '{schema}'.")
            return

        table = out.select_one(
            f"Tables in {connection_name}.{schema}:",
            table_choices(appctx.views, connection_name, schema, tables),
        )
        if table is None or table == BACK:
            return
        _show_table(appctx, conn, connection_name, schema, table)


def _browse_connection(
    appctx: BrowseAppContext, conn: Connection, connection_name: str
) -> None:
    while True:
        # re-read on every visit
        try:
            with out.status("Loading schemas..."):
                schemas = list_schemas(conn, cancel=appctx.token())
        except PgtermError as exc:
            _report(exc)
            return
        if not schemas:
            out.warn(f"No schemas in '{connection_name}'.")
            return

        schema = out.select_one(f"Schemas in {connection_name}:", name_choices(schemas))
        if schema is None or schema == BACK:
            return
        _browse_schema(appctx, conn, connection_name, schema)


def browse_cmd(ctx: typer.Context, db: str | None = DatabaseOpt):
    """Browse schemas, tables, columns and rows interactively."""
    appctx: BrowseAppContext = ctx.obj
    names = list(appctx.settings.connections)
    if not names:
        appctx.resolve_name(None)

    if db or len(names) == 1:
        name = appctx.resolve_name(db)
        _browse_connection(appctx, appctx.connection(name), name)
        return

    while True:
        name = out.select_one("Databases:", name_choices(names))
        if name is None or name == BACK:
            break
        try:
            with out.status(f"Connecting to {name}..."):
                conn = appctx.open_connection(name)
        except PgtermError as exc:
            _report(exc)
            continue
        _browse_connection(appctx, conn, name)

    logger.debug("browse finished; %d views cached", len(appctx.views))
    out.info("Bye.")
