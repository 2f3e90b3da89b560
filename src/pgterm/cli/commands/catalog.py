from __future__ import annotations

import typer

from pgterm.cli.common.context import BrowseAppContext
from pgterm.cli.common.exits import exit_from_exc, warn_exit
from pgterm.cli.common.options import DatabaseOpt
from pgterm.cli.common.output import out
from pgterm.core.catalog import (
    list_columns,
    list_databases,
    list_schemas,
    list_tables,
    parse_table_full_name,
)
from pgterm.core.errors import PgtermError


def _parse_table_or_exit(table_full_name: str) -> tuple[str, str]:
    """Validate and split a table full name (schema.table)."""
    try:
        return parse_table_full_name(table_full_name)
    except ValueError as exc:
        out.error(str(exc))
        raise typer.Exit(2) from exc


def schemas_cmd(ctx: typer.Context, db: str | None = DatabaseOpt):
    """List schemas of a connection (system schemas excluded)."""
    appctx: BrowseAppContext = ctx.obj
    name = appctx.resolve_name(db)
    conn = appctx.connection(name)

    try:
        with out.status("Loading schemas..."):
            schemas = list_schemas(conn, cancel=appctx.token())
    except PgtermError as exc:
        exit_from_exc(exc)

    if not schemas:
        warn_exit("No schemas found.")

    out.info(f"Connection: {name} | Schemas: {len(schemas)}")
    out.names_table(schemas, column="Schema", title="Schemas")


def databases_cmd(ctx: typer.Context, db: str | None = DatabaseOpt):
    """List the databases on the server behind a connection."""
    appctx: BrowseAppContext = ctx.obj
    name = appctx.resolve_name(db)
    conn = appctx.connection(name)

    try:
        with out.status("Loading databases..."):
            databases = list_databases(conn, cancel=appctx.token())
    except PgtermError as exc:
        exit_from_exc(exc)

    if not databases:
        warn_exit("No databases found.")

    out.info(f"Connection: {name} | Databases: {len(databases)}")
    out.names_table(databases, column="Database", title="Databases")


def tables_cmd(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema name"),
    db: str | None = DatabaseOpt,
):
    """List base tables in a schema."""
    appctx: BrowseAppContext = ctx.obj
    name = appctx.resolve_name(db)
    conn = appctx.connection(name)

    try:
        with out.status("Loading tables..."):
            tables = list_tables(conn, schema, cancel=appctx.token())
    except PgtermError as exc:
        exit_from_exc(exc)

    if not tables:
        warn_exit(f"No tables found in schema '{schema}'.")

    out.info(f"Connection: {name} | Schema: {schema} | Tables: {len(tables)}")
    out.names_table(tables, column="Table", title="Tables")


def columns_cmd(
    ctx: typer.Context,
    table_full_name: str = typer.Argument(..., help="Table in the form schema.table"),
    db: str | None = DatabaseOpt,
):
    """Show the columns of a table with size and constraint metadata."""
    appctx: BrowseAppContext = ctx.obj
    schema, table = _parse_table_or_exit(table_full_name)
    name = appctx.resolve_name(db)
    conn = appctx.connection(name)

    try:
        with out.status("Loading columns..."):
            columns = list_columns(conn, schema, table, cancel=appctx.token())
    except PgtermError as exc:
        exit_from_exc(exc)

    if not columns:
        warn_exit(f"Table '{schema}.{table}' not found or has no columns.")

    out.columns_table(columns, title=f"Columns of {schema}.{table}")


def rows_cmd(
    ctx: typer.Context,
    table_full_name: str = typer.Argument(..., help="Table in the form schema.table"),
    db: str | None = DatabaseOpt,
    pages: int = typer.Option(1, "--pages", "-n", min=1, help="Number of batches to load"),
    all_: bool = typer.Option(False, "--all", help="Load every row of the table"),
):
    """Print rows of a table, one or more batches at a time."""
    appctx: BrowseAppContext = ctx.obj
    schema, table = _parse_table_or_exit(table_full_name)
    name = appctx.resolve_name(db)
    appctx.connection(name)

    try:
        with out.status("Loading rows..."):
            view = appctx.views.open(name, schema, table, cancel=appctx.token())
            loaded_pages = 1
            while not view.batch.exhausted and (all_ or loaded_pages < pages):
                appctx.views.load_more(view.key, cancel=appctx.token())
                loaded_pages += 1
    except PgtermError as exc:
        exit_from_exc(exc)

    out.rows_table(view.batch)
