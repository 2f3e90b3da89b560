"""CLI application for browsing PostgreSQL databases."""

import typer

from pgterm.cli.commands.browse import browse_cmd
from pgterm.cli.commands.catalog import (
    columns_cmd,
    databases_cmd,
    rows_cmd,
    schemas_cmd,
    tables_cmd,
)
from pgterm.cli.common.context import build_browse_context
from pgterm.cli.common.logs import setup_logging
from pgterm.cli.common.options import (
    BatchSizeOpt,
    ConnectionOpt,
    TimeoutOpt,
    VerboseOpt,
)

app = typer.Typer(
    help="pgterm - terminal browser for PostgreSQL schemas, tables and rows",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    connection: list[str] = ConnectionOpt,
    batch_size: int | None = BatchSizeOpt,
    timeout: float | None = TimeoutOpt,
    verbose: bool = VerboseOpt,
):
    """Load configuration and prepare the connection registry."""
    setup_logging(verbose)
    appctx = build_browse_context(connection, batch_size=batch_size, timeout=timeout)
    ctx.obj = appctx
    ctx.call_on_close(appctx.registry.close_all)


app.command("databases")(databases_cmd)
app.command("schemas")(schemas_cmd)
app.command("tables")(tables_cmd)
app.command("columns")(columns_cmd)
app.command("rows")(rows_cmd)
app.command("browse")(browse_cmd)
app.command("open", help="Open the interactive browser (same as `browse`).")(browse_cmd)


if __name__ == "__main__":
    app()
