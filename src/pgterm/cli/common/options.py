"""Common CLI options for the CLI."""

import typer

ConnectionOpt = typer.Option(
    [],
    "--connection",
    "-c",
    help="Connection in the form name=postgresql://... (repeatable)",
    show_default=False,
)

DatabaseOpt = typer.Option(
    None,
    "--db",
    "-d",
    help="Name of the configured connection to browse",
)

BatchSizeOpt = typer.Option(
    None,
    "--batch-size",
    "-b",
    help="Rows fetched per page (default 80, or $PGTERM_BATCH_SIZE)",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    "-t",
    help="Abort a single query after this many seconds",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log queries and cache activity to stderr",
)
