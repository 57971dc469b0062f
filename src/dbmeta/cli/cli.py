"""CLI application for Firebird schema management."""

import logging

import typer
from rich.logging import RichHandler

from dbmeta.cli.commands.database import app as db_app
from dbmeta.cli.commands.scripts import app as scripts_app
from dbmeta.cli.common.output import console

app = typer.Typer(
    help="dbmeta - build, update and export Firebird schemas from SQL scripts",
    no_args_is_help=True,
)


@app.callback()
def _main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging (including executed SQL)"
    ),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    ctx.obj = {"verbose": verbose}


app.add_typer(db_app, name="db", help="Build / update / export databases.")
app.add_typer(scripts_app, name="scripts", help="Check definition scripts offline.")


if __name__ == "__main__":
    app()
