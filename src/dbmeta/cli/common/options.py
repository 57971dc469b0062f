"""Common CLI options for the CLI."""

import typer

from dbmeta.core.config import CONFIG_ENV

HostOpt = typer.Option(
    None,
    "--host",
    envvar="DBMETA_HOST",
    help="Firebird server host (omit for a local/embedded database)",
)

PortOpt = typer.Option(
    None,
    "--port",
    envvar="DBMETA_PORT",
    help="Firebird server port",
)

UserOpt = typer.Option(
    None,
    "--user",
    "-u",
    envvar="DBMETA_USER",
    help="Database user",
)

PasswordOpt = typer.Option(
    None,
    "--password",
    envvar="DBMETA_PASSWORD",
    help="Database password",
    show_default=False,
)

CharsetOpt = typer.Option(
    None,
    "--charset",
    envvar="DBMETA_CHARSET",
    help="Connection character set (default UTF8)",
)

ConfigOpt = typer.Option(
    None,
    "--config",
    envvar=CONFIG_ENV,
    help="JSON settings file with connection values",
)

DatabaseOpt = typer.Option(
    ...,
    "--database",
    "-d",
    help="Database path or alias on the server",
)

ScriptsDirOpt = typer.Option(
    ...,
    "--scripts-dir",
    "-s",
    help="Directory with definition scripts",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show the planned statements, but don't apply anything",
)

YesOpt = typer.Option(
    False,
    "--yes",
    "-y",
    help="Apply changes without asking for confirmation",
)

ShowSqlOpt = typer.Option(
    False,
    "--show-sql",
    help="Print the SQL of every planned statement",
)
