"""Commands that build, update and export Firebird databases."""

from __future__ import annotations

from pathlib import Path

import typer

from dbmeta.cli.common.context import DbAppContext, build_db_context
from dbmeta.cli.common.exits import exit_from_exc, ok_exit, warn_exit
from dbmeta.cli.common.options import (
    CharsetOpt,
    ConfigOpt,
    DatabaseOpt,
    DryRunOpt,
    HostOpt,
    PasswordOpt,
    PortOpt,
    ScriptsDirOpt,
    ShowSqlOpt,
    UserOpt,
    YesOpt,
)
from dbmeta.cli.common.output import out
from dbmeta.cli.common.progress import RunProgress
from dbmeta.core.build import build
from dbmeta.core.errors import DbMetaError, ExecutionError
from dbmeta.core.export import export
from dbmeta.core.reconcile import apply_plan, plan_reconcile

app = typer.Typer(
    help="Build, update and export databases.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    host: str | None = HostOpt,
    port: int | None = PortOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    charset: str | None = CharsetOpt,
    config: Path | None = ConfigOpt,
):
    """Initialize the database connection context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    # Inherited from the root callback when run through the full CLI.
    root_opts = ctx.obj if isinstance(ctx.obj, dict) else {}
    ctx.obj = build_db_context(
        host=host,
        port=port,
        user=user,
        password=password,
        charset=charset,
        config_file=str(config) if config else None,
        verbose=bool(root_opts.get("verbose", False)),
    )


def _execution_failed(exc: ExecutionError) -> None:
    out.kv(
        {
            "Category": exc.category,
            "Succeeded in category": f"{exc.succeeded} of {exc.total}",
            "Executed overall": exc.executed,
        }
    )
    exit_from_exc(exc, message=f"Stopped after the first failure in {exc.category} statements.")


@app.command("build")
def build_cmd(
    ctx: typer.Context,
    db_dir: Path = typer.Option(
        ..., "--db-dir", help="Directory in which the new database file is created"
    ),
    scripts_dir: Path = ScriptsDirOpt,
    db_name: str = typer.Option(
        "database.fdb", "--db-name", help="File name of the new database"
    ),
):
    """Create a new database and run every definition script on it."""
    appctx: DbAppContext = ctx.obj
    location = str((db_dir / db_name).resolve())

    out.header("Build database")
    out.kv({"Database": location, "Scripts": scripts_dir})

    try:
        with RunProgress(verbose=appctx.verbose) as progress:
            report = build(
                appctx.adapter,
                appctx.adapter,
                location,
                scripts_dir,
                on_event=progress,
            )
    except ExecutionError as exc:
        _execution_failed(exc)
    except DbMetaError as exc:
        exit_from_exc(exc)

    out.build_report_table(report)
    if report.total == 0:
        warn_exit("Database created, but no scripts were executed.")
    out.success(f"Database built: {location}")


@app.command("update")
def update_cmd(
    ctx: typer.Context,
    database: str = DatabaseOpt,
    scripts_dir: Path = ScriptsDirOpt,
    dry_run: bool = DryRunOpt,
    yes: bool = YesOpt,
    show_sql: bool = ShowSqlOpt,
):
    """Bring an existing database in line with the definition scripts."""
    appctx: DbAppContext = ctx.obj

    out.header("Update database")
    out.kv({"Database": database, "Scripts": scripts_dir})

    try:
        with RunProgress(verbose=appctx.verbose) as progress:
            plan = plan_reconcile(appctx.adapter, database, scripts_dir, on_event=progress)
    except DbMetaError as exc:
        exit_from_exc(exc)

    steps = plan.changes.steps()
    if not steps:
        ok_exit("Database is up to date; nothing to apply.")

    out.plan_table(steps)
    if show_sql or dry_run:
        out.statements(steps)

    if dry_run:
        ok_exit(f"Dry run: {len(steps)} statement(s) not applied.")

    if not yes and not out.confirm(
        f"Apply {len(steps)} statement(s) to {database}?", danger=True
    ):
        warn_exit("Aborted. Nothing was applied.")

    try:
        with RunProgress(verbose=appctx.verbose) as progress:
            report = apply_plan(appctx.adapter, plan, on_event=progress)
    except ExecutionError as exc:
        _execution_failed(exc)
    except DbMetaError as exc:
        exit_from_exc(exc)

    out.reconcile_report_table(report)
    out.success(f"Database updated: {database}")


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    database: str = DatabaseOpt,
    output_dir: Path = typer.Option(
        ..., "--output-dir", "-o", help="Directory the scripts are written to"
    ),
):
    """Write the domains, tables and procedures of a database as scripts."""
    appctx: DbAppContext = ctx.obj

    out.header("Export database")
    out.kv({"Database": database, "Output": output_dir})

    try:
        with RunProgress(verbose=appctx.verbose) as progress:
            report = export(appctx.adapter, database, output_dir, on_event=progress)
    except DbMetaError as exc:
        exit_from_exc(exc)

    if not report.files:
        warn_exit("Nothing to export.")

    out.snapshot_table(report.snapshot, title="Exported objects")
    out.success(f"Wrote {len(report.files)} file(s) to {report.output_root}")
