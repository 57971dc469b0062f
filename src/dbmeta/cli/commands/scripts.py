"""Offline checks for definition scripts."""

from __future__ import annotations

from pathlib import Path

import typer

from dbmeta.cli.common.exits import exit_from_exc, warn_exit
from dbmeta.cli.common.output import out
from dbmeta.core.errors import DbMetaError
from dbmeta.core.reconcile import parse_desired
from dbmeta.core.scripts import validate_definitions_root

app = typer.Typer(
    help="Inspect definition scripts without a database.",
    no_args_is_help=True,
)


@app.command("check")
def check(
    scripts_dir: Path = typer.Argument(..., help="Directory with definition scripts"),
    strict: bool = typer.Option(
        True, "--strict/--no-strict", help="Exit with code 1 when a script is skipped"
    ),
):
    """Parse every script and report what would be loaded."""
    try:
        validate_definitions_root(scripts_dir)
        desired = parse_desired(scripts_dir)
    except DbMetaError as exc:
        exit_from_exc(exc)

    snapshot = desired.snapshot
    out.header("Definition scripts")
    out.kv(
        {
            "Directory": scripts_dir,
            "Domains": len(snapshot.domains),
            "Tables": len(snapshot.tables),
            "Procedures": len(snapshot.procedures),
        }
    )
    if snapshot.total:
        out.snapshot_table(snapshot, title="Parsed objects")

    if desired.warnings:
        out.warnings(desired.warnings)
        warn_exit(
            f"{len(desired.warnings)} problem(s) found.", code=1 if strict else 0
        )

    if snapshot.total == 0:
        warn_exit("No definition scripts found.", code=1 if strict else 0)

    out.success("All scripts parsed.")
