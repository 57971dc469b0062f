"""Building a new database from a definition set.

Unlike reconciliation there is nothing to compare against: a fresh, empty
database is created and every script is executed as-is, domains first, then
tables, then procedures.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dbmeta.core.apply import Step, apply_steps
from dbmeta.core.errors import InvalidArgumentError
from dbmeta.core.events import EventEmitter, EventKind, EventSink
from dbmeta.core.ports import DatabaseProvisioner, StatementExecutor
from dbmeta.core.reconcile import CREATE, DOMAIN, PROCEDURE, TABLE
from dbmeta.core.scripts import (
    ScriptRepository,
    ScriptSet,
    load_script_set,
    validate_definitions_root,
)


@dataclass(frozen=True)
class BuildReport:
    """Outcome of a build run."""

    location: str
    domains: int = 0
    tables: int = 0
    procedures: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return self.domains + self.tables + self.procedures


def build_steps(script_set: ScriptSet) -> list[Step]:
    """Return one step per script in fixed order: domains, tables, procedures."""
    steps: list[Step] = []
    for category, scripts in (
        (DOMAIN, script_set.domains),
        (TABLE, script_set.tables),
        (PROCEDURE, script_set.procedures),
    ):
        steps += [Step(category, CREATE, s.path.stem, s.text) for s in scripts]
    return steps


def build(
    provisioner: DatabaseProvisioner,
    executor: StatementExecutor,
    target_location: str,
    definitions_root: str | Path,
    *,
    repository: ScriptRepository | None = None,
    on_event: EventSink | None = None,
) -> BuildReport:
    """
    Create an empty database at `target_location` and run all scripts on it.

    Raises:
        InvalidArgumentError: If `target_location` or `definitions_root` is
            empty.
        DefinitionsNotFoundError: If `definitions_root` does not exist.
        ExecutionError: On the first failing script; reports how many scripts
            of the failing category succeeded before it.
    """
    if target_location is None or not str(target_location).strip():
        raise InvalidArgumentError("Database location must not be empty.")
    validate_definitions_root(definitions_root)
    emitter = EventEmitter(on_event)

    emitter.stage(f"Creating empty database {target_location}")
    provisioner.create_empty(target_location)

    emitter.stage("Loading definition scripts")
    script_set = load_script_set(definitions_root, repository)
    for msg in script_set.warnings:
        emitter.warning(msg)

    if script_set.total == 0:
        msg = "No scripts found to execute"
        emitter.warning(msg)
        return BuildReport(
            location=target_location, warnings=script_set.warnings + (msg,)
        )

    emitter.stage(f"Executing {script_set.total} script(s)")
    apply_steps(executor, target_location, build_steps(script_set), emitter)
    emitter.emit(
        EventKind.DONE,
        f"Database built: {len(script_set.domains)} domain(s), "
        f"{len(script_set.tables)} table(s), {len(script_set.procedures)} procedure(s)",
    )

    return BuildReport(
        location=target_location,
        domains=len(script_set.domains),
        tables=len(script_set.tables),
        procedures=len(script_set.procedures),
        warnings=script_set.warnings,
    )
