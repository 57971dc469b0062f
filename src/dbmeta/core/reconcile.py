"""Reconciliation of a live database against a definition set.

A run goes through fixed stages:

  1. extract the existing schema through a MetadataSource
  2. load and parse the definition scripts
  3. diff existing vs. desired
  4. sequence the changes into a safe execution order
  5. apply them one statement at a time
  6. report what changed

`plan_reconcile` covers stages 1-4 and has no side effects on the target.
`apply_plan` covers 5-6. `reconcile` runs both.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from dbmeta.core.apply import Step, apply_steps
from dbmeta.core.classify import ScriptType
from dbmeta.core.compare import (
    DomainChanges,
    TableChanges,
    compare_domains,
    compare_tables,
    procedure_changed,
)
from dbmeta.core.errors import DbMetaError, InvalidArgumentError
from dbmeta.core.events import EventEmitter, EventKind, EventSink
from dbmeta.core.models import NameKey, SchemaSnapshot
from dbmeta.core.parsing import parse_domain, parse_procedure, parse_table
from dbmeta.core.ports import MetadataSource, StatementExecutor
from dbmeta.core.scripts import (
    ScriptFile,
    ScriptRepository,
    load_script_set,
    validate_definitions_root,
)

T = TypeVar("T")

DOMAIN = ScriptType.DOMAIN.value
TABLE = ScriptType.TABLE.value
PROCEDURE = ScriptType.PROCEDURE.value

CREATE = "create"
ALTER = "alter"
ADD_COLUMN = "add column"
ALTER_COLUMN = "alter column"
CREATE_OR_ALTER = "create or alter"

_CREATE_PROCEDURE_RE = re.compile(r"\bCREATE\s+PROCEDURE\b", re.IGNORECASE)


@dataclass(frozen=True)
class DesiredSchema:
    """
    Parsed definition set.

    Attributes:
        snapshot: Structured objects parsed from the scripts.
        scripts: Original script text per object key, used for creation.
        warnings: Scripts that were skipped and why.
    """

    snapshot: SchemaSnapshot
    scripts: dict[tuple[str, NameKey], str]
    warnings: tuple[str, ...] = ()

    def script_for(self, category: str, name: str) -> str | None:
        return self.scripts.get((category, NameKey.of(name)))


@dataclass(frozen=True)
class ChangeSet:
    """
    Ordered changes for one reconciliation run.

    Each group holds the steps of one operation kind. `steps()` returns them
    in execution order: domains before tables before procedures, and every
    column change of a table after the table exists.
    """

    domain_creates: tuple[Step, ...] = ()
    domain_alters: tuple[Step, ...] = ()
    table_creates: tuple[Step, ...] = ()
    column_adds: tuple[Step, ...] = ()
    column_alters: tuple[Step, ...] = ()
    procedures: tuple[Step, ...] = ()

    def steps(self) -> tuple[Step, ...]:
        return (
            self.domain_creates
            + self.domain_alters
            + self.table_creates
            + self.column_adds
            + self.column_alters
            + self.procedures
        )

    @property
    def total(self) -> int:
        return len(self.steps())

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def objects_affected(self, *groups: tuple[Step, ...]) -> int:
        """Return the number of distinct objects touched by the given groups."""
        return len({NameKey.of(s.object_name) for group in groups for s in group})


@dataclass(frozen=True)
class ReconcilePlan:
    """Everything computed before touching the target database."""

    target: str
    existing: SchemaSnapshot
    desired: SchemaSnapshot
    changes: ChangeSet
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReconcileReport:
    """
    Outcome of a reconciliation run.

    `statements_executed` is 0 for a dry run. A run with no changes at all is
    a valid outcome ("already in sync"), distinct from a failure.
    """

    domains_created: int = 0
    domains_altered: int = 0
    tables_created: int = 0
    tables_altered: int = 0
    procedures_replaced: int = 0
    statements_planned: int = 0
    statements_executed: int = 0
    dry_run: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def total_changes(self) -> int:
        return (
            self.domains_created
            + self.domains_altered
            + self.tables_created
            + self.tables_altered
            + self.procedures_replaced
        )

    @property
    def in_sync(self) -> bool:
        return self.statements_planned == 0

    @classmethod
    def from_plan(
        cls, plan: ReconcilePlan, *, executed: int, dry_run: bool
    ) -> ReconcileReport:
        changes = plan.changes
        return cls(
            domains_created=changes.objects_affected(changes.domain_creates),
            domains_altered=changes.objects_affected(changes.domain_alters),
            tables_created=changes.objects_affected(changes.table_creates),
            tables_altered=changes.objects_affected(
                changes.column_adds, changes.column_alters
            ),
            procedures_replaced=changes.objects_affected(changes.procedures),
            statements_planned=changes.total,
            statements_executed=executed,
            dry_run=dry_run,
            warnings=plan.warnings,
        )


def to_create_or_alter(script: str) -> str:
    """Rewrite the first `CREATE PROCEDURE` of a script as `CREATE OR ALTER`."""
    return _CREATE_PROCEDURE_RE.sub("CREATE OR ALTER PROCEDURE", script, count=1)


def _parse_all(
    category: str,
    scripts: tuple[ScriptFile, ...],
    parse: Callable[[str], T],
    emitter: EventEmitter,
    sources: dict[tuple[str, NameKey], str],
    warnings: list[str],
) -> list[T]:
    """Parse every script of one category, skipping failures with a warning."""
    parsed: list[T] = []
    for script in scripts:
        try:
            obj = parse(script.text)
        except DbMetaError as exc:
            msg = f"Skipping {category} script {script.path.name}: {exc}"
            emitter.warning(msg)
            warnings.append(msg)
            continue

        key = (category, obj.key)
        if key in sources:
            msg = f"Duplicate {category} {obj.name} in {script.path.name}; keeping the first"
            emitter.warning(msg)
            warnings.append(msg)
            continue
        sources[key] = script.text
        parsed.append(obj)
    return parsed


def parse_desired(
    definitions_root: str | Path,
    *,
    repository: ScriptRepository | None = None,
    on_event: EventSink | None = None,
) -> DesiredSchema:
    """
    Load and parse the definition set under `definitions_root`.

    Scripts that cannot be parsed are excluded with a warning; the rest of
    the definition set is still returned.
    """
    emitter = EventEmitter(on_event)
    script_set = load_script_set(definitions_root, repository)
    warnings = list(script_set.warnings)
    for msg in script_set.warnings:
        emitter.warning(msg)

    sources: dict[tuple[str, NameKey], str] = {}
    domains = _parse_all(DOMAIN, script_set.domains, parse_domain, emitter, sources, warnings)
    tables = _parse_all(TABLE, script_set.tables, parse_table, emitter, sources, warnings)
    procedures = _parse_all(
        PROCEDURE, script_set.procedures, parse_procedure, emitter, sources, warnings
    )

    emitter.info(
        f"Parsed {len(domains)} domain(s), {len(tables)} table(s), "
        f"{len(procedures)} procedure(s)"
    )
    return DesiredSchema(
        snapshot=SchemaSnapshot.of(domains, tables, procedures),
        scripts=sources,
        warnings=tuple(warnings),
    )


def build_change_set(
    existing: SchemaSnapshot,
    desired: DesiredSchema,
    domain_changes: DomainChanges,
    table_changes: TableChanges,
) -> ChangeSet:
    """Turn comparer results into ordered execution steps."""
    domain_creates = tuple(
        Step(DOMAIN, CREATE, d.name, desired.script_for(DOMAIN, d.name) or "")
        for d in domain_changes.to_create
    )
    domain_alters = tuple(
        Step(DOMAIN, ALTER, plan.name, statement)
        for plan in domain_changes.to_alter
        for statement in plan.statements
    )
    table_creates = tuple(
        Step(TABLE, CREATE, t.name, desired.script_for(TABLE, t.name) or "")
        for t in table_changes.to_create
    )
    column_adds = tuple(
        Step(TABLE, ADD_COLUMN, changes.table, statement, detail=column.name)
        for changes in table_changes.to_alter
        for column, statement in zip(changes.to_add, changes.add_statements())
    )
    column_alters = tuple(
        Step(TABLE, ALTER_COLUMN, changes.table, statement, detail=plan.name)
        for changes in table_changes.to_alter
        for plan in changes.to_alter
        for statement in plan.statements
    )
    procedures = tuple(
        Step(
            PROCEDURE,
            CREATE_OR_ALTER,
            p.name,
            to_create_or_alter(desired.script_for(PROCEDURE, p.name) or ""),
        )
        for p in desired.snapshot.procedures
        if procedure_changed(existing.procedure(p.name), p)
    )
    return ChangeSet(
        domain_creates=domain_creates,
        domain_alters=domain_alters,
        table_creates=table_creates,
        column_adds=column_adds,
        column_alters=column_alters,
        procedures=procedures,
    )


def _require_target(target: str | None) -> None:
    if target is None or not str(target).strip():
        raise InvalidArgumentError("Target database must not be empty.")


def plan_reconcile(
    source: MetadataSource,
    target: str,
    definitions_root: str | Path,
    *,
    repository: ScriptRepository | None = None,
    on_event: EventSink | None = None,
) -> ReconcilePlan:
    """
    Compute the changes needed to bring `target` in line with the definitions.

    Raises:
        InvalidArgumentError: If `target` or `definitions_root` is empty.
        DefinitionsNotFoundError: If `definitions_root` does not exist.
    """
    _require_target(target)
    validate_definitions_root(definitions_root)
    emitter = EventEmitter(on_event)

    emitter.stage("Extracting existing metadata")
    existing = SchemaSnapshot.of(
        source.extract_domains(target),
        source.extract_tables(target),
        source.extract_procedures(target),
    )
    emitter.info(
        f"Found {len(existing.domains)} domain(s), {len(existing.tables)} table(s), "
        f"{len(existing.procedures)} procedure(s)"
    )

    emitter.stage("Loading definition scripts")
    desired = parse_desired(definitions_root, repository=repository, on_event=on_event)
    warnings = list(desired.warnings)
    if desired.snapshot.total == 0:
        msg = "No definition scripts found"
        emitter.warning(msg)
        warnings.append(msg)

    emitter.stage("Analyzing changes")
    changes = build_change_set(
        existing,
        desired,
        compare_domains(existing.domains, desired.snapshot.domains),
        compare_tables(existing.tables, desired.snapshot.tables),
    )
    emitter.info(f"Planned {changes.total} statement(s)")

    return ReconcilePlan(
        target=target,
        existing=existing,
        desired=desired.snapshot,
        changes=changes,
        warnings=tuple(warnings),
    )


def apply_plan(
    executor: StatementExecutor,
    plan: ReconcilePlan,
    *,
    on_event: EventSink | None = None,
) -> ReconcileReport:
    """
    Apply a plan to its target, one statement at a time.

    Raises:
        ExecutionError: On the first failing statement; the run stops and
            already-applied statements stay applied.
    """
    emitter = EventEmitter(on_event)
    if plan.changes.is_empty:
        emitter.emit(EventKind.DONE, "No changes detected; database is up to date")
        return ReconcileReport.from_plan(plan, executed=0, dry_run=False)

    emitter.stage(f"Applying {plan.changes.total} change(s)")
    executed = apply_steps(executor, plan.target, plan.changes.steps(), emitter)
    emitter.emit(EventKind.DONE, f"Executed {executed} statement(s)", total=executed)
    return ReconcileReport.from_plan(plan, executed=executed, dry_run=False)


def reconcile(
    source: MetadataSource,
    executor: StatementExecutor,
    target: str,
    definitions_root: str | Path,
    *,
    dry_run: bool = False,
    repository: ScriptRepository | None = None,
    on_event: EventSink | None = None,
) -> ReconcileReport:
    """Plan and (unless `dry_run`) apply the changes for `target`."""
    plan = plan_reconcile(
        source, target, definitions_root, repository=repository, on_event=on_event
    )
    if dry_run:
        EventEmitter(on_event).emit(
            EventKind.DONE, f"Dry run: {plan.changes.total} statement(s) not applied"
        )
        return ReconcileReport.from_plan(plan, executed=0, dry_run=True)
    return apply_plan(executor, plan, on_event=on_event)
