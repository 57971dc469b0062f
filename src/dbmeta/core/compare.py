"""Schema comparison: existing vs. desired.

The comparer diffs objects attribute by attribute and renders one ALTER
statement per differing attribute. It only ever creates or alters: objects
that exist in the database but not in the definitions are left untouched.

All functions are pure and return frozen results, so they can be tested
without any setup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, TypeVar

from dbmeta.core.generator import generate_column_definition
from dbmeta.core.models import Column, Domain, NameKey, Procedure, Table
from dbmeta.core.parsing import strip_comments

T = TypeVar("T", Domain, Table, Column, Procedure)


@dataclass(frozen=True)
class AlterPlan:
    """ALTER statements for one object (or column), in application order."""

    name: str
    statements: tuple[str, ...]


@dataclass(frozen=True)
class DomainChanges:
    """Result of comparing two sets of domains."""

    to_create: tuple[Domain, ...] = ()
    to_alter: tuple[AlterPlan, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.to_create or self.to_alter)


@dataclass(frozen=True)
class ColumnChanges:
    """Result of comparing the columns of one table."""

    table: str
    to_add: tuple[Column, ...] = ()
    to_alter: tuple[AlterPlan, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.to_add or self.to_alter)

    def add_statements(self) -> tuple[str, ...]:
        """Return one `ALTER TABLE ... ADD ...` statement per new column."""
        return tuple(
            f"ALTER TABLE {self.table} ADD {generate_column_definition(c)}"
            for c in self.to_add
        )

    def alter_statements(self) -> tuple[str, ...]:
        return tuple(s for plan in self.to_alter for s in plan.statements)


@dataclass(frozen=True)
class TableChanges:
    """Result of comparing two sets of tables."""

    to_create: tuple[Table, ...] = ()
    to_alter: tuple[ColumnChanges, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.to_create or self.to_alter)


def normalize_default(value: str | None) -> str:
    """Normalize a default expression for comparison (trim, upper-case)."""
    if value is None or not value.strip():
        return ""
    return value.strip().upper()


def _types_differ(existing: str | None, desired: str | None) -> bool:
    return (existing or "").strip().upper() != (desired or "").strip().upper()


def _index(objects: Iterable[T]) -> dict[NameKey, T]:
    return {o.key: o for o in objects}


def _attribute_statements(
    prefix: str,
    *,
    existing_type: str | None,
    desired_type: str | None,
    compare_type: bool,
    existing_nullable: bool,
    desired_nullable: bool,
    existing_default: str | None,
    desired_default: str | None,
) -> tuple[str, ...]:
    """
    Render ALTER statements for type, nullability and default differences.

    `prefix` is the statement head, e.g. `ALTER DOMAIN D_ID` or
    `ALTER TABLE USERS ALTER COLUMN NAME`.
    """
    statements: list[str] = []

    if compare_type and _types_differ(existing_type, desired_type):
        statements.append(f"{prefix} TYPE {desired_type}")

    if existing_nullable != desired_nullable:
        if desired_nullable:
            statements.append(f"{prefix} DROP NOT NULL")
        else:
            statements.append(f"{prefix} SET NOT NULL")

    if normalize_default(existing_default) != normalize_default(desired_default):
        if normalize_default(desired_default):
            statements.append(f"{prefix} SET DEFAULT {desired_default.strip()}")
        else:
            statements.append(f"{prefix} DROP DEFAULT")

    return tuple(statements)


def domain_alter_statements(existing: Domain, desired: Domain) -> tuple[str, ...]:
    """Return the ALTER DOMAIN statements turning `existing` into `desired`."""
    return _attribute_statements(
        f"ALTER DOMAIN {existing.name}",
        existing_type=existing.data_type,
        desired_type=desired.data_type,
        compare_type=True,
        existing_nullable=existing.is_nullable,
        desired_nullable=desired.is_nullable,
        existing_default=existing.default_value,
        desired_default=desired.default_value,
    )


def column_alter_statements(
    table_name: str, existing: Column, desired: Column
) -> tuple[str, ...]:
    """
    Return the ALTER COLUMN statements turning `existing` into `desired`.

    The type is only compared when neither column references a domain;
    changing a column's domain binding is not supported.
    """
    return _attribute_statements(
        f"ALTER TABLE {table_name} ALTER COLUMN {desired.name}",
        existing_type=existing.data_type,
        desired_type=desired.data_type,
        compare_type=not existing.domain_name and not desired.domain_name,
        existing_nullable=existing.is_nullable,
        desired_nullable=desired.is_nullable,
        existing_default=existing.default_value,
        desired_default=desired.default_value,
    )


def compare_domains(
    existing: Sequence[Domain], desired: Sequence[Domain]
) -> DomainChanges:
    """Compare domains by name; return those to create and those to alter."""
    existing_by_key = _index(existing)
    to_create: list[Domain] = []
    to_alter: list[AlterPlan] = []

    for domain in desired:
        current = existing_by_key.get(domain.key)
        if current is None:
            to_create.append(domain)
            continue
        statements = domain_alter_statements(current, domain)
        if statements:
            to_alter.append(AlterPlan(name=domain.name, statements=statements))

    return DomainChanges(to_create=tuple(to_create), to_alter=tuple(to_alter))


def compare_columns(existing: Table, desired: Table) -> ColumnChanges:
    """Compare the columns of two versions of the same table."""
    existing_by_key = _index(existing.columns)
    to_add: list[Column] = []
    to_alter: list[AlterPlan] = []

    for column in desired.columns:
        current = existing_by_key.get(column.key)
        if current is None:
            to_add.append(column)
            continue
        statements = column_alter_statements(existing.name, current, column)
        if statements:
            to_alter.append(AlterPlan(name=column.name, statements=statements))

    return ColumnChanges(
        table=existing.name, to_add=tuple(to_add), to_alter=tuple(to_alter)
    )


def compare_tables(existing: Sequence[Table], desired: Sequence[Table]) -> TableChanges:
    """Compare tables by name; return those to create and those to alter."""
    existing_by_key = _index(existing)
    to_create: list[Table] = []
    to_alter: list[ColumnChanges] = []

    for table in desired:
        current = existing_by_key.get(table.key)
        if current is None:
            to_create.append(table)
            continue
        changes = compare_columns(current, table)
        if changes.has_changes:
            to_alter.append(changes)

    return TableChanges(to_create=tuple(to_create), to_alter=tuple(to_alter))


def normalize_source(source: str | None) -> str:
    """Drop comments and collapse whitespace in procedure source for equality checks."""
    return " ".join(strip_comments(source or "").split())


def procedure_changed(existing: Procedure | None, desired: Procedure) -> bool:
    """Return True unless `existing` has the same signature and body."""
    if existing is None:
        return True
    return normalize_source(existing.source_code) != normalize_source(
        desired.source_code
    )
