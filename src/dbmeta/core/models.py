"""Core schema models.

These models represent schema objects (domains, tables, columns, procedures)
in a simple, immutable form. They are intentionally free of driver types and
UI/CLI concerns, so the same values flow through parsing, comparison,
generation and the database adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from dbmeta.core.errors import InvalidArgumentError


@dataclass(frozen=True, order=True)
class NameKey:
    """
    Case-insensitive identity of a schema object name.

    Two names refer to the same object when their keys are equal. Build keys
    with `NameKey.of()` rather than the constructor so normalization is
    applied in one place.
    """

    value: str

    @classmethod
    def of(cls, name: str) -> NameKey:
        """Return the normalized key for `name` (trimmed, upper-cased)."""
        return cls(name.strip().upper())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Domain:
    """
    Named, reusable column type (base type + nullability + default).

    Attributes:
        name: Domain name.
        data_type: Canonical SQL type text, e.g. `VARCHAR(100)`.
        length: First numeric type parameter, if any (informational).
        precision: Same value as `length`; surface syntax cannot tell them apart.
        scale: Second numeric type parameter, if any.
        is_nullable: False when the domain is declared NOT NULL.
        default_value: Raw default expression without the DEFAULT keyword.
    """

    name: str
    data_type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_nullable: bool = True
    default_value: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Domain name must not be empty.")

    @property
    def key(self) -> NameKey:
        return NameKey.of(self.name)


@dataclass(frozen=True)
class Column:
    """
    A single table column.

    Exactly one of `domain_name` and `data_type` is populated: a column is
    either bound to a domain or declared with a raw SQL type.

    Attributes:
        name: Column name.
        position: Zero-based declaration ordinal within the table.
        domain_name: Name of the domain the column is based on.
        data_type: Raw SQL type text when no domain is referenced.
        is_nullable: False when the column is declared NOT NULL.
        default_value: Raw default expression without the DEFAULT keyword.
    """

    name: str
    position: int
    domain_name: str | None = None
    data_type: str | None = None
    is_nullable: bool = True
    default_value: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Column name must not be empty.")
        if bool(self.domain_name) == bool(self.data_type):
            raise InvalidArgumentError(
                f"Column {self.name} must define exactly one of domain_name or data_type."
            )

    @property
    def key(self) -> NameKey:
        return NameKey.of(self.name)

    @property
    def type_text(self) -> str:
        """Return the domain name or raw type used in DDL for this column."""
        return self.domain_name or self.data_type or ""


@dataclass(frozen=True)
class Table:
    """A table and the columns it owns, ordered by position."""

    name: str
    columns: tuple[Column, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Table name must not be empty.")
        columns = tuple(sorted(self.columns, key=lambda c: c.position))
        if not columns:
            raise InvalidArgumentError(f"Table {self.name} has no columns.")
        positions = [c.position for c in columns]
        if len(set(positions)) != len(positions):
            raise InvalidArgumentError(
                f"Table {self.name} has duplicate column positions."
            )
        object.__setattr__(self, "columns", columns)

    @property
    def key(self) -> NameKey:
        return NameKey.of(self.name)

    def column(self, name: str) -> Column | None:
        """Return the column named `name` (case-insensitive), if present."""
        wanted = NameKey.of(name)
        return next((c for c in self.columns if c.key == wanted), None)


@dataclass(frozen=True)
class Procedure:
    """
    A stored procedure.

    `source_code` holds everything that follows `CREATE PROCEDURE <name>`:
    the parameter list, the RETURNS clause, `AS` and the body.
    """

    name: str
    source_code: str
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Procedure name must not be empty.")
        if not self.source_code or not self.source_code.strip():
            raise InvalidArgumentError(f"Procedure {self.name} has no source code.")

    @property
    def key(self) -> NameKey:
        return NameKey.of(self.name)


@dataclass(frozen=True)
class SchemaSnapshot:
    """One point-in-time capture of domains, tables and procedures."""

    domains: tuple[Domain, ...] = ()
    tables: tuple[Table, ...] = ()
    procedures: tuple[Procedure, ...] = ()

    @classmethod
    def of(
        cls,
        domains: Iterable[Domain] = (),
        tables: Iterable[Table] = (),
        procedures: Iterable[Procedure] = (),
    ) -> SchemaSnapshot:
        return cls(tuple(domains), tuple(tables), tuple(procedures))

    @property
    def total(self) -> int:
        return len(self.domains) + len(self.tables) + len(self.procedures)

    def procedure(self, name: str) -> Procedure | None:
        wanted = NameKey.of(name)
        return next((p for p in self.procedures if p.key == wanted), None)
