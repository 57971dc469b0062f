"""Interfaces to the database collaborators used by the orchestrators.

The core never talks to a driver directly. It reads live metadata through a
MetadataSource, applies DDL through a StatementExecutor and creates new
databases through a DatabaseProvisioner. `dbmeta.core.adapters.firebird`
implements all three; tests use small hand-written fakes.
"""

from __future__ import annotations

from typing import Protocol

from dbmeta.core.models import Domain, Procedure, Table


class MetadataSource(Protocol):
    """Reads the existing schema of a target database."""

    def extract_domains(self, target: str) -> list[Domain]:
        """Return all user-defined domains."""
        ...

    def extract_tables(self, target: str) -> list[Table]:
        """Return all user tables with their columns populated."""
        ...

    def extract_procedures(self, target: str) -> list[Procedure]:
        """Return all user stored procedures."""
        ...


class StatementExecutor(Protocol):
    """Applies DDL to a target database."""

    def execute(self, target: str, batch: str) -> int:
        """
        Execute a batch of one or more terminated statements.

        Each statement is committed on its own; the first failure raises and
        aborts the rest of the batch.

        Returns:
            Total number of affected rows reported by the driver.
        """
        ...


class DatabaseProvisioner(Protocol):
    """Creates new, empty databases."""

    def create_empty(self, location: str) -> None:
        """Create an empty database at `location`; never overwrite."""
        ...
