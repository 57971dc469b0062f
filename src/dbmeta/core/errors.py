"""Error taxonomy for schema parsing, loading and reconciliation.

Every error raised by the core derives from DbMetaError and also from the
closest builtin exception, so callers can catch either the specific type or
the usual Python category (ValueError, FileNotFoundError, RuntimeError).
"""

from __future__ import annotations


class DbMetaError(Exception):
    """Base class for all db-meta errors."""


class InvalidArgumentError(DbMetaError, ValueError):
    """Raised when a required input is empty or malformed."""


class DefinitionsNotFoundError(DbMetaError, FileNotFoundError):
    """Raised when the definitions directory does not exist."""


class ConfigError(DbMetaError, RuntimeError):
    """Raised when connection settings cannot be resolved."""


class SqlParseError(DbMetaError, ValueError):
    """Raised when a script does not match the expected DDL shape."""

    def __init__(self, message: str, script: str | None = None) -> None:
        super().__init__(message)
        self.script = script


class ExecutionError(DbMetaError, RuntimeError):
    """
    Raised when the statement executor reports a failure.

    Attributes:
        category: Object category being applied when the failure happened
                  (e.g. "domain", "table", "procedure").
        statement: The statement or script batch that failed.
        succeeded: Number of statements in the current category that were
                   applied before the failure.
        total: Number of statements planned for the current category.
        executed: Number of statements applied in the whole run so far.
    """

    def __init__(
        self,
        message: str,
        *,
        category: str,
        statement: str,
        succeeded: int,
        total: int,
        executed: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.statement = statement
        self.succeeded = succeeded
        self.total = total
        self.executed = succeeded if executed is None else executed


class AdapterError(DbMetaError, RuntimeError):
    """Raised when the database driver fails outside statement application."""
