"""Exit handling utilities for the CLI."""

from typing import NoReturn

import typer

from dbmeta.cli.common.output import out
from dbmeta.core.errors import (
    ConfigError,
    DefinitionsNotFoundError,
    InvalidArgumentError,
    SqlParseError,
)

# Errors caused by what the user passed in, as opposed to runtime failures.
_INPUT_ERRORS = (ConfigError, DefinitionsNotFoundError, InvalidArgumentError, SqlParseError)


def ok_exit(msg: str | None = None) -> "None":
    """Exit successfully with an optional informational message."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = 1) -> "None":
    """Exit with an error message and optional exit code."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> "None":
    """Exit with a warning message and optional exit code."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_code_for(exc: Exception) -> int:
    """Return 2 for invalid input, 1 for everything else."""
    return 2 if isinstance(exc, _INPUT_ERRORS) else 1


def exit_from_exc(exc: Exception, *, message: str | None = None, code: int | None = None) -> NoReturn:
    """
    Print an error message and exit, chaining the original exception.

    Without `message` the exception text is printed; without `code` the exit
    code follows `exit_code_for`.
    """
    out.error(message or str(exc))
    raise typer.Exit(exit_code_for(exc) if code is None else code) from exc
