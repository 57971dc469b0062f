"""Script generation: schema objects back to canonical DDL text.

This module is the inverse of `dbmeta.core.parsing`. It renders domains,
tables and procedures as the DDL this tool reads back, and persists a
schema to the on-disk layout used as a definition set:

    <root>/domains/<NAME>.sql
    <root>/tables/<NAME>.sql
    <root>/procedures/<NAME>.sql
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from dbmeta.core.errors import InvalidArgumentError
from dbmeta.core.models import Column, Domain, Procedure, Table

logger = logging.getLogger(__name__)

DOMAINS_DIR = "domains"
TABLES_DIR = "tables"
PROCEDURES_DIR = "procedures"

# Procedure bodies contain `;`, so they are emitted under a custom terminator.
PROCEDURE_TERMINATOR = "^"


def _attributes(default_value: str | None, is_nullable: bool) -> str:
    """Render `DEFAULT x` / `NOT NULL` in the order Firebird accepts them."""
    parts: list[str] = []
    if default_value and default_value.strip():
        parts.append(f"DEFAULT {default_value.strip()}")
    if not is_nullable:
        parts.append("NOT NULL")
    return "".join(f" {p}" for p in parts)


def generate_domain_script(domain: Domain) -> str:
    """Return `CREATE DOMAIN <name> AS <type> [DEFAULT x] [NOT NULL];`."""
    if domain is None:
        raise InvalidArgumentError("Domain must not be None.")
    return (
        f"CREATE DOMAIN {domain.name} AS {domain.data_type}"
        f"{_attributes(domain.default_value, domain.is_nullable)};"
    )


def generate_column_definition(column: Column) -> str:
    """Return `<name> <domain-or-type> [DEFAULT x] [NOT NULL]`."""
    return (
        f"{column.name} {column.type_text}"
        f"{_attributes(column.default_value, column.is_nullable)}"
    )


def generate_table_script(table: Table) -> str:
    """Return a multi-line `CREATE TABLE` statement, one column per line."""
    if table is None:
        raise InvalidArgumentError("Table must not be None.")
    if not table.columns:
        raise InvalidArgumentError(f"Table {table.name} has no columns.")

    definitions = ",\n".join(
        f"    {generate_column_definition(c)}"
        for c in sorted(table.columns, key=lambda c: c.position)
    )
    return f"CREATE TABLE {table.name} (\n{definitions}\n);"


def generate_procedure_script(procedure: Procedure) -> str:
    """
    Return a `CREATE PROCEDURE` script wrapped in SET TERM directives.

    The body keeps its inner `;` terminators; the statement itself ends
    with `^` while the custom terminator is active.
    """
    if procedure is None:
        raise InvalidArgumentError("Procedure must not be None.")
    if not procedure.source_code or not procedure.source_code.strip():
        raise InvalidArgumentError(f"Procedure {procedure.name} has no source code.")

    t = PROCEDURE_TERMINATOR
    return (
        f"SET TERM {t} ;\n"
        f"CREATE PROCEDURE {procedure.name}\n"
        f"{procedure.source_code.strip()}{t}\n"
        f"SET TERM ; {t}\n"
    )


def _write_scripts(directory: Path, scripts: Iterable[tuple[str, str]]) -> list[Path]:
    written: list[Path] = []
    for name, script in scripts:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.sql"
        path.write_text(script, encoding="utf-8")
        written.append(path)
    return written


def save_to_files(
    output_root: str | Path,
    domains: Iterable[Domain] = (),
    tables: Iterable[Table] = (),
    procedures: Iterable[Procedure] = (),
) -> list[Path]:
    """
    Write one `.sql` file per object under `output_root`.

    Sub-directories are only created for categories that have objects.
    Existing files with the same name are overwritten.

    Returns:
        Paths of all files written, domains first, then tables, then
        procedures.

    Raises:
        InvalidArgumentError: If `output_root` is empty.
    """
    if output_root is None or not str(output_root).strip():
        raise InvalidArgumentError("Output directory must not be empty.")

    root = Path(output_root)
    root.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    written += _write_scripts(
        root / DOMAINS_DIR, ((d.name, generate_domain_script(d)) for d in domains)
    )
    written += _write_scripts(
        root / TABLES_DIR, ((t.name, generate_table_script(t)) for t in tables)
    )
    written += _write_scripts(
        root / PROCEDURES_DIR,
        ((p.name, generate_procedure_script(p)) for p in procedures),
    )

    logger.info("Wrote %d script file(s) to %s", len(written), root)
    return written
