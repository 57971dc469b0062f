from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from firebird.driver import DatabaseError, connect, create_database

from dbmeta.core.adapters.firebird_sql import (
    build_procedure_source,
    catalog_text,
    field_type_to_sql,
    split_statements,
    strip_default_keyword,
)
from dbmeta.core.config import ConnectionConfig
from dbmeta.core.errors import AdapterError, InvalidArgumentError
from dbmeta.core.models import Column, Domain, Procedure, Table

logger = logging.getLogger(__name__)

_DOMAINS_SQL = """
    SELECT
        TRIM(f.RDB$FIELD_NAME) AS FIELD_NAME,
        f.RDB$FIELD_TYPE,
        f.RDB$FIELD_SUB_TYPE,
        f.RDB$FIELD_LENGTH,
        f.RDB$CHARACTER_LENGTH,
        f.RDB$FIELD_PRECISION,
        f.RDB$FIELD_SCALE,
        f.RDB$NULL_FLAG,
        f.RDB$DEFAULT_SOURCE
    FROM RDB$FIELDS f
    WHERE f.RDB$FIELD_NAME NOT STARTING WITH 'RDB$'
      AND COALESCE(f.RDB$SYSTEM_FLAG, 0) = 0
    ORDER BY f.RDB$FIELD_NAME
"""

_COLUMNS_SQL = """
    SELECT
        TRIM(r.RDB$RELATION_NAME) AS TABLE_NAME,
        TRIM(rf.RDB$FIELD_NAME) AS COLUMN_NAME,
        TRIM(rf.RDB$FIELD_SOURCE) AS DOMAIN_NAME,
        rf.RDB$NULL_FLAG,
        rf.RDB$DEFAULT_SOURCE,
        f.RDB$FIELD_TYPE,
        f.RDB$FIELD_SUB_TYPE,
        f.RDB$FIELD_LENGTH,
        f.RDB$CHARACTER_LENGTH,
        f.RDB$FIELD_PRECISION,
        f.RDB$FIELD_SCALE
    FROM RDB$RELATIONS r
    JOIN RDB$RELATION_FIELDS rf ON rf.RDB$RELATION_NAME = r.RDB$RELATION_NAME
    JOIN RDB$FIELDS f ON f.RDB$FIELD_NAME = rf.RDB$FIELD_SOURCE
    WHERE COALESCE(r.RDB$SYSTEM_FLAG, 0) = 0
      AND r.RDB$VIEW_BLR IS NULL
    ORDER BY r.RDB$RELATION_NAME, rf.RDB$FIELD_POSITION
"""

_PROCEDURES_SQL = """
    SELECT
        TRIM(p.RDB$PROCEDURE_NAME) AS PROCEDURE_NAME,
        p.RDB$PROCEDURE_SOURCE,
        p.RDB$DESCRIPTION
    FROM RDB$PROCEDURES p
    WHERE COALESCE(p.RDB$SYSTEM_FLAG, 0) = 0
      AND p.RDB$PACKAGE_NAME IS NULL
    ORDER BY p.RDB$PROCEDURE_NAME
"""

_PARAMETERS_SQL = """
    SELECT
        TRIM(pp.RDB$PROCEDURE_NAME) AS PROCEDURE_NAME,
        TRIM(pp.RDB$PARAMETER_NAME) AS PARAMETER_NAME,
        pp.RDB$PARAMETER_TYPE,
        TRIM(pp.RDB$FIELD_SOURCE) AS DOMAIN_NAME,
        f.RDB$FIELD_TYPE,
        f.RDB$FIELD_SUB_TYPE,
        f.RDB$FIELD_LENGTH,
        f.RDB$CHARACTER_LENGTH,
        f.RDB$FIELD_PRECISION,
        f.RDB$FIELD_SCALE
    FROM RDB$PROCEDURE_PARAMETERS pp
    JOIN RDB$FIELDS f ON f.RDB$FIELD_NAME = pp.RDB$FIELD_SOURCE
    WHERE pp.RDB$PACKAGE_NAME IS NULL
    ORDER BY pp.RDB$PROCEDURE_NAME, pp.RDB$PARAMETER_TYPE, pp.RDB$PARAMETER_NUMBER
"""

# RDB$PROCEDURE_PARAMETERS.RDB$PARAMETER_TYPE
_INPUT = 0


def _is_user_domain(field_source: str | None) -> bool:
    """Implicit per-column domains are named RDB$<n>."""
    return bool(field_source) and not field_source.upper().startswith("RDB$")


class FirebirdAdapter:
    """
    Firebird implementation of MetadataSource, StatementExecutor and
    DatabaseProvisioner on top of `firebird-driver`.

    One connection is opened per call and closed when the call returns.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config

    def _dsn(self, target: str) -> str:
        if target is None or not str(target).strip():
            raise InvalidArgumentError("Database location must not be empty.")
        return self.config.dsn(str(target).strip())

    @contextmanager
    def _connection(self, target: str) -> Iterator:
        dsn = self._dsn(target)
        try:
            con = connect(
                dsn,
                user=self.config.user,
                password=self.config.password,
                charset=self.config.charset,
            )
        except DatabaseError as exc:
            raise AdapterError(f"Cannot connect to {dsn}: {exc}") from exc
        try:
            yield con
        finally:
            con.close()

    def _query(self, target: str, sql: str, what: str) -> list[tuple]:
        with self._connection(target) as con:
            try:
                with con.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
                con.commit()
            except DatabaseError as exc:
                raise AdapterError(f"Failed to read {what} from {target}: {exc}") from exc
        return rows

    # -- MetadataSource -------------------------------------------------

    def extract_domains(self, target: str) -> list[Domain]:
        """Return all user-defined domains of `target`."""
        domains: list[Domain] = []
        for row in self._query(target, _DOMAINS_SQL, "domains"):
            (name, field_type, sub_type, length, char_length,
             precision, scale, null_flag, default_source) = row
            domains.append(
                Domain(
                    name=name,
                    data_type=field_type_to_sql(
                        field_type, sub_type, length, char_length, precision, scale
                    ),
                    length=char_length if char_length is not None else length,
                    precision=precision,
                    scale=abs(scale) if scale else scale,
                    is_nullable=not null_flag,
                    default_value=strip_default_keyword(default_source),
                )
            )
        logger.debug("Extracted %d domain(s) from %s", len(domains), target)
        return domains

    def extract_tables(self, target: str) -> list[Table]:
        """Return all user tables of `target` with columns in field order."""
        columns_by_table: dict[str, list[Column]] = {}
        for row in self._query(target, _COLUMNS_SQL, "tables"):
            (table_name, column_name, field_source, null_flag, default_source,
             field_type, sub_type, length, char_length, precision, scale) = row
            columns = columns_by_table.setdefault(table_name, [])
            if _is_user_domain(field_source):
                domain_name, data_type = field_source, None
            else:
                domain_name = None
                data_type = field_type_to_sql(
                    field_type, sub_type, length, char_length, precision, scale
                )
            # RDB$FIELD_POSITION may have gaps after drops; renumber.
            columns.append(
                Column(
                    name=column_name,
                    position=len(columns),
                    domain_name=domain_name,
                    data_type=data_type,
                    is_nullable=not null_flag,
                    default_value=strip_default_keyword(default_source),
                )
            )

        tables = [
            Table(name=name, columns=tuple(columns))
            for name, columns in columns_by_table.items()
        ]
        logger.debug("Extracted %d table(s) from %s", len(tables), target)
        return tables

    def extract_procedures(self, target: str) -> list[Procedure]:
        """Return all stand-alone stored procedures of `target`."""
        inputs: dict[str, list[str]] = {}
        outputs: dict[str, list[str]] = {}
        for row in self._query(target, _PARAMETERS_SQL, "procedure parameters"):
            (proc_name, param_name, param_type, field_source,
             field_type, sub_type, length, char_length, precision, scale) = row
            if _is_user_domain(field_source):
                type_text = field_source
            else:
                type_text = field_type_to_sql(
                    field_type, sub_type, length, char_length, precision, scale
                )
            bucket = inputs if param_type == _INPUT else outputs
            bucket.setdefault(proc_name, []).append(f"{param_name} {type_text}")

        procedures: list[Procedure] = []
        for name, source, description in self._query(target, _PROCEDURES_SQL, "procedures"):
            body = catalog_text(source)
            if body is None:
                logger.warning("Procedure %s has no stored source; skipped", name)
                continue
            procedures.append(
                Procedure(
                    name=name,
                    source_code=build_procedure_source(
                        inputs.get(name, []), outputs.get(name, []), body
                    ),
                    description=catalog_text(description),
                )
            )
        logger.debug("Extracted %d procedure(s) from %s", len(procedures), target)
        return procedures

    # -- StatementExecutor ----------------------------------------------

    def execute(self, target: str, batch: str) -> int:
        """
        Execute every statement in `batch`, each in its own transaction.

        Returns:
            Total number of affected rows reported by the driver.

        Raises:
            InvalidArgumentError: If the batch holds no statement.
            AdapterError: On the first failing statement; earlier statements
                stay committed.
        """
        statements = split_statements(batch or "")
        if not statements:
            raise InvalidArgumentError("SQL batch contains no statements.")

        affected = 0
        with self._connection(target) as con:
            for statement in statements:
                try:
                    with con.cursor() as cur:
                        cur.execute(statement)
                        affected += max(cur.rowcount or 0, 0)
                    con.commit()
                except DatabaseError as exc:
                    con.rollback()
                    logger.debug("Statement failed: %s", statement)
                    raise AdapterError(str(exc)) from exc
        return affected

    # -- DatabaseProvisioner --------------------------------------------

    def create_empty(self, location: str) -> None:
        """
        Create an empty database at `location`.

        Raises:
            AdapterError: If the database already exists or cannot be created.
        """
        dsn = self._dsn(location)
        if not self.config.host:
            path = Path(location)
            if path.exists():
                raise AdapterError(f"Database already exists: {path}")
            path.parent.mkdir(parents=True, exist_ok=True)
        try:
            con = create_database(
                dsn,
                user=self.config.user,
                password=self.config.password,
                charset=self.config.charset,
                overwrite=False,
            )
        except DatabaseError as exc:
            raise AdapterError(f"Cannot create database {dsn}: {exc}") from exc
        con.close()
        logger.info("Created database %s", dsn)
