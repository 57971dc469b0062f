"""Definition parser for the DDL shapes this tool reads and writes.

Only three statement shapes are understood: `CREATE DOMAIN`, `CREATE TABLE`
and `CREATE [OR ALTER] PROCEDURE`. This is not a general SQL parser: it
recovers just enough structure (names, types, nullability, defaults, column
order) to compare a definition set against a live database.

A column type is classified as a primitive SQL type by looking it up in a
fixed lexicon. Anything else is treated as a reference to a domain, so a
custom domain named like a primitive type (e.g. `DATE`) is misclassified.
Resolving against the set of domains parsed in the same pass would remove
that limitation.
"""

from __future__ import annotations

import logging
import re

from dbmeta.core.errors import InvalidArgumentError, SqlParseError
from dbmeta.core.models import Column, Domain, Procedure, Table

logger = logging.getLogger(__name__)

KNOWN_DATA_TYPES = frozenset(
    {
        "INTEGER", "INT", "BIGINT", "SMALLINT", "INT128",
        "FLOAT", "DOUBLE", "REAL", "DECIMAL", "NUMERIC", "DECFLOAT",
        "VARCHAR", "CHAR", "CHARACTER", "BINARY", "VARBINARY",
        "DATE", "TIME", "TIMESTAMP",
        "BLOB", "BOOLEAN",
    }
)

_PREVIEW_LEN = 80

_IDENT = r"[\w$]+"
# Multi-word spellings first so `DOUBLE PRECISION` is not cut to `DOUBLE`.
_TYPE = (
    r"DOUBLE\s+PRECISION|CHAR(?:ACTER)?\s+VARYING"
    r"|TIME(?:STAMP)?\s+WITH(?:OUT)?\s+TIME\s+ZONE"
    r"|BLOB\s+SUB_TYPE\s+\w+"
    r"|[\w$]+"
)
_BLOB_SUB_TYPES = {"0": "", "BINARY": "", "1": " SUB_TYPE TEXT", "TEXT": " SUB_TYPE TEXT"}

# Literals are matched first so comment markers inside quotes survive.
_COMMENT_RE = re.compile(r"(?P<literal>'(?:[^']|'')*')|/\*.*?\*/|--[^\n]*", re.DOTALL)
_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")

_DOMAIN_RE = re.compile(
    rf"CREATE\s+DOMAIN\s+(?P<name>{_IDENT})\s+(?:AS\s+)?(?P<type>{_TYPE})"
    r"(?:\s*\((?P<params>[^)]*)\))?(?P<rest>.*)",
    re.IGNORECASE | re.DOTALL,
)
_TABLE_NAME_RE = re.compile(rf"CREATE\s+TABLE\s+(?P<name>{_IDENT})", re.IGNORECASE)
_TABLE_BODY_RE = re.compile(
    rf"CREATE\s+TABLE\s+{_IDENT}\s*\((?P<body>.*)\)", re.IGNORECASE | re.DOTALL
)
_COLUMN_RE = re.compile(
    rf"^(?P<name>{_IDENT})\s+(?P<type>{_TYPE})"
    r"(?:\s*\((?P<params>[^)]*)\))?(?P<rest>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_TABLE_CLAUSE_RE = re.compile(
    r"^\s*(PRIMARY\s+KEY|FOREIGN\s+KEY|CONSTRAINT|CHECK|UNIQUE)\b", re.IGNORECASE
)
_NOT_NULL_RE = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
_DEFAULT_RE = re.compile(
    r"\bDEFAULT\s+(?P<value>(?:'(?:[^']|'')*'|[^'])+?)\s*"
    r"(?=\bNOT\s+NULL\b|\bCHECK\b|\bCOLLATE\b|\bCHARACTER\s+SET\b"
    r"|\bPRIMARY\s+KEY\b|\bUNIQUE\b|\bREFERENCES\b|;|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_PROCEDURE_RE = re.compile(
    rf"CREATE\s+(?:OR\s+ALTER\s+)?PROCEDURE\s+(?P<name>{_IDENT})(?P<rest>.*)",
    re.IGNORECASE | re.DOTALL,
)
_SET_TERM_RE = re.compile(
    r"^\s*SET\s+TERM\s+(?P<new>\S+)\s+(?P<old>\S+)\s*$", re.IGNORECASE | re.MULTILINE
)


def strip_comments(sql: str) -> str:
    """Remove `--` line comments and `/* ... */` block comments, then trim."""
    return _COMMENT_RE.sub(lambda m: m.group("literal") or "", sql).strip()


def _is_nullable(rest: str) -> bool:
    return not _NOT_NULL_RE.search(_LITERAL_RE.sub("''", rest))


def _preview(script: str) -> str:
    """Return the first line of a script, capped for error messages."""
    first_line = script.strip().splitlines()[0] if script.strip() else ""
    if len(first_line) > _PREVIEW_LEN:
        return f"{first_line[: _PREVIEW_LEN - 3]}..."
    return first_line


def _require_text(script: str, what: str) -> None:
    if script is None or not script.strip():
        raise InvalidArgumentError(f"{what} script must not be empty.")


def _canonical_type(base_type: str, params: str | None) -> str:
    words = base_type.upper().split()
    if words[0] == "BLOB" and len(words) == 3:
        sub_type = _BLOB_SUB_TYPES.get(words[2], f" SUB_TYPE {words[2]}")
        words = ["BLOB"] + sub_type.split()
    base = " ".join(words)
    if not params or not params.strip():
        return base
    normalized = ",".join(p.strip() for p in params.split(","))
    return f"{base}({normalized})"


def _numeric_params(params: str | None) -> tuple[int | None, int | None]:
    """Return (first, second) integer type parameters, None where absent."""
    if not params:
        return None, None
    values: list[int | None] = []
    for part in params.split(",")[:2]:
        try:
            values.append(int(part.strip()))
        except ValueError:
            values.append(None)
    values.extend([None] * (2 - len(values)))
    return values[0], values[1]


def _default_value(rest: str) -> str | None:
    match = _DEFAULT_RE.search(rest)
    if not match:
        return None
    value = match.group("value").strip().rstrip(";").strip()
    return value or None


def is_known_data_type(type_name: str) -> bool:
    """Return True when `type_name` (first word) is a primitive SQL type."""
    first_word = type_name.split()[0] if type_name.split() else ""
    return first_word.upper() in KNOWN_DATA_TYPES


def parse_domain(script: str) -> Domain:
    """
    Parse a `CREATE DOMAIN` script into a Domain.

    Raises:
        InvalidArgumentError: If the script is empty or blank.
        SqlParseError: If the script is not a CREATE DOMAIN statement.
    """
    _require_text(script, "Domain")
    text = strip_comments(script)
    match = _DOMAIN_RE.search(text)
    if not match:
        raise SqlParseError(
            f"Cannot parse domain script: {_preview(script)}", script=script
        )

    params = match.group("params")
    first, second = _numeric_params(params)
    rest = match.group("rest")
    return Domain(
        name=match.group("name").upper(),
        data_type=_canonical_type(match.group("type"), params),
        length=first,
        precision=first,
        scale=second,
        is_nullable=_is_nullable(rest),
        default_value=_default_value(rest),
    )


def split_column_definitions(columns_text: str) -> list[str]:
    """
    Split the body of a CREATE TABLE statement into column definitions.

    Commas nested inside parentheses (type parameters such as
    `DECIMAL(10,2)`) or inside single-quoted literals do not separate
    definitions.
    """
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    in_quote = False

    for ch in columns_text:
        if ch == "'":
            in_quote = not in_quote
        elif not in_quote and ch == "(":
            depth += 1
        elif not in_quote and ch == ")":
            depth = max(0, depth - 1)
        elif not in_quote and ch == "," and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)

    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def parse_column_definition(definition: str, position: int) -> Column | None:
    """
    Parse a single column definition.

    Returns None for table-level clauses (PRIMARY KEY, FOREIGN KEY,
    CONSTRAINT, CHECK, UNIQUE) and for definitions that do not look like
    `<name> <type-or-domain> ...`.
    """
    if _TABLE_CLAUSE_RE.match(definition):
        return None

    match = _COLUMN_RE.match(definition.strip())
    if not match:
        logger.warning("Skipping unrecognized column definition: %s", definition)
        return None

    type_or_domain = match.group("type")
    params = match.group("params")
    rest = match.group("rest")

    if is_known_data_type(type_or_domain):
        domain_name = None
        data_type = _canonical_type(type_or_domain, params)
    else:
        domain_name = type_or_domain.upper()
        data_type = None

    return Column(
        name=match.group("name").upper(),
        position=position,
        domain_name=domain_name,
        data_type=data_type,
        is_nullable=_is_nullable(rest),
        default_value=_default_value(rest),
    )


def parse_table(script: str) -> Table:
    """
    Parse a `CREATE TABLE` script into a Table.

    Column positions follow the order of accepted column definitions;
    skipped table-level clauses do not consume a position.

    Raises:
        InvalidArgumentError: If the script is empty or blank.
        SqlParseError: If the table name or column list cannot be recovered,
                       or if no column definition is accepted.
    """
    _require_text(script, "Table")
    text = strip_comments(script)

    name_match = _TABLE_NAME_RE.search(text)
    if not name_match:
        raise SqlParseError(
            f"Cannot parse table name: {_preview(script)}", script=script
        )
    name = name_match.group("name").upper()

    body_match = _TABLE_BODY_RE.search(text)
    if not body_match:
        raise SqlParseError(
            f"Cannot parse columns of table {name}: {_preview(script)}", script=script
        )

    columns: list[Column] = []
    for definition in split_column_definitions(body_match.group("body")):
        column = parse_column_definition(definition, len(columns))
        if column is not None:
            columns.append(column)

    if not columns:
        raise SqlParseError(f"Table {name} defines no columns.", script=script)

    return Table(name=name, columns=tuple(columns))


def _strip_terminators(sql: str) -> tuple[str, str]:
    """Remove SET TERM directives; return (sql, terminator in effect)."""
    terminator = ";"
    directive = _SET_TERM_RE.search(sql)
    if directive:
        terminator = directive.group("new").rstrip(";") or ";"
    return _SET_TERM_RE.sub("", sql).strip(), terminator


def parse_procedure(script: str) -> Procedure:
    """
    Parse a `CREATE [OR ALTER] PROCEDURE` script into a Procedure.

    The procedure body is kept as opaque text: everything after the name,
    with SET TERM directives and the trailing statement terminator removed.
    """
    _require_text(script, "Procedure")
    text, terminator = _strip_terminators(strip_comments(script))
    match = _PROCEDURE_RE.search(text)
    if not match:
        raise SqlParseError(
            f"Cannot parse procedure script: {_preview(script)}", script=script
        )

    source = match.group("rest").strip()
    for term in (terminator, ";"):
        if source.endswith(term):
            source = source[: -len(term)].rstrip()
    if not source:
        raise SqlParseError(
            f"Procedure {match.group('name').upper()} has no body.", script=script
        )
    return Procedure(name=match.group("name").upper(), source_code=source)
