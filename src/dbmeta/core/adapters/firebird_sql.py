"""Driver-independent helpers for the Firebird adapter.

Everything here is pure string work: mapping system-table type codes to SQL
type text, cleaning catalog values and splitting script batches into single
statements the way isql does.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

# RDB$FIELDS.RDB$FIELD_TYPE codes
SMALLINT = 7
INTEGER = 8
FLOAT = 10
DATE = 12
TIME = 13
CHAR = 14
BIGINT = 16
BOOLEAN = 23
DECFLOAT16 = 24
DECFLOAT34 = 25
INT128 = 26
DOUBLE = 27
TIME_TZ = 28
TIMESTAMP_TZ = 29
TIMESTAMP = 35
VARCHAR = 37
BLOB = 261

_SIMPLE_TYPES = {
    SMALLINT: "SMALLINT",
    INTEGER: "INTEGER",
    BIGINT: "BIGINT",
    INT128: "INT128",
    FLOAT: "FLOAT",
    DOUBLE: "DOUBLE PRECISION",
    DATE: "DATE",
    TIME: "TIME",
    TIMESTAMP: "TIMESTAMP",
    TIME_TZ: "TIME WITH TIME ZONE",
    TIMESTAMP_TZ: "TIMESTAMP WITH TIME ZONE",
    BOOLEAN: "BOOLEAN",
    DECFLOAT16: "DECFLOAT(16)",
    DECFLOAT34: "DECFLOAT(34)",
}
_EXACT_NUMERIC_TYPES = (SMALLINT, INTEGER, BIGINT, INT128)
# Precision Firebird implies when RDB$FIELD_PRECISION is not recorded.
_DEFAULT_PRECISION = {SMALLINT: 4, INTEGER: 9, BIGINT: 18, INT128: 38}

_SET_TERM_RE = re.compile(r"^SET\s+TERM\s+(?P<term>\S+)$", re.IGNORECASE)
_DEFAULT_KEYWORD_RE = re.compile(r"^\s*DEFAULT\b", re.IGNORECASE)


def field_type_to_sql(
    field_type: int | None,
    sub_type: int | None = None,
    length: int | None = None,
    char_length: int | None = None,
    precision: int | None = None,
    scale: int | None = None,
) -> str:
    """
    Render a Firebird field type as SQL type text.

    Exact numerics with a scale, or flagged NUMERIC/DECIMAL by sub type,
    become `NUMERIC(p,s)` / `DECIMAL(p,s)`. Character types use the length
    in characters when known, falling back to the byte length. Unknown codes
    map to `UNKNOWN_TYPE_<code>`.
    """
    if field_type in _EXACT_NUMERIC_TYPES and (sub_type in (1, 2) or (scale or 0) < 0):
        name = "DECIMAL" if sub_type == 2 else "NUMERIC"
        digits = precision or _DEFAULT_PRECISION[field_type]
        return f"{name}({digits},{abs(scale or 0)})"

    if field_type in _SIMPLE_TYPES:
        return _SIMPLE_TYPES[field_type]

    if field_type in (CHAR, VARCHAR):
        name = "CHAR" if field_type == CHAR else "VARCHAR"
        size = char_length if char_length is not None else length
        return f"{name}({size})" if size is not None else name

    if field_type == BLOB:
        if sub_type == 1:
            return "BLOB SUB_TYPE TEXT"
        if sub_type in (None, 0):
            return "BLOB"
        return f"BLOB SUB_TYPE {sub_type}"

    return f"UNKNOWN_TYPE_{field_type}"


def catalog_text(value) -> str | None:
    """
    Return a catalog value as stripped text, or None when empty.

    Text blobs above the driver's streaming threshold arrive as readers
    rather than strings.
    """
    if value is None:
        return None
    if hasattr(value, "read"):
        value = value.read()
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip()
    return text or None


def strip_default_keyword(source: str | None) -> str | None:
    """Turn `RDB$DEFAULT_SOURCE` (`DEFAULT 0`) into the bare value (`0`)."""
    text = catalog_text(source)
    if text is None:
        return None
    return _DEFAULT_KEYWORD_RE.sub("", text, count=1).strip() or None


def _parameter_list(parameters: Iterable[str]) -> str:
    return ", ".join(parameters)


def build_procedure_source(
    inputs: Sequence[str], outputs: Sequence[str], body: str
) -> str:
    """
    Rebuild the text that follows the procedure name in a CREATE statement.

    `RDB$PROCEDURE_SOURCE` holds only the body after `AS`, so the signature is
    reassembled from the `"<name> <type>"` parameter declarations.
    """
    lines: list[str] = []
    if inputs:
        lines.append(f"({_parameter_list(inputs)})")
    if outputs:
        lines.append(f"RETURNS ({_parameter_list(outputs)})")
    lines.append("AS")
    lines.append(body.strip())
    return "\n".join(lines)


def split_statements(sql: str) -> list[str]:
    """
    Split a script batch into single statements.

    Statements end at the current terminator (`;` initially). `SET TERM x`
    statements switch the terminator and are not returned. Terminators inside
    quoted literals or identifiers and comments do not split; comments are
    dropped from the output.
    """
    statements: list[str] = []
    buf: list[str] = []
    terminator = ";"
    quote: str | None = None
    i = 0
    n = len(sql)

    def flush() -> None:
        nonlocal terminator
        text = "".join(buf).strip()
        buf.clear()
        if not text:
            return
        directive = _SET_TERM_RE.match(text)
        if directive:
            terminator = directive.group("term")
        else:
            statements.append(text)

    while i < n:
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            i += 1
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
            i += 1
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            buf.append(" ")
        elif sql.startswith(terminator, i):
            i += len(terminator)
            flush()
        else:
            buf.append(ch)
            i += 1

    flush()
    return statements
