"""Script classification by statement kind."""

from __future__ import annotations

import re
from enum import Enum

from dbmeta.core.parsing import strip_comments


class ScriptType(str, Enum):
    """
    Kind of definition script.

    Values:
        DOMAIN: Script contains CREATE DOMAIN.
        TABLE: Script contains CREATE TABLE.
        PROCEDURE: Script contains CREATE [OR ALTER] PROCEDURE.
        UNKNOWN: None of the above (including empty or comment-only text).
    """

    DOMAIN = "domain"
    TABLE = "table"
    PROCEDURE = "procedure"
    UNKNOWN = "unknown"


# Checked in order; the first match wins.
_PATTERNS: tuple[tuple[ScriptType, re.Pattern], ...] = (
    (ScriptType.DOMAIN, re.compile(r"\bCREATE\s+DOMAIN\b", re.IGNORECASE)),
    (ScriptType.TABLE, re.compile(r"\bCREATE\s+TABLE\b", re.IGNORECASE)),
    (
        ScriptType.PROCEDURE,
        re.compile(r"\bCREATE\s+(?:OR\s+ALTER\s+)?PROCEDURE\b", re.IGNORECASE),
    ),
)


def classify_script(script: str | None) -> ScriptType:
    """Return the kind of a definition script, ignoring comments."""
    if not script or not script.strip():
        return ScriptType.UNKNOWN

    text = strip_comments(script)
    for script_type, pattern in _PATTERNS:
        if pattern.search(text):
            return script_type
    return ScriptType.UNKNOWN
