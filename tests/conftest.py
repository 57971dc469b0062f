from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

DOMAIN_D_ID = "CREATE DOMAIN D_ID AS INTEGER NOT NULL;\n"

TABLE_USERS = """\
CREATE TABLE USERS (
    ID D_ID NOT NULL,
    NAME VARCHAR(100) DEFAULT 'anonymous',
    BALANCE DECIMAL(10,2) DEFAULT 0,
    PRIMARY KEY (ID)
);
"""

PROCEDURE_GET_USER = """\
SET TERM ^ ;
CREATE PROCEDURE GET_USER (USER_ID INTEGER)
RETURNS (USER_NAME VARCHAR(100))
AS
BEGIN
  SELECT NAME FROM USERS WHERE ID = :USER_ID INTO :USER_NAME;
  SUSPEND;
END^
SET TERM ; ^
"""


def _write(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def write_scripts(tmp_path: Path):
    """Return `write(files, name="defs")` writing `{relative path: text}` under tmp_path."""

    def write(files: dict[str, str], name: str = "defs") -> Path:
        return _write(tmp_path / name, files)

    return write


@pytest.fixture
def definitions_dir(tmp_path: Path) -> Path:
    """A partitioned definition set: one domain, one table, one procedure."""
    return _write(
        tmp_path / "defs",
        {
            "domains/D_ID.sql": DOMAIN_D_ID,
            "tables/USERS.sql": TABLE_USERS,
            "procedures/GET_USER.sql": PROCEDURE_GET_USER,
        },
    )
