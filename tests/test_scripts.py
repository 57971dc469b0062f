import pytest

from dbmeta.core.errors import DefinitionsNotFoundError, InvalidArgumentError
from dbmeta.core.scripts import load_script_set


def test_partitioned_layout_is_read_per_directory(definitions_dir):
    script_set = load_script_set(definitions_dir)

    assert [s.path.name for s in script_set.domains] == ["D_ID.sql"]
    assert [s.path.name for s in script_set.tables] == ["USERS.sql"]
    assert [s.path.name for s in script_set.procedures] == ["GET_USER.sql"]
    assert script_set.total == 3
    assert script_set.warnings == ()


def test_flat_layout_is_classified_by_content(write_scripts):
    root = write_scripts(
        {
            "01.sql": "CREATE DOMAIN D_ID AS INTEGER;",
            "02.sql": "CREATE TABLE T (ID D_ID);",
            "03.sql": "CREATE PROCEDURE P AS BEGIN END",
            "notes.sql": "SELECT 1 FROM RDB$DATABASE;",
            "readme.txt": "CREATE TABLE IGNORED (A INTEGER);",
        }
    )

    script_set = load_script_set(root)

    assert [s.path.name for s in script_set.domains] == ["01.sql"]
    assert [s.path.name for s in script_set.tables] == ["02.sql"]
    assert [s.path.name for s in script_set.procedures] == ["03.sql"]
    assert script_set.warnings == ("Cannot detect script type: notes.sql",)


def test_empty_files_are_skipped(write_scripts):
    root = write_scripts({"domains/EMPTY.sql": "   \n", "domains/D.sql": "CREATE DOMAIN D AS INTEGER;"})

    script_set = load_script_set(root)

    assert [s.path.name for s in script_set.domains] == ["D.sql"]


def test_files_are_read_in_name_order(write_scripts):
    root = write_scripts(
        {
            "tables/B.sql": "CREATE TABLE B (A INTEGER);",
            "tables/A.sql": "CREATE TABLE A (A INTEGER);",
        }
    )

    assert [s.path.name for s in load_script_set(root).tables] == ["A.sql", "B.sql"]


def test_missing_directory_raises(tmp_path):
    with pytest.raises(DefinitionsNotFoundError):
        load_script_set(tmp_path / "missing")


def test_empty_root_raises():
    with pytest.raises(InvalidArgumentError):
        load_script_set("")
