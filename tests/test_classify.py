import pytest

from dbmeta.core.classify import ScriptType, classify_script


@pytest.mark.parametrize(
    ("script", "expected"),
    [
        ("CREATE DOMAIN D_ID AS INTEGER;", ScriptType.DOMAIN),
        ("create table users (id integer);", ScriptType.TABLE),
        ("CREATE PROCEDURE P AS BEGIN END", ScriptType.PROCEDURE),
        ("CREATE OR ALTER PROCEDURE P AS BEGIN END", ScriptType.PROCEDURE),
        ("SELECT 1 FROM RDB$DATABASE;", ScriptType.UNKNOWN),
        ("", ScriptType.UNKNOWN),
        (None, ScriptType.UNKNOWN),
    ],
)
def test_classify_script(script, expected):
    assert classify_script(script) is expected


def test_classify_ignores_statements_inside_comments():
    script = "-- CREATE TABLE OLD_USERS (ID INTEGER);\nCREATE DOMAIN D_ID AS INTEGER;"

    assert classify_script(script) is ScriptType.DOMAIN


def test_comment_only_script_is_unknown():
    assert classify_script("/* CREATE TABLE T (A INTEGER); */") is ScriptType.UNKNOWN


def test_domain_wins_over_table_when_both_are_present():
    script = "CREATE TABLE T (A INTEGER);\nCREATE DOMAIN D AS INTEGER;"

    assert classify_script(script) is ScriptType.DOMAIN
