import pytest

from dbmeta.core.adapters.firebird_sql import (
    build_procedure_source,
    catalog_text,
    field_type_to_sql,
    split_statements,
    strip_default_keyword,
)


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        ((8,), "INTEGER"),
        ((7,), "SMALLINT"),
        ((16, 0), "BIGINT"),
        ((16, 1, 8, None, 18, -2), "NUMERIC(18,2)"),
        ((8, 2, 4, None, 9, -3), "DECIMAL(9,3)"),
        ((7, None, 2, None, None, -1), "NUMERIC(4,1)"),
        ((27,), "DOUBLE PRECISION"),
        ((37, 0, 400, 100), "VARCHAR(100)"),
        ((14, 0, 10, None), "CHAR(10)"),
        ((261, 1), "BLOB SUB_TYPE TEXT"),
        ((261, 0), "BLOB"),
        ((23,), "BOOLEAN"),
        ((35,), "TIMESTAMP"),
        ((29,), "TIMESTAMP WITH TIME ZONE"),
        ((999,), "UNKNOWN_TYPE_999"),
    ],
)
def test_field_type_to_sql(args, expected):
    assert field_type_to_sql(*args) == expected


def test_split_statements_on_semicolons():
    assert split_statements("CREATE DOMAIN A AS INTEGER;\nCREATE DOMAIN B AS INTEGER;") == [
        "CREATE DOMAIN A AS INTEGER",
        "CREATE DOMAIN B AS INTEGER",
    ]


def test_split_statements_honors_set_term():
    script = (
        "SET TERM ^ ;\n"
        "CREATE OR ALTER PROCEDURE P AS\n"
        "BEGIN\n  X = 1;\n  SUSPEND;\nEND^\n"
        "SET TERM ; ^\n"
        "CREATE DOMAIN D AS INTEGER;\n"
    )

    statements = split_statements(script)

    assert len(statements) == 2
    assert statements[0].startswith("CREATE OR ALTER PROCEDURE P")
    assert statements[0].endswith("END")
    assert "X = 1;" in statements[0]
    assert statements[1] == "CREATE DOMAIN D AS INTEGER"


def test_split_statements_ignores_terminators_in_literals_and_comments():
    script = (
        "-- setup; nothing to see\n"
        "INSERT INTO T VALUES ('a;b', 'it''s');\n"
        "/* ; */ CREATE DOMAIN \"D;X\" AS INTEGER;"
    )

    assert split_statements(script) == [
        "INSERT INTO T VALUES ('a;b', 'it''s')",
        'CREATE DOMAIN "D;X" AS INTEGER',
    ]


def test_split_statements_keeps_unterminated_tail():
    assert split_statements("CREATE DOMAIN D AS INTEGER") == ["CREATE DOMAIN D AS INTEGER"]
    assert split_statements("  \n-- only a comment\n") == []


def test_strip_default_keyword():
    assert strip_default_keyword("DEFAULT 0") == "0"
    assert strip_default_keyword("default 'x'") == "'x'"
    assert strip_default_keyword("  ") is None
    assert strip_default_keyword(None) is None


def test_catalog_text_reads_streamed_blobs():
    class _Reader:
        def read(self):
            return "  BEGIN END  "

    assert catalog_text(_Reader()) == "BEGIN END"


def test_build_procedure_source():
    source = build_procedure_source(
        ["USER_ID INTEGER"], ["USER_NAME VARCHAR(100)"], "\nBEGIN\n  SUSPEND;\nEND\n"
    )

    assert source == (
        "(USER_ID INTEGER)\n"
        "RETURNS (USER_NAME VARCHAR(100))\n"
        "AS\n"
        "BEGIN\n  SUSPEND;\nEND"
    )
    assert build_procedure_source([], [], "BEGIN END") == "AS\nBEGIN END"
