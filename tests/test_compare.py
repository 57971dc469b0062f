from dbmeta.core.compare import (
    compare_columns,
    compare_domains,
    compare_tables,
    procedure_changed,
)
from dbmeta.core.models import Column, Domain, Procedure, Table


def _table(name: str, *columns: Column) -> Table:
    return Table(name=name, columns=columns)


def test_domain_nullability_change_is_a_single_drop_not_null():
    existing = [Domain(name="D_ID", data_type="INTEGER", is_nullable=False)]
    desired = [Domain(name="D_ID", data_type="INTEGER", is_nullable=True)]

    changes = compare_domains(existing, desired)

    assert changes.to_create == ()
    assert len(changes.to_alter) == 1
    assert changes.to_alter[0].statements == ("ALTER DOMAIN D_ID DROP NOT NULL",)


def test_domain_type_and_default_changes():
    existing = [Domain(name="D_NAME", data_type="VARCHAR(100)", default_value="'x'")]
    desired = [Domain(name="D_NAME", data_type="VARCHAR(200)", is_nullable=False)]

    statements = compare_domains(existing, desired).to_alter[0].statements

    assert statements == (
        "ALTER DOMAIN D_NAME TYPE VARCHAR(200)",
        "ALTER DOMAIN D_NAME SET NOT NULL",
        "ALTER DOMAIN D_NAME DROP DEFAULT",
    )


def test_new_domain_is_created_and_extra_domain_is_kept():
    existing = [Domain(name="D_LEGACY", data_type="INTEGER")]
    desired = [Domain(name="D_ID", data_type="INTEGER")]

    changes = compare_domains(existing, desired)

    assert [d.name for d in changes.to_create] == ["D_ID"]
    assert changes.to_alter == ()


def test_domain_names_match_case_insensitively():
    existing = [Domain(name="d_id", data_type="integer")]
    desired = [Domain(name="D_ID", data_type="INTEGER")]

    assert not compare_domains(existing, desired).has_changes


def test_default_values_compare_case_insensitively():
    existing = [Domain(name="D_TS", data_type="TIMESTAMP", default_value="current_timestamp")]
    desired = [Domain(name="D_TS", data_type="TIMESTAMP", default_value="CURRENT_TIMESTAMP")]

    assert not compare_domains(existing, desired).has_changes


def test_missing_column_is_added():
    existing = _table("USERS", Column(name="ID", position=0, data_type="INTEGER"))
    desired = _table(
        "USERS",
        Column(name="ID", position=0, data_type="INTEGER"),
        Column(name="EMAIL", position=1, data_type="VARCHAR(255)"),
    )

    changes = compare_columns(existing, desired)

    assert [c.name for c in changes.to_add] == ["EMAIL"]
    assert changes.add_statements() == ("ALTER TABLE USERS ADD EMAIL VARCHAR(255)",)
    assert changes.to_alter == ()


def test_column_type_change_for_raw_types():
    existing = _table("T", Column(name="A", position=0, data_type="VARCHAR(10)"))
    desired = _table("T", Column(name="A", position=0, data_type="VARCHAR(20)"))

    changes = compare_columns(existing, desired)

    assert changes.alter_statements() == ("ALTER TABLE T ALTER COLUMN A TYPE VARCHAR(20)",)


def test_column_type_not_compared_when_a_domain_is_involved():
    existing = _table("T", Column(name="A", position=0, data_type="INTEGER"))
    desired = _table("T", Column(name="A", position=0, domain_name="D_ID"))

    assert not compare_columns(existing, desired).has_changes


def test_column_default_added():
    existing = _table("T", Column(name="A", position=0, data_type="INTEGER"))
    desired = _table("T", Column(name="A", position=0, data_type="INTEGER", default_value="0"))

    changes = compare_columns(existing, desired)

    assert changes.alter_statements() == ("ALTER TABLE T ALTER COLUMN A SET DEFAULT 0",)


def test_compare_tables_identical_schema_has_no_changes():
    tables = [
        _table(
            "USERS",
            Column(name="ID", position=0, domain_name="D_ID", is_nullable=False),
            Column(name="NAME", position=1, data_type="VARCHAR(100)"),
        )
    ]

    changes = compare_tables(tables, tables)

    assert changes.to_create == ()
    assert changes.to_alter == ()


def test_compare_tables_creates_missing_and_leaves_extra_tables_alone():
    existing = [_table("OLD", Column(name="A", position=0, data_type="INTEGER"))]
    desired = [_table("NEW", Column(name="A", position=0, data_type="INTEGER"))]

    changes = compare_tables(existing, desired)

    assert [t.name for t in changes.to_create] == ["NEW"]
    assert changes.to_alter == ()


def test_procedure_changed_ignores_whitespace_only_differences():
    existing = Procedure(name="P", source_code="AS\nBEGIN\n    SUSPEND;\nEND")
    desired = Procedure(name="P", source_code="AS BEGIN SUSPEND; END")

    assert procedure_changed(existing, desired) is False
    assert procedure_changed(None, desired) is True
    assert procedure_changed(existing, Procedure(name="P", source_code="AS BEGIN END")) is True
