import pytest

pytest.importorskip("firebird.driver")

from firebird.driver import DatabaseError  # noqa: E402

from dbmeta.core.adapters import firebird as fb  # noqa: E402
from dbmeta.core.config import ConnectionConfig  # noqa: E402
from dbmeta.core.errors import AdapterError  # noqa: E402

CONFIG = ConnectionConfig(user="SYSDBA", password="masterkey")


class _Cursor:
    def __init__(self, con):
        self.con = con
        self.rowcount = -1
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, sql):
        if self.con.fail_on and self.con.fail_on in sql:
            raise DatabaseError("boom")
        self.con.executed.append(sql)
        self._rows = self.con.rows_for(sql)
        self.rowcount = 0

    def fetchall(self):
        return self._rows


class _Connection:
    def __init__(self, rows=None, fail_on=None):
        self.rows = rows or {}
        self.fail_on = fail_on
        self.executed: list[str] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def rows_for(self, sql):
        for marker, rows in self.rows.items():
            if marker in sql:
                return rows
        return []

    def cursor(self):
        return _Cursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


def _patch_connect(monkeypatch, con):
    calls = []

    def _connect(dsn, **kwargs):
        calls.append((dsn, kwargs))
        return con

    monkeypatch.setattr(fb, "connect", _connect)
    return calls


def test_extract_tables_maps_domains_types_and_renumbers_positions(monkeypatch):
    con = _Connection(
        rows={
            "RDB$RELATION_FIELDS": [
                ("USERS", "ID", "D_ID", 1, None, 8, 0, 4, None, 0, 0),
                ("USERS", "NAME", "RDB$12", None, "DEFAULT 'x'", 37, 0, 400, 100, None, 0),
                ("LOG", "AT", "RDB$13", None, None, 35, None, 8, None, None, None),
            ]
        }
    )
    calls = _patch_connect(monkeypatch, con)

    tables = fb.FirebirdAdapter(CONFIG).extract_tables("/data/app.fdb")

    assert [t.name for t in tables] == ["USERS", "LOG"]
    users = tables[0]
    assert [(c.name, c.position) for c in users.columns] == [("ID", 0), ("NAME", 1)]
    assert users.columns[0].domain_name == "D_ID"
    assert users.columns[0].is_nullable is False
    assert users.columns[1].data_type == "VARCHAR(100)"
    assert users.columns[1].default_value == "'x'"
    assert tables[1].columns[0].data_type == "TIMESTAMP"
    assert calls[0][0] == "/data/app.fdb"
    assert calls[0][1]["user"] == "SYSDBA"
    assert con.closed is True


def test_extract_domains(monkeypatch):
    con = _Connection(
        rows={"RDB$FIELDS f": [("D_AMOUNT", 16, 1, 8, None, 18, -2, 1, "DEFAULT 0")]}
    )
    _patch_connect(monkeypatch, con)

    (domain,) = fb.FirebirdAdapter(CONFIG).extract_domains("app")

    assert domain.name == "D_AMOUNT"
    assert domain.data_type == "NUMERIC(18,2)"
    assert domain.scale == 2
    assert domain.is_nullable is False
    assert domain.default_value == "0"


def test_extract_procedures_rebuilds_signature(monkeypatch):
    con = _Connection(
        rows={
            "RDB$PROCEDURE_PARAMETERS": [
                ("GET_USER", "USER_ID", 0, "RDB$20", 8, 0, 4, None, 0, 0),
                ("GET_USER", "USER_NAME", 1, "D_NAME", 37, 0, 100, 100, None, 0),
            ],
            "FROM RDB$PROCEDURES": [
                ("GET_USER", "BEGIN\n  SUSPEND;\nEND", None),
                ("EMPTY_SOURCE", None, None),
            ],
        }
    )
    _patch_connect(monkeypatch, con)

    procedures = fb.FirebirdAdapter(CONFIG).extract_procedures("app")

    assert [p.name for p in procedures] == ["GET_USER"]
    assert procedures[0].source_code == (
        "(USER_ID INTEGER)\nRETURNS (USER_NAME D_NAME)\nAS\nBEGIN\n  SUSPEND;\nEND"
    )


def test_execute_commits_each_statement(monkeypatch):
    con = _Connection()
    _patch_connect(monkeypatch, con)

    fb.FirebirdAdapter(CONFIG).execute(
        "app", "SET TERM ^ ;\nCREATE PROCEDURE P AS BEGIN X = 1; END^\nSET TERM ; ^\nCREATE DOMAIN D AS INTEGER;"
    )

    assert con.executed == [
        "CREATE PROCEDURE P AS BEGIN X = 1; END",
        "CREATE DOMAIN D AS INTEGER",
    ]
    assert con.commits == 2


def test_execute_rolls_back_and_stops_on_failure(monkeypatch):
    con = _Connection(fail_on="BAD")
    _patch_connect(monkeypatch, con)

    with pytest.raises(AdapterError, match="boom"):
        fb.FirebirdAdapter(CONFIG).execute(
            "app", "CREATE DOMAIN A AS INTEGER; CREATE DOMAIN BAD AS X; CREATE DOMAIN C AS INTEGER;"
        )

    assert con.executed == ["CREATE DOMAIN A AS INTEGER"]
    assert con.commits == 1
    assert con.rollbacks == 1
    assert con.closed is True


def test_connection_failure_is_wrapped(monkeypatch):
    def _connect(dsn, **kwargs):
        raise DatabaseError("unavailable")

    monkeypatch.setattr(fb, "connect", _connect)

    with pytest.raises(AdapterError, match="Cannot connect"):
        fb.FirebirdAdapter(CONFIG).extract_domains("app")


def test_create_empty_refuses_to_overwrite(tmp_path, monkeypatch):
    existing = tmp_path / "app.fdb"
    existing.write_bytes(b"")
    monkeypatch.setattr(fb, "create_database", lambda *a, **kw: pytest.fail("must not create"))

    with pytest.raises(AdapterError, match="already exists"):
        fb.FirebirdAdapter(CONFIG).create_empty(str(existing))


def test_create_empty_creates_parent_directory(tmp_path, monkeypatch):
    created = []
    con = _Connection()

    def _create_database(dsn, **kwargs):
        created.append((dsn, kwargs))
        return con

    monkeypatch.setattr(fb, "create_database", _create_database)
    target = tmp_path / "nested" / "app.fdb"

    fb.FirebirdAdapter(CONFIG).create_empty(str(target))

    assert target.parent.is_dir()
    assert created[0][0] == str(target)
    assert created[0][1]["overwrite"] is False
    assert con.closed is True
