import pytest
from typer.testing import CliRunner

from dbmeta.cli import cli
from dbmeta.cli.commands import database
from dbmeta.cli.common import context
from dbmeta.cli.common.progress import RunProgress
from dbmeta.core.models import SchemaSnapshot
from dbmeta.core.reconcile import parse_desired

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_connection_env(monkeypatch):
    for name in ("DBMETA_HOST", "DBMETA_PORT", "DBMETA_USER", "DBMETA_PASSWORD",
                 "DBMETA_CHARSET", "DBMETA_CONFIG"):
        monkeypatch.delenv(name, raising=False)


class _Adapter:
    snapshot = SchemaSnapshot()
    batches: list[str] = []

    def __init__(self, config):
        self.config = config

    def extract_domains(self, target):
        return list(self.snapshot.domains)

    def extract_tables(self, target):
        return list(self.snapshot.tables)

    def extract_procedures(self, target):
        return list(self.snapshot.procedures)

    def execute(self, target, batch):
        self.batches.append(batch)
        return 0


@pytest.fixture
def fake_adapter(monkeypatch):
    class Adapter(_Adapter):
        snapshot = SchemaSnapshot()
        batches: list[str] = []

    monkeypatch.setattr(context, "FirebirdAdapter", Adapter)
    return Adapter


def test_scripts_check_reports_parsed_objects(definitions_dir):
    result = runner.invoke(cli.app, ["scripts", "check", str(definitions_dir)])

    assert result.exit_code == 0, result.output
    assert "All scripts parsed" in result.output


def test_scripts_check_fails_on_unparseable_script(write_scripts):
    root = write_scripts({"tables/BROKEN.sql": "CREATE TABLE BROKEN;"})

    result = runner.invoke(cli.app, ["scripts", "check", str(root)])

    assert result.exit_code == 1
    assert "problem(s) found" in result.output


def test_scripts_check_missing_directory_is_input_error(tmp_path):
    result = runner.invoke(cli.app, ["scripts", "check", str(tmp_path / "missing")])

    assert result.exit_code == 2


def test_db_commands_require_credentials(definitions_dir):
    result = runner.invoke(
        cli.app,
        ["db", "update", "--database", "app.fdb", "--scripts-dir", str(definitions_dir)],
    )

    assert result.exit_code == 2
    assert "user" in result.output


def test_db_update_dry_run_applies_nothing(definitions_dir, fake_adapter):
    result = runner.invoke(
        cli.app,
        [
            "db", "--user", "SYSDBA", "--password", "pw",
            "update", "--database", "app.fdb", "--scripts-dir", str(definitions_dir),
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output
    assert fake_adapter.batches == []


def test_db_update_in_sync_database(definitions_dir, fake_adapter):
    fake_adapter.snapshot = parse_desired(definitions_dir).snapshot

    result = runner.invoke(
        cli.app,
        [
            "db", "--user", "SYSDBA", "--password", "pw",
            "update", "--database", "app.fdb", "--scripts-dir", str(definitions_dir),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "up to date" in result.output
    assert fake_adapter.batches == []


def test_db_update_with_yes_applies_without_prompt(definitions_dir, fake_adapter):
    result = runner.invoke(
        cli.app,
        [
            "db", "--user", "SYSDBA", "--password", "pw",
            "update", "--database", "app.fdb", "--scripts-dir", str(definitions_dir),
            "--yes",
        ],
    )

    assert result.exit_code == 0, result.output
    assert len(fake_adapter.batches) == 3


@pytest.mark.parametrize("flags, expected", [(["--verbose"], True), ([], False)])
def test_root_verbose_flag_reaches_progress(definitions_dir, fake_adapter, monkeypatch, flags, expected):
    seen = []

    class _Progress(RunProgress):
        def __init__(self, *args, verbose=False, **kwargs):
            seen.append(verbose)
            super().__init__(*args, verbose=verbose, **kwargs)

    monkeypatch.setattr(database, "RunProgress", _Progress)

    result = runner.invoke(
        cli.app,
        [
            *flags,
            "db", "--user", "SYSDBA", "--password", "pw",
            "update", "--database", "app.fdb", "--scripts-dir", str(definitions_dir),
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    assert seen and all(v is expected for v in seen)
