# python -m pytest pg_advisor/tests/cli/test_cli.py -v

import json

import pytest

from pg_advisor import cli
from pg_advisor.config import Settings
from pg_advisor.core.errors import CatalogConnectionError, CatalogPermissionError
from pg_advisor.core.runner import run_advisor
from pg_advisor.models.finding import FindingCategory
from pg_advisor.tests.stubs import MIB, StubConnection, constraint_row, index_row


def _conn():
    return StubConnection(
        index_rows=[index_row("commerce", "orders", "idx_foo", columns=["status"], size=2 * MIB)],
        constraint_rows=[constraint_row("commerce", "orders", "orders_customer_id_fkey", columns=["customer_id"])],
    )


@pytest.fixture
def fake_run(monkeypatch):
    calls = {}
    conn = _conn()

    async def _fake(cfg, schemas=None, options=None, *, require_access=False):
        calls.update(schemas=schemas, options=options, require_access=require_access)
        return await run_advisor(conn, schemas or cfg.schema_list(), options, require_access=require_access)

    monkeypatch.setattr(cli, "run_advisor_from_settings", _fake)
    calls["conn"] = conn
    return calls


def _run(argv):
    return cli.main(argv + ["--env-file", "/nonexistent/.env"])


def test_text_report_exit_zero(fake_run, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run(["--schemas", "commerce"])

    assert excinfo.value.code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Index Advisor Report" in out
    assert "Findings (2)" in out
    assert fake_run["require_access"] is True
    assert fake_run["conn"].executed == []


def test_schemas_are_split_and_repeatable(fake_run):
    with pytest.raises(SystemExit):
        _run(["--schemas", "commerce, civics", "--schemas", "audit"])

    assert fake_run["schemas"] == ["commerce", "civics", "audit"]


def test_sql_format_prints_statements_only(fake_run, capsys):
    with pytest.raises(SystemExit):
        _run(["--schemas", "commerce", "--format", "sql"])

    out = capsys.readouterr().out
    assert 'DROP INDEX IF EXISTS "commerce"."idx_foo";' in out
    assert "Index Advisor Report" not in out


def test_json_format(fake_run, capsys):
    with pytest.raises(SystemExit):
        _run(["--schemas", "commerce", "--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert len(data["findings"]) == 2


def test_apply_executes_selected_category(fake_run):
    with pytest.raises(SystemExit) as excinfo:
        _run(["--schemas", "commerce", "--apply", "--category", "missing_fk_index"])

    assert excinfo.value.code == cli.EXIT_OK
    assert fake_run["options"].dry_run is False
    assert fake_run["options"].apply_categories == frozenset({FindingCategory.MISSING_FK_INDEX})
    assert len(fake_run["conn"].executed) == 1
    assert fake_run["conn"].executed[0].startswith("CREATE INDEX")


def test_threshold_flags_override_settings():
    args = cli.build_parser().parse_args(["--min-unused-size-bytes", "0", "--rarely-used-max-scans", "5"])

    options = cli.build_options(args, Settings())

    assert options.min_unused_size_bytes == 0
    assert options.rarely_used_max_scans == 5
    assert options.dry_run is True


def test_reindex_tier_flags_override_settings():
    args = cli.build_parser().parse_args(["--reindex-high-size-bytes", "500", "--reindex-medium-size-bytes", "50"])

    options = cli.build_options(args, Settings())

    assert (options.reindex_high_size_bytes, options.reindex_medium_size_bytes) == (500, 50)


def test_dry_run_and_apply_are_exclusive(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.build_parser().parse_args(["--dry-run", "--apply"])
    assert excinfo.value.code == 2


def test_connection_failure_exit_code(monkeypatch, capsys):
    async def _fail(cfg, schemas=None, options=None, *, require_access=False):
        raise CatalogConnectionError("Cannot connect to localhost:5432/postgres: refused")

    monkeypatch.setattr(cli, "run_advisor_from_settings", _fail)

    with pytest.raises(SystemExit) as excinfo:
        _run(["--schemas", "commerce"])

    assert excinfo.value.code == cli.EXIT_CONNECTION
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Cannot connect" in captured.err


def test_permission_failure_exit_code(monkeypatch, capsys):
    async def _deny(cfg, schemas=None, options=None, *, require_access=False):
        raise CatalogPermissionError("Permission denied on every requested schema: secret", schemas=["secret"])

    monkeypatch.setattr(cli, "run_advisor_from_settings", _deny)

    with pytest.raises(SystemExit) as excinfo:
        _run(["--schemas", "secret"])

    assert excinfo.value.code == cli.EXIT_PERMISSION
    assert "secret" in capsys.readouterr().err
