# python -m pytest pg_advisor/tests/routers/test_advisor_router.py -v

import pytest
from fastapi.testclient import TestClient

from pg_advisor.core.errors import CatalogConnectionError
from pg_advisor.deps import get_db_connection
from pg_advisor.main import app
from pg_advisor.tests.stubs import MIB, StubConnection, constraint_row, index_row


@pytest.fixture
def conn():
    return StubConnection(
        index_rows=[index_row("commerce", "orders", "idx_foo", columns=["status"], size=2 * MIB)],
        constraint_rows=[constraint_row("commerce", "orders", "orders_customer_id_fkey", columns=["customer_id"])],
        schemas={"commerce": True, "secret": False},
    )


@pytest.fixture
def client(conn):
    async def _override():
        yield conn

    app.dependency_overrides[get_db_connection] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_report_is_a_dry_run(client, conn):
    resp = client.get("/advisor/report", params={"schemas": "commerce"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["report"]["dry_run"] is True
    assert [f["category"] for f in body["report"]["findings"]] == ["unused_index", "missing_fk_index"]
    assert body["statements"][0] == 'DROP INDEX IF EXISTS "commerce"."idx_foo";'
    assert conn.executed == []


def test_report_lists_denied_schemas(client):
    resp = client.get("/advisor/report", params={"schemas": "commerce,secret"})

    assert resp.status_code == 200
    assert [d["schema"] for d in resp.json()["report"]["denied_schemas"]] == ["secret"]


def test_report_forbidden_when_every_schema_is_denied(client):
    resp = client.get("/advisor/report", params={"schemas": "secret"})

    assert resp.status_code == 403
    assert "secret" in resp.json()["detail"]


def test_apply_defaults_to_dry_run(client, conn):
    resp = client.post("/advisor/apply", json={"schemas": ["commerce"]})

    assert resp.status_code == 200
    assert {e["status"] for e in resp.json()["report"]["executions"]} == {"not_executed"}
    assert conn.executed == []


def test_apply_executes_statements(client, conn):
    resp = client.post(
        "/advisor/apply",
        json={"schemas": ["commerce"], "apply": True, "categories": ["unused_index"]},
    )

    assert resp.status_code == 200
    statuses = [e["status"] for e in resp.json()["report"]["executions"]]
    assert statuses == ["executed", "skipped"]
    assert conn.executed == ['DROP INDEX IF EXISTS "commerce"."idx_foo";']


def test_apply_rejects_unknown_category(client):
    resp = client.post("/advisor/apply", json={"schemas": ["commerce"], "categories": ["vacuum"]})

    assert resp.status_code == 422


def test_connection_failure_is_503():
    async def _unreachable():
        raise CatalogConnectionError("Cannot connect to localhost:5432/postgres: refused")
        yield  # pragma: no cover

    app.dependency_overrides[get_db_connection] = _unreachable
    try:
        resp = TestClient(app).get("/advisor/report", params={"schemas": "commerce"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert "Cannot connect" in resp.json()["detail"]


def test_root():
    resp = TestClient(app).get("/")

    assert resp.status_code == 200
    assert resp.json()["message"] == "PostgreSQL Index Advisor API"
