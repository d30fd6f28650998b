# python -m pytest pg_advisor/tests/core/test_statements.py -v

"""Tests for corrective statement rendering and the statement guard."""

import pytest

from pg_advisor.core.errors import StatementValidationError
from pg_advisor.core.statement_guard import StatementGuard
from pg_advisor.core.statements import (
    MAX_IDENTIFIER_BYTES,
    available_index_name,
    create_index,
    drop_index,
    quote_ident,
    render_reindex,
    render_statement,
    suggested_index_name,
)


class TestRendering:
    """Structured statements rendered to SQL text."""

    def test_drop_index(self):
        sql = render_statement(drop_index("commerce", "idx_foo"))
        assert sql == 'DROP INDEX IF EXISTS "commerce"."idx_foo";'

    def test_create_index(self):
        sql = render_statement(create_index("commerce", "orders", ["customer_id", "store_id"]))
        assert sql == (
            'CREATE INDEX "idx_orders_customer_id_store_id" '
            'ON "commerce"."orders" ("customer_id", "store_id");'
        )

    def test_identifiers_are_quoted(self):
        assert quote_ident('we"ird') == '"we""ird"'
        sql = render_statement(drop_index("public", 'x"; DROP TABLE users; --'))
        assert sql == 'DROP INDEX IF EXISTS "public"."x""; DROP TABLE users; --";'

    def test_long_index_names_are_truncated(self):
        name = suggested_index_name("a" * 40, ["b" * 40])
        assert len(name.encode("utf-8")) == MAX_IDENTIFIER_BYTES
        assert name.startswith("idx_aaaa")

    def test_available_name_suffixes_on_clash(self):
        taken = {"idx_orders_customer_id", "idx_orders_customer_id_1"}
        assert available_index_name("orders", ["customer_id"], taken) == "idx_orders_customer_id_2"
        assert available_index_name("orders", ["store_id"], taken) == "idx_orders_store_id"

    def test_available_name_stays_within_identifier_limit(self):
        base = available_index_name("a" * 40, ["b" * 40], set())
        name = available_index_name("a" * 40, ["b" * 40], {base})
        assert name.endswith("_1")
        assert len(name.encode("utf-8")) == MAX_IDENTIFIER_BYTES

    def test_reindex(self):
        assert render_reindex("commerce", "idx_big") == 'REINDEX INDEX "commerce"."idx_big";'
        assert render_reindex("commerce", "idx_big", concurrently=True) == (
            'REINDEX INDEX CONCURRENTLY "commerce"."idx_big";'
        )

    def test_create_without_columns_is_rejected(self):
        statement = create_index("public", "orders", [], index_name="idx_orders_empty")
        with pytest.raises(ValueError):
            render_statement(statement)


class TestStatementGuard:
    """Only single index DDL statements pass the guard."""

    def test_accepts_rendered_drop(self):
        sql = render_statement(drop_index("commerce", "idx_foo"))
        assert StatementGuard().validate(sql) == sql

    def test_accepts_rendered_create(self):
        sql = render_statement(create_index("commerce", "orders", ["customer_id"]))
        assert StatementGuard().validate(sql) == sql

    @pytest.mark.parametrize(
        "sql",
        [
            "DROP TABLE commerce.orders",
            "DELETE FROM commerce.orders",
            "SELECT 1",
            "DROP INDEX commerce.idx_foo CASCADE",
        ],
    )
    def test_rejects_non_index_ddl(self, sql):
        with pytest.raises(StatementValidationError):
            StatementGuard().validate(sql)

    def test_rejects_multiple_statements(self):
        with pytest.raises(StatementValidationError) as excinfo:
            StatementGuard().validate("DROP INDEX a; DROP TABLE b")
        assert "Multiple statements" in str(excinfo.value)

    def test_rejects_comments(self):
        with pytest.raises(StatementValidationError):
            StatementGuard().validate("DROP INDEX a -- trailing")

    def test_rejects_empty(self):
        with pytest.raises(StatementValidationError):
            StatementGuard().validate("   ")
