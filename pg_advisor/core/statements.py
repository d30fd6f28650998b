"""Corrective statement construction and rendering.

Statements travel through the engine as CorrectiveStatement data and are
turned into SQL text only here, with every identifier quoted.
"""
from typing import AbstractSet, Iterable, Optional

from pg_advisor.models.finding import CorrectiveStatement, StatementAction


# PostgreSQL NAMEDATALEN - 1
MAX_IDENTIFIER_BYTES = 63


def quote_ident(identifier: str) -> str:
    """Quote an identifier the way PostgreSQL's quote_ident does for any input."""
    return '"' + identifier.replace('"', '""') + '"'


def truncate_identifier(identifier: str, limit: int = MAX_IDENTIFIER_BYTES) -> str:
    encoded = identifier.encode("utf-8")
    if len(encoded) <= limit:
        return identifier
    return encoded[:limit].decode("utf-8", errors="ignore")


def suggested_index_name(table: str, columns: Iterable[str]) -> str:
    return truncate_identifier("_".join(["idx", table, *columns]))


def available_index_name(table: str, columns: Iterable[str], taken: AbstractSet[str]) -> str:
    """Suggested name, suffixed _1, _2, ... until it clashes with nothing in ``taken``."""
    base = suggested_index_name(table, columns)
    name = base
    n = 0
    while name in taken:
        n += 1
        suffix = f"_{n}"
        name = truncate_identifier(base, MAX_IDENTIFIER_BYTES - len(suffix)) + suffix
    return name


def drop_index(schema: str, index_name: str) -> CorrectiveStatement:
    return CorrectiveStatement(
        action=StatementAction.DROP_INDEX,
        schema_name=schema,
        index_name=index_name,
    )


def create_index(schema: str, table: str, columns: Iterable[str], index_name: Optional[str] = None) -> CorrectiveStatement:
    cols = tuple(columns)
    return CorrectiveStatement(
        action=StatementAction.CREATE_INDEX,
        schema_name=schema,
        index_name=index_name or suggested_index_name(table, cols),
        table_name=table,
        columns=cols,
    )


def render_statement(statement: CorrectiveStatement) -> str:
    if statement.action == StatementAction.DROP_INDEX:
        return (
            f"DROP INDEX IF EXISTS "
            f"{quote_ident(statement.schema_name)}.{quote_ident(statement.index_name)};"
        )
    if not statement.table_name or not statement.columns:
        raise ValueError(f"create_index statement for {statement.index_name} has no table or columns")
    column_list = ", ".join(quote_ident(c) for c in statement.columns)
    return (
        f"CREATE INDEX {quote_ident(statement.index_name)} "
        f"ON {quote_ident(statement.schema_name)}.{quote_ident(statement.table_name)} ({column_list});"
    )


def render_reindex(schema: str, index_name: str, *, concurrently: bool = False) -> str:
    keyword = "REINDEX INDEX CONCURRENTLY" if concurrently else "REINDEX INDEX"
    return f"{keyword} {quote_ident(schema)}.{quote_ident(index_name)};"
