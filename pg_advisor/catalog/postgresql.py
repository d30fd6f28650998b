"""PostgreSQL catalog reader."""

from typing import Any, Iterable, List

import asyncpg

from pg_advisor.catalog.base import CatalogReader
from pg_advisor.core.errors import CatalogConnectionError
from pg_advisor.models.catalog import (
    CONSTRAINT_TYPES,
    CatalogSnapshot,
    ConstraintInfo,
    IndexStat,
    SchemaAccessDenial,
    SnapshotBuilder,
)
from pg_advisor.smart_logger import SmartLogger


_CONNECTION_ERRORS = (
    OSError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.InterfaceError,
)


class PostgreSQLCatalogReader(CatalogReader):
    """PostgreSQL implementation of the catalog reader."""

    async def read_snapshot(
        self,
        conn: Any,
        schemas: Iterable[str],
    ) -> CatalogSnapshot:
        requested = self._dedupe(schemas)
        builder = SnapshotBuilder(schemas=requested)
        if not requested:
            return builder.build()

        try:
            access_rows = await conn.fetch(_SCHEMA_ACCESS_SQL, requested)
        except _CONNECTION_ERRORS as exc:
            raise CatalogConnectionError(f"Catalog read failed: {exc}") from exc

        has_usage = {row["schema_name"]: bool(row["has_usage"]) for row in access_rows}

        for schema in requested:
            if schema not in has_usage:
                builder.missing_schemas.append(schema)
                SmartLogger.log(
                    "WARNING",
                    "advisor.catalog.schema_missing",
                    category="advisor.catalog",
                    params={"schema": schema},
                )
                continue
            if not has_usage[schema]:
                self._deny(builder, schema, "role lacks USAGE privilege on schema")
                continue

            try:
                index_rows = await conn.fetch(_INDEX_STATS_SQL, schema)
                constraint_rows = await conn.fetch(_CONSTRAINTS_SQL, schema)
            except asyncpg.exceptions.InsufficientPrivilegeError as exc:
                self._deny(builder, schema, str(exc))
                continue
            except _CONNECTION_ERRORS as exc:
                raise CatalogConnectionError(f"Catalog read failed on schema {schema}: {exc}") from exc

            builder.indexes.extend(self._to_index_stat(row) for row in index_rows)
            builder.constraints.extend(
                self._to_constraint(row)
                for row in constraint_rows
                if row["contype"] in CONSTRAINT_TYPES
            )

        snapshot = builder.build()
        SmartLogger.log(
            "INFO",
            "advisor.catalog.snapshot",
            category="advisor.catalog",
            params={
                "schemas": list(snapshot.schemas),
                "indexes": len(snapshot.indexes),
                "constraints": len(snapshot.constraints),
                "denied": [d.schema for d in snapshot.denied_schemas],
                "missing": list(snapshot.missing_schemas),
            },
        )
        return snapshot

    @staticmethod
    def _dedupe(schemas: Iterable[str]) -> List[str]:
        seen: List[str] = []
        for schema in schemas:
            name = (schema or "").strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @staticmethod
    def _deny(builder: SnapshotBuilder, schema: str, reason: str) -> None:
        builder.denied_schemas.append(SchemaAccessDenial(schema=schema, reason=reason))
        SmartLogger.log(
            "WARNING",
            "advisor.catalog.schema_denied",
            category="advisor.catalog",
            params={"schema": schema, "reason": reason},
        )

    @staticmethod
    def _to_index_stat(row: Any) -> IndexStat:
        return IndexStat(
            schema=row["schema_name"],
            table=row["table_name"],
            index_name=row["index_name"],
            size_bytes=int(row["size_bytes"] or 0),
            scan_count=int(row["scan_count"] or 0),
            tuples_read=int(row["tuples_read"] or 0),
            tuples_fetched=int(row["tuples_fetched"] or 0),
            is_primary_key=bool(row["is_primary_key"]),
            columns=tuple(col for col in row["columns"] or [] if col),
            is_unique=bool(row["is_unique"]),
            is_partial=bool(row["is_partial"]),
            has_expressions=bool(row["has_expressions"]),
            definition=row["definition"] or "",
        )

    @staticmethod
    def _to_constraint(row: Any) -> ConstraintInfo:
        return ConstraintInfo(
            schema=row["schema_name"],
            table=row["table_name"],
            constraint_name=row["constraint_name"],
            constraint_type=CONSTRAINT_TYPES[row["contype"]],
            columns=tuple(col for col in row["columns"] or [] if col),
            referenced_table=row["referenced_table"],
            table_size_bytes=int(row["table_size_bytes"] or 0),
        )


_SCHEMA_ACCESS_SQL = """
SELECT
    n.nspname AS schema_name,
    has_schema_privilege(n.oid, 'USAGE') AS has_usage
FROM pg_namespace n
WHERE n.nspname = ANY($1::text[])
"""

_INDEX_STATS_SQL = """
WITH expanded AS (
    SELECT
        s.schemaname AS schema_name,
        s.relname AS table_name,
        s.indexrelname AS index_name,
        pg_relation_size(s.indexrelid)::bigint AS size_bytes,
        COALESCE(s.idx_scan, 0)::bigint AS scan_count,
        COALESCE(s.idx_tup_read, 0)::bigint AS tuples_read,
        COALESCE(s.idx_tup_fetch, 0)::bigint AS tuples_fetched,
        ix.indisprimary AS is_primary_key,
        ix.indisunique AS is_unique,
        (ix.indpred IS NOT NULL) AS is_partial,
        (0 = ANY(ix.indkey::int2[])) AS has_expressions,
        pg_get_indexdef(s.indexrelid) AS definition,
        ord.ordinality,
        a.attname::text AS column_name
    FROM pg_stat_user_indexes s
    JOIN pg_index ix ON ix.indexrelid = s.indexrelid
    LEFT JOIN LATERAL unnest(ix.indkey::int2[]) WITH ORDINALITY AS ord(attnum, ordinality)
        ON ord.ordinality <= ix.indnkeyatts
    LEFT JOIN pg_attribute a
        ON a.attrelid = ix.indrelid
        AND a.attnum = ord.attnum
        AND ord.attnum > 0
    WHERE s.schemaname = $1
)
SELECT
    schema_name,
    table_name,
    index_name,
    size_bytes,
    scan_count,
    tuples_read,
    tuples_fetched,
    is_primary_key,
    is_unique,
    is_partial,
    has_expressions,
    definition,
    ARRAY_REMOVE(ARRAY_AGG(column_name ORDER BY ordinality), NULL) AS columns
FROM expanded
GROUP BY schema_name, table_name, index_name, size_bytes, scan_count, tuples_read,
         tuples_fetched, is_primary_key, is_unique, is_partial, has_expressions, definition
ORDER BY table_name, index_name
"""

_CONSTRAINTS_SQL = """
WITH expanded AS (
    SELECT
        n.nspname AS schema_name,
        t.relname AS table_name,
        c.conname AS constraint_name,
        c.contype::text AS contype,
        CASE WHEN c.contype = 'f' THEN c.confrelid::regclass::text END AS referenced_table,
        pg_total_relation_size(t.oid)::bigint AS table_size_bytes,
        ord.ordinality,
        a.attname::text AS column_name
    FROM pg_constraint c
    JOIN pg_class t ON t.oid = c.conrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    LEFT JOIN LATERAL unnest(c.conkey) WITH ORDINALITY AS ord(attnum, ordinality)
        ON TRUE
    LEFT JOIN pg_attribute a
        ON a.attrelid = t.oid
        AND a.attnum = ord.attnum
    WHERE n.nspname = $1
      AND c.contype IN ('c', 'f', 'u', 'x')
)
SELECT
    schema_name,
    table_name,
    constraint_name,
    contype,
    referenced_table,
    table_size_bytes,
    ARRAY_REMOVE(ARRAY_AGG(column_name ORDER BY ordinality), NULL) AS columns
FROM expanded
GROUP BY schema_name, table_name, constraint_name, contype, referenced_table, table_size_bytes
ORDER BY table_name, constraint_name
"""
