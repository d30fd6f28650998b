"""
Advisor run orchestration.

State machine for a run:

    Idle -> Reading(catalog) -> Evaluating(rules) -> Reporting -> [Applying] -> Done

Applying is skipped entirely for dry runs. A connection failure while
reading aborts the run before any finding exists.
"""
from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional

from pg_advisor.catalog import CatalogReader, get_catalog_reader
from pg_advisor.config import Settings
from pg_advisor.core import rule_engine
from pg_advisor.core.execution_gate import apply_findings
from pg_advisor.core.maintenance import plan_maintenance
from pg_advisor.core.selectivity import analyze_selectivity
from pg_advisor.deps import connect_target_db
from pg_advisor.models.catalog import CatalogSnapshot
from pg_advisor.models.options import RunOptions
from pg_advisor.models.report import AdvisorReport, RunState, SchemaSummary
from pg_advisor.smart_logger import SmartLogger


def summarize_schemas(snapshot: CatalogSnapshot) -> List[SchemaSummary]:
    summaries: List[SchemaSummary] = []
    for schema in snapshot.readable_schemas:
        indexes = [i for i in snapshot.indexes if i.schema == schema]
        constraints = [c for c in snapshot.constraints if c.schema == schema]
        summaries.append(
            SchemaSummary(
                schema_name=schema,
                index_count=len(indexes),
                constraint_count=len(constraints),
                foreign_key_count=sum(1 for c in constraints if c.constraint_type == "foreign_key"),
                unused_index_count=sum(1 for i in indexes if i.scan_count == 0 and not i.is_primary_key),
            )
        )
    return summaries


class _StateTracker:
    def __init__(self):
        self.states: List[RunState] = [RunState.IDLE]

    def enter(self, state: RunState) -> None:
        self.states.append(state)
        SmartLogger.log("DEBUG", f"advisor.run.{state.value}", category="advisor.run")


async def run_advisor(
    conn: Any,
    schemas: Iterable[str],
    options: Optional[RunOptions] = None,
    *,
    reader: Optional[CatalogReader] = None,
    require_access: bool = False,
) -> AdvisorReport:
    """
    Run one advisor pass over ``schemas`` using an already-open connection.

    Args:
        conn: asyncpg-compatible connection (fetch / execute / transaction).
        schemas: schema names to analyze.
        options: thresholds and the dry-run flag; defaults to a dry run.
        reader: catalog reader; defaults to the PostgreSQL reader.
        require_access: raise CatalogPermissionError when no schema is readable.

    Raises:
        CatalogConnectionError: the connection failed during the catalog read.
        CatalogPermissionError: only with require_access=True.
    """
    options = options or RunOptions()
    reader = reader or get_catalog_reader("postgresql")
    tracker = _StateTracker()
    started = time.perf_counter()

    tracker.enter(RunState.READING)
    if require_access:
        snapshot = await reader.read_snapshot_or_raise(conn, schemas)
    else:
        snapshot = await reader.read_snapshot(conn, schemas)

    tracker.enter(RunState.EVALUATING)
    findings = rule_engine.evaluate(snapshot, options)
    selectivity = analyze_selectivity(snapshot.indexes, options)
    maintenance = plan_maintenance(snapshot.indexes, options)

    tracker.enter(RunState.REPORTING)
    report = AdvisorReport(
        schemas=list(snapshot.schemas),
        dry_run=options.dry_run,
        findings=findings,
        denied_schemas=list(snapshot.denied_schemas),
        missing_schemas=list(snapshot.missing_schemas),
        selectivity=selectivity,
        summaries=summarize_schemas(snapshot),
        maintenance=maintenance,
    )

    if not options.dry_run:
        tracker.enter(RunState.APPLYING)
    executions = await apply_findings(
        conn,
        findings,
        apply=not options.dry_run,
        categories=options.apply_categories,
    )

    tracker.enter(RunState.DONE)
    report = report.model_copy(update={"executions": executions, "states": list(tracker.states)})

    SmartLogger.log(
        "INFO",
        "advisor.run.done",
        category="advisor.run",
        params={
            "schemas": report.schemas,
            "findings": len(report.findings),
            "dry_run": report.dry_run,
            "failed": len(report.failed_executions),
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return report


async def run_advisor_from_settings(
    cfg: Settings,
    schemas: Optional[Iterable[str]] = None,
    options: Optional[RunOptions] = None,
    *,
    require_access: bool = False,
) -> AdvisorReport:
    """Acquire a scoped connection from settings, run, and release it."""
    schema_list = list(schemas) if schemas is not None else cfg.schema_list()
    options = options or RunOptions.from_settings(cfg)
    reader = get_catalog_reader(cfg.target_db_type)

    async with connect_target_db(cfg) as conn:
        return await run_advisor(
            conn,
            schema_list,
            options,
            reader=reader,
            require_access=require_access,
        )
