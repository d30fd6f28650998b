"""
Execution gate for corrective statements.

With apply=False (the default) nothing is sent to the connection and every
finding comes back as ``not_executed``. With apply=True each statement runs
in priority order inside its own transaction; a failure is recorded on that
finding and the queue continues. Earlier successes are never rolled back.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

from pg_advisor.core.errors import ExecutionError, StatementValidationError
from pg_advisor.core.rule_engine import finding_sort_key
from pg_advisor.core.sql_exec import DDLExecutor
from pg_advisor.core.statement_guard import StatementGuard
from pg_advisor.core.statements import render_statement
from pg_advisor.models.finding import ExecutionStatus, Finding, FindingCategory, FindingExecution
from pg_advisor.smart_logger import SmartLogger


async def apply_findings(
    conn: Any,
    findings: Iterable[Finding],
    *,
    apply: bool = False,
    categories: Optional[Iterable[FindingCategory]] = None,
    executor: Optional[DDLExecutor] = None,
    guard: Optional[StatementGuard] = None,
) -> List[FindingExecution]:
    ordered = sorted(findings, key=finding_sort_key)

    if not apply:
        return [
            FindingExecution(
                finding=f,
                status=ExecutionStatus.NOT_EXECUTED,
                statement=_render_or_none(f),
            )
            for f in ordered
        ]

    allowed = set(categories) if categories is not None else None
    executor = executor or DDLExecutor()
    guard = guard or StatementGuard()

    results: List[FindingExecution] = []
    for finding in ordered:
        if finding.corrective_statement is None:
            results.append(FindingExecution(finding=finding, status=ExecutionStatus.SKIPPED))
            continue

        if allowed is not None and finding.category not in allowed:
            results.append(
                FindingExecution(finding=finding, status=ExecutionStatus.SKIPPED, statement=_render_or_none(finding))
            )
            continue

        sql = None
        try:
            sql = render_statement(finding.corrective_statement)
            guard.validate(sql)
            await executor.execute_ddl(conn, sql)
        except (ValueError, ExecutionError, StatementValidationError) as exc:
            SmartLogger.log(
                "ERROR",
                "advisor.apply.failed",
                category="advisor.apply",
                params={"category": finding.category.value, "statement": sql, "error": str(exc)},
            )
            results.append(
                FindingExecution(
                    finding=finding,
                    status=ExecutionStatus.FAILED,
                    statement=sql,
                    error=f"{type(exc).__name__}: {exc}",
                )
            )
            continue

        SmartLogger.log(
            "INFO",
            "advisor.apply.executed",
            category="advisor.apply",
            params={"category": finding.category.value, "statement": sql},
        )
        results.append(FindingExecution(finding=finding, status=ExecutionStatus.EXECUTED, statement=sql))

    return results


def _render_or_none(finding: Finding) -> Optional[str]:
    # a malformed statement surfaces as a failure on apply, not here
    if finding.corrective_statement is None:
        return None
    try:
        return render_statement(finding.corrective_statement)
    except ValueError:
        return None
