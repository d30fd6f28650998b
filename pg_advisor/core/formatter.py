"""Report rendering: text, JSON and SQL script. Pure functions over the report."""
from typing import Iterable, List

from tabulate import tabulate

from pg_advisor.core.rule_engine import format_size
from pg_advisor.core.selectivity import describe_ratio
from pg_advisor.core.statements import render_statement
from pg_advisor.models.finding import Finding
from pg_advisor.models.report import AdvisorReport


def _section(title: str) -> List[str]:
    return ["", title, "-" * len(title)]


def corrective_statements(findings: Iterable[Finding]) -> List[str]:
    """Rendered SQL of every finding that carries a statement, in finding order."""
    return [render_statement(f.corrective_statement) for f in findings if f.corrective_statement is not None]


def render_sql_script(findings: Iterable[Finding]) -> str:
    lines: List[str] = []
    for f in findings:
        if f.corrective_statement is None:
            continue
        lines.append(f"-- [{int(f.priority)}] {f.category.value}: {f.schema_table}")
        lines.append(render_statement(f.corrective_statement))
    return "\n".join(lines) + ("\n" if lines else "")


def format_json_report(report: AdvisorReport) -> str:
    return report.model_dump_json(indent=2)


def format_text_report(report: AdvisorReport) -> str:
    lines: List[str] = [
        "Index Advisor Report",
        "====================",
        f"Generated: {report.generated_at.isoformat()}",
        f"Schemas:   {', '.join(report.schemas) or '-'}",
        f"Mode:      {'dry run' if report.dry_run else 'apply'}",
    ]

    if report.summaries:
        lines += _section("Schema summary")
        lines.append(
            tabulate(
                [
                    [s.schema_name, s.index_count, s.unused_index_count, s.constraint_count, s.foreign_key_count]
                    for s in report.summaries
                ],
                headers=["schema", "indexes", "unused", "constraints", "foreign keys"],
                tablefmt="psql",
            )
        )

    lines += _section(f"Findings ({len(report.findings)})")
    if not report.findings:
        lines.append("No findings.")
    else:
        lines.append(
            tabulate(
                [
                    [n, int(f.priority), f.category.value, f.schema_table, f.object_name, f.estimated_impact]
                    for n, f in enumerate(report.findings, 1)
                ],
                headers=["#", "priority", "category", "table", "object", "impact"],
                tablefmt="psql",
            )
        )
        for n, f in enumerate(report.findings, 1):
            lines.append("")
            lines.append(f"{n}. [P{int(f.priority)}] {f.category.value} {f.schema_table}")
            lines.append(f"   {f.description}")
            lines.append(f"   Action: {f.recommended_action}")
            if f.corrective_statement is not None:
                lines.append(f"   Statement: {render_statement(f.corrective_statement)}")

    if report.denied_schemas:
        lines += _section("Permission denied")
        lines.extend(f"  {d.schema}: {d.reason}" for d in report.denied_schemas)

    if report.missing_schemas:
        lines += _section("Missing schemas")
        lines.extend(f"  {s}" for s in report.missing_schemas)

    if report.selectivity:
        lines += _section("Index selectivity")
        lines.append(
            tabulate(
                [
                    [e.schema_table, e.index_name, e.scan_count, e.tuples_read, e.tuples_fetched,
                     describe_ratio(e.selectivity_ratio), e.rating.value]
                    for e in report.selectivity
                ],
                headers=["table", "index", "scans", "read", "fetched", "ratio", "rating"],
                tablefmt="psql",
            )
        )

    if report.maintenance:
        lines += _section("Maintenance plan")
        lines.append(
            tabulate(
                [
                    [m.tier.value, m.schema_table, m.index_name, format_size(m.size_bytes), m.command, m.maintenance_window]
                    for m in report.maintenance
                ],
                headers=["tier", "table", "index", "size", "command", "window"],
                tablefmt="psql",
            )
        )

    if report.executions:
        lines += _section("Execution")
        lines.append(
            tabulate(
                [
                    [n, e.finding.category.value, e.finding.object_name, e.status.value, e.error or ""]
                    for n, e in enumerate(report.executions, 1)
                ],
                headers=["#", "category", "object", "status", "error"],
                tablefmt="psql",
            )
        )

    return "\n".join(lines) + "\n"
