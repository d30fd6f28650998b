"""
Index advisor rule engine.

Pure evaluation of a CatalogSnapshot into an ordered list of Findings.
No I/O happens here; identical snapshots always yield identical output.

Rules (priority):
  1. unused_index       scan_count == 0, not a primary key, size >= min_unused_size_bytes
  2. missing_fk_index   foreign key columns not covered by the leading columns of an index
  2. redundant_index    columns equal to, or an ordered prefix of, another index's columns
  3. large_rarely_used  0 < scan_count < rarely_used_max_scans, size > large_size_bytes
"""
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pg_advisor.core import statements
from pg_advisor.core.selectivity import describe_ratio, selectivity_ratio
from pg_advisor.models.catalog import CatalogSnapshot, ConstraintInfo, IndexStat
from pg_advisor.models.finding import CATEGORY_PRIORITY, Finding, FindingCategory
from pg_advisor.models.options import RunOptions


_CATEGORY_ORDER = {
    FindingCategory.UNUSED_INDEX: 0,
    FindingCategory.MISSING_FK_INDEX: 1,
    FindingCategory.REDUNDANT_INDEX: 2,
    FindingCategory.LARGE_RARELY_USED: 3,
}


def format_size(size_bytes: int) -> str:
    """Human-readable size in binary units (1 MB = 1024 * 1024 bytes)."""
    if size_bytes < 1024:
        return f"{size_bytes} bytes"
    value = float(size_bytes)
    for unit in ("kB", "MB", "GB", "TB"):
        value /= 1024
        if value < 1024 or unit == "TB":
            return f"{value:.1f} {unit}"
    return f"{size_bytes} bytes"


def evaluate(snapshot: CatalogSnapshot, options: Optional[RunOptions] = None) -> List[Finding]:
    """Run every rule over the snapshot and return findings in report order."""
    options = options or RunOptions()

    findings: List[Finding] = []
    findings.extend(find_unused_indexes(snapshot.indexes, options))
    already_dropped = {(f.schema_table, f.object_name) for f in findings}
    findings.extend(find_missing_fk_indexes(snapshot))
    findings.extend(find_redundant_indexes(snapshot.indexes, skip=already_dropped))
    findings.extend(find_large_rarely_used(snapshot.indexes, options))

    return sorted(findings, key=finding_sort_key)


def finding_sort_key(finding: Finding) -> Tuple:
    return (
        int(finding.priority),
        -finding.size_bytes,
        _CATEGORY_ORDER[finding.category],
        finding.schema_table,
        finding.object_name,
    )


def _finding(category: FindingCategory, **fields) -> Finding:
    return Finding(category=category, priority=CATEGORY_PRIORITY[category], **fields)


def find_unused_indexes(indexes: Iterable[IndexStat], options: RunOptions) -> List[Finding]:
    results: List[Finding] = []
    for index in indexes:
        if index.scan_count != 0 or index.is_primary_key:
            continue
        if index.size_bytes < options.min_unused_size_bytes:
            continue
        size = format_size(index.size_bytes)
        results.append(
            _finding(
                FindingCategory.UNUSED_INDEX,
                schema_table=index.schema_table,
                object_name=index.index_name,
                description=f"Index {index.index_name} has never been used ({size})",
                recommended_action="Drop unused index to save space and maintenance overhead",
                corrective_statement=statements.drop_index(index.schema, index.index_name),
                estimated_impact=f"HIGH - Immediate space savings ({size})",
                size_bytes=index.size_bytes,
            )
        )
    return results


def is_covering(index: IndexStat, columns: Tuple[str, ...]) -> bool:
    """True when the index's leading key columns are exactly the given column set."""
    if index.is_partial or index.has_expressions or not columns:
        return False
    width = len(columns)
    if len(index.columns) < width:
        return False
    return set(index.columns[:width]) == set(columns)


def find_missing_fk_indexes(snapshot: CatalogSnapshot) -> List[Finding]:
    results: List[Finding] = []
    # index names are unique per schema; suggested names must not collide with
    # existing indexes or with each other
    taken: Dict[str, Set[str]] = {}
    for index in snapshot.indexes:
        taken.setdefault(index.schema, set()).add(index.index_name)
    for fk in snapshot.foreign_keys():
        if not fk.columns:
            continue
        candidates = snapshot.indexes_for(fk.schema, fk.table)
        if any(is_covering(index, fk.columns) for index in candidates):
            continue
        schema_taken = taken.setdefault(fk.schema, set())
        index_name = statements.available_index_name(fk.table, fk.columns, schema_taken)
        schema_taken.add(index_name)
        results.append(_missing_fk_finding(fk, index_name))
    return results


def _missing_fk_finding(fk: ConstraintInfo, index_name: str) -> Finding:
    cols = ", ".join(fk.columns)
    target = f" referencing {fk.referenced_table}" if fk.referenced_table else ""
    noun = "column" if len(fk.columns) == 1 else "columns"
    return _finding(
        FindingCategory.MISSING_FK_INDEX,
        schema_table=fk.schema_table,
        object_name=fk.constraint_name,
        description=f"Foreign key {fk.constraint_name}{target} lacks an index on {noun} ({cols})",
        recommended_action="Create index on foreign key columns for better JOIN performance",
        corrective_statement=statements.create_index(fk.schema, fk.table, fk.columns, index_name=index_name),
        estimated_impact="HIGH - Significant JOIN improvement",
        size_bytes=fk.table_size_bytes,
    )


def _keeper_rank(index: IndexStat) -> Tuple:
    # lower ranks are kept over higher ones among exact duplicates
    return (not index.is_primary_key, not index.is_unique, index.index_name)


def _redundant_over(victim: IndexStat, keeper: IndexStat) -> bool:
    """True when dropping ``victim`` loses nothing that ``keeper`` does not provide."""
    if victim.is_primary_key:
        return False
    if victim.columns == keeper.columns:
        if victim.is_unique and not keeper.is_unique:
            return False
        return _keeper_rank(keeper) < _keeper_rank(victim)
    if len(victim.columns) < len(keeper.columns) and keeper.columns[: len(victim.columns)] == victim.columns:
        # a shorter unique index enforces a stronger constraint than the longer one
        return not victim.is_unique
    return False


def find_redundant_indexes(
    indexes: Iterable[IndexStat],
    skip: Optional[Set[Tuple[str, str]]] = None,
) -> List[Finding]:
    skip = skip or set()
    by_table: Dict[Tuple[str, str], List[IndexStat]] = {}
    for index in indexes:
        if index.is_partial or index.has_expressions or not index.columns:
            continue
        by_table.setdefault((index.schema, index.table), []).append(index)

    results: List[Finding] = []
    for key in sorted(by_table):
        table_indexes = sorted(by_table[key], key=lambda i: i.index_name)
        for victim in table_indexes:
            if (victim.schema_table, victim.index_name) in skip:
                continue
            keeper = next(
                (
                    other
                    for other in table_indexes
                    if other is not victim
                    and (other.schema_table, other.index_name) not in skip
                    and _redundant_over(victim, other)
                ),
                None,
            )
            if keeper is not None:
                results.append(_redundant_finding(victim, keeper))
    return results


def _redundant_finding(victim: IndexStat, keeper: IndexStat) -> Finding:
    victim_cols = ", ".join(victim.columns)
    size = format_size(victim.size_bytes)
    if victim.columns == keeper.columns:
        description = f"Index {victim.index_name} duplicates {keeper.index_name} on ({victim_cols})"
    else:
        keeper_cols = ", ".join(keeper.columns)
        description = (
            f"Index {victim.index_name} ({victim_cols}) is a prefix of "
            f"{keeper.index_name} ({keeper_cols})"
        )
    if keeper.definition:
        description += f"; kept: {keeper.definition}"
    return _finding(
        FindingCategory.REDUNDANT_INDEX,
        schema_table=victim.schema_table,
        object_name=victim.index_name,
        description=description,
        recommended_action=f"Consider dropping {victim.index_name} as {keeper.index_name} covers its columns",
        corrective_statement=statements.drop_index(victim.schema, victim.index_name),
        estimated_impact=f"MEDIUM - Space savings ({size}) and cheaper writes",
        size_bytes=victim.size_bytes,
    )


def find_large_rarely_used(indexes: Iterable[IndexStat], options: RunOptions) -> List[Finding]:
    results: List[Finding] = []
    for index in indexes:
        if index.is_primary_key:
            continue
        if not (0 < index.scan_count < options.rarely_used_max_scans):
            continue
        if index.size_bytes <= options.large_size_bytes:
            continue
        size = format_size(index.size_bytes)
        ratio = describe_ratio(selectivity_ratio(index))
        results.append(
            _finding(
                FindingCategory.LARGE_RARELY_USED,
                schema_table=index.schema_table,
                object_name=index.index_name,
                description=(
                    f"Large index {index.index_name} ({size}) used only {index.scan_count} times; "
                    f"selectivity: {ratio}"
                ),
                recommended_action="Review if index is still needed or can be optimized",
                corrective_statement=None,
                estimated_impact="MEDIUM - Space optimization",
                size_bytes=index.size_bytes,
            )
        )
    return results
