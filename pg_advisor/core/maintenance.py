"""
Size-tiered REINDEX maintenance plan.

Tiers by index size (strictly greater than the threshold):
  - high    REINDEX INDEX CONCURRENTLY during a weekend maintenance window
  - medium  plain REINDEX INDEX during off-peak hours
Smaller indexes need no action and are left out of the plan.

The plan is advisory: its commands are reported, never executed.
"""
from typing import Iterable, List, Optional

from pg_advisor.core.statements import render_reindex
from pg_advisor.models.catalog import IndexStat
from pg_advisor.models.options import RunOptions
from pg_advisor.models.report import MaintenanceItem, MaintenanceTier


_TIER_ACTION = {
    MaintenanceTier.HIGH: "REINDEX CONCURRENTLY during maintenance window",
    MaintenanceTier.MEDIUM: "Schedule REINDEX during low-traffic period",
}

_TIER_WINDOW = {
    MaintenanceTier.HIGH: "Weekend maintenance window",
    MaintenanceTier.MEDIUM: "Off-peak hours",
}

_TIER_ORDER = {MaintenanceTier.HIGH: 0, MaintenanceTier.MEDIUM: 1}


def tier_for(index: IndexStat, options: RunOptions) -> Optional[MaintenanceTier]:
    if index.size_bytes > options.reindex_high_size_bytes:
        return MaintenanceTier.HIGH
    if index.size_bytes > options.reindex_medium_size_bytes:
        return MaintenanceTier.MEDIUM
    return None


def plan_maintenance(indexes: Iterable[IndexStat], options: Optional[RunOptions] = None) -> List[MaintenanceItem]:
    """High tier first, then largest first within a tier."""
    options = options or RunOptions()
    items: List[MaintenanceItem] = []
    for index in indexes:
        tier = tier_for(index, options)
        if tier is None:
            continue
        items.append(
            MaintenanceItem(
                schema_table=index.schema_table,
                index_name=index.index_name,
                size_bytes=index.size_bytes,
                tier=tier,
                recommended_action=_TIER_ACTION[tier],
                command=render_reindex(
                    index.schema,
                    index.index_name,
                    concurrently=tier == MaintenanceTier.HIGH,
                ),
                maintenance_window=_TIER_WINDOW[tier],
            )
        )
    items.sort(key=lambda i: (_TIER_ORDER[i.tier], -i.size_bytes, i.schema_table, i.index_name))
    return items
