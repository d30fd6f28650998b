# python -m pytest pg_advisor/tests/core/test_maintenance.py -v

"""Tests for the size-tiered REINDEX maintenance plan."""

from pg_advisor.core.maintenance import plan_maintenance
from pg_advisor.models.catalog import IndexStat
from pg_advisor.models.options import RunOptions
from pg_advisor.models.report import MaintenanceTier


def _index(name, size, schema="commerce", table="orders"):
    return IndexStat(schema=schema, table=table, index_name=name, size_bytes=size, scan_count=10)


def test_small_indexes_are_left_out():
    assert plan_maintenance([_index("idx_small", 10_000_000)]) == []


def test_tiers_and_commands():
    plan = plan_maintenance(
        [
            _index("idx_medium", 50_000_000),
            _index("idx_huge", 200_000_000),
        ]
    )

    assert [(m.index_name, m.tier) for m in plan] == [
        ("idx_huge", MaintenanceTier.HIGH),
        ("idx_medium", MaintenanceTier.MEDIUM),
    ]
    assert plan[0].command == 'REINDEX INDEX CONCURRENTLY "commerce"."idx_huge";'
    assert plan[0].maintenance_window == "Weekend maintenance window"
    assert plan[1].command == 'REINDEX INDEX "commerce"."idx_medium";'
    assert plan[1].maintenance_window == "Off-peak hours"


def test_boundaries_are_exclusive():
    plan = plan_maintenance([_index("idx_at_high", 100_000_000), _index("idx_at_medium", 10_000_000)])

    assert [(m.index_name, m.tier) for m in plan] == [("idx_at_high", MaintenanceTier.MEDIUM)]


def test_larger_index_first_within_a_tier():
    plan = plan_maintenance([_index("idx_a", 20_000_000), _index("idx_b", 80_000_000)])

    assert [m.index_name for m in plan] == ["idx_b", "idx_a"]


def test_tiers_are_configurable():
    options = RunOptions(reindex_high_size_bytes=5_000, reindex_medium_size_bytes=1_000)

    plan = plan_maintenance([_index("idx_a", 8_192), _index("idx_b", 2_048), _index("idx_c", 512)], options)

    assert [(m.index_name, m.tier) for m in plan] == [
        ("idx_a", MaintenanceTier.HIGH),
        ("idx_b", MaintenanceTier.MEDIUM),
    ]
