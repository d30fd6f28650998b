"""Index selectivity analysis (fetched / read tuples)."""
from typing import Iterable, List, Optional

from pg_advisor.models.catalog import IndexStat
from pg_advisor.models.options import RunOptions
from pg_advisor.models.report import IndexSelectivity, SelectivityRating


NO_DATA = "no data"


def selectivity_ratio(index: IndexStat) -> Optional[float]:
    """None when the index has never read a tuple."""
    if index.tuples_read == 0:
        return None
    return round(index.tuples_fetched / index.tuples_read, 4)


def describe_ratio(ratio: Optional[float]) -> str:
    return NO_DATA if ratio is None else f"{ratio:.4f}"


def rate(index: IndexStat, options: RunOptions) -> SelectivityRating:
    if index.scan_count == 0:
        return SelectivityRating.UNUSED
    ratio = selectivity_ratio(index)
    if ratio is None:
        return SelectivityRating.NO_DATA
    if ratio > options.poor_selectivity_ratio:
        return SelectivityRating.POOR
    if ratio > options.fair_selectivity_ratio:
        return SelectivityRating.FAIR
    return SelectivityRating.GOOD


def analyze_selectivity(indexes: Iterable[IndexStat], options: RunOptions) -> List[IndexSelectivity]:
    entries = [
        IndexSelectivity(
            schema_table=index.schema_table,
            index_name=index.index_name,
            scan_count=index.scan_count,
            tuples_read=index.tuples_read,
            tuples_fetched=index.tuples_fetched,
            selectivity_ratio=selectivity_ratio(index),
            rating=rate(index, options),
        )
        for index in indexes
    ]
    # unused first, then worst ratio first; no-data entries after rated ones
    entries.sort(
        key=lambda e: (
            e.rating != SelectivityRating.UNUSED,
            e.selectivity_ratio is None,
            -(e.selectivity_ratio or 0.0),
            e.schema_table,
            e.index_name,
        )
    )
    return entries
