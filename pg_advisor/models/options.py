"""Run options for a single advisor run"""
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

from pg_advisor.models.finding import FindingCategory


class RunOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    dry_run: bool = True
    min_unused_size_bytes: int = Field(default=1_048_576, ge=0)
    large_size_bytes: int = Field(default=10_485_760, ge=0)
    rarely_used_max_scans: int = Field(default=100, ge=1)
    poor_selectivity_ratio: float = Field(default=0.01, ge=0)
    fair_selectivity_ratio: float = Field(default=0.001, ge=0)
    # REINDEX tiers of the maintenance plan, decimal bytes
    reindex_high_size_bytes: int = Field(default=100_000_000, ge=0)
    reindex_medium_size_bytes: int = Field(default=10_000_000, ge=0)
    # None applies every category that carries a statement
    apply_categories: Optional[FrozenSet[FindingCategory]] = None

    @classmethod
    def from_settings(cls, settings, **overrides) -> "RunOptions":
        values = {
            "dry_run": settings.advisor_dry_run,
            "min_unused_size_bytes": settings.advisor_min_unused_size_bytes,
            "large_size_bytes": settings.advisor_large_size_bytes,
            "rarely_used_max_scans": settings.advisor_rarely_used_max_scans,
            "poor_selectivity_ratio": settings.advisor_poor_selectivity_ratio,
            "fair_selectivity_ratio": settings.advisor_fair_selectivity_ratio,
            "reindex_high_size_bytes": settings.advisor_reindex_high_size_bytes,
            "reindex_medium_size_bytes": settings.advisor_reindex_medium_size_bytes,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
