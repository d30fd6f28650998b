"""Report models returned by a run."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pg_advisor.models.catalog import SchemaAccessDenial
from pg_advisor.models.finding import Finding, FindingExecution


class RunState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    EVALUATING = "evaluating"
    REPORTING = "reporting"
    APPLYING = "applying"
    DONE = "done"


class SelectivityRating(str, Enum):
    UNUSED = "unused"
    NO_DATA = "no_data"
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"


class IndexSelectivity(BaseModel):
    schema_table: str
    index_name: str
    scan_count: int
    tuples_read: int
    tuples_fetched: int
    selectivity_ratio: Optional[float] = None   # None when tuples_read == 0
    rating: SelectivityRating


class MaintenanceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class MaintenanceItem(BaseModel):
    """One REINDEX entry of the size-tiered maintenance plan."""

    schema_table: str
    index_name: str
    size_bytes: int
    tier: MaintenanceTier
    recommended_action: str
    command: str
    maintenance_window: str


class SchemaSummary(BaseModel):
    schema_name: str
    index_count: int = 0
    constraint_count: int = 0
    foreign_key_count: int = 0
    unused_index_count: int = 0


class AdvisorReport(BaseModel):
    """Result of one advisor run"""

    schemas: List[str]
    dry_run: bool = True
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    findings: List[Finding] = []
    denied_schemas: List[SchemaAccessDenial] = []
    missing_schemas: List[str] = []
    selectivity: List[IndexSelectivity] = []
    summaries: List[SchemaSummary] = []
    maintenance: List[MaintenanceItem] = []
    executions: List[FindingExecution] = []
    states: List[RunState] = []

    @property
    def failed_executions(self) -> List[FindingExecution]:
        return [e for e in self.executions if not e.ok]
