"""
Finding models - typed output of the rule engine

Finding categories:
  - unused_index: never scanned, large enough to matter -> drop
  - missing_fk_index: foreign key columns without a covering index -> create
  - redundant_index: same columns or ordered prefix of another index -> drop
  - large_rarely_used: big index with only a handful of scans -> manual review

Findings are immutable. Corrective statements are kept as structured data
(action + identifiers) and rendered to SQL only by core.statements.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FindingCategory(str, Enum):
    UNUSED_INDEX = "unused_index"
    MISSING_FK_INDEX = "missing_fk_index"
    REDUNDANT_INDEX = "redundant_index"
    LARGE_RARELY_USED = "large_rarely_used"


class Priority(int, Enum):
    HIGH = 1
    MEDIUM = 2
    LOW = 3


CATEGORY_PRIORITY = {
    FindingCategory.UNUSED_INDEX: Priority.HIGH,
    FindingCategory.MISSING_FK_INDEX: Priority.MEDIUM,
    FindingCategory.REDUNDANT_INDEX: Priority.MEDIUM,
    FindingCategory.LARGE_RARELY_USED: Priority.LOW,
}


class StatementAction(str, Enum):
    DROP_INDEX = "drop_index"
    CREATE_INDEX = "create_index"


class CorrectiveStatement(BaseModel):
    """A corrective DDL statement as data; nothing here touches a database."""

    model_config = ConfigDict(frozen=True)

    action: StatementAction
    schema_name: str
    index_name: str
    table_name: Optional[str] = None      # create_index only
    columns: Tuple[str, ...] = ()         # create_index only


class Finding(BaseModel):
    """A single advisor recommendation"""

    model_config = ConfigDict(frozen=True)

    category: FindingCategory
    priority: Priority
    schema_table: str                     # schema.table
    object_name: str                      # index or constraint the finding is about
    description: str
    recommended_action: str
    corrective_statement: Optional[CorrectiveStatement] = None
    estimated_impact: str = ""
    size_bytes: int = Field(default=0, ge=0)


class ExecutionStatus(str, Enum):
    NOT_EXECUTED = "not_executed"
    EXECUTED = "executed"
    FAILED = "failed"
    SKIPPED = "skipped"


class FindingExecution(BaseModel):
    """Outcome of the execution gate for one finding."""

    model_config = ConfigDict(frozen=True)

    finding: Finding
    status: ExecutionStatus
    statement: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ExecutionStatus.FAILED
