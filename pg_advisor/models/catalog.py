"""Read-only catalog records produced by the catalog reader."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


CONSTRAINT_TYPES = {
    "c": "check",
    "f": "foreign_key",
    "u": "unique",
    "x": "exclusion",
}


@dataclass(frozen=True)
class IndexStat:
    """Usage statistics and shape of a single index."""

    schema: str
    table: str
    index_name: str
    size_bytes: int = 0
    scan_count: int = 0
    tuples_read: int = 0
    tuples_fetched: int = 0
    is_primary_key: bool = False
    columns: Tuple[str, ...] = ()
    is_unique: bool = False
    is_partial: bool = False
    has_expressions: bool = False
    definition: str = ""

    @property
    def schema_table(self) -> str:
        return f"{self.schema}.{self.table}"


@dataclass(frozen=True)
class ConstraintInfo:
    """A check, foreign key, unique or exclusion constraint."""

    schema: str
    table: str
    constraint_name: str
    constraint_type: str
    columns: Tuple[str, ...] = ()
    referenced_table: Optional[str] = None
    table_size_bytes: int = 0

    @property
    def schema_table(self) -> str:
        return f"{self.schema}.{self.table}"


@dataclass(frozen=True)
class SchemaAccessDenial:
    schema: str
    reason: str


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything the rule engine sees for one run."""

    schemas: Tuple[str, ...] = ()
    indexes: Tuple[IndexStat, ...] = ()
    constraints: Tuple[ConstraintInfo, ...] = ()
    denied_schemas: Tuple[SchemaAccessDenial, ...] = ()
    missing_schemas: Tuple[str, ...] = ()

    @property
    def readable_schemas(self) -> List[str]:
        blocked = {d.schema for d in self.denied_schemas} | set(self.missing_schemas)
        return [s for s in self.schemas if s not in blocked]

    def indexes_for(self, schema: str, table: str) -> List[IndexStat]:
        return [i for i in self.indexes if i.schema == schema and i.table == table]

    def foreign_keys(self) -> List[ConstraintInfo]:
        return [c for c in self.constraints if c.constraint_type == "foreign_key"]


@dataclass
class SnapshotBuilder:
    """Mutable accumulator the reader fills schema by schema."""

    schemas: List[str] = field(default_factory=list)
    indexes: List[IndexStat] = field(default_factory=list)
    constraints: List[ConstraintInfo] = field(default_factory=list)
    denied_schemas: List[SchemaAccessDenial] = field(default_factory=list)
    missing_schemas: List[str] = field(default_factory=list)

    def build(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            schemas=tuple(self.schemas),
            indexes=tuple(self.indexes),
            constraints=tuple(self.constraints),
            denied_schemas=tuple(self.denied_schemas),
            missing_schemas=tuple(self.missing_schemas),
        )
