"""Base classes and interfaces for catalog readers."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List

from pg_advisor.core.errors import CatalogPermissionError
from pg_advisor.models.catalog import CatalogSnapshot


class CatalogReader(ABC):
    """Abstract base class for database-specific catalog readers."""

    @abstractmethod
    async def read_snapshot(
        self,
        conn: Any,
        schemas: Iterable[str],
    ) -> CatalogSnapshot:
        """Collect index statistics and constraints for the given schemas.

        Args:
            conn: Active database connection/handle. Only read queries are issued.
            schemas: Schema names to inspect. Other schemas are never read.

        Returns:
            CatalogSnapshot. Schemas the role cannot read are listed in
            ``denied_schemas``; schemas that do not exist in ``missing_schemas``.

        Raises:
            CatalogConnectionError: if the connection is unusable.
        """
        pass

    async def read_snapshot_or_raise(
        self,
        conn: Any,
        schemas: Iterable[str],
    ) -> CatalogSnapshot:
        """Like read_snapshot, but fail when no requested schema was readable
        because of missing privileges."""
        snapshot = await self.read_snapshot(conn, schemas)
        if snapshot.denied_schemas and not snapshot.readable_schemas:
            denied: List[str] = [d.schema for d in snapshot.denied_schemas]
            raise CatalogPermissionError(
                f"Permission denied on every requested schema: {', '.join(denied)}",
                schemas=denied,
            )
        return snapshot
