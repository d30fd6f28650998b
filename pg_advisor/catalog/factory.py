"""Catalog reader lookup by database type."""

from typing import Optional

from pg_advisor.catalog.base import CatalogReader
from pg_advisor.catalog.postgresql import PostgreSQLCatalogReader


_POSTGRES_TYPES = frozenset({"postgresql", "postgres"})

_reader: Optional[CatalogReader] = None


def get_catalog_reader(db_type: str = "postgresql") -> CatalogReader:
    """Shared reader for ``db_type`` (case-insensitive). Only PostgreSQL is implemented.

    Raises:
        NotImplementedError: for any other database type.
    """
    global _reader
    if db_type.lower().strip() not in _POSTGRES_TYPES:
        raise NotImplementedError(f"Database type '{db_type}' is not supported. Supported types: postgresql")
    if _reader is None:
        _reader = PostgreSQLCatalogReader()
    return _reader
