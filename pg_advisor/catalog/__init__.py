"""Catalog readers: read-only introspection of the target database."""

from pg_advisor.catalog.base import CatalogReader
from pg_advisor.catalog.factory import get_catalog_reader
from pg_advisor.catalog.postgresql import PostgreSQLCatalogReader

__all__ = [
    "CatalogReader",
    "PostgreSQLCatalogReader",
    "get_catalog_reader",
]
