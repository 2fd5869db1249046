"""Catalog introspection.

Modules:
    catalog: Case-insensitive catalog rows and object categories
    queries: Per-dialect introspection SQL
    reader: Runs catalog queries through the query executor
"""

from .catalog import CatalogRow, ObjectType
from .queries import CatalogQueries, FirebirdCatalog, TransactSqlCatalog
from .reader import MetadataReader, TableSnapshot

__all__ = [
    "CatalogQueries",
    "CatalogRow",
    "FirebirdCatalog",
    "MetadataReader",
    "ObjectType",
    "TableSnapshot",
    "TransactSqlCatalog",
]
