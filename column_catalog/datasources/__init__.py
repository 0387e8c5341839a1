"""Data source connectors."""

from .base import (
    ColumnMetadata,
    DataSource,
    PreparedQuery,
    ResultCursor,
    ScopedSession,
    SessionProvider,
    TableMetadata,
)
from .duckdb import DuckDBDataSource, install_system_catalog

__all__ = [
    "ColumnMetadata",
    "DataSource",
    "PreparedQuery",
    "ResultCursor",
    "ScopedSession",
    "SessionProvider",
    "TableMetadata",
    "DuckDBDataSource",
    "install_system_catalog",
]
