"""Catalog system for managing column metadata across data sources."""

from .catalog import Catalog
from .computed import COMPUTED_SOURCE_QUERY, ComputedDefinitionCache, ComputedState
from .resolver import TypeResolver
from .schema import Column, ColumnDescriptor, GeneratedColumn, Schema, Table, TypedColumn
from .types import DataKind, DataTypeHandle, TypeRegistry

__all__ = [
    "Catalog",
    "COMPUTED_SOURCE_QUERY",
    "ComputedDefinitionCache",
    "ComputedState",
    "TypeResolver",
    "Column",
    "ColumnDescriptor",
    "GeneratedColumn",
    "Schema",
    "Table",
    "TypedColumn",
    "DataKind",
    "DataTypeHandle",
    "TypeRegistry",
]
