"""Catalog introspection for schema-describe.

This module reads column metadata from each supported backend's catalog
and normalizes it into dialect independent column descriptions.
"""

from .models import (
    UNDEFINED,
    ColumnDescription,
    ColumnsDescription,
    ConstraintShadowEntry,
    DefaultSyntax,
    DefaultValue,
    ForeignKeyReference,
    RawColumn,
    TableIdentifier,
)
from .defaults import DataTypeDescriptor, DataTypeFamily, normalize, parse_data_type
from .builder import build_column_descriptions
from .constraints import ConstraintStore, InMemoryConstraintStore, SqliteConstraintStore
from .dialects import Dialect, DialectCapabilities, get_capabilities
from .query_interface import QueryInterface

__all__ = [
    # Data models
    "UNDEFINED",
    "ColumnDescription",
    "ColumnsDescription",
    "ConstraintShadowEntry",
    "DefaultSyntax",
    "DefaultValue",
    "ForeignKeyReference",
    "RawColumn",
    "TableIdentifier",
    # Default values
    "DataTypeDescriptor",
    "DataTypeFamily",
    "normalize",
    "parse_data_type",
    # Building
    "build_column_descriptions",
    # Constraint shadow stores
    "ConstraintStore",
    "InMemoryConstraintStore",
    "SqliteConstraintStore",
    # Dialects
    "Dialect",
    "DialectCapabilities",
    "get_capabilities",
    # Facade
    "QueryInterface",
]
