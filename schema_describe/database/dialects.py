"""Supported dialects and what each one can tell us about a table."""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Union

from ..errors import UnsupportedDialectError
from .base import QueryExecutor
from .models import RawColumn, TableIdentifier

CatalogReader = Callable[[QueryExecutor, TableIdentifier, bool], Awaitable[List[RawColumn]]]


class Dialect(str, Enum):
    """Supported database backends."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MSSQL = "mssql"
    SQLITE = "sqlite"
    DB2 = "db2"
    IBMI = "ibmi"
    DUCKDB = "duckdb"


@dataclass(frozen=True)
class DialectCapabilities:
    """What a dialect's catalog reports and how to read it.

    ``default_schema`` is informational: the schema the backend itself falls
    back to when a table name is not qualified.
    """
    dialect: Dialect
    default_schema: str
    supports_comments: bool
    supports_enum: bool
    needs_constraint_shadow: bool
    reader: CatalogReader


def coerce_dialect(value: Union[str, Dialect]) -> Dialect:
    """Turn a dialect name into a Dialect, raising for unknown names."""
    if isinstance(value, Dialect):
        return value
    try:
        return Dialect(str(value).lower())
    except ValueError:
        raise UnsupportedDialectError(str(value))


def get_capabilities(dialect: Union[str, Dialect]) -> DialectCapabilities:
    """Get the capability record for a dialect."""
    dialect = coerce_dialect(dialect)

    if dialect == Dialect.POSTGRES:
        from .postgres import read_raw_columns
        return DialectCapabilities(dialect, "public", True, True, False, read_raw_columns)
    elif dialect == Dialect.MYSQL:
        from .mysql import read_raw_columns
        return DialectCapabilities(dialect, "DATABASE()", True, True, False, read_raw_columns)
    elif dialect == Dialect.MARIADB:
        from .mysql import read_mariadb_columns
        return DialectCapabilities(dialect, "DATABASE()", True, True, False, read_mariadb_columns)
    elif dialect == Dialect.MSSQL:
        from .mssql import read_raw_columns
        return DialectCapabilities(dialect, "SCHEMA_NAME()", True, False, False, read_raw_columns)
    elif dialect == Dialect.SQLITE:
        from .sqlite import read_raw_columns
        return DialectCapabilities(dialect, "main", False, False, True, read_raw_columns)
    elif dialect == Dialect.DB2:
        from .db2 import read_raw_columns
        return DialectCapabilities(dialect, "CURRENT SCHEMA", True, False, False, read_raw_columns)
    elif dialect == Dialect.IBMI:
        from .ibmi import read_raw_columns
        return DialectCapabilities(dialect, "CURRENT SCHEMA", True, False, False, read_raw_columns)
    elif dialect == Dialect.DUCKDB:
        from .duckdb import read_raw_columns
        return DialectCapabilities(dialect, "current_schema()", True, True, False, read_raw_columns)
    else:
        raise UnsupportedDialectError(dialect.value)
