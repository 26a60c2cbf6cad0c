"""Query executors over local DB-API connections.

Both engines are in-process, so statements run inline on the event loop
thread; concurrently gathered catalog queries simply run back to back.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Sequence

from .base import QueryExecutor

logger = logging.getLogger(__name__)


def _rows_as_dicts(cursor) -> List[Dict[str, Any]]:
    if cursor.description is None:
        return []
    names = [col[0] for col in cursor.description]
    return [dict(zip(names, row)) for row in cursor.fetchall()]


def sqlite_executor(connection: sqlite3.Connection) -> QueryExecutor:
    """Wrap a sqlite3 connection as an async query executor."""

    async def execute(sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        logger.debug("sqlite query: %s %r", " ".join(sql.split()), tuple(params))
        cursor = connection.execute(sql, tuple(params))
        try:
            return _rows_as_dicts(cursor)
        finally:
            cursor.close()

    return execute


def duckdb_executor(connection) -> QueryExecutor:
    """Wrap a duckdb connection as an async query executor."""

    async def execute(sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        logger.debug("duckdb query: %s %r", " ".join(sql.split()), tuple(params))
        cursor = connection.cursor()
        try:
            cursor.execute(sql, list(params))
            return _rows_as_dicts(cursor)
        finally:
            cursor.close()

    return execute


def connect_sqlite(database_path: str) -> sqlite3.Connection:
    """Open a SQLite database file (or :memory:)."""
    return sqlite3.connect(database_path)


def connect_duckdb(database_path: str, read_only: bool = True):
    """Open a DuckDB database file read-only.

    Raises:
        ImportError: If the duckdb extra is not installed
    """
    try:
        import duckdb
    except ImportError:
        raise ImportError(
            "duckdb is not installed. Install it with: pip install 'schema-describe[duckdb]'"
        )
    if database_path == ":memory:":
        return duckdb.connect(database_path)
    return duckdb.connect(database_path, read_only=read_only)
