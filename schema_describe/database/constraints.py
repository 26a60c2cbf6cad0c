"""Constraint shadow stores.

Some backends (SQLite) cannot add or drop UNIQUE and FOREIGN KEY constraints
in place, so altering a table means rebuilding it. Declared constraints are
recorded here so a rebuild, or a later describe, can recover them.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Union

from .models import ConstraintShadowEntry, ForeignKeyReference, TableIdentifier

logger = logging.getLogger(__name__)

TableRef = Union[str, TableIdentifier]


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS shadow_constraints (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    table_schema TEXT NOT NULL DEFAULT '',  -- '' for unqualified tables
    table_name TEXT NOT NULL,
    column_name TEXT NOT NULL,
    is_unique INTEGER,  -- NULL when never declared
    fk_table TEXT,
    fk_key TEXT,
    UNIQUE (table_schema, table_name, column_name)
);

CREATE INDEX IF NOT EXISTS idx_shadow_constraints_table ON shadow_constraints(table_schema, table_name);
"""


def get_default_constraint_db_path() -> str:
    """Get the default store path (~/.schema-describe/constraints.db)."""
    home = Path.home()
    store_dir = home / ".schema-describe"
    store_dir.mkdir(exist_ok=True)
    return str(store_dir / "constraints.db")


def merge_entries(existing: Optional[ConstraintShadowEntry], entry: ConstraintShadowEntry) -> ConstraintShadowEntry:
    """Combine a new declaration with what is already recorded for the column."""
    if existing is None:
        return entry
    return replace(
        existing,
        unique=entry.unique if entry.unique is not None else existing.unique,
        foreign_key=entry.foreign_key if entry.foreign_key is not None else existing.foreign_key,
    )


class ConstraintStore(ABC):
    """Out-of-catalog record of unique and foreign-key declarations.

    Listing a table with nothing recorded returns an empty list.
    """

    @abstractmethod
    def record(self, entry: ConstraintShadowEntry) -> None:
        """Record a declaration, merging with any existing one for the column."""
        pass

    @abstractmethod
    def list(self, table: TableRef) -> List[ConstraintShadowEntry]:
        """Get every declaration recorded for a table, in recording order."""
        pass

    @abstractmethod
    def remove(self, table: TableRef) -> None:
        """Forget every declaration for a dropped table."""
        pass

    @abstractmethod
    def remove_column(self, table: TableRef, column: str) -> None:
        """Forget the declaration for a dropped column."""
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass


class InMemoryConstraintStore(ConstraintStore):
    """Process-local store; writes are serialised per table."""

    def __init__(self):
        self._entries: Dict[TableIdentifier, Dict[str, ConstraintShadowEntry]] = {}
        self._locks: Dict[TableIdentifier, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, table: TableIdentifier) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(table)
            if lock is None:
                lock = self._locks[table] = threading.Lock()
            return lock

    def record(self, entry: ConstraintShadowEntry) -> None:
        with self._lock_for(entry.table):
            columns = dict(self._entries.get(entry.table, {}))
            columns[entry.column] = merge_entries(columns.get(entry.column), entry)
            self._entries[entry.table] = columns

    def list(self, table: TableRef) -> List[ConstraintShadowEntry]:
        # writers swap in a new dict, so a snapshot read needs no lock
        columns = self._entries.get(TableIdentifier.coerce(table), {})
        return list(columns.values())

    def remove(self, table: TableRef) -> None:
        table = TableIdentifier.coerce(table)
        with self._lock_for(table):
            self._entries.pop(table, None)

    def remove_column(self, table: TableRef, column: str) -> None:
        table = TableIdentifier.coerce(table)
        with self._lock_for(table):
            columns = dict(self._entries.get(table, {}))
            if columns.pop(column, None) is not None:
                self._entries[table] = columns


class SqliteConstraintStore(ConstraintStore):
    """Store persisted to a SQLite file, surviving process restarts."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite file. If None, uses the default.
        """
        self.db_path = db_path or get_default_constraint_db_path()
        self._connection: Optional[sqlite3.Connection] = None
        self._initialized = False
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the connection, creating the schema on first use."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            self._connection.row_factory = sqlite3.Row
        if not self._initialized:
            self._connection.executescript(SCHEMA_SQL)
            self._initialized = True
            logger.debug("Constraint store initialized at %s", self.db_path)
        return self._connection

    def record(self, entry: ConstraintShadowEntry) -> None:
        fk = entry.foreign_key
        with self._lock:
            self._get_connection().execute(
                """
                INSERT INTO shadow_constraints (table_schema, table_name, column_name, is_unique, fk_table, fk_key)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (table_schema, table_name, column_name) DO UPDATE SET
                    is_unique = COALESCE(excluded.is_unique, is_unique),
                    fk_table = COALESCE(excluded.fk_table, fk_table),
                    fk_key = COALESCE(excluded.fk_key, fk_key)
                """,
                (
                    entry.table.schema or "",
                    entry.table.table_name,
                    entry.column,
                    None if entry.unique is None else int(entry.unique),
                    fk.table if fk else None,
                    fk.key if fk else None,
                ),
            )

    def list(self, table: TableRef) -> List[ConstraintShadowEntry]:
        table = TableIdentifier.coerce(table)
        with self._lock:
            rows = self._get_connection().execute(
                """
                SELECT column_name, is_unique, fk_table, fk_key
                FROM shadow_constraints
                WHERE table_schema = ? AND table_name = ?
                ORDER BY id
                """,
                (table.schema or "", table.table_name),
            ).fetchall()

        return [
            ConstraintShadowEntry(
                table=table,
                column=row["column_name"],
                unique=None if row["is_unique"] is None else bool(row["is_unique"]),
                foreign_key=ForeignKeyReference(row["fk_table"], row["fk_key"]) if row["fk_table"] else None,
            )
            for row in rows
        ]

    def remove(self, table: TableRef) -> None:
        table = TableIdentifier.coerce(table)
        with self._lock:
            self._get_connection().execute(
                "DELETE FROM shadow_constraints WHERE table_schema = ? AND table_name = ?",
                (table.schema or "", table.table_name),
            )

    def remove_column(self, table: TableRef, column: str) -> None:
        table = TableIdentifier.coerce(table)
        with self._lock:
            self._get_connection().execute(
                "DELETE FROM shadow_constraints WHERE table_schema = ? AND table_name = ? AND column_name = ?",
                (table.schema or "", table.table_name, column),
            )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
                self._initialized = False
