"""Public entry point for describing tables."""

import logging
from dataclasses import replace
from typing import List, Optional, Union

from ..config import settings
from ..errors import SchemaDescribeError, TableNotFoundError
from .base import QueryExecutor
from .builder import build_column_descriptions
from .constraints import ConstraintStore, InMemoryConstraintStore, SqliteConstraintStore
from .dialects import Dialect, get_capabilities
from .models import ColumnsDescription, ConstraintShadowEntry, TableIdentifier

logger = logging.getLogger(__name__)


def create_constraint_store() -> ConstraintStore:
    """Create the shadow store configured in settings."""
    if settings.persist_constraints:
        return SqliteConstraintStore(settings.constraint_store_path)
    return InMemoryConstraintStore()


class QueryInterface:
    """Describes tables on one connection.

    Example:
        async with QueryInterface("postgres", execute) as qi:
            columns = await qi.describe_table("users", "auth")
            columns["id"].primary_key
    """

    def __init__(
        self,
        dialect: Union[str, Dialect],
        execute: QueryExecutor,
        *,
        default_schema: Optional[str] = None,
        constraint_store: Optional[ConstraintStore] = None,
        concurrent: Optional[bool] = None,
    ):
        """Initialize the interface.

        Args:
            dialect: Backend dialect name or Dialect
            execute: Async callable running one parameterized query and
                returning rows as mappings
            default_schema: Schema used when a call names none; otherwise the
                backend's own default applies
            constraint_store: Shadow store to use; one is created when the
                dialect needs it and none is given
            concurrent: Issue a table's catalog queries together; defaults to
                settings.concurrent_catalog_queries
        """
        self.capabilities = get_capabilities(dialect)
        self.dialect = self.capabilities.dialect
        self.execute = execute
        self.default_schema = default_schema
        self.concurrent = settings.concurrent_catalog_queries if concurrent is None else concurrent

        self._owns_store = False
        self.constraint_store = constraint_store
        if constraint_store is None and self.capabilities.needs_constraint_shadow:
            self.constraint_store = create_constraint_store()
            self._owns_store = True

    def resolve_identifier(
        self,
        identifier: Union[str, TableIdentifier],
        schema: Optional[str] = None,
    ) -> TableIdentifier:
        """Apply the explicit schema, then the identifier's, then the default."""
        table = TableIdentifier.coerce(identifier)
        if not table.table_name:
            raise ValueError("Table name must not be empty")
        return TableIdentifier(
            table_name=table.table_name,
            schema=schema or table.schema or self.default_schema,
        )

    async def describe_table(
        self,
        identifier: Union[str, TableIdentifier],
        schema: Optional[str] = None,
    ) -> ColumnsDescription:
        """Describe every column of a table.

        Args:
            identifier: Table name or TableIdentifier; names are case sensitive
                and never split on dots
            schema: Schema, taking precedence over the identifier's own

        Returns:
            Column name to ColumnDescription, in catalog order

        Raises:
            TableNotFoundError: If the catalog has no columns for the table
        """
        table = self.resolve_identifier(identifier, schema)
        logger.debug("Describing %s table %s", self.dialect.value, table)

        rows = await self.capabilities.reader(self.execute, table, self.concurrent)
        if not rows:
            raise TableNotFoundError(table.table_name, table.schema)

        shadow_entries = None
        track = self.capabilities.needs_constraint_shadow
        if track and self.constraint_store is not None:
            shadow_entries = self.constraint_store.list(self._store_key(table))

        return build_column_descriptions(rows, shadow_entries, track_constraints=track)

    def _require_store(self) -> ConstraintStore:
        if self.constraint_store is None:
            raise SchemaDescribeError(
                f"Dialect {self.dialect.value} does not track constraints outside its catalog",
                code="CONSTRAINTS_NOT_TRACKED",
                details={"dialect": self.dialect.value},
            )
        return self.constraint_store

    def _store_key(self, identifier: Union[str, TableIdentifier], schema: Optional[str] = None) -> TableIdentifier:
        """Resolve a table and key it by the backend's default schema when none is set."""
        table = self.resolve_identifier(identifier, schema)
        return TableIdentifier(table.table_name, table.schema or self.capabilities.default_schema)

    def record_constraint(self, entry: ConstraintShadowEntry) -> None:
        """Record a unique or foreign-key declaration for a column."""
        store = self._require_store()
        entry = replace(entry, table=self._store_key(entry.table))
        logger.debug("Recording constraint for %s.%s", entry.table, entry.column)
        store.record(entry)

    def list_constraints(
        self,
        identifier: Union[str, TableIdentifier],
        schema: Optional[str] = None,
    ) -> List[ConstraintShadowEntry]:
        """Get the declarations recorded for a table."""
        return self._require_store().list(self._store_key(identifier, schema))

    def forget_table(self, identifier: Union[str, TableIdentifier], schema: Optional[str] = None) -> None:
        """Drop every declaration for a table that no longer exists."""
        self._require_store().remove(self._store_key(identifier, schema))

    def forget_column(
        self,
        identifier: Union[str, TableIdentifier],
        column: str,
        schema: Optional[str] = None,
    ) -> None:
        """Drop the declaration for a column that no longer exists."""
        self._require_store().remove_column(self._store_key(identifier, schema), column)

    def close(self) -> None:
        """Close the shadow store if this interface created it."""
        if self._owns_store and self.constraint_store is not None:
            self.constraint_store.close()
            self.constraint_store = None
            self._owns_store = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
