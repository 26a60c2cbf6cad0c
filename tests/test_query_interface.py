"""Tests for QueryInterface construction, resolution and constraint upkeep."""

import pytest

from schema_describe.config import settings
from schema_describe.database.constraints import InMemoryConstraintStore, SqliteConstraintStore
from schema_describe.database.dialects import Dialect, get_capabilities
from schema_describe.database.executors import sqlite_executor
from schema_describe.database.models import ConstraintShadowEntry, TableIdentifier
from schema_describe.database.query_interface import QueryInterface
from schema_describe.errors import SchemaDescribeError, UnsupportedDialectError


class TestCapabilities:
    """Test the dialect switch."""

    @pytest.mark.parametrize("dialect", list(Dialect))
    def test_every_dialect_has_a_reader(self, dialect):
        """Test that every dialect dispatches to a reader."""
        caps = get_capabilities(dialect)
        assert caps.dialect == dialect
        assert callable(caps.reader)

    def test_only_sqlite_needs_shadow(self):
        """Test which dialects need the shadow store."""
        needing = [d for d in Dialect if get_capabilities(d).needs_constraint_shadow]
        assert needing == [Dialect.SQLITE]

    def test_names_are_case_insensitive(self):
        """Test dialect name coercion."""
        assert get_capabilities("PostgreS").dialect == Dialect.POSTGRES

    def test_unknown_dialect(self):
        """Test UnsupportedDialectError for an unknown name."""
        with pytest.raises(UnsupportedDialectError) as exc_info:
            get_capabilities("oracle")
        assert exc_info.value.code == "UNSUPPORTED_DIALECT"
        assert "oracle" in exc_info.value.message


class TestResolveIdentifier:
    """Test schema precedence and name handling."""

    @pytest.fixture
    def qi(self, fake_executor):
        return QueryInterface("postgres", fake_executor, default_schema="app")

    def test_bare_name_uses_default_schema(self, qi):
        """Test that a bare name takes the default schema."""
        assert qi.resolve_identifier("users") == TableIdentifier("users", "app")

    def test_identifier_schema_beats_default(self, qi):
        """Test that the identifier's schema wins over the default."""
        assert qi.resolve_identifier(TableIdentifier("users", "auth")) == TableIdentifier("users", "auth")

    def test_argument_beats_identifier(self, qi):
        """Test that the schema argument wins over the identifier's."""
        resolved = qi.resolve_identifier(TableIdentifier("users", "auth"), "billing")
        assert resolved == TableIdentifier("users", "billing")

    def test_dots_are_part_of_the_name(self, qi):
        """Test that dotted names are not split."""
        assert qi.resolve_identifier("auth.users") == TableIdentifier("auth.users", "app")

    def test_no_default_schema(self, fake_executor):
        """Test a bare name with no default schema."""
        qi = QueryInterface("mysql", fake_executor)
        assert qi.resolve_identifier("users").schema is None

    def test_empty_name(self, qi):
        """Test rejecting an empty table name."""
        with pytest.raises(ValueError):
            qi.resolve_identifier("")

    def test_wrong_type(self, qi):
        """Test rejecting a non-string identifier."""
        with pytest.raises(TypeError):
            qi.resolve_identifier(42)

    @pytest.mark.asyncio
    async def test_describe_rejects_empty_name(self, qi):
        """Test that describe_table rejects an empty name."""
        with pytest.raises(ValueError):
            await qi.describe_table("")


class TestConstraintOwnership:
    """Test how an interface creates, uses and closes its shadow store."""

    def test_sqlite_creates_store(self, sqlite_connection):
        """Test that sqlite creates and closes its own store."""
        qi = QueryInterface("sqlite", sqlite_executor(sqlite_connection))
        assert isinstance(qi.constraint_store, InMemoryConstraintStore)
        qi.close()
        assert qi.constraint_store is None

    def test_injected_store_is_not_closed(self, sqlite_connection, constraint_store):
        """Test that an injected store is left open."""
        with QueryInterface("sqlite", sqlite_executor(sqlite_connection), constraint_store=constraint_store) as qi:
            qi.record_constraint(ConstraintShadowEntry("users", "email", unique=True))
        assert qi.constraint_store is constraint_store
        assert len(constraint_store.list(TableIdentifier("users", "main"))) == 1

    def test_persisted_store_from_settings(self, sqlite_connection, tmp_path, monkeypatch):
        """Test the SQLite-backed store chosen in settings."""
        monkeypatch.setattr(settings, "persist_constraints", True)
        monkeypatch.setattr(settings, "constraint_store_path", str(tmp_path / "shadow.db"))

        with QueryInterface("sqlite", sqlite_executor(sqlite_connection)) as qi:
            assert isinstance(qi.constraint_store, SqliteConstraintStore)
            qi.record_constraint(ConstraintShadowEntry("users", "email", unique=True))

        reopened = SqliteConstraintStore(str(tmp_path / "shadow.db"))
        try:
            assert len(reopened.list(TableIdentifier("users", "main"))) == 1
        finally:
            reopened.close()

    @pytest.mark.asyncio
    async def test_async_context_manager(self, sqlite_connection):
        """Test closing the store from async with."""
        sqlite_connection.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        async with QueryInterface("sqlite", sqlite_executor(sqlite_connection)) as qi:
            columns = await qi.describe_table("t")
        assert columns["id"].primary_key is True
        assert qi.constraint_store is None

    def test_record_uses_default_schema(self, sqlite_connection, constraint_store):
        """Test that recording applies the default schema."""
        qi = QueryInterface(
            "sqlite", sqlite_executor(sqlite_connection),
            default_schema="main", constraint_store=constraint_store,
        )
        qi.record_constraint(ConstraintShadowEntry("users", "email", unique=True))
        assert constraint_store.list(TableIdentifier("users", "main"))[0].column == "email"
        assert qi.list_constraints("users")[0].column == "email"

    def test_forget_table(self, sqlite_connection, constraint_store):
        """Test forgetting a table's constraints."""
        qi = QueryInterface("sqlite", sqlite_executor(sqlite_connection), constraint_store=constraint_store)
        qi.record_constraint(ConstraintShadowEntry("users", "email", unique=True))
        qi.forget_table("users")
        assert qi.list_constraints("users") == []

    def test_untracked_dialect(self, fake_executor):
        """Test constraint methods on a dialect without a store."""
        qi = QueryInterface("postgres", fake_executor)
        assert qi.constraint_store is None
        with pytest.raises(SchemaDescribeError) as exc_info:
            qi.record_constraint(ConstraintShadowEntry("users", "email", unique=True))
        assert exc_info.value.code == "CONSTRAINTS_NOT_TRACKED"
