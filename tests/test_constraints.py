"""Tests for the constraint shadow stores."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from schema_describe.database.constraints import InMemoryConstraintStore, SqliteConstraintStore
from schema_describe.database.models import ConstraintShadowEntry, ForeignKeyReference, TableIdentifier


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation, fresh per test."""
    if request.param == "memory":
        store = InMemoryConstraintStore()
    else:
        store = SqliteConstraintStore(str(tmp_path / "constraints.db"))
    yield store
    store.close()


class TestConstraintStore:
    """Behaviour shared by every store implementation."""

    def test_unknown_table_is_empty(self, store):
        """Test listing a table that was never recorded."""
        assert store.list("nothing_here") == []

    def test_record_and_list(self, store):
        """Test recording and listing an entry."""
        store.record(ConstraintShadowEntry("users", "email", unique=True))
        store.record(ConstraintShadowEntry("users", "org_id", foreign_key=ForeignKeyReference("orgs", "id")))

        entries = store.list("users")
        assert [e.column for e in entries] == ["email", "org_id"]
        assert entries[0].unique is True
        assert entries[0].foreign_key is None
        assert entries[1].unique is None
        assert entries[1].foreign_key == ForeignKeyReference("orgs", "id")
        assert entries[0].table == TableIdentifier("users")

    def test_record_merges(self, store):
        """Test that re-recording a column merges with the earlier entry."""
        store.record(ConstraintShadowEntry("users", "org_id", unique=True))
        store.record(ConstraintShadowEntry("users", "org_id", foreign_key={"table": "orgs", "key": "id"}))

        (entry,) = store.list("users")
        assert entry.unique is True
        assert entry.foreign_key == ForeignKeyReference("orgs", "id")

    def test_later_unique_false_clears(self, store):
        """Test that an explicit unique=False replaces an earlier True."""
        store.record(ConstraintShadowEntry("users", "email", unique=True))
        store.record(ConstraintShadowEntry("users", "email", unique=False))
        assert store.list("users")[0].unique is False

    def test_remove_table(self, store):
        """Test removing every entry for a table."""
        store.record(ConstraintShadowEntry("users", "email", unique=True))
        store.record(ConstraintShadowEntry("orgs", "slug", unique=True))
        store.remove("users")

        assert store.list("users") == []
        assert len(store.list("orgs")) == 1

    def test_remove_missing_table_is_noop(self, store):
        """Test removing a table that has no entries."""
        store.remove("never_recorded")
        assert store.list("never_recorded") == []

    def test_remove_column(self, store):
        """Test removing a single column's entry."""
        store.record(ConstraintShadowEntry("users", "email", unique=True))
        store.record(ConstraintShadowEntry("users", "name", unique=True))
        store.remove_column("users", "email")
        assert [e.column for e in store.list("users")] == ["name"]

    def test_schemas_are_separate(self, store):
        """Test that the same table name in two schemas is kept apart."""
        store.record(ConstraintShadowEntry(TableIdentifier("users", "archive"), "email", unique=True))
        assert store.list("users") == []
        assert len(store.list(TableIdentifier("users", "archive"))) == 1

    def test_concurrent_records(self, store):
        """Test recording from several threads at once."""
        def record(i):
            store.record(ConstraintShadowEntry("wide", f"col_{i}", unique=True))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(record, range(50)))

        assert len(store.list("wide")) == 50


class TestSqliteConstraintStore:
    """Test persistence of the SQLite backed store."""

    def test_survives_reopen(self, tmp_path):
        """Test that entries persist across store instances."""
        db_path = str(tmp_path / "constraints.db")
        first = SqliteConstraintStore(db_path)
        first.record(ConstraintShadowEntry("users", "email", unique=True))
        first.close()

        second = SqliteConstraintStore(db_path)
        try:
            entries = second.list("users")
            assert len(entries) == 1
            assert entries[0].unique is True
        finally:
            second.close()

    def test_usable_after_close(self, tmp_path):
        """Test that the store reconnects after close."""
        store = SqliteConstraintStore(str(tmp_path / "constraints.db"))
        store.record(ConstraintShadowEntry("users", "email", unique=True))
        store.close()
        assert len(store.list("users")) == 1
        store.close()
