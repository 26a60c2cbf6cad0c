"""Shared pytest fixtures for schema-describe tests."""

import sqlite3

import pytest
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from schema_describe.database.constraints import InMemoryConstraintStore
from schema_describe.database.executors import sqlite_executor
from schema_describe.database.query_interface import QueryInterface


Rows = List[Dict[str, Any]]
Response = Union[Rows, Callable[[Sequence[Any]], Rows]]


class FakeExecutor:
    """Scripted query executor for dialects without a local engine.

    Each rule maps a marker substring of the SQL to the rows to return (or a
    callable taking the bound parameters). The first matching rule wins; SQL
    that matches no rule returns no rows.
    """

    def __init__(self, rules: List[Tuple[str, Response]] = None):
        self.rules = list(rules or [])
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def add(self, marker: str, response: Response) -> "FakeExecutor":
        self.rules.append((marker, response))
        return self

    async def __call__(self, sql: str, params: Sequence[Any] = ()) -> Rows:
        self.calls.append((sql, tuple(params)))
        for marker, response in self.rules:
            if marker in sql:
                return response(tuple(params)) if callable(response) else list(response)
        return []


@pytest.fixture
def fake_executor():
    """Create an empty scripted executor."""
    return FakeExecutor()


@pytest.fixture
def sqlite_connection():
    """In-memory SQLite database with foreign keys enabled."""
    connection = sqlite3.connect(":memory:")
    connection.execute("PRAGMA foreign_keys = ON")
    yield connection
    connection.close()


@pytest.fixture
def constraint_store():
    """Fresh in-memory constraint shadow store."""
    return InMemoryConstraintStore()


@pytest.fixture
def sqlite_interface(sqlite_connection, constraint_store):
    """QueryInterface over the in-memory SQLite database."""
    qi = QueryInterface(
        "sqlite",
        sqlite_executor(sqlite_connection),
        constraint_store=constraint_store,
    )
    yield qi
    qi.close()


@pytest.fixture
def users_table(sqlite_connection):
    """Create a users table exercising the common default shapes."""
    sqlite_connection.executescript("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username VARCHAR(255) NOT NULL DEFAULT 'anon',
            email TEXT UNIQUE,
            bio TEXT DEFAULT NULL,
            nickname TEXT DEFAULT 'NULL',
            quote TEXT DEFAULT 'O''Brien',
            note TEXT DEFAULT '',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            price DECIMAL(10,2) DEFAULT 99.00,
            score INTEGER DEFAULT -99,
            active BOOLEAN DEFAULT TRUE,
            "nothing" TEXT
        );
    """)
    return "users"
