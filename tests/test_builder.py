"""Tests for building column descriptions from catalog rows."""

import logging

import pytest

from schema_describe.database.builder import build_column_descriptions
from schema_describe.database.models import (
    UNDEFINED,
    ConstraintShadowEntry,
    DefaultSyntax,
    ForeignKeyReference,
    RawColumn,
)
from schema_describe.errors import IntrospectionError


@pytest.fixture
def raw_columns():
    return [
        RawColumn(name="id", type="INTEGER", nullable=False, is_primary_key=True, is_auto_increment=True),
        RawColumn(name="status", type="ENUM('a','b')", default="a", default_syntax=DefaultSyntax.LITERAL,
                  enum_values=["a", "b"], comment="State"),
        RawColumn(name="owner_id", type="INTEGER"),
    ]


class TestBuildColumnDescriptions:
    """Test merging rows into descriptions."""

    def test_preserves_order_and_flags(self, raw_columns):
        """Test that catalog order and column flags carry through."""
        columns = build_column_descriptions(raw_columns)
        assert list(columns) == ["id", "status", "owner_id"]
        assert columns["id"].primary_key is True
        assert columns["id"].auto_increment is True
        assert columns["id"].allow_null is False
        assert columns["status"].comment == "State"
        assert columns["status"].special == ["a", "b"]

    def test_normalizes_defaults(self, raw_columns):
        """Test that raw defaults are normalized against the column type."""
        columns = build_column_descriptions(raw_columns)
        assert columns["status"].default_value.parsed == "a"
        assert columns["id"].default_value.raw is UNDEFINED

    def test_without_tracking_constraints_are_unset(self, raw_columns):
        """Test that unique and references stay unset for untracked dialects."""
        shadow = [ConstraintShadowEntry("t", "owner_id", unique=True)]
        columns = build_column_descriptions(raw_columns, shadow)
        assert columns["owner_id"].unique is None
        assert columns["owner_id"].references is None

    def test_shadow_overlay(self, raw_columns):
        """Test overlaying shadow entries onto catalog rows."""
        shadow = [
            ConstraintShadowEntry("t", "owner_id", unique=True, foreign_key=ForeignKeyReference("users", "id")),
        ]
        columns = build_column_descriptions(raw_columns, shadow, track_constraints=True)
        assert columns["owner_id"].unique is True
        assert columns["owner_id"].references == ForeignKeyReference("users", "id")
        assert columns["id"].unique is False
        assert columns["id"].references is None

    def test_shadow_only_overrides_what_it_declares(self):
        """Test that a shadow entry leaves undeclared flags alone."""
        rows = [RawColumn(name="email", type="TEXT", unique=True)]
        shadow = [ConstraintShadowEntry("t", "email", foreign_key=ForeignKeyReference("people", "email"))]
        columns = build_column_descriptions(rows, shadow, track_constraints=True)
        assert columns["email"].unique is True
        assert columns["email"].references == ForeignKeyReference("people", "email")

    def test_stale_shadow_entries_are_reported(self, raw_columns, caplog):
        """Test logging of shadow entries for columns that no longer exist."""
        shadow = [ConstraintShadowEntry("t", "dropped", unique=True)]
        with caplog.at_level(logging.WARNING):
            columns = build_column_descriptions(raw_columns, shadow, track_constraints=True)
        assert "dropped" not in columns
        assert "dropped" in caplog.text

    def test_duplicate_column(self):
        """Test that a repeated column name raises IntrospectionError."""
        rows = [RawColumn(name="id", type="INTEGER"), RawColumn(name="id", type="INTEGER")]
        with pytest.raises(IntrospectionError) as exc_info:
            build_column_descriptions(rows)
        assert exc_info.value.code == "INTROSPECTION_ERROR"
        assert exc_info.value.details == {"column": "id"}
