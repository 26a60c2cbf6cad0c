"""PostgreSQL catalog reader."""

import logging
from typing import List

from .base import QueryExecutor, index_rows, row_value, run_catalog_queries, yes_no, clean_comment
from .models import DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

COLUMNS_SQL = """
    SELECT
        c.column_name AS "name",
        c.data_type AS "data_type",
        c.udt_name AS "udt_name",
        c.character_maximum_length AS "max_length",
        c.numeric_precision AS "precision",
        c.numeric_scale AS "scale",
        c.is_nullable AS "nullable",
        c.column_default AS "default",
        c.is_identity AS "is_identity",
        pg_catalog.col_description(
            (quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass,
            c.ordinal_position::int
        ) AS "comment"
    FROM information_schema.columns c
    WHERE c.table_schema = %s
      AND c.table_name = %s
    ORDER BY c.ordinal_position
"""

PRIMARY_KEY_SQL = """
    SELECT kcu.column_name AS "name"
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON tc.constraint_name = kcu.constraint_name
      AND tc.table_schema = kcu.table_schema
      AND tc.table_name = kcu.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
      AND tc.table_schema = %s
      AND tc.table_name = %s
    ORDER BY kcu.ordinal_position
"""

ENUM_SQL = """
    SELECT a.attname AS "name", e.enumlabel AS "label"
    FROM pg_catalog.pg_attribute a
    JOIN pg_catalog.pg_class cl ON cl.oid = a.attrelid
    JOIN pg_catalog.pg_namespace n ON n.oid = cl.relnamespace
    JOIN pg_catalog.pg_enum e ON e.enumtypid = a.atttypid
    WHERE n.nspname = %s
      AND cl.relname = %s
      AND a.attnum > 0
      AND NOT a.attisdropped
    ORDER BY a.attnum, e.enumsortorder
"""


async def read_raw_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    """Read columns, primary key membership and enum labels for a table."""
    params = (table.schema or DEFAULT_SCHEMA, table.table_name)
    col_rows, pk_rows, enum_rows = await run_catalog_queries(
        execute(COLUMNS_SQL, params),
        execute(PRIMARY_KEY_SQL, params),
        execute(ENUM_SQL, params),
        concurrent=concurrent,
    )

    pk_columns = {row_value(row, "name") for row in pk_rows}
    enum_labels = index_rows(enum_rows, "name")

    columns = []
    for row in col_rows:
        name = row_value(row, "name")
        default = row_value(row, "default")
        labels = enum_labels.get(name)
        columns.append(RawColumn(
            name=name,
            type=_render_type(row),
            nullable=yes_no(row_value(row, "nullable")),
            default=default,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=name in pk_columns,
            is_auto_increment=(
                yes_no(row_value(row, "is_identity"))
                or (isinstance(default, str) and default.startswith("nextval("))
            ),
            comment=clean_comment(row_value(row, "comment")),
            enum_values=[row_value(r, "label") for r in labels] if labels else None,
        ))

    logger.debug("Read %d postgres columns for %s", len(columns), table)
    return columns


def _render_type(row) -> str:
    """Render the type the way postgres names it, e.g. CHARACTER VARYING(255)."""
    data_type = (row_value(row, "data_type") or "").upper()
    if data_type == "USER-DEFINED":
        return (row_value(row, "udt_name") or data_type).upper()
    if data_type == "ARRAY":
        return (row_value(row, "udt_name") or data_type).upper()

    max_length = row_value(row, "max_length")
    if max_length is not None:
        return f"{data_type}({max_length})"

    if data_type == "NUMERIC" and row_value(row, "precision") is not None:
        scale = row_value(row, "scale")
        return f"{data_type}({row_value(row, 'precision')},{scale if scale is not None else 0})"
    return data_type
