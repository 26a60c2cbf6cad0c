"""SQL Server catalog reader using the sys catalog views."""

import logging
from typing import List

from .base import QueryExecutor, clean_comment, row_value, run_catalog_queries, yes_no
from .models import DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

COLUMNS_SQL = """
    SELECT
        c.name AS name,
        ty.name AS type_name,
        c.max_length AS max_length,
        c.precision AS precision,
        c.scale AS scale,
        c.is_nullable AS is_nullable,
        c.is_identity AS is_identity,
        CAST(dc.definition AS NVARCHAR(MAX)) AS default_definition,
        CAST(ep.value AS NVARCHAR(MAX)) AS comment
    FROM sys.columns c
    INNER JOIN sys.tables t ON c.object_id = t.object_id
    INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
    INNER JOIN sys.types ty ON c.user_type_id = ty.user_type_id
    LEFT JOIN sys.default_constraints dc ON c.default_object_id = dc.object_id
    LEFT JOIN sys.extended_properties ep
      ON ep.major_id = c.object_id AND ep.minor_id = c.column_id AND ep.name = 'MS_Description'
    WHERE t.name = ?
      AND s.name = COALESCE(?, SCHEMA_NAME())
    ORDER BY c.column_id
"""

PRIMARY_KEY_SQL = """
    SELECT COL_NAME(ic.object_id, ic.column_id) AS name
    FROM sys.indexes i
    INNER JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
    INNER JOIN sys.tables t ON i.object_id = t.object_id
    INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
    WHERE i.is_primary_key = 1
      AND t.name = ?
      AND s.name = COALESCE(?, SCHEMA_NAME())
    ORDER BY ic.key_ordinal
"""

# Types whose max_length is reported in bytes of UTF-16
_WIDE_TYPES = {"nchar", "nvarchar"}
_LENGTH_TYPES = {"char", "varchar", "nchar", "nvarchar", "binary", "varbinary"}
_PRECISION_TYPES = {"decimal", "numeric"}


async def read_raw_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    """Read columns and primary key membership for a table."""
    params = (table.table_name, table.schema)
    col_rows, pk_rows = await run_catalog_queries(
        execute(COLUMNS_SQL, params),
        execute(PRIMARY_KEY_SQL, params),
        concurrent=concurrent,
    )
    pk_columns = {row_value(row, "name") for row in pk_rows}

    columns = []
    for row in col_rows:
        name = row_value(row, "name")
        definition = row_value(row, "default_definition")
        columns.append(RawColumn(
            name=name,
            type=_render_type(row),
            nullable=yes_no(row_value(row, "is_nullable")),
            default=_unwrap_definition(definition) if definition is not None else None,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=name in pk_columns,
            is_auto_increment=yes_no(row_value(row, "is_identity")),
            comment=clean_comment(row_value(row, "comment")),
        ))

    logger.debug("Read %d mssql columns for %s", len(columns), table)
    return columns


def _unwrap_definition(definition: str) -> str:
    """Drop the single pair of parentheses SQL Server adds around every default."""
    text = definition.strip()
    if text.startswith("(") and text.endswith(")"):
        depth = 0
        in_quote = False
        for i, ch in enumerate(text):
            if ch == "'":
                in_quote = not in_quote
            elif not in_quote and ch == "(":
                depth += 1
            elif not in_quote and ch == ")":
                depth -= 1
                if depth == 0 and i != len(text) - 1:
                    return text
        return text[1:-1]
    return text


def _render_type(row) -> str:
    type_name = (row_value(row, "type_name") or "").lower()
    rendered = type_name.upper()

    if type_name in _LENGTH_TYPES:
        max_length = row_value(row, "max_length")
        if max_length == -1:
            return f"{rendered}(MAX)"
        if max_length is not None:
            length = max_length // 2 if type_name in _WIDE_TYPES else max_length
            return f"{rendered}({length})"

    if type_name in _PRECISION_TYPES:
        return f"{rendered}({row_value(row, 'precision')},{row_value(row, 'scale')})"
    return rendered
