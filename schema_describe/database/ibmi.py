"""IBM i (DB2 for i) catalog reader using QSYS2 views."""

import logging
from typing import List

from .base import QueryExecutor, clean_comment, row_value, run_catalog_queries, yes_no
from .models import DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

COLUMNS_SQL = """
    SELECT
        c.COLUMN_NAME AS "name",
        c.DATA_TYPE AS "type",
        c.LENGTH AS "length",
        c.NUMERIC_SCALE AS "scale",
        c.IS_NULLABLE AS "nullable",
        c.HAS_DEFAULT AS "has_default",
        c.COLUMN_DEFAULT AS "default",
        c.IS_IDENTITY AS "identity",
        c.LONG_COMMENT AS "comment"
    FROM QSYS2.SYSCOLUMNS c
    WHERE c.TABLE_NAME = ?
      AND c.TABLE_SCHEMA = COALESCE(?, CURRENT SCHEMA)
    ORDER BY c.ORDINAL_POSITION
"""

PRIMARY_KEY_SQL = """
    SELECT k.COLUMN_NAME AS "name"
    FROM QSYS2.SYSCST cst
    JOIN QSYS2.SYSKEYCST k
      ON k.CONSTRAINT_SCHEMA = cst.CONSTRAINT_SCHEMA
      AND k.CONSTRAINT_NAME = cst.CONSTRAINT_NAME
    WHERE cst.CONSTRAINT_TYPE = 'PRIMARY KEY'
      AND cst.TABLE_NAME = ?
      AND cst.TABLE_SCHEMA = COALESCE(?, CURRENT SCHEMA)
    ORDER BY k.ORDINAL_POSITION
"""


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
        default = row_value(row, "default")
        # HAS_DEFAULT is 'N' for no default and 'Y' (or other codes) otherwise
        has_default = (row_value(row, "has_default") or "N").strip().upper() != "N"
        columns.append(RawColumn(
            name=name,
            type=(row_value(row, "type") or "").strip(),
            nullable=yes_no(row_value(row, "nullable")),
            default=default if has_default else None,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=name in pk_columns,
            is_auto_increment=yes_no(row_value(row, "identity")),
            comment=clean_comment(row_value(row, "comment")),
        ))

    logger.debug("Read %d ibmi columns for %s", len(columns), table)
    return columns
