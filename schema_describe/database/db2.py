"""DB2 for LUW catalog reader using SYSCAT views."""

import logging
from typing import List

from .base import QueryExecutor, clean_comment, row_value, yes_no
from .models import DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

# KEYSEQ is the column's position in the primary key, NULL when not a member
COLUMNS_SQL = """
    SELECT
        c.COLNAME AS "name",
        c.TYPENAME AS "type",
        c.LENGTH AS "length",
        c.SCALE AS "scale",
        c.NULLS AS "nullable",
        c.DEFAULT AS "default",
        c.KEYSEQ AS "keyseq",
        c.IDENTITY AS "identity",
        c.REMARKS AS "comment"
    FROM SYSCAT.COLUMNS c
    WHERE c.TABNAME = ?
      AND c.TABSCHEMA = COALESCE(?, CURRENT SCHEMA)
    ORDER BY c.COLNO
"""


async def read_raw_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    """Read columns for a table; key membership comes from the same rows."""
    rows = await execute(COLUMNS_SQL, (table.table_name, table.schema))

    columns = []
    for row in rows:
        default = row_value(row, "default")
        columns.append(RawColumn(
            name=row_value(row, "name"),
            type=(row_value(row, "type") or "").strip(),
            nullable=yes_no(row_value(row, "nullable")),
            default=default,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=row_value(row, "keyseq") is not None,
            is_auto_increment=yes_no(row_value(row, "identity")),
            comment=clean_comment(row_value(row, "comment")),
        ))

    logger.debug("Read %d db2 columns for %s", len(columns), table)
    return columns
