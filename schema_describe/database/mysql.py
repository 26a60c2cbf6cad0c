"""MySQL and MariaDB catalog reader.

Both report columns through ``information_schema``. They disagree on how
defaults are spelled: MySQL gives the bare value (``hello``), MariaDB 10.2.7+
gives a quoted SQL fragment (``'hello'``) and ``NULL`` for a NULL default.
"""

import logging
import re
from typing import List

from .base import (
    QueryExecutor,
    clean_comment,
    parse_enum_labels,
    row_value,
    run_catalog_queries,
    yes_no,
)
from .models import DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

COLUMNS_SQL = """
    SELECT
        c.COLUMN_NAME AS name,
        c.COLUMN_TYPE AS column_type,
        c.DATA_TYPE AS data_type,
        c.IS_NULLABLE AS nullable,
        c.COLUMN_DEFAULT AS column_default,
        c.EXTRA AS extra,
        c.COLUMN_COMMENT AS comment
    FROM information_schema.COLUMNS c
    WHERE c.TABLE_SCHEMA = COALESCE(%s, DATABASE())
      AND c.TABLE_NAME = %s
    ORDER BY c.ORDINAL_POSITION
"""

PRIMARY_KEY_SQL = """
    SELECT k.COLUMN_NAME AS name
    FROM information_schema.KEY_COLUMN_USAGE k
    WHERE k.TABLE_SCHEMA = COALESCE(%s, DATABASE())
      AND k.TABLE_NAME = %s
      AND k.CONSTRAINT_NAME = 'PRIMARY'
    ORDER BY k.ORDINAL_POSITION
"""

_CURRENT_TIMESTAMP_RE = re.compile(r"^current_timestamp(\(\d*\))?$", re.IGNORECASE)


async def read_raw_columns(
    execute: QueryExecutor,
    table: TableIdentifier,
    concurrent: bool = True,
    mariadb: bool = False,
) -> List[RawColumn]:
    """Read columns and primary key membership for a table."""
    params = (table.schema, table.table_name)
    col_rows, pk_rows = await run_catalog_queries(
        execute(COLUMNS_SQL, params),
        execute(PRIMARY_KEY_SQL, params),
        concurrent=concurrent,
    )
    pk_columns = {row_value(row, "name") for row in pk_rows}

    columns = []
    for row in col_rows:
        column_type = row_value(row, "column_type") or row_value(row, "data_type") or ""
        extra = (row_value(row, "extra") or "").lower()
        default = row_value(row, "column_default")

        if mariadb:
            syntax = DefaultSyntax.SQL_BACKSLASH
        elif "default_generated" in extra or (
            isinstance(default, str) and _CURRENT_TIMESTAMP_RE.match(default.strip())
        ):
            syntax = DefaultSyntax.EXPRESSION
        else:
            syntax = DefaultSyntax.LITERAL

        columns.append(RawColumn(
            name=row_value(row, "name"),
            type=_render_type(column_type),
            nullable=yes_no(row_value(row, "nullable")),
            default=default,
            default_syntax=syntax,
            is_primary_key=row_value(row, "name") in pk_columns,
            is_auto_increment="auto_increment" in extra,
            comment=clean_comment(row_value(row, "comment")),
            enum_values=parse_enum_labels(column_type),
        ))

    logger.debug("Read %d %s columns for %s", len(columns), "mariadb" if mariadb else "mysql", table)
    return columns


async def read_mariadb_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    return await read_raw_columns(execute, table, concurrent=concurrent, mariadb=True)


def _render_type(column_type: str) -> str:
    """Upper-case the type keyword, leaving ENUM/SET labels untouched."""
    head, paren, tail = column_type.partition("(")
    if head.strip().lower() in ("enum", "set"):
        return head.upper() + paren + tail
    return column_type.upper()
