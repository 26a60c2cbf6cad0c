"""DuckDB catalog reader using the duckdb_* table functions."""

import logging
from typing import List

from .base import QueryExecutor, clean_comment, parse_enum_labels, row_value, run_catalog_queries, yes_no
from .models import UNDEFINED, DefaultSyntax, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

COLUMNS_SQL = """
    SELECT
        column_name AS name,
        data_type AS type,
        is_nullable AS nullable,
        column_default AS column_default,
        comment AS comment
    FROM duckdb_columns()
    WHERE table_name = ?
      AND schema_name = COALESCE(?, current_schema())
    ORDER BY column_index
"""

PRIMARY_KEY_SQL = """
    SELECT constraint_column_names AS names
    FROM duckdb_constraints()
    WHERE table_name = ?
      AND schema_name = COALESCE(?, current_schema())
      AND constraint_type = 'PRIMARY KEY'
"""


async def read_raw_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    """Read columns and primary key membership for a table."""
    params = (table.table_name, table.schema)
    col_rows, pk_rows = await run_catalog_queries(
        execute(COLUMNS_SQL, params),
        execute(PRIMARY_KEY_SQL, params),
        concurrent=concurrent,
    )

    pk_columns = set()
    for row in pk_rows:
        names = row_value(row, "names")
        if isinstance(names, (list, tuple)):
            pk_columns.update(names)
        elif names is not None:
            pk_columns.add(names)

    columns = []
    for row in col_rows:
        name = row_value(row, "name")
        column_type = row_value(row, "type") or ""
        default = row_value(row, "column_default")
        columns.append(RawColumn(
            name=name,
            type=column_type,
            nullable=yes_no(row_value(row, "nullable")),
            default=UNDEFINED if default is None else default,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=name in pk_columns,
            is_auto_increment=isinstance(default, str) and default.lower().startswith("nextval("),
            comment=clean_comment(row_value(row, "comment")),
            enum_values=parse_enum_labels(column_type),
        ))

    logger.debug("Read %d duckdb columns for %s", len(columns), table)
    return columns
