"""SQLite catalog reader.

Uses the table valued pragma functions so table names can be bound as
parameters. A schema, when given, names an attached database.
"""

import logging
import re
from typing import Dict, List, Optional

from .base import QueryExecutor, row_value, run_catalog_queries
from .models import UNDEFINED, DefaultSyntax, ForeignKeyReference, RawColumn, TableIdentifier

logger = logging.getLogger(__name__)

TABLE_INFO_SQL = 'SELECT cid, name, type, "notnull", dflt_value, pk FROM pragma_table_info(?{schema})'
INDEX_LIST_SQL = 'SELECT name, "unique", origin FROM pragma_index_list(?{schema})'
INDEX_INFO_SQL = "SELECT seqno, name FROM pragma_index_info(?{schema}) ORDER BY seqno"
FOREIGN_KEY_SQL = 'SELECT "from", "table", "to" FROM pragma_foreign_key_list(?{schema})'
TABLE_SQL_SQL = "SELECT sql FROM {master} WHERE type = 'table' AND name = ?"

# String literals, quoted identifiers and comments in CREATE TABLE text
_QUOTED_OR_COMMENT_RE = re.compile(
    r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|`[^`]*`|\[[^\]]*\]|--[^\n]*|/\*.*?(?:\*/|$)",
    re.DOTALL,
)
# AUTOINCREMENT may only follow PRIMARY KEY [ASC|DESC] [ON CONFLICT ..]
_AUTOINCREMENT_RE = re.compile(
    r"\bPRIMARY\s+KEY(?:\s+(?:ASC|DESC))?(?:\s+ON\s+CONFLICT\s+\w+)?\s+AUTOINCREMENT\b",
    re.IGNORECASE,
)


def _with_schema(template: str, table: TableIdentifier) -> str:
    return template.format(schema=", ?" if table.schema else "")


def _params(name: str, table: TableIdentifier) -> tuple:
    return (name, table.schema) if table.schema else (name,)


def _master_table(table: TableIdentifier) -> str:
    if table.schema:
        return '"{}".sqlite_master'.format(table.schema.replace('"', '""'))
    return "sqlite_master"


def _declares_autoincrement(create_sql: str) -> bool:
    return bool(_AUTOINCREMENT_RE.search(_QUOTED_OR_COMMENT_RE.sub(" ", create_sql)))


async def read_raw_columns(execute: QueryExecutor, table: TableIdentifier, concurrent: bool = True) -> List[RawColumn]:
    """Read columns, key membership, unique indexes and foreign keys for a table."""
    name = table.table_name
    col_rows, index_rows, fk_rows, sql_rows = await run_catalog_queries(
        execute(_with_schema(TABLE_INFO_SQL, table), _params(name, table)),
        execute(_with_schema(INDEX_LIST_SQL, table), _params(name, table)),
        execute(_with_schema(FOREIGN_KEY_SQL, table), _params(name, table)),
        execute(TABLE_SQL_SQL.format(master=_master_table(table)), (name,)),
        concurrent=concurrent,
    )
    if not col_rows:
        return []

    unique_columns = await _read_unique_columns(execute, table, index_rows, concurrent)
    references = await _read_references(execute, table, fk_rows, concurrent)
    create_sql = (row_value(sql_rows[0], "sql") or "") if sql_rows else ""

    pk_rows = [row for row in col_rows if (row_value(row, "pk") or 0) > 0]
    single_integer_pk = len(pk_rows) == 1 and (row_value(pk_rows[0], "type") or "").upper() == "INTEGER"

    columns = []
    for row in col_rows:
        column_name = row_value(row, "name")
        is_pk = (row_value(row, "pk") or 0) > 0
        default = row_value(row, "dflt_value")
        columns.append(RawColumn(
            name=column_name,
            type=row_value(row, "type") or "",
            nullable=not row_value(row, "notnull"),
            # dflt_value is NULL only when there is no DEFAULT clause
            default=UNDEFINED if default is None else default,
            default_syntax=DefaultSyntax.SQL,
            is_primary_key=is_pk,
            is_auto_increment=is_pk and single_integer_pk and _declares_autoincrement(create_sql),
            unique=column_name in unique_columns,
            references=references.get(column_name),
        ))

    logger.debug("Read %d sqlite columns for %s", len(columns), table)
    return columns


async def _read_unique_columns(execute: QueryExecutor, table: TableIdentifier, index_rows, concurrent: bool) -> set:
    """Columns covered on their own by a UNIQUE constraint or unique index."""
    unique_indexes = [
        row_value(row, "name") for row in index_rows
        if row_value(row, "unique") and row_value(row, "origin") != "pk"
    ]
    if not unique_indexes:
        return set()

    results = await run_catalog_queries(
        *[execute(_with_schema(INDEX_INFO_SQL, table), _params(index, table)) for index in unique_indexes],
        concurrent=concurrent,
    )
    columns = set()
    for rows in results:
        if len(rows) == 1:
            columns.add(row_value(rows[0], "name"))
    return columns


async def _read_references(execute: QueryExecutor, table: TableIdentifier, fk_rows, concurrent: bool) -> Dict[str, ForeignKeyReference]:
    """Foreign keys by source column.

    A NULL target column means the referenced table's primary key, which is
    looked up in that table's catalog.
    """
    implicit_targets = sorted({
        row_value(row, "table") for row in fk_rows if row_value(row, "to") is None
    })
    target_keys: Dict[str, Optional[str]] = {}
    if implicit_targets:
        results = await run_catalog_queries(
            *[execute(_with_schema(TABLE_INFO_SQL, table), _params(target, table)) for target in implicit_targets],
            concurrent=concurrent,
        )
        for target, rows in zip(implicit_targets, results):
            keys = sorted(
                (row for row in rows if (row_value(row, "pk") or 0) > 0),
                key=lambda row: row_value(row, "pk"),
            )
            target_keys[target] = row_value(keys[0], "name") if keys else None

    references: Dict[str, ForeignKeyReference] = {}
    for row in fk_rows:
        target_table = row_value(row, "table")
        target_key = row_value(row, "to")
        if target_key is None:
            target_key = target_keys.get(target_table)
        if target_key is None:
            logger.warning("Foreign key %s -> %s has no resolvable target column", row_value(row, "from"), target_table)
            continue
        references[row_value(row, "from")] = ForeignKeyReference(table=target_table, key=target_key)
    return references
