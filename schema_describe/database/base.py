"""Building blocks shared by the dialect catalog readers."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]

# Executes one parameterized statement and returns its rows as mappings.
# Supplied by the connection layer; placeholders follow the driver's style.
QueryExecutor = Callable[[str, Sequence[Any]], Awaitable[List[Row]]]


async def run_catalog_queries(*queries: Awaitable[List[Row]], concurrent: bool = True) -> List[List[Row]]:
    """Await a table's independent catalog queries and return all results.

    Nothing is returned until every query has finished. The first failure
    propagates; queries still running are cancelled and awaited first.

    Args:
        queries: Awaitables, one per catalog query
        concurrent: Run them together with asyncio.gather, or one by one for
            connections that cannot multiplex statements

    Returns:
        Result rows, in the order the queries were given
    """
    if concurrent:
        tasks = [asyncio.ensure_future(query) for query in queries]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    results = []
    pending = list(queries)
    try:
        while pending:
            results.append(await pending.pop(0))
    finally:
        for query in pending:
            # never started; close to avoid "never awaited" warnings
            close = getattr(query, "close", None)
            if close:
                close()
    return results


def row_value(row: Row, key: str, default: Any = None) -> Any:
    """Read a column from a catalog row regardless of the driver's key casing."""
    if key in row:
        return row[key]
    for candidate in (key.upper(), key.lower()):
        if candidate in row:
            return row[candidate]
    return default


def yes_no(value: Any) -> bool:
    """Interpret the many spellings catalogs use for a flag."""
    if isinstance(value, str):
        return value.strip().upper() in ("YES", "Y", "TRUE", "T", "1")
    return bool(value)


def clean_comment(value: Any) -> Optional[str]:
    """Empty comments mean no comment."""
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def parse_enum_labels(type_text: str) -> Optional[List[str]]:
    """Extract labels from ``enum('a','b')`` style type text, in declaration order."""
    open_at = type_text.find("(")
    if open_at < 0 or not type_text[:open_at].strip().upper() == "ENUM":
        return None

    labels: List[str] = []
    i = open_at + 1
    while i < len(type_text):
        ch = type_text[i]
        if ch == "'":
            chars = []
            i += 1
            while i < len(type_text):
                if type_text[i] == "'" and type_text[i + 1:i + 2] == "'":
                    chars.append("'")
                    i += 2
                elif type_text[i] == "\\" and i + 1 < len(type_text):
                    chars.append(type_text[i + 1])
                    i += 2
                elif type_text[i] == "'":
                    break
                else:
                    chars.append(type_text[i])
                    i += 1
            labels.append("".join(chars))
        elif ch == ")":
            break
        i += 1
    return labels


def index_rows(rows: Sequence[Row], key: str) -> Dict[str, List[Row]]:
    """Group rows by a column value, keeping row order."""
    grouped: Dict[str, List[Row]] = {}
    for row in rows:
        grouped.setdefault(row_value(row, key), []).append(row)
    return grouped
