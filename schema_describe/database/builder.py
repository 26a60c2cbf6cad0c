"""Merge catalog rows and shadow constraints into column descriptions."""

import logging
from typing import Dict, Optional, Sequence

from ..errors import IntrospectionError
from .defaults import normalize
from .models import ColumnDescription, ColumnsDescription, ConstraintShadowEntry, RawColumn

logger = logging.getLogger(__name__)


def build_column_descriptions(
    rows: Sequence[RawColumn],
    shadow_entries: Optional[Sequence[ConstraintShadowEntry]] = None,
    track_constraints: bool = False,
) -> ColumnsDescription:
    """Build the column name to description mapping for one table.

    Args:
        rows: Catalog rows in catalog order
        shadow_entries: Constraints recorded outside the catalog for this table
        track_constraints: Report ``unique``/``references`` on every column;
            only dialects with a constraint shadow do this

    Returns:
        Descriptions keyed by column name, in catalog order

    Raises:
        IntrospectionError: If the catalog reported a column twice
    """
    shadow: Dict[str, ConstraintShadowEntry] = {}
    for entry in shadow_entries or ():
        shadow[entry.column] = entry

    descriptions: ColumnsDescription = {}
    for row in rows:
        if row.name in descriptions:
            raise IntrospectionError(
                f"Catalog reported column {row.name} more than once",
                details={"column": row.name},
            )

        description = ColumnDescription(
            type=row.type,
            allow_null=row.nullable,
            default_value=normalize(row.default, row.type, row.default_syntax),
            primary_key=row.is_primary_key,
            auto_increment=row.is_auto_increment,
            comment=row.comment,
            special=list(row.enum_values) if row.enum_values is not None else None,
        )

        if track_constraints:
            description.unique = bool(row.unique)
            description.references = row.references
            entry = shadow.get(row.name)
            if entry is not None:
                if entry.unique is not None:
                    description.unique = entry.unique
                if entry.foreign_key is not None:
                    description.references = entry.foreign_key

        descriptions[row.name] = description

    stale = set(shadow) - set(descriptions)
    if stale:
        logger.warning("Shadow constraints recorded for missing columns: %s", ", ".join(sorted(stale)))

    return descriptions
