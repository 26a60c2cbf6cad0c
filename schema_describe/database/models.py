"""Data models for table descriptions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class _Undefined:
    """Marker for a value the catalog does not report at all.

    Distinct from ``None``, which stands for SQL NULL.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


class DefaultSyntax(str, Enum):
    """How a catalog spells a column default."""
    SQL = "sql"  # quoted SQL fragment, '' escapes
    SQL_BACKSLASH = "sql_backslash"  # quoted SQL fragment, '' and \ escapes
    LITERAL = "literal"  # the unquoted value itself
    EXPRESSION = "expression"  # known to be a non-literal expression


@dataclass(frozen=True)
class TableIdentifier:
    """A table name, optionally qualified by schema.

    Both parts are case sensitive and the name is never split on dots.
    """
    table_name: str
    schema: Optional[str] = None

    def __str__(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.table_name}"
        return self.table_name

    @classmethod
    def coerce(cls, value: Union[str, "TableIdentifier"]) -> "TableIdentifier":
        """Turn a bare table name into an identifier, pass identifiers through."""
        if isinstance(value, TableIdentifier):
            return value
        if isinstance(value, str):
            return cls(table_name=value)
        raise TypeError(f"Expected a table name or TableIdentifier, got {type(value).__name__}")


@dataclass(frozen=True)
class ForeignKeyReference:
    """Target of a foreign key."""
    table: str
    key: str

    def to_dict(self) -> Dict[str, str]:
        return {"table": self.table, "key": self.key}


@dataclass(frozen=True)
class DefaultValue:
    """A column default in both its catalog and its decoded form.

    ``raw`` is the catalog text, ``None`` for SQL NULL or ``UNDEFINED`` when
    there is no default. ``parsed`` is the decoded value, ``None`` for SQL
    NULL, or ``UNDEFINED`` when ``raw`` is absent or not a plain literal.
    """
    raw: Any = UNDEFINED
    parsed: Any = UNDEFINED

    @property
    def is_absent(self) -> bool:
        return self.raw is UNDEFINED

    @property
    def is_null(self) -> bool:
        return self.raw is not UNDEFINED and self.parsed is None

    @property
    def is_opaque(self) -> bool:
        """True for a default that exists but could not be decoded."""
        return self.raw is not UNDEFINED and self.parsed is UNDEFINED

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.raw is not UNDEFINED:
            result["raw"] = self.raw
        if self.parsed is not UNDEFINED:
            result["parsed"] = self.parsed
        return result


@dataclass
class RawColumn:
    """One column as read from a dialect's catalog.

    Only unit-of-measure differences are normalized here (nullability as a
    bool, empty comments as None); the default is still catalog text.
    """
    name: str
    type: str
    nullable: bool = True
    default: Any = UNDEFINED
    default_syntax: DefaultSyntax = DefaultSyntax.SQL
    is_primary_key: bool = False
    is_auto_increment: bool = False
    comment: Optional[str] = None
    enum_values: Optional[List[str]] = None
    unique: Optional[bool] = None
    references: Optional[ForeignKeyReference] = None


@dataclass
class ColumnDescription:
    """Dialect independent description of a single column."""
    type: str
    allow_null: bool
    default_value: DefaultValue = field(default_factory=DefaultValue)
    primary_key: bool = False
    auto_increment: bool = False
    comment: Optional[str] = None
    special: Optional[List[str]] = None
    # Only set for dialects that track constraints outside the catalog
    unique: Optional[bool] = None
    references: Optional[ForeignKeyReference] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render as plain data, leaving out keys that do not apply."""
        result: Dict[str, Any] = {
            "type": self.type,
            "allow_null": self.allow_null,
            "default_value": self.default_value.to_dict(),
            "primary_key": self.primary_key,
            "auto_increment": self.auto_increment,
            "comment": self.comment,
        }
        if self.special is not None:
            result["special"] = list(self.special)
        if self.unique is not None:
            result["unique"] = self.unique
        if self.references is not None:
            result["references"] = self.references.to_dict()
        return result


@dataclass
class ConstraintShadowEntry:
    """A unique or foreign-key declaration kept outside the live catalog."""
    table: TableIdentifier
    column: str
    unique: Optional[bool] = None
    foreign_key: Optional[ForeignKeyReference] = None

    def __post_init__(self):
        self.table = TableIdentifier.coerce(self.table)
        if isinstance(self.foreign_key, dict):
            self.foreign_key = ForeignKeyReference(**self.foreign_key)


ColumnsDescription = Dict[str, ColumnDescription]
