"""Decoding of catalog default-value text into Python values.

Catalogs report column defaults as SQL fragments: ``'it''s'::text``,
``((0))``, ``CAST('x' AS VARCHAR)``, ``nextval('seq'::regclass)``. Only a
small literal grammar is decoded here (quoted strings, numbers, booleans,
the NULL keyword, wrapped in parentheses and casts). Everything else is
kept verbatim and reported as undecodable.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union

from ..errors import UnsupportedDefaultExpressionError
from .models import UNDEFINED, DefaultSyntax, DefaultValue

logger = logging.getLogger(__name__)


class DataTypeFamily(str, Enum):
    """Families that decide how a default literal is converted."""
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    OTHER = "other"


_FAMILIES = {
    DataTypeFamily.STRING: {
        "CHAR", "CHARACTER", "VARCHAR", "CHARACTER VARYING", "NCHAR", "NVARCHAR",
        "NATIONAL CHARACTER", "NATIONAL CHARACTER VARYING", "VARCHAR2", "NVARCHAR2",
        "TEXT", "TINYTEXT", "MEDIUMTEXT", "LONGTEXT", "NTEXT", "CLOB", "DBCLOB",
        "STRING", "CITEXT", "ENUM", "SET", "USER-DEFINED", "GRAPHIC", "VARGRAPHIC",
        "LONG VARCHAR", "BPCHAR", "NAME",
    },
    DataTypeFamily.INTEGER: {
        "INT", "INTEGER", "TINYINT", "SMALLINT", "MEDIUMINT", "BIGINT",
        "INT2", "INT4", "INT8", "SERIAL", "SMALLSERIAL", "BIGSERIAL",
        "HUGEINT", "UHUGEINT", "UBIGINT", "UINTEGER", "USMALLINT", "UTINYINT",
    },
    DataTypeFamily.DECIMAL: {
        "DECIMAL", "NUMERIC", "DEC", "NUMBER", "MONEY", "SMALLMONEY", "DECFLOAT",
    },
    DataTypeFamily.FLOAT: {
        "FLOAT", "REAL", "DOUBLE", "DOUBLE PRECISION", "FLOAT4", "FLOAT8",
    },
    DataTypeFamily.BOOLEAN: {
        "BOOLEAN", "BOOL", "BIT",
    },
}

_TYPE_MODIFIERS = {"UNSIGNED", "SIGNED", "ZEROFILL"}

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")
_CAST_SUFFIX_RE = re.compile(
    r'(?:\s*::\s*(?:"[^"]+"|[A-Za-z_][\w.]*)'
    r"(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\)|\s+[A-Za-z_]\w*)*"
    r"(?:\s*\[\])*)+"
)
_AS_RE = re.compile(r"\s+AS\s+", re.IGNORECASE)

_BOOLEAN_WORDS = {
    "true": True, "t": True, "yes": True, "y": True, "on": True, "1": True,
    "false": False, "f": False, "no": False, "n": False, "off": False, "0": False,
}
_FLOAT_WORDS = {"nan", "infinity", "-infinity", "+infinity", "inf", "-inf"}
_BACKSLASH_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "Z": "\x1a"}

# Literal kinds produced by the scanner
_STRING = "string"
_NUMBER = "number"
_BIT = "bit"
_KEYWORD = "keyword"
_NULL = "null"


@dataclass(frozen=True)
class DataTypeDescriptor:
    """The parts of a native type string that matter for default decoding."""
    name: str
    family: DataTypeFamily
    length: Optional[int] = None
    scale: Optional[int] = None

    @property
    def precision(self) -> Optional[int]:
        return self.length


def parse_data_type(type_text: Optional[str]) -> DataTypeDescriptor:
    """Classify a native type string such as ``NUMERIC(10,2)`` or ``int unsigned``.

    Args:
        type_text: Type as rendered by the backend

    Returns:
        DataTypeDescriptor with the family and any numeric arguments
    """
    text = (type_text or "").strip()
    head, _, tail = text.partition("(")
    words = [w for w in head.upper().split() if w not in _TYPE_MODIFIERS]
    name = " ".join(words)

    family = _family_for(name, words)

    length = scale = None
    if tail and name not in ("ENUM", "SET"):
        args = tail.split(")", 1)[0].split(",")
        numbers = [a.strip() for a in args if a.strip().isdigit()]
        if numbers:
            length = int(numbers[0])
        if len(numbers) > 1:
            scale = int(numbers[1])

    # BIT(n) with n > 1 is a bit string, not a flag
    if name == "BIT" and length is not None and length > 1:
        family = DataTypeFamily.OTHER

    return DataTypeDescriptor(name=name, family=family, length=length, scale=scale)


def _family_for(name: str, words) -> DataTypeFamily:
    for family, names in _FAMILIES.items():
        if name in names:
            return family
    if words:
        for family, names in _FAMILIES.items():
            if words[0] in names:
                return family
    # SQLite style affinity for free-form declared types
    if name.endswith("INT") and not name.endswith("POINT"):
        return DataTypeFamily.INTEGER
    if any(part in name for part in ("CHAR", "TEXT", "CLOB")):
        return DataTypeFamily.STRING
    return DataTypeFamily.OTHER


def normalize(
    raw: Any,
    data_type: Union[str, DataTypeDescriptor, None],
    syntax: DefaultSyntax = DefaultSyntax.SQL,
) -> DefaultValue:
    """Produce the raw/parsed pair for a catalog default.

    Args:
        raw: Catalog default text, None for a reported NULL, UNDEFINED if absent
        data_type: Native type string or an already parsed descriptor
        syntax: How the dialect's catalog spells defaults

    Returns:
        DefaultValue; ``parsed`` is UNDEFINED when ``raw`` is not a literal
    """
    if raw is UNDEFINED:
        return DefaultValue()
    if raw is None:
        return DefaultValue(raw=None, parsed=None)
    if not isinstance(raw, str):
        # Some drivers hand back native values already
        return DefaultValue(raw=raw, parsed=raw)

    descriptor = data_type if isinstance(data_type, DataTypeDescriptor) else parse_data_type(data_type)
    syntax = DefaultSyntax(syntax)

    try:
        if syntax is DefaultSyntax.EXPRESSION:
            raise UnsupportedDefaultExpressionError(raw, "expression default")
        if syntax is DefaultSyntax.LITERAL:
            parsed = _decode_unquoted(raw, descriptor)
        else:
            kind, value = _read_literal(raw, backslash=syntax is DefaultSyntax.SQL_BACKSLASH)
            if kind == _NULL:
                # only the bare keyword drops its text; casts keep theirs
                return DefaultValue(raw=None if raw.strip().upper() == "NULL" else raw, parsed=None)
            parsed = _convert(kind, value, descriptor, raw)
    except UnsupportedDefaultExpressionError as e:
        logger.debug("Leaving default %r undecoded for %s: %s", raw, descriptor.name or "untyped", e.details["reason"])
        return DefaultValue(raw=raw, parsed=UNDEFINED)

    return DefaultValue(raw=raw, parsed=parsed)


def _decode_unquoted(raw: str, descriptor: DataTypeDescriptor) -> Any:
    """Decode a default the catalog reports as the bare value."""
    if descriptor.family in (DataTypeFamily.STRING, DataTypeFamily.OTHER):
        return raw
    kind, value = _read_literal(raw, backslash=False)
    if kind == _NULL:
        raise UnsupportedDefaultExpressionError(raw, "NULL keyword in a literal default")
    return _convert(kind, value, descriptor, raw)


def _read_literal(text: str, backslash: bool) -> Tuple[str, str]:
    """Reduce a default fragment to a single literal, or raise."""
    text = _strip_parens(text.strip())
    if not text:
        raise UnsupportedDefaultExpressionError(text, "empty expression")

    if text[:4].upper() == "CAST" and text[4:].lstrip().startswith("("):
        open_at = text.index("(")
        if _closing_paren(text, open_at) != len(text) - 1:
            raise UnsupportedDefaultExpressionError(text, "trailing text after CAST")
        operand = _split_cast_operand(text[open_at + 1:-1])
        return _read_literal(operand, backslash)

    kind, value, end = _scan_literal(text, backslash)
    rest = text[end:].strip()
    if rest and not _CAST_SUFFIX_RE.fullmatch(rest):
        raise UnsupportedDefaultExpressionError(text, f"unexpected {rest!r} after literal")
    return kind, value


def _scan_literal(text: str, backslash: bool) -> Tuple[str, str, int]:
    """Read one literal token at the start of ``text``.

    Returns:
        (kind, value, index just past the literal)
    """
    first = text[0]
    prefix = text[:2].upper()

    if first == "'":
        value, end = _read_quoted(text, 0, backslash)
        return _STRING, value, end
    if prefix in ("N'", "E'"):
        value, end = _read_quoted(text, 1, backslash or prefix == "E'")
        return _STRING, value, end
    if prefix == "B'":
        value, end = _read_quoted(text, 1, False)
        return _BIT, value, end
    if first == "(":
        close = _closing_paren(text, 0)
        if close < 0:
            raise UnsupportedDefaultExpressionError(text, "unbalanced parentheses")
        kind, value = _read_literal(text[1:close], backslash)
        return kind, value, close + 1

    match = _NUMBER_RE.match(text)
    if match:
        return _NUMBER, match.group(0), match.end()

    match = _WORD_RE.match(text)
    if match:
        word = match.group(0).upper()
        if word == "NULL":
            return _NULL, "NULL", match.end()
        if word in ("TRUE", "FALSE"):
            return _KEYWORD, word, match.end()
        raise UnsupportedDefaultExpressionError(text, f"{match.group(0)} is not a literal")

    raise UnsupportedDefaultExpressionError(text, "not a literal")


def _read_quoted(text: str, start: int, backslash: bool) -> Tuple[str, int]:
    """Read a single-quoted string whose opening quote is at ``start``."""
    chars = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "'":
            if text[i + 1:i + 2] == "'":
                chars.append("'")
                i += 2
                continue
            return "".join(chars), i + 1
        if backslash and ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            chars.append(_BACKSLASH_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        chars.append(ch)
        i += 1
    raise UnsupportedDefaultExpressionError(text, "unterminated string")


def _closing_paren(text: str, open_at: int) -> int:
    """Index of the parenthesis closing the one at ``open_at``, or -1."""
    depth = 0
    i = open_at
    while i < len(text):
        ch = text[i]
        if ch == "'":
            # skip over quoted text, '' included
            i += 1
            while i < len(text):
                if text[i] == "'" and text[i + 1:i + 2] != "'":
                    break
                i += 2 if text[i] == "'" else 1
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _strip_parens(text: str) -> str:
    while text.startswith("(") and _closing_paren(text, 0) == len(text) - 1:
        text = text[1:-1].strip()
    return text


def _split_cast_operand(inner: str) -> str:
    """Return the operand of ``<operand> AS <type>``, ignoring quoted text."""
    last = None
    for match in _AS_RE.finditer(inner):
        if _closing_paren("(" + inner[:match.start()] + ")", 0) == match.start() + 1:
            last = match
    if last is None:
        raise UnsupportedDefaultExpressionError(inner, "CAST without AS")
    return inner[:last.start()]


def _convert(kind: str, value: str, descriptor: DataTypeDescriptor, raw: str) -> Any:
    """Convert a scanned literal to the Python value for the column family."""
    family = descriptor.family

    if family in (DataTypeFamily.STRING, DataTypeFamily.OTHER):
        if kind in (_STRING, _NUMBER):
            return value
        raise UnsupportedDefaultExpressionError(raw, f"{kind} literal for a {family.value} column")

    if family is DataTypeFamily.BOOLEAN:
        if kind == _BIT:
            value = value.lstrip("0") or "0"
        key = value.strip().lower()
        if key in _BOOLEAN_WORDS:
            return _BOOLEAN_WORDS[key]
        raise UnsupportedDefaultExpressionError(raw, "not a boolean literal")

    if kind not in (_STRING, _NUMBER):
        raise UnsupportedDefaultExpressionError(raw, f"{kind} literal for a {family.value} column")
    text = value.strip()

    if family is DataTypeFamily.INTEGER:
        if _INTEGER_RE.fullmatch(text):
            return int(text)
        raise UnsupportedDefaultExpressionError(raw, "not an integer literal")

    if family is DataTypeFamily.DECIMAL:
        if _NUMBER_RE.fullmatch(text):
            return text
        raise UnsupportedDefaultExpressionError(raw, "not a numeric literal")

    # FLOAT
    if _NUMBER_RE.fullmatch(text) or text.lower() in _FLOAT_WORDS:
        return float(text)
    raise UnsupportedDefaultExpressionError(raw, "not a floating point literal")
