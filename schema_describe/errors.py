"""Error types for schema-describe."""

from typing import Optional, Dict, Any


class SchemaDescribeError(Exception):
    """Base exception for schema-describe errors."""

    def __init__(self, message: str, code: str = "SCHEMA_DESCRIBE_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for structured output."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class TableNotFoundError(SchemaDescribeError):
    """The catalog returned no columns for the requested table."""

    def __init__(self, table_name: str, schema: Optional[str] = None):
        message = f"No description found for table {table_name}"
        if schema:
            message += f" in schema {schema}"
        message += ". Check the table name and schema; remember, they _are_ case sensitive."
        super().__init__(
            message,
            code="TABLE_NOT_FOUND",
            details={"table_name": table_name, "schema": schema},
        )
        self.table_name = table_name
        self.schema = schema


class IntrospectionError(SchemaDescribeError):
    """Catalog rows were inconsistent and could not be turned into a description."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INTROSPECTION_ERROR", details=details)


class UnsupportedDialectError(SchemaDescribeError):
    """No catalog reader exists for the requested dialect."""

    def __init__(self, dialect: str):
        super().__init__(
            f"Unsupported dialect: {dialect}",
            code="UNSUPPORTED_DIALECT",
            details={"dialect": dialect},
        )


class UnsupportedDefaultExpressionError(SchemaDescribeError):
    """A default value is not a literal the normalizer can decode.

    Raised and caught inside the normalizer only; callers see an opaque
    default instead.
    """

    def __init__(self, raw: str, reason: str = "not a literal"):
        super().__init__(
            f"Cannot decode default {raw!r}: {reason}",
            code="UNSUPPORTED_DEFAULT_EXPRESSION",
            details={"raw": raw, "reason": reason},
        )
        self.raw = raw
