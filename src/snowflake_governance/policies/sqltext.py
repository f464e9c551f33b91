"""Snowflake SQL text helpers shared by policy rendering and provisioning."""

from decimal import Decimal
from typing import Any, Iterable, Optional


def quote_identifier(value: str) -> str:
    """Safely quote a Snowflake identifier."""
    if not value:
        raise ValueError("Identifier cannot be empty")
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def format_qualified_identifier(*parts: Optional[str]) -> str:
    """Format a qualified identifier quoting each non-empty part."""
    names = [part for part in parts if part]
    if not names:
        raise ValueError("Qualified identifier requires at least one part")
    return ".".join(quote_identifier(part) for part in names)


def split_qualified_name(name: str) -> list:
    """Split ``DB.SCHEMA.TABLE`` into its parts, dropping empty segments."""
    return [part for part in name.split(".") if part]


def quote_literal(value: Optional[str]) -> Optional[str]:
    """Safely quote a string literal for Snowflake SQL.

    Snowflake treats backslash as an escape inside single-quoted literals,
    so backslashes are doubled along with single quotes.
    """
    if value is None:
        return None
    escaped = value.replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def sql_literal(value: Any) -> str:
    """Render a Python scalar as a Snowflake literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return quote_literal(str(value)) or "NULL"


def literal_list(values: Iterable[Any]) -> str:
    """Render ``('A', 'B')`` for an ``IN`` list, in stable order."""
    return "(" + ", ".join(sql_literal(v) for v in values) + ")"
