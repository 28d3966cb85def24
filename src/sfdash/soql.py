"""SOQL text builders for the find helpers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

# Field types compared without quotes in WHERE clauses
UNQUOTED_FIELD_TYPES = frozenset({"int", "currency", "double", "boolean", "percent"})


def string_literal(value: Any) -> str:
    """Quoted SOQL string with backslashes and single quotes escaped ('O\\'Brien')."""
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def quote_value(value: Any) -> str:
    """Literal for a where clause: strings quoted, None -> NULL, other scalars as-is."""
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return string_literal(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_where(where: Union[str, Mapping[str, Any]]) -> str:
    """Turn ``{"Name": "Acme", "Id": ["1", "2"]}`` into ``Name = 'Acme' AND Id IN ('1', '2')``.

    A string is taken as a ready-made clause. Mapping order is kept.
    """
    if isinstance(where, str):
        return where

    conditions = []
    for field, value in where.items():
        if isinstance(value, (list, tuple)):
            values = ", ".join(quote_value(v) for v in value)
            conditions.append(f"{field} IN ({values})")
        else:
            conditions.append(f"{field} = {quote_value(value)}")
    return " AND ".join(conditions)


def select_soql(sobject: str, field_names: Iterable[str], where: str) -> str:
    return f"SELECT {', '.join(field_names)} FROM {sobject} WHERE {where}"


def comparison_value(value: Any, field_type: Any) -> str:
    """Value as it appears on the right of ``field = ...`` for a described field type."""
    if field_type in UNQUOTED_FIELD_TYPES:
        return str(value)
    return string_literal(value)


def find_by_field_soql(sobject: str, field_names: Iterable[str], field: str, value: Any, field_type: Any) -> str:
    return select_soql(sobject, field_names, f"{field} = {comparison_value(value, field_type)}")
