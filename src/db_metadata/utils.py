from __future__ import annotations

from collections.abc import Iterable


def escape_sql_literal(value: str) -> str:
    """
    Escape a Python string for use as a single-quoted SQL literal.
    Doubles single quotes per SQL rules. Empty/None → empty string.
    """
    return (value or "").replace("'", "''")


def format_literal_list(values: Iterable[str]) -> str:
    """
    Format values for an IN (...) clause: `'a', 'b'`.
    Values are single-quoted SQL literals (NOT identifiers), order preserved.
    """
    return ", ".join(f"'{escape_sql_literal(v)}'" for v in values)
