"""
Cursor helpers: scoped acquisition and thin execute/fetch wrappers.

- `open_cursor` always closes the cursor it opened, including on failure paths.
- `execute` and the fetch helpers convert driver errors into DatabaseError;
  callers decide whether a failure is fatal or simply means "no".
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from src.db_metadata.errors import DatabaseError
from src.db_metadata.ports import Connection, Cursor, Description
from src.logger import LOGGER

if TYPE_CHECKING:
    from src.db_metadata.dialects import Dialect


@contextmanager
def open_cursor(connection: Connection, dialect: Dialect | None = None) -> Iterator[Cursor]:
    """
    Yield a cursor for `connection` and close it on exit.

    When the dialect's cursors run in a session of their own (DuckDB), the
    connection itself is yielded and left open instead, so the caller's
    temporary tables and uncommitted changes stay visible.
    """
    if dialect is not None and not dialect.cursor_shares_session:
        yield cast(Cursor, connection)
        return

    cursor = connection.cursor()
    try:
        yield cursor
    finally:
        cursor.close()


def execute(cursor: Cursor, sql: str) -> Cursor:
    """Run `sql` on `cursor`, wrapping any driver error in DatabaseError."""
    LOGGER.debug("Executing: %s", " ".join(sql.split()))
    try:
        cursor.execute(sql)
    except Exception as error:
        raise DatabaseError(f"Database operation failed: {error}") from error
    return cursor


def fetch_one(cursor: Cursor) -> Sequence[Any] | None:
    """Next row of the current result, or None when exhausted."""
    try:
        return cursor.fetchone()
    except Exception as error:
        raise DatabaseError(f"Database operation failed: {error}") from error


def fetch_all(cursor: Cursor) -> Sequence[Sequence[Any]]:
    """All remaining rows of the current result."""
    try:
        return cursor.fetchall()
    except Exception as error:
        raise DatabaseError(f"Database operation failed: {error}") from error


def fetch_rows(cursor: Cursor) -> list[dict[str, Any]]:
    """
    Fetch all remaining rows as dicts keyed by lower-cased column name.

    Lower-cased keys hide the casing differences between engines'
    information_schema column labels.
    """
    names = [name.lower() for name in description_names(cursor.description)]
    return [dict(zip(names, row)) for row in fetch_all(cursor)]


def description_names(description: Description | None) -> list[str]:
    """Column names from a DB-API description (empty for statements without results)."""
    if not description:
        return []
    return [str(entry[0]) for entry in description]
