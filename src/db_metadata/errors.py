"""Exceptions raised by the metadata helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.db_metadata.identifiers import TableLocation


class DatabaseError(Exception):
    """A database operation failed."""


class TableNotFoundError(DatabaseError):
    """The referenced table is not visible through the connection."""

    def __init__(self, location: TableLocation) -> None:
        super().__init__(f"The table {location} does not exist")
        self.location = location


class UnsupportedDialectError(DatabaseError):
    """No metadata dialect is known for the given connection."""
