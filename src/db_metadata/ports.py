"""
Ports for the database connectivity layer.

The helpers only rely on the small subset of PEP 249 (DB-API 2.0) spelled out
here, so any driver connection (psycopg, duckdb, ...) or an in-memory fake can
be passed in.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeAlias

# One DB-API description entry: (name, type_code, display_size, internal_size,
# precision, scale, null_ok). Only the first two are relied upon.
DescriptionEntry: TypeAlias = Sequence[Any]
Description: TypeAlias = Sequence[DescriptionEntry]


class Cursor(Protocol):
    """Cursor returned by `Connection.cursor()`."""

    @property
    def description(self) -> Description | None: ...

    def execute(self, operation: str, *args: Any) -> Any: ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def fetchall(self) -> Sequence[Sequence[Any]]: ...

    def close(self) -> None: ...


class Connection(Protocol):
    """An open connection; its lifecycle belongs to the caller."""

    def cursor(self) -> Cursor: ...


class DataSource(Protocol):
    """Anything able to hand out new connections."""

    def connect(self) -> Connection: ...
