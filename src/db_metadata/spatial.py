"""
Spatial wrappers for DB-API connections and data sources.

SpatialConnection hands out SpatialCursors, which behave exactly like the
driver's cursor but can also find geometry columns in their description and
decode WKB/EWKB values into shapely geometries.

Geometry columns are recognised from description type codes:
- type names containing GEOMETRY or GEOGRAPHY (DuckDB spatial, Spark);
- PostGIS type OIDs, looked up once per SpatialConnection on PostgreSQL.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from shapely import wkb
from shapely.geometry.base import BaseGeometry

from src.db_metadata.cursors import description_names, execute, fetch_all, open_cursor
from src.db_metadata.dialects import POSTGRES, detect_dialect
from src.db_metadata.errors import UnsupportedDialectError
from src.db_metadata.metadata import get_field_index
from src.db_metadata.ports import Connection, Cursor, DataSource
from src.db_metadata.sql import sql_select_geometry_type_codes

_GEOMETRY_TYPE_NAMES = ("GEOMETRY", "GEOGRAPHY")


def decode_geometry(value: Any) -> BaseGeometry | None:
    """Turn a WKB/EWKB value (bytes, memoryview or hex string) into a geometry."""
    if value is None or isinstance(value, BaseGeometry):
        return value
    if isinstance(value, str):
        return wkb.loads(value, hex=True)
    return wkb.loads(bytes(value))


class SpatialCursor:
    """A DB-API cursor with geometry-aware accessors."""

    def __init__(self, cursor: Cursor, geometry_type_codes: frozenset[Any] = frozenset()) -> None:
        self._cursor = cursor
        self._geometry_type_codes = geometry_type_codes

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cursor, name)

    def __iter__(self):
        return iter(self._cursor)

    def __enter__(self) -> SpatialCursor:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def unwrap(self) -> Cursor:
        return self._cursor

    # ---------- geometry columns ----------

    def _is_geometry_type(self, type_code: Any) -> bool:
        if self._geometry_type_codes and type_code in self._geometry_type_codes:
            return True
        type_name = str(type_code).upper()
        return any(name in type_name for name in _GEOMETRY_TYPE_NAMES)

    def geometry_field_indexes(self) -> list[int]:
        """1-based indexes of the geometry columns of the current result."""
        description = self._cursor.description or ()
        return [
            index
            for index, entry in enumerate(description, start=1)
            if self._is_geometry_type(entry[1])
        ]

    def first_geometry_field_index(self) -> int:
        """1-based index of the first geometry column, -1 if there is none."""
        indexes = self.geometry_field_indexes()
        return indexes[0] if indexes else -1

    def get_geometry(self, row: Sequence[Any], field: str | int | None = None) -> BaseGeometry | None:
        """
        Decode a geometry value from a fetched row.

        `field` is a column name (case-insensitive) or 1-based index; by default
        the first geometry column is used.
        """
        if field is None:
            index = self.first_geometry_field_index()
            if index == -1:
                raise ValueError("The result has no geometry column.")
        elif isinstance(field, int):
            index = field
        else:
            index = get_field_index(self._cursor.description, field)
            if index == -1:
                names = ", ".join(description_names(self._cursor.description))
                raise ValueError(f"No column {field!r} in result ({names}).")
        return decode_geometry(row[index - 1])


class SpatialConnection:
    """A DB-API connection whose cursors are SpatialCursors."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self._geometry_type_codes: frozenset[Any] | None = None

    def __getattr__(self, name: str) -> Any:
        return getattr(self._connection, name)

    def __enter__(self) -> SpatialConnection:
        return self

    def __exit__(self, *_: Any) -> None:
        self._connection.close()

    def unwrap(self) -> Connection:
        return self._connection

    def cursor(self, *args: Any, **kwargs: Any) -> SpatialCursor:
        return SpatialCursor(
            self._connection.cursor(*args, **kwargs),
            geometry_type_codes=self.geometry_type_codes(),
        )

    def geometry_type_codes(self) -> frozenset[Any]:
        """Engine type codes of geometry columns (PostGIS OIDs on PostgreSQL)."""
        if self._geometry_type_codes is None:
            self._geometry_type_codes = self._read_geometry_type_codes()
        return self._geometry_type_codes

    def _read_geometry_type_codes(self) -> frozenset[Any]:
        try:
            dialect = detect_dialect(self._connection)
        except UnsupportedDialectError:
            return frozenset()
        if dialect is not POSTGRES:
            return frozenset()
        with open_cursor(self._connection, dialect) as cursor:
            execute(cursor, sql_select_geometry_type_codes())
            return frozenset(row[0] for row in fetch_all(cursor))


class SpatialDataSource:
    """A data source whose connections are SpatialConnections."""

    def __init__(self, data_source: DataSource) -> None:
        self._data_source = data_source

    def __getattr__(self, name: str) -> Any:
        return getattr(self._data_source, name)

    def unwrap(self) -> DataSource:
        return self._data_source

    def connect(self) -> SpatialConnection:
        return wrap_connection(self._data_source.connect())


def wrap_connection(connection: Connection) -> SpatialConnection:
    """Wrap `connection` unless it already is a SpatialConnection."""
    if isinstance(connection, SpatialConnection):
        return connection
    return SpatialConnection(connection)


def wrap_spatial_data_source(data_source: DataSource) -> SpatialDataSource:
    """Wrap `data_source` unless it already is a SpatialDataSource."""
    if isinstance(data_source, SpatialDataSource):
        return data_source
    return SpatialDataSource(data_source)
