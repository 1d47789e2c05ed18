"""
Metadata helpers over a DB-API connection.

Every function is stateless: it opens a cursor on the caller's connection, runs
one or two read-only queries, closes the cursor and returns a plain value. On
DuckDB the queries run on the connection itself, replacing any result the
caller has not fetched yet.

Flow
----
1) Resolve the dialect (given, or detected from the connection) and turn the
   table reference into a TableLocation, folding unquoted names.
2) Render the SQL (see `src.db_metadata.sql`) and execute it in a scoped cursor.
3) Project the rows or the cursor description into the return value.

Failures
--------
- Driver errors surface as DatabaseError.
- Existence-style checks (`table_exists`, `has_field`) answer False instead.
- Classification and primary-key lookups raise TableNotFoundError for missing
  tables.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import TypeAlias

from src.db_metadata.cursors import (
    description_names,
    execute,
    fetch_all,
    fetch_one,
    fetch_rows,
    open_cursor,
)
from src.db_metadata.dialects import Dialect, detect_dialect
from src.db_metadata.errors import DatabaseError, TableNotFoundError
from src.db_metadata.identifiers import ColumnDescriptor, TableLocation
from src.db_metadata.ports import Connection, Cursor, Description
from src.db_metadata.sql import (
    sql_count_rows,
    sql_create_empty_table,
    sql_select_current_catalog,
    sql_select_column_type,
    sql_select_distinct,
    sql_select_limit_zero,
    sql_select_primary_key_columns,
    sql_select_table_names,
    sql_select_tables_view,
)
from src.logger import LOGGER

TableReference: TypeAlias = str | TableLocation


# ---------- cursor description lookups ----------


def get_field_index(description: Description | None, field_name: str) -> int:
    """
    Return the 1-based index of `field_name` in a cursor description.

    The match ignores case; -1 means the field is absent.
    """
    for column_id, name in enumerate(description_names(description), start=1):
        if name.casefold() == field_name.casefold():
            return column_id
    return -1


def get_column_name(description: Description | None, column_index: int) -> str | None:
    """Return the column name at a 1-based index, or None when out of range."""
    names = description_names(description)
    if 1 <= column_index <= len(names):
        return names[column_index - 1]
    return None


def column_names_from_description(description: Description | None) -> list[str]:
    """Return all column names of a cursor description, in order."""
    return description_names(description)


# ---------- table shape ----------


def has_field(
    connection: Connection,
    table: TableReference,
    field_name: str,
    dialect: Dialect | None = None,
) -> bool:
    """True if the table has a column named `field_name` (case-insensitive)."""
    dialect, location = _resolve(connection, table, dialect)
    try:
        description = _describe_table(connection, dialect, location)
    except DatabaseError as error:
        LOGGER.debug("Cannot read columns of %s: %s", location, error)
        return False
    return get_field_index(description, field_name) != -1


def get_column_name_at(
    connection: Connection,
    table: TableReference,
    column_index: int,
    dialect: Dialect | None = None,
) -> str | None:
    """Return the name of the table's column at a 1-based index, or None."""
    dialect, location = _resolve(connection, table, dialect)
    return get_column_name(_describe_table(connection, dialect, location), column_index)


def get_column_names(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> list[str]:
    """Return the table's column names in declaration order."""
    dialect, location = _resolve(connection, table, dialect)
    return description_names(_describe_table(connection, dialect, location))


def get_column_names_and_indexes(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> list[ColumnDescriptor]:
    """Return (name, 1-based index) for each column of the table."""
    dialect, location = _resolve(connection, table, dialect)
    names = description_names(_describe_table(connection, dialect, location))
    return [ColumnDescriptor(name=name, index=index) for index, name in enumerate(names, start=1)]


def get_row_count(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> int:
    """Return COUNT(*) for the table (0 if the engine returns no row)."""
    dialect, location = _resolve(connection, table, dialect)
    with open_cursor(connection, dialect) as cursor:
        execute(cursor, sql_count_rows(location.to_string(dialect)))
        row = fetch_one(cursor)
    return int(row[0]) if row else 0


def table_exists(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> bool:
    """True if the table can be selected from; any database error means False."""
    dialect, location = _resolve(connection, table, dialect)
    try:
        _describe_table(connection, dialect, location)
    except DatabaseError as error:
        LOGGER.debug("Table %s treated as absent: %s", location, error)
        return False
    return True


# ---------- table classification ----------


def is_temporary_table(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> bool:
    """
    True if the engine reports the table as temporary.

    Reads the storage field when the tables view has one, `table_type` otherwise.
    """
    dialect, location = _resolve(connection, table, dialect)
    row = _read_tables_view_row(connection, dialect, location)
    return dialect.is_temporary(row)


def is_linked_table(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> bool:
    """True if the table is a link to another database (linked/foreign table)."""
    dialect, location = _resolve(connection, table, dialect)
    row = _read_tables_view_row(connection, dialect, location)
    return dialect.is_linked(row)


# ---------- primary keys ----------


def get_integer_primary_key(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> int:
    """
    Return the 1-based position of the table's integer primary key column.

    0 when there is no primary key, when it spans several columns, or when the
    key column is not of an integer type.
    """
    key = get_integer_primary_key_name_and_index(connection, table, dialect)
    return key.index if key is not None else 0


def get_integer_primary_key_name_and_index(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> ColumnDescriptor | None:
    """
    Return the name and 1-based position of the table's integer primary key.

    Rules
    -----
    - Missing table: TableNotFoundError.
    - Without a schema in the reference, only the dialect's default schema is
      searched.
    - Composite keys are not supported and give None.
    - Only integer-family columns (INTEGER, BIGINT, ...) qualify.
    """
    dialect, location = _resolve(connection, table, dialect)
    if not table_exists(connection, location, dialect):
        raise TableNotFoundError(location)

    schema_name = location.schema_or(dialect.default_schema)
    with open_cursor(connection, dialect) as cursor:
        key_rows = fetch_rows(
            execute(
                cursor,
                sql_select_primary_key_columns(
                    dialect,
                    catalog_name=location.catalog,
                    schema_name=schema_name,
                    table_name=location.table,
                ),
            )
        )
        if len(key_rows) != 1:
            if key_rows:
                LOGGER.debug(
                    "Multi-column primary key on %s is not supported: %s",
                    location,
                    [row["column_name"] for row in key_rows],
                )
            return None

        column_name = str(key_rows[0]["column_name"])
        column_rows = fetch_rows(
            execute(
                cursor,
                sql_select_column_type(
                    dialect,
                    catalog_name=location.catalog,
                    schema_name=schema_name,
                    table_name=location.table,
                    column_name=column_name,
                ),
            )
        )

    for row in column_rows:
        if dialect.is_integer_type(row.get("data_type")):
            return ColumnDescriptor(name=column_name, index=int(row["ordinal_position"]))
    return None


# ---------- listing and values ----------


def get_table_names(
    connection: Connection,
    catalog: str | None = None,
    schema_pattern: str | None = None,
    table_name_pattern: str | None = None,
    types: Sequence[str] | None = None,
    dialect: Dialect | None = None,
) -> list[str]:
    """
    Return references of the tables matching the filters, ready to use in SQL.

    `schema_pattern` and `table_name_pattern` are LIKE patterns; `types` filters
    on `table_type` (e.g. "BASE TABLE", "VIEW"); None disables a filter. The
    catalog is kept for engines with catalog-scoped names, and elsewhere for
    tables outside the session's current catalog (attached databases, DuckDB's
    `temp` catalog).
    """
    dialect = dialect or detect_dialect(connection)
    with open_cursor(connection, dialect) as cursor:
        rows = fetch_rows(
            execute(
                cursor,
                sql_select_table_names(
                    dialect,
                    catalog=catalog,
                    schema_pattern=schema_pattern,
                    table_name_pattern=table_name_pattern,
                    types=types,
                ),
            )
        )
        current_catalog = (
            "" if dialect.catalog_scoped_information_schema else _current_catalog(cursor, dialect)
        )

    table_names: list[str] = []
    for row in rows:
        location = TableLocation.from_row(row)
        if current_catalog and location.catalog.casefold() == current_catalog.casefold():
            location = replace(location, catalog="")
        table_names.append(location.to_string(dialect))
    return table_names


def get_unique_field_values(
    connection: Connection,
    table: TableReference,
    field_name: str,
    dialect: Dialect | None = None,
) -> list[str | None]:
    """
    Return the distinct values of a column as strings (NULL stays None).

    `field_name` is used verbatim and always quoted.
    """
    dialect, location = _resolve(connection, table, dialect)
    query = sql_select_distinct(location.to_string(dialect), dialect.quote_identifier(field_name))
    with open_cursor(connection, dialect) as cursor:
        execute(cursor, query)
        rows = fetch_all(cursor)
    return [None if row[0] is None else str(row[0]) for row in rows]


def create_empty_table(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None = None,
) -> None:
    """
    Create a table without any column.

    DuckDB rejects zero-column tables; there this raises DatabaseError.
    """
    dialect, location = _resolve(connection, table, dialect)
    table_sql = location.to_string(dialect)
    with open_cursor(connection, dialect) as cursor:
        execute(cursor, sql_create_empty_table(table_sql))
    LOGGER.info("Created empty table %s", table_sql)


# ---------- helpers ----------


def _resolve(
    connection: Connection,
    table: TableReference,
    dialect: Dialect | None,
) -> tuple[Dialect, TableLocation]:
    """Pick the dialect and parse `table` with it (TableLocation passes through)."""
    dialect = dialect or detect_dialect(connection)
    if isinstance(table, TableLocation):
        return dialect, table
    return dialect, TableLocation.parse(table, dialect)


def _current_catalog(cursor: Cursor, dialect: Dialect) -> str:
    """Name of the catalog unqualified references resolve against ("" if unknown)."""
    row = fetch_one(execute(cursor, sql_select_current_catalog(dialect)))
    return str(row[0]) if row and row[0] is not None else ""


def _describe_table(
    connection: Connection,
    dialect: Dialect,
    location: TableLocation,
) -> list[tuple]:
    """Run a LIMIT 0 probe and return a copy of the resulting description."""
    with open_cursor(connection, dialect) as cursor:
        execute(cursor, sql_select_limit_zero(location.to_string(dialect)))
        return [tuple(entry) for entry in cursor.description or ()]


def _read_tables_view_row(
    connection: Connection,
    dialect: Dialect,
    location: TableLocation,
) -> dict:
    """Return the first information_schema.tables row for `location`."""
    with open_cursor(connection, dialect) as cursor:
        rows = fetch_rows(execute(cursor, sql_select_tables_view(dialect, location)))
    if not rows:
        raise TableNotFoundError(location)
    return rows[0]
