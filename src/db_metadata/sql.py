"""
SQL string builders for metadata lookups.

All functions return fully-formed SQL strings and take either an already
rendered table reference (`table_sql`) or a TableLocation plus the Dialect used
to reach information_schema.

Design guarantees
- Deterministic, side-effect free string generation.
- Identifiers are quoted by the caller; literals are escaped here with
  `escape_sql_literal`, so no driver-specific parameter style is needed.
- Name comparisons against information_schema are case-insensitive (UPPER on
  both sides).
"""

from __future__ import annotations

from collections.abc import Sequence

from src.db_metadata.dialects import Dialect
from src.db_metadata.identifiers import TableLocation
from src.db_metadata.utils import escape_sql_literal, format_literal_list


# ---------- plain table queries ----------


def sql_select_limit_zero(table_sql: str) -> str:
    """Probe a table: no rows, but the cursor description carries its columns."""
    return f"SELECT * FROM {table_sql} LIMIT 0"


def sql_count_rows(table_sql: str) -> str:
    return f"SELECT COUNT(*) AS rowcount FROM {table_sql}"


def sql_select_distinct(table_sql: str, column_sql: str) -> str:
    return f"SELECT DISTINCT {column_sql} FROM {table_sql}"


def sql_create_empty_table(table_sql: str) -> str:
    """CREATE TABLE with no columns."""
    return f"CREATE TABLE {table_sql} ()"


# ---------- information_schema ----------


def sql_select_tables_view(dialect: Dialect, location: TableLocation) -> str:
    """
    Return the information_schema.tables row(s) for one table.

    Only the segments present in `location` narrow the search.
    """
    tables_view = dialect.information_schema_view("tables", location.catalog)
    conditions = _name_conditions(
        catalog_name=location.catalog,
        schema_name=location.schema,
        table_name=location.table,
    )
    return f"""
    SELECT *
    FROM {tables_view}
    WHERE {" AND ".join(conditions)}
    """


def sql_select_table_names(
    dialect: Dialect,
    catalog: str | None = None,
    schema_pattern: str | None = None,
    table_name_pattern: str | None = None,
    types: Sequence[str] | None = None,
) -> str:
    """
    List tables, optionally narrowed by an exact catalog, LIKE patterns on
    schema and table name, and a set of table types. None means "no filter".
    """
    tables_view = dialect.information_schema_view("tables", catalog or "")
    conditions: list[str] = []
    if catalog:
        conditions.append(f"table_catalog = '{escape_sql_literal(catalog)}'")
    if schema_pattern:
        conditions.append(f"table_schema LIKE '{escape_sql_literal(schema_pattern)}'")
    if table_name_pattern:
        conditions.append(f"table_name LIKE '{escape_sql_literal(table_name_pattern)}'")
    if types:
        conditions.append(f"table_type IN ({format_literal_list(types)})")
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    return f"""
    SELECT
      table_catalog,
      table_schema,
      table_name,
      table_type
    FROM {tables_view}
    {where}
    ORDER BY table_type, table_catalog, table_schema, table_name
    """


def sql_select_primary_key_columns(
    dialect: Dialect,
    catalog_name: str,
    schema_name: str,
    table_name: str,
) -> str:
    """
    Return one row per PRIMARY KEY column of a single table.
    Zero rows if there is no primary key or the table is not visible.
    """
    tc_view = dialect.information_schema_view("table_constraints", catalog_name)
    kcu_view = dialect.information_schema_view("key_column_usage", catalog_name)
    conditions = _name_conditions(
        catalog_name=catalog_name,
        schema_name=schema_name,
        table_name=table_name,
        alias="tc",
    )

    return f"""
    SELECT
      tc.constraint_name    AS constraint_name,
      kcu.table_schema      AS table_schema,
      kcu.column_name       AS column_name,
      kcu.ordinal_position  AS key_position
    FROM {tc_view} AS tc
    JOIN {kcu_view} AS kcu
      ON kcu.constraint_name = tc.constraint_name
     AND kcu.table_schema    = tc.table_schema
     AND kcu.table_name      = tc.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
      AND {" AND ".join(conditions)}
    ORDER BY kcu.ordinal_position
    """


def sql_select_column_type(
    dialect: Dialect,
    catalog_name: str,
    schema_name: str,
    table_name: str,
    column_name: str,
) -> str:
    """
    Return (column_name, data_type, ordinal_position) for one column.
    `ordinal_position` is the 1-based position of the column in its table.
    """
    columns_view = dialect.information_schema_view("columns", catalog_name)
    conditions = _name_conditions(
        catalog_name=catalog_name,
        schema_name=schema_name,
        table_name=table_name,
    )
    column_lit = escape_sql_literal(column_name)

    return f"""
    SELECT
      table_schema,
      column_name,
      data_type,
      ordinal_position
    FROM {columns_view}
    WHERE {" AND ".join(conditions)}
      AND UPPER(column_name) = UPPER('{column_lit}')
    """


def sql_select_current_catalog(dialect: Dialect) -> str:
    """The catalog (database) unqualified names resolve against."""
    return f"SELECT {dialect.current_catalog_function} AS catalog_name"


def sql_select_geometry_type_codes() -> str:
    """PostGIS type OIDs, as reported in cursor descriptions."""
    return "SELECT oid FROM pg_catalog.pg_type WHERE typname IN ('geometry', 'geography')"


# ---------- helpers ----------


def _name_conditions(
    catalog_name: str,
    schema_name: str,
    table_name: str,
    alias: str = "",
) -> list[str]:
    """
    Case-insensitive equality predicates for the non-empty name parts.
    The table predicate is always present.
    """
    prefix = f"{alias}." if alias else ""
    conditions: list[str] = []
    if catalog_name:
        conditions.append(
            f"UPPER({prefix}table_catalog) = UPPER('{escape_sql_literal(catalog_name)}')"
        )
    if schema_name:
        conditions.append(
            f"UPPER({prefix}table_schema) = UPPER('{escape_sql_literal(schema_name)}')"
        )
    conditions.append(f"UPPER({prefix}table_name) = UPPER('{escape_sql_literal(table_name)}')")
    return conditions
