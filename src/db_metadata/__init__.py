"""Relational metadata helpers over DB-API connections."""

from src.db_metadata.cancellation import ProgressMonitor, attach_cancel
from src.db_metadata.dialects import DUCKDB, POSTGRES, SPARK, Dialect, detect_dialect, get_dialect
from src.db_metadata.errors import DatabaseError, TableNotFoundError, UnsupportedDialectError
from src.db_metadata.identifiers import (
    ColumnDescriptor,
    TableLocation,
    fold_identifier,
    quote_identifier,
    quote_identifier_for,
)
from src.db_metadata.metadata import (
    column_names_from_description,
    create_empty_table,
    get_column_name,
    get_column_name_at,
    get_column_names,
    get_column_names_and_indexes,
    get_field_index,
    get_integer_primary_key,
    get_integer_primary_key_name_and_index,
    get_row_count,
    get_table_names,
    get_unique_field_values,
    has_field,
    is_linked_table,
    is_temporary_table,
    table_exists,
)
from src.db_metadata.spatial import (
    SpatialConnection,
    SpatialCursor,
    SpatialDataSource,
    wrap_connection,
    wrap_spatial_data_source,
)

__all__ = [
    "DUCKDB",
    "POSTGRES",
    "SPARK",
    "ColumnDescriptor",
    "DatabaseError",
    "Dialect",
    "ProgressMonitor",
    "SpatialConnection",
    "SpatialCursor",
    "SpatialDataSource",
    "TableLocation",
    "TableNotFoundError",
    "UnsupportedDialectError",
    "attach_cancel",
    "column_names_from_description",
    "create_empty_table",
    "detect_dialect",
    "fold_identifier",
    "get_column_name",
    "get_column_name_at",
    "get_column_names",
    "get_column_names_and_indexes",
    "get_dialect",
    "get_field_index",
    "get_integer_primary_key",
    "get_integer_primary_key_name_and_index",
    "get_row_count",
    "get_table_names",
    "get_unique_field_values",
    "has_field",
    "is_linked_table",
    "is_temporary_table",
    "quote_identifier",
    "quote_identifier_for",
    "table_exists",
    "wrap_connection",
    "wrap_spatial_data_source",
]
