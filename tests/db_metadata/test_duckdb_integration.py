import pytest

duckdb = pytest.importorskip("duckdb")

from src.db_metadata import metadata as m  # noqa: E402
from src.db_metadata.dialects import DUCKDB, detect_dialect  # noqa: E402
from src.db_metadata.errors import DatabaseError  # noqa: E402
from src.db_metadata.identifiers import ColumnDescriptor  # noqa: E402


@pytest.fixture
def connection():
    con = duckdb.connect(":memory:")
    con.execute("CREATE TABLE roads (gid INTEGER PRIMARY KEY, name VARCHAR, kind VARCHAR)")
    con.execute(
        "INSERT INTO roads VALUES (1, 'A1', 'primary'), (2, 'A2', 'primary'), (3, 'B7', 'minor')"
    )
    con.execute("CREATE TABLE crossings (a INTEGER, b INTEGER, PRIMARY KEY (a, b))")
    yield con
    con.close()


def test_detects_duckdb(connection):
    assert detect_dialect(connection) is DUCKDB


def test_table_exists(connection):
    assert m.table_exists(connection, "roads")
    assert m.table_exists(connection, "ROADS")
    assert not m.table_exists(connection, "nowhere")


def test_columns(connection):
    assert m.get_column_names(connection, "roads") == ["gid", "name", "kind"]
    assert m.has_field(connection, "roads", "NAME")
    assert not m.has_field(connection, "roads", "speed")


def test_row_count_and_distinct_values(connection):
    assert m.get_row_count(connection, "roads") == 3
    assert sorted(m.get_unique_field_values(connection, "roads", "kind")) == ["minor", "primary"]


def test_integer_primary_key(connection):
    assert m.get_integer_primary_key_name_and_index(connection, "roads") == ColumnDescriptor(
        "gid", 1
    )


def test_composite_primary_key(connection):
    assert m.get_integer_primary_key(connection, "crossings") == 0


def test_persistent_table_is_not_temporary(connection):
    assert not m.is_temporary_table(connection, "roads")
    assert not m.is_linked_table(connection, "roads")


def test_temporary_tables_of_the_session_are_visible(connection):
    connection.execute("CREATE TEMP TABLE scratch (id INTEGER PRIMARY KEY, label VARCHAR)")
    assert m.table_exists(connection, "scratch")
    assert m.is_temporary_table(connection, "scratch")
    assert m.get_integer_primary_key_name_and_index(connection, "scratch") == ColumnDescriptor(
        "id", 1
    )


def test_uncommitted_rows_are_counted(connection):
    connection.execute("BEGIN TRANSACTION")
    connection.execute("INSERT INTO roads VALUES (4, 'C1', 'minor')")
    assert m.get_row_count(connection, "roads") == 4
    connection.execute("ROLLBACK")


def test_table_names_outside_the_current_catalog_keep_it(connection, tmp_path):
    connection.execute(f"ATTACH '{tmp_path / 'other.db'}' AS other")
    connection.execute("CREATE TABLE other.main.lakes (id INTEGER)")
    connection.execute("CREATE TEMP TABLE scratch (id INTEGER)")

    assert m.get_table_names(connection, table_name_pattern="roads") == ["main.roads"]
    assert m.get_table_names(connection, table_name_pattern="lakes") == ["other.main.lakes"]
    assert m.get_table_names(connection, table_name_pattern="scratch") == ["temp.main.scratch"]
    for name in m.get_table_names(connection):
        assert m.table_exists(connection, name)


def test_zero_column_tables_are_rejected(connection):
    with pytest.raises(DatabaseError, match="at least one column"):
        m.create_empty_table(connection, "empty")
