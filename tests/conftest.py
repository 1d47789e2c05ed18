import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

# Names of fixture that require Spark to be available
_SPARK_FIXTURE_NAME = "spark_fixture"


# ---------------------------
# in-memory DB-API fakes
# ---------------------------


@dataclass
class FakeResult:
    """Columns are names or (name, type_code) pairs."""

    columns: Sequence[Any] = ()
    rows: Sequence[Sequence[Any]] = ()

    def description(self) -> list[tuple[Any, ...]]:
        entries = []
        for column in self.columns:
            name, type_code = (column, None) if isinstance(column, str) else column
            entries.append((name, type_code, None, None, None, None, None))
        return entries


class FakeDriverError(Exception):
    """Stands in for a driver's own error class."""


class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self.connection = connection
        self.description: list[tuple[Any, ...]] | None = None
        self.closed = False
        self._rows: list[Sequence[Any]] = []

    def execute(self, operation: str, *_: Any) -> None:
        self.connection.executed.append(operation)
        result = self.connection.respond(operation)
        self.description = result.description() if result.columns else None
        self._rows = list(result.rows)

    def fetchone(self) -> Sequence[Any] | None:
        return self._rows.pop(0) if self._rows else None

    def fetchall(self) -> list[Sequence[Any]]:
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeConnection:
    """
    Answers each statement with the first handler whose pattern matches
    (regex search on the whitespace-normalised SQL). Unmatched statements
    raise FakeDriverError, like a query on a missing table would.
    """

    handlers: list[tuple[str, FakeResult | Exception]] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)
    cursors: list[FakeCursor] = field(default_factory=list)
    cancelled: int = 0
    _session: FakeCursor | None = field(default=None, repr=False)

    def on(self, pattern: str, result: FakeResult | Exception) -> "FakeConnection":
        self.handlers.append((pattern, result))
        return self

    def respond(self, operation: str) -> FakeResult:
        normalised = " ".join(operation.split())
        for pattern, result in self.handlers:
            if re.search(pattern, normalised):
                if isinstance(result, Exception):
                    raise result
                return result
        raise FakeDriverError(f"relation does not exist: {normalised}")

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def cancel(self) -> None:
        self.cancelled += 1

    # Connection-level execution, as DuckDB connections offer.

    @property
    def session(self) -> FakeCursor:
        if self._session is None:
            self._session = FakeCursor(self)
        return self._session

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        return self.session.description

    def execute(self, operation: str, *args: Any) -> "FakeConnection":
        self.session.execute(operation, *args)
        return self

    def fetchone(self) -> Sequence[Any] | None:
        return self.session.fetchone()

    def fetchall(self) -> list[Sequence[Any]]:
        return self.session.fetchall()

    @property
    def all_cursors_closed(self) -> bool:
        return all(cursor.closed for cursor in self.cursors)


@pytest.fixture
def fake_connection() -> Callable[..., FakeConnection]:
    """Factory: fake_connection(("pattern", FakeResult(...)), ...)."""

    def make(*handlers: tuple[str, FakeResult | Exception]) -> FakeConnection:
        return FakeConnection(handlers=list(handlers))

    return make


# ---------------------------
# Spark
# ---------------------------


def quiet_py4j() -> None:
    """Turn down Spark logging during the test context."""
    logging.getLogger("py4j").setLevel(logging.WARN)


@pytest.fixture(scope="session")
def spark_fixture():
    pyspark_sql = pytest.importorskip("pyspark.sql")
    quiet_py4j()

    spark = (
        pyspark_sql.SparkSession.Builder()
        .appName("Integration Test db-metadata")
        # Metadata queries only: one local core is plenty.
        .master("local[1]")
        # fail faster if there's an issue with initial [local] conections
        .config("spark.network.timeout", "10000")
        .config("spark.executor.heartbeatInterval", "1000")
        .config("spark.driver.memory", "1g")
        .config("spark.sql.shuffle.partitions", "1")
        # No need for any UI components, or keeping history
        .config("spark.ui.showConsoleProgress", "false")
        .config("spark.ui.enabled", "false")
        .config("spark.default.parallelism", "1")
        .getOrCreate()
    )

    yield spark

    spark.stop()


def _mark_tests_using_spark_fixture(tests: list[pytest.Function]) -> None:
    """
    Adds the `requires_spark` marker to tests that are using the fixture that require a
    Spark instance.

    :param tests: list of tests collected by `pytest`
    """
    for test in tests:
        if _SPARK_FIXTURE_NAME in getattr(test, "fixturenames", ()):
            test.add_marker(pytest.mark.requires_spark)


def _skip_spark_tests(test: pytest.Function) -> None:
    """
    Tell `pytest` to skip tests that require a SparkSession.

    :param test: test collected by `pytest`
    """
    requires_spark_markers = list(test.iter_markers(name="requires_spark"))

    if requires_spark_markers:
        pytest.skip("Skipped tests that require a SparkSession")


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "requires_spark: test needs a local SparkSession")


def pytest_addoption(parser: pytest.Parser):
    parser.addoption(
        "--include-spark-tests",
        action="store_true",
        default=False,
        help="Run tests that start a local SparkSession.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    if not config.getoption("--include-spark-tests"):
        _mark_tests_using_spark_fixture(tests=items)


def pytest_runtest_setup(item: pytest.Item):
    if not item.config.getoption("--include-spark-tests"):
        _skip_spark_tests(test=item)
