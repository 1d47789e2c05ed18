"""
Adapter: DB-API shaped connection over a SparkSession.

Lets the metadata helpers run against Spark SQL catalogs (Unity Catalog
information_schema) the same way they run against a driver connection.

- Statements go through `spark.sql(...)`; result rows are collected eagerly.
- Transactions do not exist in Spark: commit/rollback are no-ops.
- `cancel()` cancels every running job of the session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pyspark.sql import SparkSession


class SparkCursor:
    """Minimal DB-API cursor over `spark.sql`."""

    arraysize = 1

    def __init__(self, spark: SparkSession) -> None:
        self.spark = spark
        self.description: list[tuple[Any, ...]] | None = None
        self.rowcount = -1
        self._rows: list[tuple[Any, ...]] = []
        self._position = 0

    def execute(self, operation: str, *_: Any) -> SparkCursor:
        dataframe = self.spark.sql(operation)
        self.description = [
            (field.name, field.dataType.simpleString().upper(), None, None, None, None, field.nullable)
            for field in dataframe.schema.fields
        ]
        self._rows = [tuple(row) for row in dataframe.collect()]
        self._position = 0
        self.rowcount = len(self._rows)
        return self

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetchmany(self, size: int | None = None) -> Sequence[tuple[Any, ...]]:
        size = self.arraysize if size is None else size
        rows = self._rows[self._position : self._position + size]
        self._position += len(rows)
        return rows

    def fetchall(self) -> Sequence[tuple[Any, ...]]:
        rows = self._rows[self._position :]
        self._position = len(self._rows)
        return rows

    def close(self) -> None:
        self._rows = []
        self.description = None


class SparkConnection:
    """Minimal DB-API connection over a SparkSession owned by the caller."""

    def __init__(self, spark: SparkSession) -> None:
        self.spark = spark

    def cursor(self) -> SparkCursor:
        return SparkCursor(self.spark)

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        """The session outlives this adapter; nothing to release."""

    def cancel(self) -> None:
        self.spark.sparkContext.cancelAllJobs()
