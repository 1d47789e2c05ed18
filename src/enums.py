"""Enumerations used throughout the metadata helpers."""

from enum import StrEnum


class DialectName(StrEnum):
    """Database engines with a known metadata dialect."""

    POSTGRES = "postgres"
    DUCKDB = "duckdb"
    SPARK = "spark"


class CaseFolding(StrEnum):
    """How an engine normalises unquoted identifiers."""

    UPPER = "upper"
    LOWER = "lower"
    NONE = "none"


class ProgressProperty(StrEnum):
    """Properties a ProgressMonitor notifies listeners about."""

    CANCELED = "CANCELED"
    PROGRESS = "PROGRESS"
