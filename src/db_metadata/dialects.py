"""
Metadata dialects.

A Dialect captures the handful of conventions that differ between the
supported engines: identifier case folding and quoting, the default schema,
where information_schema lives, how table kinds are reported, and how a
running statement is cancelled.

Conventions:
- One module-level instance per engine: POSTGRES, DUCKDB, SPARK.
- `detect_dialect` maps a live connection to one of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from src import settings
from src.db_metadata.errors import UnsupportedDialectError
from src.db_metadata.identifiers import quote_identifier
from src.enums import CaseFolding, DialectName

# Keywords that must always be quoted when used as identifiers.
_SQL_RESERVED_WORDS = frozenset(
    {
        "ALL", "ALTER", "AND", "ANY", "ARRAY", "AS", "ASC", "BETWEEN", "BOTH",
        "BY", "CASE", "CAST", "CHECK", "COLLATE", "COLUMN", "CONSTRAINT",
        "CREATE", "CROSS", "CURRENT_CATALOG", "CURRENT_DATE", "CURRENT_SCHEMA",
        "CURRENT_TIME", "CURRENT_TIMESTAMP", "CURRENT_USER", "DEFAULT",
        "DELETE", "DESC", "DISTINCT", "DO", "DROP", "ELSE", "END", "EXCEPT",
        "EXISTS", "FALSE", "FETCH", "FOR", "FOREIGN", "FROM", "FULL", "GRANT",
        "GROUP", "HAVING", "IN", "INNER", "INSERT", "INTERSECT", "INTERVAL",
        "INTO", "IS", "JOIN", "LEADING", "LEFT", "LIKE", "LIMIT", "LOCALTIME",
        "LOCALTIMESTAMP", "NATURAL", "NOT", "NULL", "OFFSET", "ON", "ONLY",
        "OR", "ORDER", "OUTER", "PRIMARY", "REFERENCES", "RIGHT", "ROW",
        "ROWNUM", "SELECT", "SESSION_USER", "SET", "SOME", "TABLE", "THEN",
        "TO", "TRAILING", "TRUE", "UNION", "UNIQUE", "UNKNOWN", "UPDATE",
        "USER", "USING", "VALUE", "VALUES", "WHEN", "WHERE", "WINDOW", "WITH",
    }
)

# Column types accepted as an integer edit key (compared upper-case).
INTEGER_KEY_TYPES = frozenset(
    {"INTEGER", "INT", "INT4", "INT8", "BIGINT", "LONG", "SERIAL", "BIGSERIAL", "ROWID"}
)


@dataclass(frozen=True, slots=True)
class Dialect:
    """Engine-specific metadata conventions."""

    name: DialectName
    quote: str
    case_folding: CaseFolding
    default_schema: str
    plain_identifier: re.Pattern[str]
    cancel_method: str
    linked_markers: tuple[str, ...] = ("TABLE LINK", "FOREIGN")
    temporary_fields: tuple[str, ...] = ("storage_type", "table_type")
    reserved_words: frozenset[str] = _SQL_RESERVED_WORDS
    catalog_scoped_information_schema: bool = False
    current_catalog_function: str = "current_database()"
    # False when `connection.cursor()` opens a separate session that cannot see
    # the caller's temporary tables or uncommitted changes.
    cursor_shares_session: bool = True
    driver_modules: tuple[str, ...] = ()

    def fold(self, identifier: str) -> str:
        """Normalise an unquoted identifier the way the engine does."""
        if self.case_folding is CaseFolding.UPPER:
            return identifier.upper()
        if self.case_folding is CaseFolding.LOWER:
            return identifier.lower()
        return identifier

    def needs_quoting(self, identifier: str) -> bool:
        """True for reserved words and names the engine would not keep verbatim."""
        return (
            identifier.upper() in self.reserved_words
            or self.plain_identifier.fullmatch(identifier) is None
        )

    def quote_identifier(self, identifier: str) -> str:
        return quote_identifier(identifier, self.quote)

    def information_schema_view(self, view: str, catalog: str = "") -> str:
        """
        Return the path of an information_schema view.

        Catalog-scoped engines (Unity Catalog) expose one information_schema per
        catalog; the others ignore `catalog` and resolve against the session.
        """
        if self.catalog_scoped_information_schema and catalog:
            return ".".join(
                self.quote_identifier(part) for part in (catalog, "information_schema", view)
            )
        return f"information_schema.{view}"

    def is_integer_type(self, data_type: str | None) -> bool:
        if not data_type:
            return False
        return str(data_type).strip().upper() in INTEGER_KEY_TYPES

    def is_temporary(self, row: dict[str, Any]) -> bool:
        """Classify a tables-view row, preferring the dedicated storage field."""
        for field in self.temporary_fields:
            if field in row:
                return "TEMPORARY" in str(row[field] or "").upper()
        return False

    def is_linked(self, row: dict[str, Any]) -> bool:
        table_type = str(row.get("table_type") or "").upper()
        return any(marker in table_type for marker in self.linked_markers)

    def cancel(self, connection: Any) -> None:
        """Ask the engine to abort whatever `connection` is running."""
        getattr(connection, self.cancel_method)()


POSTGRES = Dialect(
    name=DialectName.POSTGRES,
    quote='"',
    case_folding=CaseFolding.LOWER,
    default_schema="public",
    plain_identifier=re.compile(r"[a-z][a-z0-9_]*"),
    cancel_method="cancel",
    driver_modules=("psycopg", "psycopg2", "pg8000"),
)

DUCKDB = Dialect(
    name=DialectName.DUCKDB,
    quote='"',
    case_folding=CaseFolding.NONE,
    default_schema="main",
    plain_identifier=re.compile(r"[A-Za-z_][A-Za-z0-9_]*"),
    cancel_method="interrupt",
    linked_markers=(),
    cursor_shares_session=False,
    driver_modules=("duckdb", "_duckdb"),
)

SPARK = Dialect(
    name=DialectName.SPARK,
    quote="`",
    case_folding=CaseFolding.LOWER,
    default_schema="default",
    plain_identifier=re.compile(r"[a-z_][a-z0-9_]*"),
    cancel_method="cancel",
    catalog_scoped_information_schema=True,
    current_catalog_function="current_catalog()",
    driver_modules=("pyspark", "src.db_metadata.spark"),
)

_DIALECTS_BY_NAME: dict[str, Dialect] = {
    dialect.name: dialect for dialect in (POSTGRES, DUCKDB, SPARK)
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name (case-insensitive)."""
    try:
        return _DIALECTS_BY_NAME[name.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(_DIALECTS_BY_NAME))
        raise ValueError(f"Unknown dialect {name!r}; expected one of: {known}") from None


def detect_dialect(connection: Any) -> Dialect:
    """
    Pick the dialect for a live connection.

    Wrappers exposing `unwrap()` are peeled first; the driver is then recognised
    from the module that defines the connection class. When nothing matches, the
    DB_DIALECT setting is used if present.
    """
    while callable(getattr(connection, "unwrap", None)):
        connection = connection.unwrap()

    module = type(connection).__module__ or ""
    for dialect in _DIALECTS_BY_NAME.values():
        if any(_is_module_or_submodule(module, root) for root in dialect.driver_modules):
            return dialect

    if settings.DB_DIALECT:
        return get_dialect(settings.DB_DIALECT)

    raise UnsupportedDialectError(
        f"Cannot detect the database dialect of {type(connection).__qualname__} "
        f"(module {module!r}); set DB_DIALECT or pass a dialect explicitly"
    )


def _is_module_or_submodule(module: str, root: str) -> bool:
    return module == root or module.startswith(root + ".")
