"""
Identifier utilities.

This module defines:
- TableLocation: the (catalog, schema, table) triple behind a table reference.
- ColumnDescriptor: a (name, 1-based index) pair.
- Helpers to quote and case-fold single identifiers.

Conventions:
- An absent catalog or schema is the empty string, never None.
- Verbs: quote_*, fold_*, parse.
- Without a dialect, serialisation quotes every segment with double quotes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from src.db_metadata.dialects import Dialect

_QUOTE_CHARACTERS = ('"', "`")


# -----------------------------
# String helpers
# -----------------------------


def quote_identifier(identifier: str, quote: str = '"') -> str:
    """Quote a single SQL identifier, doubling any embedded quote characters."""
    if identifier is None:
        raise ValueError("Identifier must not be None.")
    text = str(identifier)
    return f"{quote}{text.replace(quote, quote * 2)}{quote}"


def quote_identifier_for(identifier: str, dialect: Dialect) -> str:
    """Quote `identifier` only if the dialect would otherwise misread it."""
    if dialect.needs_quoting(identifier):
        return dialect.quote_identifier(identifier)
    return identifier


def fold_identifier(identifier: str, dialect: Dialect | None) -> str:
    """Case-fold an unquoted identifier; no-op without a dialect."""
    if dialect is None:
        return identifier
    return dialect.fold(identifier)


# -----------------------------
# Core name data structures
# -----------------------------


class ColumnDescriptor(NamedTuple):
    """A column name and its 1-based position."""

    name: str
    index: int


@dataclass(frozen=True, eq=False)
class TableLocation:
    """
    Table reference: [[catalog.]schema.]table.

    Equality and hashing ignore case, matching how both engines resolve
    unquoted names.
    """

    table: str
    schema: str = ""
    catalog: str = ""

    def __post_init__(self) -> None:
        if not self.table:
            raise ValueError("A table location requires a table name.")

    # ---------- construction ----------

    @classmethod
    def parse(cls, reference: str, dialect: Dialect | None = None) -> TableLocation:
        """
        Parse 'table', 'schema.table' or 'catalog.schema.table'.

        - Dots inside double quotes or backticks are part of the name.
        - Quote characters are removed; a doubled quote inside quotes is a literal.
        - Unquoted text is case-folded by `dialect` (left as-is when None).
        - Unquoted whitespace around each segment is stripped; quoted text is kept
          verbatim.
        """
        segments = _split_reference(reference, dialect)
        if not 1 <= len(segments) <= 3 or any(segment == "" for segment in segments):
            raise ValueError(
                f"Expected '[[catalog.]schema.]table', got: {reference!r}"
            )
        if len(segments) == 1:
            return cls(table=segments[0])
        if len(segments) == 2:
            return cls(table=segments[1], schema=segments[0])
        return cls(table=segments[2], schema=segments[1], catalog=segments[0])

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> TableLocation:
        """Build from an information_schema row (table_catalog, table_schema, table_name)."""
        lowered = {str(key).lower(): value for key, value in row.items()}
        return cls(
            table=str(lowered["table_name"]),
            schema=str(lowered.get("table_schema") or ""),
            catalog=str(lowered.get("table_catalog") or ""),
        )

    # ---------- accessors ----------

    def catalog_or(self, default: str | None) -> str | None:
        return self.catalog or default

    def schema_or(self, default: str | None) -> str | None:
        return self.schema or default

    @property
    def parts(self) -> tuple[str, ...]:
        """Present segments, outermost first."""
        return tuple(part for part in (self.catalog, self.schema, self.table) if part)

    # ---------- serialisation ----------

    def to_string(self, dialect: Dialect | None = None) -> str:
        """
        Return the qualified reference, omitting absent segments.

        With a dialect, only segments that need it are quoted (reserved words,
        names the engine would fold or reject); without one, all are quoted.
        """
        if dialect is None:
            return ".".join(quote_identifier(part) for part in self.parts)
        return ".".join(quote_identifier_for(part, dialect) for part in self.parts)

    def __str__(self) -> str:
        return self.to_string()

    # ---------- comparison ----------

    def _key(self) -> tuple[str, str, str]:
        return (self.catalog.casefold(), self.schema.casefold(), self.table.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableLocation):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


# -----------------------------
# Parsing helpers
# -----------------------------


def _split_reference(reference: str, dialect: Dialect | None) -> list[str]:
    """Split on unquoted dots, unquoting and folding as we go."""
    if reference is None:
        raise ValueError("Table reference must not be None.")

    segments: list[str] = []
    current: list[str] = []
    unquoted: list[str] = []
    open_quote: str | None = None
    position = 0

    def flush_unquoted(segment_end: bool = False) -> None:
        # Only unquoted whitespace at the edges of a segment is insignificant.
        text = "".join(unquoted)
        if not current:
            text = text.lstrip()
        if segment_end:
            text = text.rstrip()
        if text:
            current.append(fold_identifier(text, dialect))
        unquoted.clear()

    while position < len(reference):
        character = reference[position]
        if open_quote is not None:
            if character == open_quote:
                if reference[position + 1 : position + 2] == open_quote:
                    current.append(character)
                    position += 2
                    continue
                open_quote = None
            else:
                current.append(character)
        elif character in _QUOTE_CHARACTERS:
            flush_unquoted()
            open_quote = character
        elif character == ".":
            flush_unquoted(segment_end=True)
            segments.append("".join(current))
            current.clear()
        else:
            unquoted.append(character)
        position += 1

    if open_quote is not None:
        raise ValueError(f"Unterminated quoted identifier in {reference!r}")

    flush_unquoted(segment_end=True)
    segments.append("".join(current))
    return segments
