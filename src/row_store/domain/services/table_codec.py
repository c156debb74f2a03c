"""Text codec for table files and database metadata.

Table file (``<table>.tbl``), newline-terminated lines:

    <table name>
    <column count>
    <col name>,<col type>,<constraint bitmask>     one line per column
    <row count>
    <comma-joined cell values>                     one line per row

Cell values are joined without escaping, so a value containing ``,`` does
not survive a round trip: on load its row has the wrong arity and is
reported as a row error.

Metadata file (``metadata.db``):

    <table count>
    <table name>                                   one line per table

Loading replays every row through ``Table.insert_row`` so indexes are
rebuilt from scratch. A row that fails replay is reported as a
``FormatError`` carrying its row number and loading continues; only
structural damage (bad counts, missing column lines, invalid schema)
fails the whole table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from row_store.domain.entities.table import Table
from row_store.domain.errors import ArityError, ConstraintViolation, FormatError, SchemaError
from row_store.domain.value_objects import ColumnConstraint, ColumnDefinition


@dataclass
class DecodedTable:
    """A table read back from text, with the rows that could not be replayed."""

    table: Table
    row_errors: list[FormatError] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogMetadata:
    """Contents of a metadata file."""

    declared_count: int
    table_names: tuple[str, ...]

    @property
    def truncated(self) -> bool:
        """True when the file lists fewer names than its count line declares."""
        return len(self.table_names) < self.declared_count


def serialize_table(table: Table) -> str:
    """Encode a table in the line-oriented table-file format."""
    lines = [table.name, str(table.column_count)]
    lines.extend(f"{col.name},{col.type_name},{col.bitmask}" for col in table.columns)
    lines.append(str(table.row_count))
    lines.extend(",".join(row) for row in table.rows)
    return "".join(f"{line}\n" for line in lines)


def deserialize_table(data: str) -> DecodedTable:
    """Decode a table file.

    Args:
        data: Full text of a table file.

    Returns:
        The rebuilt table and any per-row replay errors.

    Raises:
        FormatError: If the header, counts or column lines are corrupt.
    """
    lines = _split_lines(data)
    if not lines:
        raise FormatError("Table data is empty")

    name = lines[0]
    column_count = _parse_count(lines, 1, "column count")
    if len(lines) < 2 + column_count:
        raise FormatError(
            f"Table '{name}' declares {column_count} columns but has {len(lines) - 2} column lines"
        )

    columns = [_parse_column(line) for line in lines[2 : 2 + column_count]]
    try:
        table = Table(name, columns)
    except SchemaError as e:
        raise FormatError(f"Table '{name}' has an invalid schema: {e.message}") from e

    row_count = _parse_count(lines, 2 + column_count, "row count")
    row_lines = lines[3 + column_count :]

    decoded = DecodedTable(table=table)
    for i in range(row_count):
        row_number = i + 1
        if i >= len(row_lines):
            decoded.row_errors.append(
                FormatError(
                    f"Table '{name}' declares {row_count} rows but only {len(row_lines)} are present",
                    row_number=row_number,
                )
            )
            break

        try:
            table.insert_row(_split_row(row_lines[i], column_count))
        except (ArityError, ConstraintViolation) as e:
            decoded.row_errors.append(
                FormatError(f"Table '{name}' row {row_number}: {e.message}", row_number=row_number)
            )

    return decoded


def encode_metadata(table_names: Iterable[str]) -> str:
    """Encode the metadata file for the given table names."""
    names = list(table_names)
    return f"{len(names)}\n" + "".join(f"{name}\n" for name in names)


def decode_metadata(data: str) -> CatalogMetadata:
    """Decode a metadata file.

    Raises:
        FormatError: If the count line is missing or not a number.
    """
    lines = _split_lines(data)
    count = _parse_count(lines, 0, "table count")
    return CatalogMetadata(declared_count=count, table_names=tuple(lines[1 : 1 + count]))


def _split_lines(data: str) -> list[str]:
    lines = [line[:-1] if line.endswith("\r") else line for line in data.split("\n")]
    # The final newline leaves one empty trailing element
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _parse_count(lines: list[str], index: int, what: str) -> int:
    if index >= len(lines):
        raise FormatError(f"Missing {what} (line {index + 1})")
    text = lines[index].strip()
    if not text.isdecimal():
        raise FormatError(f"Invalid {what} {lines[index]!r} (line {index + 1})")
    return int(text)


def _parse_column(line: str) -> ColumnDefinition:
    parts = line.split(",")
    name = parts[0]
    type_name = parts[1] if len(parts) > 1 else ""

    bitmask = 0
    if len(parts) > 2 and parts[2].strip().isdecimal():
        bitmask = int(parts[2].strip())

    return ColumnDefinition(name, type_name, ColumnConstraint.from_bitmask(bitmask))


def _split_row(line: str, column_count: int) -> list[str]:
    if column_count == 0 and line == "":
        return []
    return line.split(",")
