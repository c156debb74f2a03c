"""Table entity: columns, append-only rows and derived indexes.

A table owns its column definitions, its rows and two kinds of index:

    - primary-key index: PK value -> row position (when a PK column exists)
    - unique sets: one set of seen values per PRIMARY_KEY or UNIQUE column

Indexes are updated on every successful insert, so they always hold exactly
the distinct values present in their column. Rows are never updated or
deleted in place.

Insert validation order:
    1. arity
    2. storable values (no line breaks, encodable as UTF-8)
    3. NOT NULL (empty string is NULL)
    4. PRIMARY KEY uniqueness
    5. UNIQUE on non-PK columns, skipping empty values

A failed insert leaves rows and indexes untouched.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from row_store.domain.errors import (
    ArityError,
    ConstraintViolation,
    SchemaError,
    ViolationKind,
)
from row_store.domain.services.query_evaluator import (
    Row,
    build_plan,
    column_position,
    evaluate,
)
from row_store.domain.value_objects import ColumnDefinition

# Characters that would break the metadata file or the per-table file name
_FORBIDDEN_TABLE_CHARS = ("\n", "\r", "/", "\\", ",", "\x00")
# Characters that would break a comma-separated column line
_FORBIDDEN_COLUMN_CHARS = ("\n", "\r", ",")
# Characters that would split a row across lines
_FORBIDDEN_VALUE_CHARS = ("\n", "\r")


class Table:
    """A named table holding text rows.

    Example:
        >>> table = Table("users", [
        ...     ColumnDefinition("id", "INT", ColumnConstraint.PRIMARY_KEY),
        ...     ColumnDefinition("name", "STRING"),
        ... ])
        >>> table.insert_row(["1", "Alice"])
        0
        >>> table.select_rows(["name"], 'id="1"')
        [['Alice']]
    """

    def __init__(self, name: str, columns: Sequence[ColumnDefinition]) -> None:
        """Create an empty table.

        Args:
            name: Table name, unique within its database.
            columns: Column definitions; order defines storage layout and
                the default projection.

        Raises:
            SchemaError: If the name or the column layout is invalid.
        """
        self._name = name
        self._columns: tuple[ColumnDefinition, ...] = tuple(columns)
        self._validate_schema()

        self._rows: list[Row] = []
        self._pk_position: int | None = next(
            (i for i, col in enumerate(self._columns) if col.is_primary_key), None
        )
        self._pk_index: dict[str, int] = {}
        self._unique_values: dict[int, set[str]] = {
            i: set() for i, col in enumerate(self._columns) if col.requires_unique_value
        }

    @classmethod
    def from_column_pairs(cls, name: str, pairs: Sequence[tuple[str, str]]) -> Table:
        """Create a constraint-free table from ``(name, type)`` pairs."""
        return cls(name, [ColumnDefinition(col_name, col_type) for col_name, col_type in pairs])

    def _validate_schema(self) -> None:
        if not self._name or not _is_storable(self._name, _FORBIDDEN_TABLE_CHARS):
            raise SchemaError(f"Invalid table name: {self._name!r}")

        seen: set[str] = set()
        for col in self._columns:
            if not col.name or not _is_storable(col.name, _FORBIDDEN_COLUMN_CHARS):
                raise SchemaError(f"Invalid column name: {col.name!r}")
            if not _is_storable(col.type_name, _FORBIDDEN_COLUMN_CHARS):
                raise SchemaError(f"Invalid type for column '{col.name}': {col.type_name!r}")
            if col.name in seen:
                raise SchemaError(f"Duplicate column name '{col.name}' in table '{self._name}'")
            seen.add(col.name)

        pk_columns = [col.name for col in self._columns if col.is_primary_key]
        if len(pk_columns) > 1:
            raise SchemaError(
                f"Table '{self._name}' declares more than one primary key: {', '.join(pk_columns)}"
            )

    @property
    def name(self) -> str:
        return self._name

    @property
    def columns(self) -> tuple[ColumnDefinition, ...]:
        return self._columns

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def rows(self) -> tuple[Row, ...]:
        """All rows in insertion order."""
        return tuple(self._rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def primary_key_column(self) -> ColumnDefinition | None:
        if self._pk_position is None:
            return None
        return self._columns[self._pk_position]

    def column_pairs(self) -> list[tuple[str, str]]:
        """Column ``(name, type)`` pairs in definition order."""
        return [(col.name, col.type_name) for col in self._columns]

    def column_index(self, name: str) -> int | None:
        """Position of a column by exact name, or None."""
        return column_position(self._columns, name)

    def insert_row(self, values: Sequence[str]) -> int:
        """Validate and append a row.

        Args:
            values: One text value per column, in definition order.

        Returns:
            The position of the new row.

        Raises:
            ArityError: If the number of values differs from the column count.
            ConstraintViolation: If a value contains a line break or cannot
                be encoded as UTF-8, or a NOT NULL, PRIMARY KEY or UNIQUE
                constraint would be violated.
        """
        row: Row = tuple(values)
        if len(row) != len(self._columns):
            raise ArityError(expected=len(self._columns), actual=len(row))

        self._check_constraints(row)

        position = len(self._rows)
        self._rows.append(row)
        if self._pk_position is not None:
            self._pk_index[row[self._pk_position]] = position
        for i, seen in self._unique_values.items():
            seen.add(row[i])

        return position

    def _check_constraints(self, row: Row) -> None:
        for col, value in zip(self._columns, row):
            if not _is_storable(value):
                raise ConstraintViolation(ViolationKind.UNSTORABLE_VALUE, col.name)

        for col, value in zip(self._columns, row):
            if col.is_not_null and value == "":
                raise ConstraintViolation(ViolationKind.NOT_NULL, col.name)

        if self._pk_position is not None:
            pk_value = row[self._pk_position]
            if pk_value in self._pk_index:
                raise ConstraintViolation(
                    ViolationKind.DUPLICATE_PRIMARY_KEY,
                    self._columns[self._pk_position].name,
                    pk_value,
                )

        for i, seen in self._unique_values.items():
            col = self._columns[i]
            if col.is_primary_key:
                continue
            # Empty values are exempt from uniqueness
            if row[i] != "" and row[i] in seen:
                raise ConstraintViolation(ViolationKind.DUPLICATE_UNIQUE, col.name, row[i])

    def select_rows(
        self, columns: Sequence[str] = (), where: str = ""
    ) -> list[list[str]]:
        """Scan the table and return projected rows matching ``where``.

        Args:
            columns: Column names to return; empty means all columns.
            where: ``column=literal`` condition; anything without ``=``
                matches every row.

        Returns:
            Matching rows, in insertion order.
        """
        return evaluate(self._columns, self._rows, columns, where)

    def scan(self, columns: Sequence[str] = (), where: str = "") -> Iterator[Row]:
        """Lazily yield projected rows; see select_rows."""
        return iter(build_plan(self._columns, self._rows, columns, where))

    def find_by_primary_key(self, value: str) -> list[str] | None:
        """Look up a row through the primary-key index.

        Returns:
            The full row, or None if the table has no primary key or no row
            carries ``value``.
        """
        position = self._pk_index.get(value)
        if position is None:
            return None
        return list(self._rows[position])

    def indexed_values(self, column: str) -> frozenset[str]:
        """Distinct values recorded for a PRIMARY_KEY or UNIQUE column.

        Raises:
            KeyError: If the column is unknown or keeps no value set.
        """
        position = self.column_index(column)
        if position is None or position not in self._unique_values:
            raise KeyError(f"Column '{column}' has no unique index")
        return frozenset(self._unique_values[position])

    def __repr__(self) -> str:
        return f"Table({self._name!r}, columns={len(self._columns)}, rows={len(self._rows)})"


def _is_storable(text: str, forbidden: tuple[str, ...] = _FORBIDDEN_VALUE_CHARS) -> bool:
    """True when ``text`` has none of ``forbidden`` and encodes as UTF-8."""
    if any(ch in text for ch in forbidden):
        return False
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
