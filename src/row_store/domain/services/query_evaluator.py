"""Query evaluation using the Volcano iterator model.

A select is a pipeline of three operators pulled row by row:

    SeqScanOperator -> FilterOperator -> ProjectOperator

Rules:
    - Projection resolves each requested name by exact, case-sensitive
      match; unknown names are dropped. No names means every column in
      definition order.
    - The only predicate shape is ``column=literal``, split on the first
      ``=``. A literal wrapped in double quotes has them stripped.
    - A condition without ``=`` (including the empty string) matches every
      row. A predicate on an unknown column matches no row.
    - Rows are always produced in insertion order; indexes are not used.

References:
    - Graefe, "Volcano" (1994)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Sequence

from row_store.domain.value_objects import ColumnDefinition

Row = tuple[str, ...]


@dataclass(frozen=True)
class EqualityPredicate:
    """Single ``column=literal`` filter."""

    column: str
    literal: str

    def bind(self, columns: Sequence[ColumnDefinition]) -> int | None:
        """Return the position of the predicate column, or None if unknown."""
        return column_position(columns, self.column)


def parse_predicate(condition: str) -> EqualityPredicate | None:
    """Parse a where-condition.

    Args:
        condition: Text of the form ``column=literal`` or ``column="literal"``.

    Returns:
        The predicate, or None when the condition has no ``=`` and therefore
        matches every row.
    """
    column, sep, literal = condition.partition("=")
    if not sep:
        return None

    if len(literal) >= 1 and literal[0] == '"' and literal[-1] == '"':
        literal = literal[1:-1]

    return EqualityPredicate(column=column, literal=literal)


def column_position(columns: Sequence[ColumnDefinition], name: str) -> int | None:
    """Position of the column called ``name`` (exact match), or None."""
    for position, column in enumerate(columns):
        if column.name == name:
            return position
    return None


def resolve_projection(
    columns: Sequence[ColumnDefinition], requested: Sequence[str]
) -> list[int]:
    """Map requested column names to positions, dropping unknown names."""
    if not requested:
        return list(range(len(columns)))

    positions = []
    for name in requested:
        position = column_position(columns, name)
        if position is not None:
            positions.append(position)
    return positions


class Operator(ABC):
    """Base class for evaluator operators (Volcano model)."""

    @abstractmethod
    def open(self) -> None:
        """Initialize the operator."""
        pass

    @abstractmethod
    def next(self) -> Row | None:
        """Return the next row or None if exhausted."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Clean up resources."""
        pass

    def __iter__(self) -> Iterator[Row]:
        """Allow iteration over operator results."""
        self.open()
        try:
            while True:
                row = self.next()
                if row is None:
                    break
                yield row
        finally:
            self.close()


class SeqScanOperator(Operator):
    """Sequential scan over a table's rows in insertion order."""

    def __init__(self, rows: Sequence[Row]) -> None:
        self._rows = rows
        self._current_row = 0

    def open(self) -> None:
        self._current_row = 0

    def next(self) -> Row | None:
        if self._current_row >= len(self._rows):
            return None
        row = self._rows[self._current_row]
        self._current_row += 1
        return row

    def close(self) -> None:
        self._current_row = 0


class FilterOperator(Operator):
    """Filter operator that applies an equality predicate."""

    def __init__(
        self,
        child: Operator,
        predicate: EqualityPredicate | None,
        columns: Sequence[ColumnDefinition],
    ) -> None:
        self._child = child
        self._predicate = predicate
        self._position = predicate.bind(columns) if predicate is not None else None

    def open(self) -> None:
        self._child.open()

    def next(self) -> Row | None:
        while True:
            row = self._child.next()
            if row is None:
                return None
            if self._matches(row):
                return row

    def close(self) -> None:
        self._child.close()

    def _matches(self, row: Row) -> bool:
        if self._predicate is None:
            return True
        if self._position is None or self._position >= len(row):
            return False
        return row[self._position] == self._predicate.literal


class ProjectOperator(Operator):
    """Project operator that keeps the given column positions, in order."""

    def __init__(self, child: Operator, positions: Sequence[int]) -> None:
        self._child = child
        self._positions = list(positions)

    def open(self) -> None:
        self._child.open()

    def next(self) -> Row | None:
        row = self._child.next()
        if row is None:
            return None
        return tuple(row[i] for i in self._positions)

    def close(self) -> None:
        self._child.close()


def build_plan(
    columns: Sequence[ColumnDefinition],
    rows: Sequence[Row],
    requested: Sequence[str] = (),
    condition: str = "",
) -> Operator:
    """Build the scan/filter/project pipeline for a select."""
    scan = SeqScanOperator(rows)
    filtered = FilterOperator(scan, parse_predicate(condition), columns)
    return ProjectOperator(filtered, resolve_projection(columns, requested))


def evaluate(
    columns: Sequence[ColumnDefinition],
    rows: Sequence[Row],
    requested: Sequence[str] = (),
    condition: str = "",
) -> list[list[str]]:
    """Run a select over ``rows`` and materialize the result."""
    return [list(row) for row in build_plan(columns, rows, requested, condition)]
