"""Error kinds raised by the row store.

Every failure carries a human-readable ``message`` so callers can render
an accurate diagnostic without inspecting internals. Validation failures
are local: the attempted mutation does not apply and prior state is
unchanged.

Hierarchy:
    RowStoreError
        SchemaError          - duplicate table, invalid column layout
        ArityError           - wrong number of values for a row
        ConstraintViolation  - NOT NULL / PRIMARY KEY / UNIQUE / unstorable value
        NotFoundError        - missing table, database or file
        StorageIOError       - file write, rename or open failure
        FormatError          - corrupt serialized data
"""

from __future__ import annotations

from enum import Enum


class RowStoreError(Exception):
    """Base class for all row store errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SchemaError(RowStoreError):
    """Raised when a table or column definition is invalid."""

    pass


class ArityError(RowStoreError):
    """Raised when a row has the wrong number of values."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} values, got {actual}")
        self.expected = expected
        self.actual = actual


class ViolationKind(Enum):
    """Which column constraint an insert violated."""

    NOT_NULL = "not_null"
    DUPLICATE_PRIMARY_KEY = "duplicate_primary_key"
    DUPLICATE_UNIQUE = "duplicate_unique"
    UNSTORABLE_VALUE = "unstorable_value"


class ConstraintViolation(RowStoreError):
    """Raised when an insert violates a column constraint."""

    def __init__(self, kind: ViolationKind, column: str, value: str | None = None) -> None:
        if kind is ViolationKind.NOT_NULL:
            message = f"Column '{column}' cannot be NULL"
        elif kind is ViolationKind.UNSTORABLE_VALUE:
            message = f"Column '{column}' value contains a line break or invalid character"
        elif kind is ViolationKind.DUPLICATE_PRIMARY_KEY:
            message = f"Duplicate primary key value '{value}'"
        else:
            message = f"Duplicate value '{value}' in unique column '{column}'"
        super().__init__(message)
        self.kind = kind
        self.column = column
        self.value = value


class NotFoundError(RowStoreError):
    """Raised when a table, database directory or file does not exist."""

    pass


class StorageIOError(RowStoreError):
    """Raised when a file cannot be written, renamed or opened.

    The underlying ``OSError`` is chained as ``__cause__``.
    """

    pass


class FormatError(RowStoreError):
    """Raised when serialized data cannot be decoded.

    ``row_number`` is set (1-based) when the problem is confined to a
    single row of a table file.
    """

    def __init__(self, message: str, row_number: int | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number
