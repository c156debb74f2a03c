"""Value objects for the row store domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    - ColumnConstraint: PRIMARY_KEY / UNIQUE / NOT_NULL flags
    - ColumnDefinition: Column name, type label and constraints
    - ALL_CONSTRAINTS: Bitmask of every known constraint
"""

from row_store.domain.value_objects.column import (
    ALL_CONSTRAINTS,
    ColumnConstraint,
    ColumnDefinition,
)

__all__ = [
    "ALL_CONSTRAINTS",
    "ColumnConstraint",
    "ColumnDefinition",
]
