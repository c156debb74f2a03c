"""Column definitions and constraint flags.

A column is a name, an opaque type label and a set of constraints. The
type label is stored and serialized but never enforced: every cell value
is text.

Constraint bitmask (as written to table files):
    PRIMARY_KEY = 1
    UNIQUE      = 2
    NOT_NULL    = 4
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag


class ColumnConstraint(IntFlag):
    """Column constraint flags, combinable with ``|``."""

    NONE = 0
    PRIMARY_KEY = 1
    UNIQUE = 2
    NOT_NULL = 4

    @classmethod
    def from_bitmask(cls, bitmask: int) -> ColumnConstraint:
        """Decode a bitmask, ignoring bits that name no known constraint."""
        return cls(bitmask & ALL_CONSTRAINTS)


ALL_CONSTRAINTS = int(
    ColumnConstraint.PRIMARY_KEY | ColumnConstraint.UNIQUE | ColumnConstraint.NOT_NULL
)


@dataclass(frozen=True)
class ColumnDefinition:
    """Definition of a single table column.

    A PRIMARY_KEY column is always NOT_NULL; the flag is added here so
    that every construction path (API calls and table files alike)
    observes it.

    Example:
        >>> col = ColumnDefinition("id", "INT", ColumnConstraint.PRIMARY_KEY)
        >>> col.is_not_null
        True
        >>> col.bitmask
        5
    """

    name: str
    type_name: str = "STRING"
    constraints: ColumnConstraint = ColumnConstraint.NONE

    def __post_init__(self) -> None:
        constraints = ColumnConstraint(self.constraints)
        if constraints & ColumnConstraint.PRIMARY_KEY:
            constraints |= ColumnConstraint.NOT_NULL
        object.__setattr__(self, "constraints", constraints)

    @property
    def is_primary_key(self) -> bool:
        return bool(self.constraints & ColumnConstraint.PRIMARY_KEY)

    @property
    def is_unique(self) -> bool:
        return bool(self.constraints & ColumnConstraint.UNIQUE)

    @property
    def is_not_null(self) -> bool:
        return bool(self.constraints & ColumnConstraint.NOT_NULL)

    @property
    def requires_unique_value(self) -> bool:
        """True for columns that keep a set of seen values."""
        return self.is_primary_key or self.is_unique

    @property
    def bitmask(self) -> int:
        """Integer encoding of the constraint set."""
        return int(self.constraints)
