"""Domain entities for the row store.

Entities are objects with identity that have a lifecycle. Unlike value objects,
two entities with the same attributes may not be equal if they have different
identities.

Exports:
    - Table: Named table with columns, append-only rows and indexes
"""

from row_store.domain.entities.table import Table

__all__ = [
    "Table",
]
