"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts. The row
store only has outbound ports: durable database files and the operation
log. Adapters implement these ports with concrete functionality.
"""

from row_store.ports.outbound import CatalogStore, OperationLog, SyncMode

__all__ = [
    "CatalogStore",
    "OperationLog",
    "SyncMode",
]
