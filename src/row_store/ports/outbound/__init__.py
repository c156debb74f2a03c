"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the file system resources the row
store depends on: the committed database files and the operation log.
"""

from row_store.ports.outbound.catalog_store import CatalogStore
from row_store.ports.outbound.operation_log import OperationLog, SyncMode

__all__ = [
    "CatalogStore",
    "OperationLog",
    "SyncMode",
]
