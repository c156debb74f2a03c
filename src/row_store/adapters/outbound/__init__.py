"""Outbound adapters - implementations of outbound ports.

These adapters implement the file system side of the row store: the
database directory with its committed files and the operation log.
"""

from row_store.adapters.outbound.directory_catalog_store import DirectoryCatalogStore
from row_store.adapters.outbound.file_operation_log import FileOperationLog

__all__ = [
    "DirectoryCatalogStore",
    "FileOperationLog",
]
