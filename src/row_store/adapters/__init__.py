"""Adapters layer - concrete implementations of port interfaces.

Only outbound adapters exist: the command-line front end that drives the
engine lives outside this package.
"""

from row_store.adapters.outbound import DirectoryCatalogStore, FileOperationLog

__all__ = [
    "DirectoryCatalogStore",
    "FileOperationLog",
]
