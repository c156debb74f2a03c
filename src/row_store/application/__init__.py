"""Application layer - the Database entry point."""

from row_store.application.database import (
    METADATA_FILE,
    OPERATION_LOG_FILE,
    TABLE_FILE_SUFFIX,
    CheckpointResult,
    Database,
    LogOutcome,
)

__all__ = [
    "Database",
    "CheckpointResult",
    "LogOutcome",
    "METADATA_FILE",
    "OPERATION_LOG_FILE",
    "TABLE_FILE_SUFFIX",
]
