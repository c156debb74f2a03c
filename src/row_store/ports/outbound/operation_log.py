"""Operation log port for the append-only audit log.

This outbound port defines the contract for persisting raw operation text.
The log is audit-only: it is written on every logged operation and never
read back during recovery. Recovery relies solely on the last checkpoint.
"""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from pathlib import Path
from typing import Iterator, Protocol


class SyncMode(Enum):
    """Sync modes with different durability/performance tradeoffs.

    FSYNC: Full durability - sync file and metadata (safest)
    FDATASYNC: Data durability - sync file data only (faster on Linux)
    NONE: No sync - rely on OS buffering (fastest, but unsafe)
    """

    FSYNC = "fsync"
    FDATASYNC = "fdatasync"
    NONE = "none"


class OperationLog(Protocol):
    """Protocol for the append-only operation log.

    Thread Safety:
        Single writer assumed; the owning database serializes appends.
    """

    @property
    @abstractmethod
    def path(self) -> Path:
        """Return the log file path."""
        ...

    @abstractmethod
    def append(self, operation: str) -> None:
        """Append one operation as a single line.

        Args:
            operation: Raw operation text.

        Raises:
            StorageIOError: If the write fails.
        """
        ...

    @abstractmethod
    def read_all(self) -> Iterator[str]:
        """Yield logged operations in append order (for auditing)."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the log and release resources."""
        ...
