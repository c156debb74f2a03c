"""File-based operation log.

This adapter implements the OperationLog protocol with a single
append-only text file (``transactions.log``), one raw operation per line.

Thread Safety:
    Single-writer assumed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, TextIO

from row_store.domain.errors import StorageIOError
from row_store.infrastructure.config import get_config
from row_store.ports.outbound.operation_log import SyncMode


class FileOperationLog:
    """File-based implementation of the OperationLog protocol.

    The file is opened lazily on the first append and kept open until
    close(). Every append is flushed; whether it is also synced to stable
    storage depends on the sync mode.

    Attributes:
        path: Location of the log file.
        sync_mode: How to sync writes to disk.
    """

    def __init__(self, path: str | Path, sync_mode: SyncMode | None = None) -> None:
        """Initialize the operation log.

        Args:
            path: Log file path; parent directories are created on first append.
            sync_mode: Sync mode for durability (default from config).
        """
        self._path = Path(path)
        self._sync_mode = sync_mode or SyncMode(get_config().storage.sync_mode)
        self._file: TextIO | None = None
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def sync_mode(self) -> SyncMode:
        return self._sync_mode

    def append(self, operation: str) -> None:
        """Append one operation as a single line.

        Raises:
            StorageIOError: If the log is closed, the write fails or the
                operation cannot be encoded as UTF-8.
        """
        if self._closed:
            raise StorageIOError(f"Operation log is closed: {self._path}")

        # One operation per line
        line = operation.replace("\r", " ").replace("\n", " ")

        try:
            if self._file is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._file = open(self._path, "a", encoding="utf-8", newline="")
            self._file.write(f"{line}\n")
            self._file.flush()
            self._sync()
        except (OSError, ValueError) as e:
            raise StorageIOError(f"Failed to write to operation log {self._path}: {e}") from e

    def _sync(self) -> None:
        if self._file is None or self._sync_mode == SyncMode.NONE:
            return
        if self._sync_mode == SyncMode.FDATASYNC and hasattr(os, "fdatasync"):
            os.fdatasync(self._file.fileno())
        else:
            # fdatasync not available on every platform, fall back to fsync
            os.fsync(self._file.fileno())

    def read_all(self) -> Iterator[str]:
        """Yield logged operations in append order.

        Raises:
            StorageIOError: If the file exists but cannot be read.
        """
        if self._file is not None:
            self._file.flush()
        if not self._path.exists():
            return

        try:
            with open(self._path, "r", encoding="utf-8", newline="") as f:
                for line in f:
                    yield line[:-1] if line.endswith("\n") else line
        except OSError as e:
            raise StorageIOError(f"Failed to read operation log {self._path}: {e}") from e

    def close(self) -> None:
        """Close the log and release the file handle."""
        if self._closed:
            return

        self._closed = True
        if self._file is not None:
            try:
                self._file.flush()
                self._sync()
            finally:
                self._file.close()
                self._file = None

    def __enter__(self) -> FileOperationLog:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
