"""Directory-based catalog store.

This adapter implements the CatalogStore protocol on a plain directory,
using temp-write-then-rename for every committed file.

Directory Layout:
    - metadata.db         table count + one table name per line
    - <table>.tbl         serialized table
    - <file>.tmp          only present while a commit is in progress

Failure Semantics:
    - Write failure: every temporary created so far is removed and the
      committed files are untouched.
    - Rename failure: files renamed before the failure stay replaced,
      remaining temporaries are removed. Multi-file commits are not atomic.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

from row_store.domain.errors import FormatError, NotFoundError, StorageIOError
from row_store.infrastructure.config import get_config
from row_store.infrastructure.logging import get_logger
from row_store.ports.outbound.operation_log import SyncMode

logger = get_logger(__name__)

TEMP_SUFFIX = ".tmp"


class DirectoryCatalogStore:
    """Directory-backed implementation of the CatalogStore protocol.

    Attributes:
        directory: The database directory.
        sync_mode: Whether committed files are synced before rename.
    """

    def __init__(
        self,
        directory: str | Path,
        sync_mode: SyncMode | None = None,
        create: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            directory: Database directory.
            sync_mode: Sync mode for durability (default from config).
            create: If True, create the directory if it doesn't exist.

        Raises:
            StorageIOError: If the directory cannot be created.
        """
        self._directory = Path(directory)
        self._sync_mode = sync_mode or SyncMode(get_config().storage.sync_mode)

        if create:
            self.ensure_directory()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def sync_mode(self) -> SyncMode:
        return self._sync_mode

    def ensure_directory(self) -> None:
        """Create the database directory if needed."""
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create directory {self._directory}: {e}") from e

    def exists(self, file_name: str | None = None) -> bool:
        if file_name is None:
            return self._directory.is_dir()
        return (self._directory / file_name).is_file()

    def read(self, file_name: str) -> str:
        """Read a committed file as text.

        Raises:
            NotFoundError: If the file does not exist.
            StorageIOError: If the file cannot be opened.
            FormatError: If the file is not valid UTF-8.
        """
        path = self._directory / file_name
        if not path.is_file():
            raise NotFoundError(f"File not found: {path}")

        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise FormatError(f"File is not valid UTF-8: {path}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to read {path}: {e}") from e

    def commit(self, files: Sequence[tuple[str, str]]) -> None:
        """Write every file to a temporary path, then rename them in order.

        Args:
            files: ``(file name, content)`` pairs.

        Raises:
            StorageIOError: If any write or rename fails, including content
                that cannot be encoded and file names the OS rejects.
        """
        self.ensure_directory()

        written: list[Path] = []
        for file_name, content in files:
            temp_path = self._temp_path(file_name)
            written.append(temp_path)
            try:
                self._write_file(temp_path, content)
            # ValueError covers unencodable text and NUL in paths
            except (OSError, ValueError) as e:
                logger.error("commit_write_failed", path=str(temp_path), error=str(e))
                self._discard(written)
                raise StorageIOError(f"Failed to write {temp_path}: {e}") from e

        for i, (file_name, _) in enumerate(files):
            try:
                os.replace(self._temp_path(file_name), self._directory / file_name)
            except (OSError, ValueError) as e:
                logger.error(
                    "commit_rename_failed",
                    file=file_name,
                    renamed=i,
                    total=len(files),
                    error=str(e),
                )
                self._discard(written[i:])
                raise StorageIOError(f"Failed to rename {file_name} into place: {e}") from e

        self._sync_directory()

    def _temp_path(self, file_name: str) -> Path:
        return self._directory / f"{file_name}{TEMP_SUFFIX}"

    def _write_file(self, path: Path, content: str) -> None:
        # newline="" keeps the on-disk format byte-identical on every platform
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            if self._sync_mode != SyncMode.NONE:
                os.fsync(f.fileno())

    def _sync_directory(self) -> None:
        if self._sync_mode == SyncMode.NONE or os.name != "posix":
            return
        # Renames are already visible; a failed directory sync only weakens durability
        try:
            fd = os.open(self._directory, os.O_RDONLY)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
        except OSError as e:
            logger.warning("directory_sync_failed", path=str(self._directory), error=str(e))

    def _discard(self, paths: Sequence[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except (OSError, ValueError) as e:
                logger.warning("temp_file_cleanup_failed", path=str(path), error=str(e))
