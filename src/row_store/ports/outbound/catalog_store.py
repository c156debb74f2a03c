"""Catalog store port for durable database files.

The catalog store owns one database directory. A commit writes a set of
named files so that either every file of the new commit has been written
to a temporary path before any committed file is replaced, or nothing
changes at all.

Commit ordering:
    1. Write every file to ``<name>.tmp``
    2. On any write failure remove the temporaries and stop
    3. Rename temporaries into place, in the given order

Each rename is atomic, but the sequence of renames is not: a crash
between renames can leave metadata that names a table whose file still
holds the previous commit.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol, Sequence


class CatalogStore(Protocol):
    """Protocol for reading and committing database files."""

    @property
    @abstractmethod
    def directory(self) -> Path:
        """Return the database directory."""
        ...

    @abstractmethod
    def exists(self, file_name: str | None = None) -> bool:
        """Check whether the directory (or a file inside it) exists."""
        ...

    @abstractmethod
    def read(self, file_name: str) -> str:
        """Read a committed file.

        Raises:
            NotFoundError: If the file does not exist.
            StorageIOError: If the file cannot be read.
        """
        ...

    @abstractmethod
    def commit(self, files: Sequence[tuple[str, str]]) -> None:
        """Durably replace the given files.

        Args:
            files: ``(file name, content)`` pairs, renamed in this order.

        Raises:
            StorageIOError: If a write or rename fails.
        """
        ...
