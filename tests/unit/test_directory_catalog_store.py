"""Unit tests for DirectoryCatalogStore."""

from __future__ import annotations

import os
from pathlib import Path
from unittest import mock

import pytest

from row_store.adapters.outbound import DirectoryCatalogStore
from row_store.domain.errors import FormatError, NotFoundError, StorageIOError
from row_store.ports.outbound import SyncMode


class TestDirectoryCatalogStore:
    """Tests for DirectoryCatalogStore."""

    @pytest.fixture
    def store(self, temp_dir: Path) -> DirectoryCatalogStore:
        """Create a store in a fresh directory."""
        return DirectoryCatalogStore(temp_dir / "db", sync_mode=SyncMode.NONE)

    def test_creation(self, temp_dir: Path) -> None:
        """The directory is created on construction."""
        store = DirectoryCatalogStore(temp_dir / "new_db", sync_mode=SyncMode.NONE)

        assert (temp_dir / "new_db").is_dir()
        assert store.exists()
        assert store.sync_mode == SyncMode.NONE

    def test_no_create(self, temp_dir: Path) -> None:
        """With create=False a missing directory stays missing."""
        store = DirectoryCatalogStore(temp_dir / "absent", sync_mode=SyncMode.NONE, create=False)

        assert not store.exists()
        assert not (temp_dir / "absent").exists()

    def test_commit_and_read(self, store: DirectoryCatalogStore) -> None:
        """Committed files can be read back verbatim."""
        store.commit([("metadata.db", "1\nt\n"), ("t.tbl", "t\n0\n0\n")])

        assert store.exists("metadata.db")
        assert store.read("metadata.db") == "1\nt\n"
        assert store.read("t.tbl") == "t\n0\n0\n"

    def test_no_temp_files_after_commit(self, store: DirectoryCatalogStore) -> None:
        """Temporaries are renamed away."""
        store.commit([("a", "1\n"), ("b", "2\n")])

        assert sorted(p.name for p in store.directory.iterdir()) == ["a", "b"]

    def test_line_endings_preserved(self, store: DirectoryCatalogStore) -> None:
        """Content is written byte for byte."""
        store.commit([("a", "x\ny\n")])

        assert (store.directory / "a").read_bytes() == b"x\ny\n"

    def test_commit_replaces_existing(self, store: DirectoryCatalogStore) -> None:
        """A second commit overwrites the first."""
        store.commit([("a", "old\n")])
        store.commit([("a", "new\n")])

        assert store.read("a") == "new\n"

    @pytest.mark.chaos
    def test_write_failure_keeps_committed_files(self, store: DirectoryCatalogStore) -> None:
        """A failed write removes temporaries and leaves old files untouched."""
        store.commit([("a", "old a\n"), ("b", "old b\n")])
        before = {p.name: p.read_bytes() for p in store.directory.iterdir()}

        real_write = DirectoryCatalogStore._write_file

        def failing_write(self: DirectoryCatalogStore, path: Path, content: str) -> None:
            if path.name == "b.tmp":
                raise OSError(28, "No space left on device")
            real_write(self, path, content)

        with mock.patch.object(DirectoryCatalogStore, "_write_file", failing_write):
            with pytest.raises(StorageIOError) as exc_info:
                store.commit([("a", "new a\n"), ("b", "new b\n")])

        assert isinstance(exc_info.value.__cause__, OSError)
        after = {p.name: p.read_bytes() for p in store.directory.iterdir()}
        assert after == before

    @pytest.mark.chaos
    def test_rename_failure_discards_remaining(self, store: DirectoryCatalogStore) -> None:
        """Renames before the failure stay, the rest are cleaned up."""
        store.commit([("a", "old a\n"), ("b", "old b\n")])

        real_replace = os.replace

        def failing_replace(src, dst):  # type: ignore[no-untyped-def]
            if Path(dst).name == "b":
                raise OSError(5, "Input/output error")
            real_replace(src, dst)

        with mock.patch("os.replace", failing_replace):
            with pytest.raises(StorageIOError):
                store.commit([("a", "new a\n"), ("b", "new b\n")])

        assert store.read("a") == "new a\n"
        assert store.read("b") == "old b\n"
        assert not any(p.name.endswith(".tmp") for p in store.directory.iterdir())

    @pytest.mark.chaos
    def test_unencodable_content_keeps_committed_files(
        self, store: DirectoryCatalogStore
    ) -> None:
        """Content that is not valid UTF-8 text fails like a write error."""
        store.commit([("metadata.db", "1\nt\n"), ("t.tbl", "t\n1\nc\nSTRING\n0\n")])
        before = {p.name: p.read_bytes() for p in store.directory.iterdir()}

        with pytest.raises(StorageIOError) as exc_info:
            store.commit([("metadata.db", "1\nt\n"), ("t.tbl", "t\n1\nc\nSTRING\n1\n\udcff\n")])

        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
        after = {p.name: p.read_bytes() for p in store.directory.iterdir()}
        assert after == before

    @pytest.mark.chaos
    def test_nul_in_file_name(self, store: DirectoryCatalogStore) -> None:
        """A file name the OS rejects raises StorageIOError and leaves no temporaries."""
        with pytest.raises(StorageIOError):
            store.commit([("metadata.db", "1\na\n"), ("a\x00.tbl", "a\n0\n0\n")])

        assert list(store.directory.iterdir()) == []

    def test_read_missing_file(self, store: DirectoryCatalogStore) -> None:
        """Reading a missing file raises NotFoundError."""
        with pytest.raises(NotFoundError):
            store.read("nothing.tbl")

    def test_read_invalid_utf8(self, store: DirectoryCatalogStore) -> None:
        """Undecodable bytes are a format error."""
        (store.directory / "bad.tbl").write_bytes(b"\xff\xfe\x00bad")

        with pytest.raises(FormatError):
            store.read("bad.tbl")

    def test_fsync_mode(self, temp_dir: Path) -> None:
        """Commits also succeed with full syncing."""
        store = DirectoryCatalogStore(temp_dir / "synced", sync_mode=SyncMode.FSYNC)

        store.commit([("a", "1\n")])

        assert store.read("a") == "1\n"
