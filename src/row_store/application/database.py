"""Database - the unified entry point of the row store.

A Database owns a name-keyed collection of tables bound to one directory,
an append-only operation log, and the checkpoint bookkeeping that decides
when in-memory state is written back to disk.

Usage:
    from row_store.application import Database
    from row_store.domain.value_objects import ColumnConstraint, ColumnDefinition

    with Database("shop", data_dir="/var/lib/row_store") as db:
        db.create_table("users", [
            ColumnDefinition("id", "INT", ColumnConstraint.PRIMARY_KEY),
            ColumnDefinition("email", "STRING", ColumnConstraint.UNIQUE),
        ])
        db.insert("users", ["1", "alice@example.com"])
        outcome = db.log_operation("INSERT INTO users VALUES (1, alice@example.com)")
        rows = db.select("users", ["email"], 'id="1"')

    db = Database.load_from_file("shop", data_dir="/var/lib/row_store")

Recovery:
    Only the last successful checkpoint is restored. The operation log is
    an audit trail and is never replayed, so operations logged after the
    last checkpoint are lost on a crash.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from row_store.adapters.outbound.directory_catalog_store import DirectoryCatalogStore
from row_store.adapters.outbound.file_operation_log import FileOperationLog
from row_store.domain.entities import Table
from row_store.domain.errors import (
    ArityError,
    ConstraintViolation,
    FormatError,
    NotFoundError,
    RowStoreError,
    SchemaError,
    StorageIOError,
)
from row_store.domain.services.table_codec import (
    decode_metadata,
    deserialize_table,
    encode_metadata,
    serialize_table,
)
from row_store.domain.value_objects import ColumnDefinition
from row_store.infrastructure.config import get_config
from row_store.infrastructure.logging import get_logger
from row_store.infrastructure.metrics import MetricsRegistry, get_metrics
from row_store.infrastructure.tracing import trace_span
from row_store.ports.outbound.catalog_store import CatalogStore
from row_store.ports.outbound.operation_log import OperationLog, SyncMode

METADATA_FILE = "metadata.db"
TABLE_FILE_SUFFIX = ".tbl"
OPERATION_LOG_FILE = "transactions.log"


@dataclass
class CheckpointResult:
    """Outcome of a checkpoint attempt."""

    success: bool
    tables_written: int = 0
    duration_seconds: float = 0.0
    error: StorageIOError | None = None

    @property
    def message(self) -> str:
        if self.success:
            return f"OK: Checkpoint wrote {self.tables_written} table(s)"
        return f"Checkpoint failed: {self.error.message if self.error else 'unknown error'}"


@dataclass
class LogOutcome:
    """Outcome of logging one operation.

    ``checkpoint`` is set when this operation reached the checkpoint
    threshold, whether or not the checkpoint succeeded.
    """

    pending_operations: int
    checkpoint: CheckpointResult | None = None
    log_error: StorageIOError | None = None

    @property
    def checkpoint_triggered(self) -> bool:
        return self.checkpoint is not None


class Database:
    """A named collection of tables persisted to one directory.

    The Database exclusively owns its tables. Mutations go through
    create_table() and insert(); persistence through save_to_file() and
    checkpoint(); the operation log through log_operation(), which is also
    the only place that decides when a checkpoint is due.

    Features:
        - Constraint-checked inserts with specific error kinds
        - Temp-write-then-rename commits that never half-overwrite files
        - Threshold-driven checkpoints reported through LogOutcome
        - Tolerant loading: bad table files are skipped with a warning

    Thread Safety:
        None. One operation runs to completion before the next starts.
    """

    def __init__(
        self,
        name: str,
        data_dir: str | Path | None = None,
        *,
        checkpoint_threshold: int | None = None,
        sync_mode: SyncMode | None = None,
        store: CatalogStore | None = None,
        operation_log: OperationLog | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Create an empty database bound to ``<data_dir>/<name>``.

        Args:
            name: Database name; also the directory name.
            data_dir: Parent directory (default from config).
            checkpoint_threshold: Logged operations per checkpoint (default
                from config).
            sync_mode: Sync mode for committed files and the log (default
                from config).
            store: Catalog store override (defaults to a directory store).
            operation_log: Operation log override (defaults to
                ``transactions.log`` in the database directory).
            metrics: Metrics registry (default: global registry).

        Raises:
            ValueError: If checkpoint_threshold is less than 1.
            StorageIOError: If the directory cannot be created.
        """
        config = get_config()
        base_dir = Path(data_dir) if data_dir is not None else config.storage.data_dir
        self._sync_mode = sync_mode or SyncMode(config.storage.sync_mode)

        if checkpoint_threshold is None:
            checkpoint_threshold = config.checkpoint.operation_threshold
        if checkpoint_threshold < 1:
            raise ValueError(f"checkpoint_threshold must be >= 1, got {checkpoint_threshold}")

        self._name = name
        self._checkpoint_threshold = checkpoint_threshold
        self._store: CatalogStore = store or DirectoryCatalogStore(
            base_dir / name, sync_mode=self._sync_mode
        )
        self._operation_log: OperationLog = operation_log or FileOperationLog(
            self._store.directory / OPERATION_LOG_FILE, sync_mode=self._sync_mode
        )
        self._metrics = metrics or get_metrics()
        self._logger = get_logger(__name__, database=name)

        self._tables: dict[str, Table] = {}
        self._wal: list[str] = []
        self._operations_since_checkpoint = 0
        self._closed = False

        # Problems skipped by load_from_file()
        self.load_warnings: list[RowStoreError] = []

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> Path:
        """The directory holding this database's files."""
        return self._store.directory

    @property
    def checkpoint_threshold(self) -> int:
        return self._checkpoint_threshold

    @property
    def operations_since_checkpoint(self) -> int:
        return self._operations_since_checkpoint

    @property
    def pending_operations(self) -> tuple[str, ...]:
        """Operations logged since the last successful checkpoint."""
        return tuple(self._wal)

    @property
    def operation_log(self) -> OperationLog:
        return self._operation_log

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def create_table(self, name: str, columns: Sequence[ColumnDefinition]) -> None:
        """Create a new, empty table.

        Raises:
            SchemaError: If the table already exists or its schema is invalid.
        """
        if name in self._tables:
            raise SchemaError(f"Table '{name}' already exists")

        self._tables[name] = Table(name, columns)
        self._metrics.tables_created_total.inc()
        self._logger.info("table_created", table=name, columns=len(columns))

    def insert(self, table_name: str, values: Sequence[str]) -> int:
        """Insert a row into a table.

        Returns:
            The position of the new row.

        Raises:
            NotFoundError: If the table does not exist.
            ArityError: If the value count is wrong.
            ConstraintViolation: If a column constraint is violated.
        """
        table = self._tables.get(table_name)
        if table is None:
            raise NotFoundError(f"Table '{table_name}' does not exist")

        try:
            position = table.insert_row(values)
        except ArityError:
            self._metrics.insert_rejections_total.labels(reason="arity").inc()
            raise
        except ConstraintViolation as e:
            self._metrics.insert_rejections_total.labels(reason=e.kind.value).inc()
            raise

        self._metrics.rows_inserted_total.labels(table=table_name).inc()
        return position

    def select(
        self,
        table_name: str,
        columns: Sequence[str] = (),
        where: str = "",
    ) -> list[list[str]]:
        """Select rows from a table.

        Returns an empty list when the table does not exist.
        """
        table = self._tables.get(table_name)
        if table is None:
            return []

        self._metrics.selects_total.inc()
        self._metrics.rows_scanned_total.inc(table.row_count)
        return table.select_rows(columns, where)

    def table_exists(self, name: str) -> bool:
        return name in self._tables

    def get_table_names(self) -> set[str]:
        """Names of all tables. No ordering is implied."""
        return set(self._tables)

    def get_table(self, name: str) -> Table:
        """Borrow a table for reading.

        The returned table must not be kept beyond the database's lifetime.

        Raises:
            NotFoundError: If the table does not exist.
        """
        table = self._tables.get(name)
        if table is None:
            raise NotFoundError(f"Table '{name}' does not exist")
        return table

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_to_file(self) -> None:
        """Durably write metadata and every table.

        All files are first written to temporary paths; only when every
        write succeeded are they renamed into place, metadata first.

        Raises:
            StorageIOError: If a write or rename fails. After a write
                failure the previously committed files are unchanged.
        """
        files = [(METADATA_FILE, encode_metadata(self._tables))]
        files.extend(
            (f"{name}{TABLE_FILE_SUFFIX}", serialize_table(table))
            for name, table in self._tables.items()
        )

        with trace_span("save", {"database": self._name, "tables": len(self._tables)}):
            self._store.commit(files)

    def checkpoint(self) -> CheckpointResult:
        """Save to disk and reset the pending-operation bookkeeping.

        On failure the counter and buffered operations are kept, so the
        next logged operation retries. Never raises for I/O failures.
        """
        start = time.perf_counter()
        try:
            self.save_to_file()
        except StorageIOError as e:
            duration = time.perf_counter() - start
            self._metrics.checkpoints_total.labels(status="failure").inc()
            self._logger.error("checkpoint_failed", error=e.message)
            return CheckpointResult(success=False, duration_seconds=duration, error=e)

        duration = time.perf_counter() - start
        self._operations_since_checkpoint = 0
        self._wal.clear()

        self._metrics.checkpoints_total.labels(status="success").inc()
        self._metrics.checkpoint_duration_seconds.observe(duration)
        self._metrics.pending_operations.labels(database=self._name).set(0)
        self._logger.info(
            "checkpoint_completed", tables=len(self._tables), duration_seconds=duration
        )
        return CheckpointResult(
            success=True, tables_written=len(self._tables), duration_seconds=duration
        )

    def log_operation(self, operation: str) -> LogOutcome:
        """Record a write operation and checkpoint when the threshold is reached.

        The operation is buffered in memory and appended to the on-disk
        operation log. The log is for auditing only.

        Args:
            operation: Raw operation text, e.g. the command as typed.

        Returns:
            The pending count after this operation and, when it triggered
            one, the checkpoint result.
        """
        self._wal.append(operation)
        self._operations_since_checkpoint += 1

        log_error: StorageIOError | None = None
        try:
            self._operation_log.append(operation)
        except StorageIOError as e:
            log_error = e
            self._logger.warning("operation_log_write_failed", error=e.message)

        self._metrics.operations_logged_total.inc()
        self._metrics.pending_operations.labels(database=self._name).set(
            self._operations_since_checkpoint
        )

        checkpoint = None
        if self._operations_since_checkpoint >= self._checkpoint_threshold:
            checkpoint = self.checkpoint()

        return LogOutcome(
            pending_operations=self._operations_since_checkpoint,
            checkpoint=checkpoint,
            log_error=log_error,
        )

    @classmethod
    def load_from_file(
        cls,
        name: str,
        data_dir: str | Path | None = None,
        *,
        checkpoint_threshold: int | None = None,
        sync_mode: SyncMode | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> Database:
        """Reconstruct a database from its last checkpoint.

        Missing or corrupt table files, and rows that fail replay, are
        skipped and recorded in ``load_warnings``.

        Raises:
            NotFoundError: If the directory or its metadata file is missing.
            FormatError: If the metadata file cannot be decoded.
            StorageIOError: If the metadata file cannot be read.
        """
        config = get_config()
        base_dir = Path(data_dir) if data_dir is not None else config.storage.data_dir
        sync_mode = sync_mode or SyncMode(config.storage.sync_mode)
        store = DirectoryCatalogStore(base_dir / name, sync_mode=sync_mode, create=False)

        return cls._load(
            name,
            store,
            checkpoint_threshold=checkpoint_threshold,
            sync_mode=sync_mode,
            metrics=metrics,
        )

    @classmethod
    def _load(cls, name: str, store: CatalogStore, **kwargs: Any) -> Database:
        if not store.exists():
            raise NotFoundError(f"Database directory does not exist: {store.directory}")
        if not store.exists(METADATA_FILE):
            raise NotFoundError(f"Metadata file not found: {store.directory / METADATA_FILE}")

        with trace_span("load", {"database": name}):
            metadata = decode_metadata(store.read(METADATA_FILE))
            db = cls(name, store=store, **kwargs)

            if metadata.truncated:
                db._record_load_warning(
                    FormatError(
                        f"Metadata declares {metadata.declared_count} tables "
                        f"but lists {len(metadata.table_names)}"
                    ),
                    kind="corrupt_table",
                )

            for table_name in metadata.table_names:
                db._load_table(table_name)

        db._logger.info(
            "database_loaded", tables=len(db._tables), warnings=len(db.load_warnings)
        )
        return db

    def _load_table(self, table_name: str) -> None:
        if not table_name or "/" in table_name or "\\" in table_name:
            self._record_load_warning(
                FormatError(f"Invalid table name in metadata: {table_name!r}"),
                kind="corrupt_table",
            )
            return
        if table_name in self._tables:
            self._record_load_warning(
                FormatError(f"Table '{table_name}' listed twice in metadata"),
                kind="corrupt_table",
            )
            return

        try:
            decoded = deserialize_table(self._store.read(f"{table_name}{TABLE_FILE_SUFFIX}"))
        except NotFoundError as e:
            self._record_load_warning(e, kind="missing_table")
            return
        except (FormatError, StorageIOError) as e:
            self._record_load_warning(e, kind="corrupt_table")
            return

        if decoded.table.name != table_name:
            self._record_load_warning(
                FormatError(
                    f"Table file for '{table_name}' contains table '{decoded.table.name}'"
                ),
                kind="corrupt_table",
            )
            return

        for row_error in decoded.row_errors:
            self._record_load_warning(row_error, kind="corrupt_row")

        self._tables[table_name] = decoded.table
        self._metrics.tables_loaded_total.inc()
        self._logger.info("table_loaded", table=table_name, rows=decoded.table.row_count)

    def _record_load_warning(self, error: RowStoreError, kind: str) -> None:
        self.load_warnings.append(error)
        self._metrics.load_warnings_total.labels(kind=kind).inc()
        self._logger.warning("load_problem_skipped", kind=kind, error=error.message)

    def reload(self) -> Database:
        """Discard unsaved changes and return the last checkpointed state.

        This instance is closed without saving; use the returned database
        from now on.

        Raises:
            NotFoundError: If nothing has been checkpointed yet.
        """
        self.close(save=False)
        return type(self)._load(
            self._name,
            DirectoryCatalogStore(self.directory, sync_mode=self._sync_mode, create=False),
            checkpoint_threshold=self._checkpoint_threshold,
            sync_mode=self._sync_mode,
            metrics=self._metrics,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self, save: bool = True) -> CheckpointResult | None:
        """Release the operation log, checkpointing first when ``save`` is set.

        The final checkpoint is best effort: its failure is reported in the
        returned result, not raised.
        """
        if self._closed:
            return None

        result = self.checkpoint() if save else None
        self._operation_log.close()
        self._closed = True
        return result

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table, row and checkpoint bookkeeping.
        """
        return {
            "name": self._name,
            "directory": str(self.directory),
            "tables": len(self._tables),
            "rows": {name: table.row_count for name, table in self._tables.items()},
            "operations_since_checkpoint": self._operations_since_checkpoint,
            "checkpoint_threshold": self._checkpoint_threshold,
            "load_warnings": len(self.load_warnings),
            "closed": self._closed,
        }

    def __repr__(self) -> str:
        return f"Database({self._name!r}, tables={len(self._tables)})"

    def __enter__(self) -> Database:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
