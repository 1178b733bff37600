# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Log store facade.

Thread-safe entry point for writing and retrieving log entries. Every
operation against the SQLite file is funneled through one SerialExecutor,
so callers on any thread see a single, totally ordered sequence of
inserts, queries and prunes.

Example:
    >>> store = LogStore("/tmp/app.logdb", filter_severity=Severity.INFO)
    >>> store.open()
    >>> store.log(Severity.ERROR, "disk %s is full", "/dev/sda1")
    >>> store.query_recent(10, Severity.WARNING)
    >>> store.close()
"""

import logging
import os
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from .codec import MetadataCodec, create_metadata_codec
from .diagnostics import DiagnosticLogger, create_diagnostic_logger
from .entry import Entry, Severity
from .errors import InsertFailedError, LogStoreError
from .executor import SerialExecutor
from .formatting import format_message
from .pruning import PruningPolicy
from .sqlite_storage import SQLiteLogStorage

logger = logging.getLogger(__name__)


class LogStore:
    """Persistent, queryable log sink backed by a single SQLite file.

    write() and log() return immediately; the insert happens later on the
    worker thread and a failure is reported to the diagnostics logger, never
    to the caller. open(), close() and the query methods block until the
    worker has finished and raise LogStoreError subclasses on failure.

    A hung SQLite call stalls every later operation on the same store; there
    is no cancellation or timeout.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        *,
        filter_severity: Severity | int | str = Severity.WARNING,
        prune_limit_days: float = 7.0,
        prune_frequency_secs: float = 3600.0,
        echo_entries: bool = False,
        codec: MetadataCodec | None = None,
        diagnostics: DiagnosticLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the log store. Call open() before use.

        Args:
            path: Location of the SQLite file
            filter_severity: Least severe level that is written
            prune_limit_days: Days of entries to keep
            prune_frequency_secs: Minimum seconds between prune passes
            echo_entries: Echo every written entry to the diagnostics logger
            codec: Metadata codec (defaults to the JSON codec)
            diagnostics: Diagnostics logger (defaults to create_diagnostic_logger())
            clock: Source of the current time for pruning decisions

        Raises:
            TypeError: If path is not a string or path-like object
            ValueError: If path is empty or a limit is negative
        """
        if not isinstance(path, (str, os.PathLike)):
            raise TypeError(f"path must be a str or os.PathLike, got {type(path).__name__}")
        if not os.fspath(path):
            raise ValueError("path must not be empty")

        self.filter_severity = filter_severity
        self.echo_entries = echo_entries
        self.diagnostics = diagnostics or create_diagnostic_logger()
        self._storage = SQLiteLogStorage(path, codec=codec or create_metadata_codec())
        self._executor = SerialExecutor(name=f"durable-logs:{Path(path).name}")
        self._pruning = PruningPolicy(
            executor=self._executor,
            storage=self._storage,
            diagnostics=self.diagnostics,
            prune_limit_days=prune_limit_days,
            prune_frequency_secs=prune_frequency_secs,
            clock=clock,
        )

    @classmethod
    def from_config(
        cls,
        config: Any,
        diagnostics: DiagnosticLogger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "LogStore":
        """Create a LogStore from a LogStoreConfig.

        Args:
            config: LogStoreConfig with a path set
            diagnostics: Optional diagnostics logger; built from the config if omitted
            clock: Source of the current time for pruning decisions

        Returns:
            Configured (not yet opened) LogStore

        Raises:
            ValueError: If config.path is not set
        """
        if not config.path:
            raise ValueError("LogStoreConfig.path is required")
        if diagnostics is None:
            diagnostics = create_diagnostic_logger(
                logger_type=config.diagnostics_type,
                level=config.diagnostics_level,
            )
        return cls(
            config.path,
            filter_severity=config.filter_severity,
            prune_limit_days=config.prune_limit_days,
            prune_frequency_secs=config.prune_frequency_secs,
            echo_entries=config.echo_entries,
            codec=create_metadata_codec(config.metadata_codec),
            diagnostics=diagnostics,
            clock=clock,
        )

    @property
    def path(self) -> Path:
        return self._storage.path

    @property
    def is_open(self) -> bool:
        return self._storage.is_open

    @property
    def filter_severity(self) -> Severity:
        return self._filter_severity

    @filter_severity.setter
    def filter_severity(self, value: Severity | int | str) -> None:
        self._filter_severity = Severity.parse(value)

    @property
    def prune_limit_days(self) -> float:
        return self._pruning.prune_limit_days

    @prune_limit_days.setter
    def prune_limit_days(self, value: float) -> None:
        self._pruning.prune_limit_days = value

    @property
    def prune_frequency_secs(self) -> float:
        return self._pruning.prune_frequency_secs

    @prune_frequency_secs.setter
    def prune_frequency_secs(self, value: float) -> None:
        self._pruning.prune_frequency_secs = value

    @property
    def pruning(self) -> PruningPolicy:
        return self._pruning

    # Lifecycle

    def open(self) -> None:
        """Open the backing file, creating it and its schema if needed.

        Raises:
            OpenFailedError: If the file cannot be opened
            SchemaFailedError: If the schema cannot be created
        """
        self._executor.call(self._storage.open)
        logger.debug(f"LogStore: opened {self.path}")

    def close(self) -> None:
        """Close the backing file after pending writes have been applied.

        Safe to call more than once. The worker thread is stopped even if
        closing the file fails.

        Raises:
            CloseFailedError: If the connection cannot be closed
        """
        try:
            self._executor.call(self._storage.close)
        finally:
            self._executor.shutdown(wait=True)
        logger.debug(f"LogStore: closed {self.path}")

    def __enter__(self) -> "LogStore":
        if not self.is_open:
            try:
                self.open()
            except LogStoreError:
                self._executor.shutdown()
                raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except LogStoreError as e:
            logger.warning(f"LogStore: error closing {self.path}: {e}")

    # Writing

    def is_logging(self, severity: Severity | int) -> bool:
        """Return True if entries of this severity pass the filter."""
        return severity <= self._filter_severity

    def write(self, entry: Entry) -> None:
        """Queue an entry for insertion and return immediately.

        Entries less severe than filter_severity are dropped without touching
        the store. Insert failures are reported to the diagnostics logger.

        Args:
            entry: The entry to write
        """
        if not self.is_logging(entry.severity):
            return

        self._pruning.schedule_check()
        self._executor.submit(self._insert, entry)

    def log(
        self,
        severity: Severity | int,
        message: str,
        *args: Any,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Format a message and write it as a new entry.

        Args:
            severity: Severity of the entry
            message: Message text, or a %-format string when args are given
            *args: Values substituted into message
            metadata: Optional key/value data stored with the entry
        """
        # Skip formatting for entries that would be dropped anyway
        if not self.is_logging(severity):
            return

        self.write(
            Entry(
                severity=Severity.parse(severity),
                message=format_message(message, *args),
                metadata=metadata,
            )
        )

    def _insert(self, entry: Entry) -> None:
        if self.echo_entries:
            self.diagnostics.echo(entry)
        try:
            self._storage.insert(entry)
        except InsertFailedError as e:
            # The entry is dropped; dump it so it is not lost without trace
            self.diagnostics.error(
                "Failed to save log entry",
                path=str(self.path),
                code=e.code,
                error=e.message,
                entry=str(entry),
            )

    # Retrieval

    def query_range(
        self,
        start: datetime | float | None = None,
        end: datetime | float | None = None,
        severity: Severity | int | str = Severity.DEBUG,
    ) -> list[Entry]:
        """Retrieve entries between start and end, oldest first.

        Args:
            start: Inclusive lower bound; None for unbounded
            end: Inclusive upper bound; None for now
            severity: Least severe level to include

        Returns:
            Matching entries in ascending timestamp order

        Raises:
            ValueError: If severity is unknown
            QueryFailedError: If the query fails or the store is not open
        """
        severity = Severity.parse(severity)
        self._pruning.schedule_check()
        return self._executor.call(self._storage.query_range, start, end, severity, None, True)

    def query_recent(self, count: int, severity: Severity | int | str = Severity.DEBUG) -> list[Entry]:
        """Retrieve the most recent entries, newest first.

        Args:
            count: Maximum number of entries to return
            severity: Least severe level to include

        Returns:
            Up to count entries in descending timestamp order

        Raises:
            ValueError: If count is negative or severity is unknown
            QueryFailedError: If the query fails or the store is not open
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        severity = Severity.parse(severity)
        self._pruning.schedule_check()
        return self._executor.call(self._storage.query_range, None, None, severity, count, False)

    def count(self) -> int:
        """Return the number of stored entries, after pending writes.

        Raises:
            QueryFailedError: If the store is not open
        """
        return self._executor.call(self._storage.count)
