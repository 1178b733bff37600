# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""SQLite-backed storage for log entries.

The table and index names match stores written by earlier versions of the
logger, so existing files can be opened and queried.

This class is not thread-safe. LogStore only touches it from its serial
executor.
"""

import logging
import os
import sqlite3
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .codec import JsonMetadataCodec, MetadataCodec, MetadataCodecError
from .entry import Entry, Severity
from .errors import (
    SQLITE_MISUSE,
    CloseFailedError,
    InsertFailedError,
    OpenFailedError,
    PruneFailedError,
    QueryFailedError,
    SchemaFailedError,
)

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = (
    "CREATE TABLE IF NOT EXISTS LOG_ENTRIES "
    "(Z_TIMESTAMP REAL, Z_SEVERITY INTEGER, Z_MESSAGE TEXT, Z_USERINFO BLOB)"
)
CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS LOG_TSTAMP_I "
    "ON LOG_ENTRIES (Z_TIMESTAMP DESC, Z_SEVERITY DESC)"
)
INSERT_SQL = "INSERT INTO LOG_ENTRIES (Z_TIMESTAMP, Z_SEVERITY, Z_MESSAGE, Z_USERINFO) VALUES (?, ?, ?, ?)"
SELECT_SQL = (
    "SELECT Z_TIMESTAMP, Z_SEVERITY, Z_MESSAGE, Z_USERINFO FROM LOG_ENTRIES "
    "WHERE Z_TIMESTAMP BETWEEN ? AND ? AND Z_SEVERITY <= ? "
    "ORDER BY Z_TIMESTAMP {direction}, Z_SEVERITY {direction}"
)
DELETE_SQL = "DELETE FROM LOG_ENTRIES WHERE Z_TIMESTAMP < ?"
COUNT_SQL = "SELECT COUNT(*) FROM LOG_ENTRIES"


def to_epoch_seconds(value: datetime | float | int | None, default: float) -> float:
    """Convert a datetime or number to float epoch seconds, or default if None."""
    if value is None:
        return default
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


class SQLiteLogStorage:
    """Owns the SQLite connection and every statement issued against it."""

    def __init__(self, path: str | os.PathLike, codec: MetadataCodec | None = None):
        """Initialize the storage adapter.

        Args:
            path: Location of the SQLite file (created on open if missing)
            codec: Metadata codec (defaults to JsonMetadataCodec)
        """
        self.path = Path(path)
        self.codec = codec or JsonMetadataCodec()
        self._connection: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> None:
        """Open the backing file and ensure the schema exists.

        Raises:
            OpenFailedError: If the file cannot be opened
            SchemaFailedError: If the table or index cannot be created
        """
        if self._connection is not None:
            logger.debug(f"SQLiteLogStorage: {self.path} already open")
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OpenFailedError(f"Unable to create directory for {self.path}: {e}") from e

        try:
            connection = sqlite3.connect(
                str(self.path),
                check_same_thread=False,
                isolation_level=None,
            )
        except sqlite3.Error as e:
            raise OpenFailedError.from_sqlite(f"Unable to open connection to {self.path}", e) from e

        for sql, description in (
            (CREATE_TABLE_SQL, "LOG_ENTRIES table"),
            (CREATE_INDEX_SQL, "LOG_TSTAMP_I index"),
        ):
            try:
                connection.execute(sql)
            except sqlite3.Error as e:
                connection.close()
                raise SchemaFailedError.from_sqlite(f"Unable to create {description}", e) from e

        self._connection = connection
        logger.debug(f"SQLiteLogStorage: opened {self.path}")

    def close(self) -> None:
        """Close the connection. Safe to call more than once.

        Raises:
            CloseFailedError: If the connection cannot be closed
        """
        if self._connection is None:
            return
        try:
            self._connection.close()
        except sqlite3.Error as e:
            raise CloseFailedError.from_sqlite("Unable to close connection", e) from e
        self._connection = None
        logger.debug(f"SQLiteLogStorage: closed {self.path}")

    def insert(self, entry: Entry) -> None:
        """Write one entry.

        Raises:
            InsertFailedError: If the store is closed, the metadata cannot be
                encoded, or SQLite rejects the insert
        """
        connection = self._require_connection(InsertFailedError)

        if entry.metadata is None:
            blob = b""
        else:
            try:
                blob = self.codec.encode(entry.metadata)
            except Exception as e:
                # Codecs are pluggable; any failure drops only this entry
                raise InsertFailedError(f"Unable to encode metadata: {e}") from e

        try:
            connection.execute(
                INSERT_SQL,
                (entry.epoch_seconds, int(entry.severity), entry.message, blob),
            )
        except (sqlite3.Error, ValueError) as e:
            # ValueError covers text that cannot be bound, e.g. lone surrogates
            raise InsertFailedError.from_sqlite("Failed to save log entry", e) from e

    def query_range(
        self,
        start: datetime | float | None,
        end: datetime | float | None,
        max_severity: Severity | int,
        max_rows: int | None = None,
        ascending: bool = True,
    ) -> list[Entry]:
        """Retrieve entries in a time range at or above a severity.

        Args:
            start: Inclusive lower bound; None means unbounded (epoch 0)
            end: Inclusive upper bound; None means now
            max_severity: Largest severity ordinal to include
            max_rows: Maximum number of entries, or None for no limit
            ascending: Oldest first if True, newest first otherwise

        Returns:
            List of matching entries

        Raises:
            QueryFailedError: If the store is closed or the query fails
        """
        connection = self._require_connection(QueryFailedError)

        start_seconds = to_epoch_seconds(start, 0.0)
        end_seconds = to_epoch_seconds(end, time.time())
        sql = SELECT_SQL.format(direction="ASC" if ascending else "DESC")
        params: tuple[Any, ...] = (start_seconds, end_seconds, int(max_severity))
        if max_rows is not None:
            sql += " LIMIT ?"
            params += (max_rows,)

        try:
            rows = connection.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise QueryFailedError.from_sqlite("Unable to retrieve entries", e) from e

        entries = [self._row_to_entry(row) for row in rows]
        logger.debug(
            f"SQLiteLogStorage: query [{start_seconds}, {end_seconds}] severity<={int(max_severity)} "
            f"returned {len(entries)} entries"
        )
        return entries

    def delete_older_than(self, cutoff: datetime | float) -> int:
        """Delete every entry with a timestamp before cutoff.

        Returns:
            Number of entries removed

        Raises:
            PruneFailedError: If the store is closed or the delete fails
        """
        connection = self._require_connection(PruneFailedError)
        cutoff_seconds = to_epoch_seconds(cutoff, 0.0)
        try:
            cursor = connection.execute(DELETE_SQL, (cutoff_seconds,))
        except sqlite3.Error as e:
            raise PruneFailedError.from_sqlite("Unable to execute prune statement", e) from e
        logger.debug(f"SQLiteLogStorage: pruned {cursor.rowcount} entries older than {cutoff_seconds}")
        return cursor.rowcount

    def count(self) -> int:
        """Return the number of stored entries.

        Raises:
            QueryFailedError: If the store is closed or the query fails
        """
        connection = self._require_connection(QueryFailedError)
        try:
            (total,) = connection.execute(COUNT_SQL).fetchone()
        except sqlite3.Error as e:
            raise QueryFailedError.from_sqlite("Unable to count entries", e) from e
        return total

    def _require_connection(self, error_cls: type) -> sqlite3.Connection:
        if self._connection is None:
            raise error_cls(f"Log store {self.path} is not open", code=SQLITE_MISUSE)
        return self._connection

    def _row_to_entry(self, row: tuple[Any, ...]) -> Entry:
        timestamp, severity, message, blob = row

        try:
            severity = Severity(severity)
        except ValueError:
            # Unknown ordinals written by other tools are returned as-is
            pass

        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")

        metadata = None
        if blob:
            try:
                metadata = self.codec.decode(bytes(blob))
            except MetadataCodecError as e:
                logger.warning(f"SQLiteLogStorage: unable to decode metadata for entry at {timestamp}: {e}")

        return Entry(
            timestamp=datetime.fromtimestamp(timestamp, tz=timezone.utc),
            severity=severity,
            message=message or "",
            metadata=metadata,
        )
