# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Exceptions raised by the log store."""

SQLITE_MISUSE = 21


class LogStoreError(Exception):
    """Base exception for log store errors.

    Attributes:
        code: Underlying SQLite result code, if known
        message: Diagnostic text
    """

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message if code is None else f"{message} (rc={code})")
        self.message = message
        self.code = code

    @classmethod
    def from_sqlite(cls, context: str, exc: Exception) -> "LogStoreError":
        """Wrap an exception, keeping its SQLite result code when it has one."""
        code = getattr(exc, "sqlite_errorcode", None)
        return cls(f"{context}: {exc}", code=code)


class OpenFailedError(LogStoreError):
    """Raised when the backing file cannot be opened."""
    pass


class SchemaFailedError(LogStoreError):
    """Raised when the table or index cannot be created."""
    pass


class CloseFailedError(LogStoreError):
    """Raised when releasing the connection fails."""
    pass


class InsertFailedError(LogStoreError):
    """Raised when an entry cannot be written."""
    pass


class QueryFailedError(LogStoreError):
    """Raised when retrieving entries fails."""
    pass


class PruneFailedError(LogStoreError):
    """Raised when deleting expired entries fails."""
    pass
