# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Silent diagnostics logger for testing."""

import threading
from typing import Any

from .logger import DiagnosticLogger


class SilentDiagnosticLogger(DiagnosticLogger):
    """Diagnostics logger that keeps records in memory without output.

    Useful for tests that assert on insert or prune failures. Records are
    captured at every level; ``level`` is stored but not used for filtering.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize silent diagnostics logger.

        Args:
            level: Logging level (stored but not used for filtering)
            name: Optional logger name for identification
        """
        self.level = level.upper()
        self.name = name or "durable_logs"
        self.logs: list[dict[str, Any]] = []
        # The store reports from its worker thread while tests read from the main thread
        self._lock = threading.Lock()

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        record: dict[str, Any] = {
            "level": level,
            "message": message,
        }
        if kwargs:
            record["extra"] = kwargs
        with self._lock:
            self.logs.append(record)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def clear_logs(self) -> None:
        """Clear all stored records."""
        with self._lock:
            self.logs.clear()

    def get_logs(self, level: str | None = None) -> list[dict[str, Any]]:
        """Get stored records, optionally filtered by level.

        Args:
            level: Optional level to filter by (DEBUG, INFO, WARNING, ERROR)

        Returns:
            List of records
        """
        with self._lock:
            if level is None:
                return list(self.logs)
            return [log for log in self.logs if log["level"] == level]

    def has_log(self, message: str, level: str | None = None) -> bool:
        """Check if a record containing message exists.

        Args:
            message: Message to search for (substring match)
            level: Optional level to filter by

        Returns:
            True if message is found, False otherwise
        """
        return any(message in log["message"] for log in self.get_logs(level))
