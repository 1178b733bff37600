# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Abstract diagnostics logger interface.

The diagnostics channel is where the log store reports problems it cannot
raise to the caller (failed inserts, failed prunes) and where entries are
echoed when echo is enabled.
"""

from abc import ABC, abstractmethod
from typing import Any

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class DiagnosticLogger(ABC):
    """Abstract base class for diagnostics loggers."""

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message from inside an exception handler."""
        kwargs.setdefault("exc_info", True)
        self.error(message, **kwargs)

    def echo(self, entry: Any) -> None:
        """Echo a log entry as it is written to the store.

        Args:
            entry: The entry being written
        """
        self.info(
            str(entry),
            echo=True,
            severity=int(entry.severity),
            entry_timestamp=entry.timestamp.isoformat(),
        )
