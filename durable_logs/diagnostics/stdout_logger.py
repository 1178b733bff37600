# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Diagnostics logger writing one JSON object per line to stdout.

Every record is also handed to the standard ``logging`` module under the
configured name, so applications can route store failures through their
own handlers. The stdlib logger's level is left as the application set it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .logger import LEVELS, DiagnosticLogger

_STDLIB_LEVELS = {name: logging.getLevelName(name) for name in LEVELS}


class StdoutDiagnosticLogger(DiagnosticLogger):
    """Diagnostics logger for store failures and echoed entries."""

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize the logger.

        Args:
            level: Least severe level printed (DEBUG, INFO, WARNING, ERROR)
            name: Logger name, also used for the stdlib logger

        Raises:
            ValueError: If level is not one of the known levels
        """
        self.level = level.upper()
        if self.level not in _STDLIB_LEVELS:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(LEVELS)}")
        self.name = name or "durable_logs"
        self._threshold = _STDLIB_LEVELS[self.level]
        self._stdlib_logger = logging.getLogger(self.name)

    def _emit(self, level: str, message: str, fields: dict[str, Any]) -> None:
        numeric_level = _STDLIB_LEVELS[level]
        if numeric_level < self._threshold:
            return

        exc_info = fields.pop("exc_info", None)
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.name,
            "message": message,
        }
        if fields:
            record["extra"] = fields

        try:
            line = json.dumps(record, default=str)
        except (TypeError, ValueError) as e:
            line = None
            sys.stderr.write(f"{level}: {message} (unable to serialize diagnostics record: {e})\n")
        if line is not None:
            sys.stdout.write(line + "\n")
            sys.stdout.flush()

        self._stdlib_logger.log(
            numeric_level,
            message,
            exc_info=exc_info,
            extra={"extra": fields} if fields else None,
        )

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("INFO", message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("WARNING", message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("ERROR", message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit("DEBUG", message, kwargs)
