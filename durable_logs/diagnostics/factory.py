# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory function for creating diagnostics loggers."""

import os

from .logger import DiagnosticLogger
from .silent_logger import SilentDiagnosticLogger
from .stdout_logger import StdoutDiagnosticLogger


def _default(value: str | None, env_var: str, fallback: str) -> str:
    """Helper to pick an explicit value, then env var, then fallback."""
    return (value or os.getenv(env_var) or fallback)


def create_diagnostic_logger(
    logger_type: str | None = None,
    level: str | None = None,
    name: str | None = None,
) -> DiagnosticLogger:
    """Factory function to create a diagnostics logger.

    Args:
        logger_type: Type of logger to create. Options: "stdout", "silent".
            Defaults to DURABLE_LOGS_DIAGNOSTICS_TYPE env or "stdout".
        level: Logging level. Options: DEBUG, INFO, WARNING, ERROR.
            Defaults to DURABLE_LOGS_DIAGNOSTICS_LEVEL env or "INFO".
        name: Logger name. Defaults to DURABLE_LOGS_DIAGNOSTICS_NAME env or "durable_logs".

    Returns:
        DiagnosticLogger instance

    Raises:
        ValueError: If logger_type is not recognized

    Example:
        >>> diagnostics = create_diagnostic_logger(logger_type="silent")
        >>> diagnostics.error("Failed to save log entry", code=13)
    """
    logger_type = _default(logger_type, "DURABLE_LOGS_DIAGNOSTICS_TYPE", "stdout").lower()
    level = _default(level, "DURABLE_LOGS_DIAGNOSTICS_LEVEL", "INFO").upper()
    name = _default(name, "DURABLE_LOGS_DIAGNOSTICS_NAME", "durable_logs")

    if logger_type == "stdout":
        return StdoutDiagnosticLogger(level=level, name=name)
    elif logger_type == "silent":
        return SilentDiagnosticLogger(level=level, name=name)
    else:
        raise ValueError(
            f"Unknown logger_type: {logger_type}. "
            f"Must be one of: stdout, silent"
        )
