# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Diagnostics channel for the log store.

Failed inserts and failed prunes never reach the code that called
``write``; they are reported here instead, together with the optional echo
of every entry written.
"""

from .factory import create_diagnostic_logger
from .logger import LEVELS, DiagnosticLogger
from .silent_logger import SilentDiagnosticLogger
from .stdout_logger import StdoutDiagnosticLogger

__all__ = [
    "LEVELS",
    "DiagnosticLogger",
    "SilentDiagnosticLogger",
    "StdoutDiagnosticLogger",
    "create_diagnostic_logger",
]
