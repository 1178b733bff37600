# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Durable Logs.

An embeddable, persistent log sink. Entries are written to a local SQLite
file through a single serial worker, can be retrieved by time range and
severity, and are pruned automatically once they fall outside a retention
window.

Example:
    >>> from durable_logs import LogStoreConfig, Severity, create_log_store
    >>>
    >>> store = create_log_store(LogStoreConfig(path="/tmp/app.logdb"))
    >>> store.log(Severity.ERROR, "disk full on %s", "/dev/sda1")
    >>> for entry in store.query_recent(10, Severity.WARNING):
    ...     print(entry)
    >>> store.close()
"""

__version__ = "0.1.0"

from .codec import JsonMetadataCodec, MetadataCodec, MetadataCodecError, create_metadata_codec
from .config import LogStoreConfig, load_config
from .diagnostics import (
    DiagnosticLogger,
    SilentDiagnosticLogger,
    StdoutDiagnosticLogger,
    create_diagnostic_logger,
)
from .entry import Entry, Severity
from .errors import (
    CloseFailedError,
    InsertFailedError,
    LogStoreError,
    OpenFailedError,
    PruneFailedError,
    QueryFailedError,
    SchemaFailedError,
)
from .executor import SerialExecutor
from .factory import create_log_store, default_log_path
from .formatting import format_message
from .log_store import LogStore
from .providers import ConfigProvider, EnvConfigProvider, StaticConfigProvider
from .pruning import PruneState, PruningPolicy
from .sqlite_storage import SQLiteLogStorage

__all__ = [
    # Version
    "__version__",
    # Log store
    "LogStore",
    "Entry",
    "Severity",
    "create_log_store",
    "default_log_path",
    "format_message",
    # Internals exposed for embedding and testing
    "SQLiteLogStorage",
    "SerialExecutor",
    "PruningPolicy",
    "PruneState",
    # Metadata codecs
    "MetadataCodec",
    "JsonMetadataCodec",
    "MetadataCodecError",
    "create_metadata_codec",
    # Diagnostics
    "DiagnosticLogger",
    "StdoutDiagnosticLogger",
    "SilentDiagnosticLogger",
    "create_diagnostic_logger",
    # Configuration
    "LogStoreConfig",
    "load_config",
    "ConfigProvider",
    "EnvConfigProvider",
    "StaticConfigProvider",
    # Exceptions
    "LogStoreError",
    "OpenFailedError",
    "SchemaFailedError",
    "CloseFailedError",
    "InsertFailedError",
    "QueryFailedError",
    "PruneFailedError",
]
