# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory for creating log stores from configuration.

There is no process-wide default instance. Call create_log_store() once at
startup and pass the returned store to the code that needs it.
"""

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from .config import LogStoreConfig, load_config
from .diagnostics import DiagnosticLogger
from .log_store import LogStore

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "durable_logs.logdb"


def default_log_path() -> Path:
    """Return the default store location, creating its directory.

    Uses ``$XDG_CACHE_HOME/durable_logs/durable_logs.logdb``, falling back
    to ``~/.cache`` when XDG_CACHE_HOME is not set.
    """
    cache_home = os.getenv("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    directory = Path(cache_home) / "durable_logs"
    directory.mkdir(parents=True, exist_ok=True)
    return directory / DEFAULT_FILE_NAME


def create_log_store(
    config: LogStoreConfig | None = None,
    *,
    diagnostics: DiagnosticLogger | None = None,
    open_store: bool = True,
    clock: Callable[[], float] = time.time,
) -> LogStore:
    """Create (and by default open) a log store.

    Args:
        config: Configuration; loaded from the environment if None
        diagnostics: Optional diagnostics logger overriding the configured one
        open_store: Open the store before returning it
        clock: Source of the current time for pruning decisions

    Returns:
        LogStore instance

    Raises:
        ValueError: If the configuration is invalid
        LogStoreError: If open_store is True and the store cannot be opened

    Example:
        >>> store = create_log_store(LogStoreConfig(path="/tmp/app.logdb"))
        >>> store.log(Severity.ERROR, "disk full")
    """
    if config is None:
        config = load_config()

    if config.path is None:
        config = LogStoreConfig(**{**vars(config), "path": str(default_log_path())})

    store = LogStore.from_config(config, diagnostics=diagnostics, clock=clock)
    if open_store:
        try:
            store.open()
        except Exception:
            logger.error(f"Unable to open log store at {config.path}")
            store.close()
            raise
    return store
