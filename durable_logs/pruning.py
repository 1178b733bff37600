# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Age-based pruning of the log store.

There is no timer thread. A check is queued on the serial executor ahead
of every write and read; the check deletes expired entries only when at
least ``prune_frequency_secs`` have passed since the previous one. An idle
store with no traffic is never pruned.
"""

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum

from .diagnostics import DiagnosticLogger
from .errors import PruneFailedError
from .executor import SerialExecutor
from .sqlite_storage import SQLiteLogStorage

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class PruneState(Enum):
    IDLE = "idle"
    CHECK_SCHEDULED = "check_scheduled"


def _validate_limit(name: str, value: float) -> float:
    value = float(value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


class PruningPolicy:
    """Decides when to prune and issues the bulk delete."""

    def __init__(
        self,
        executor: SerialExecutor,
        storage: SQLiteLogStorage,
        diagnostics: DiagnosticLogger,
        prune_limit_days: float = 7.0,
        prune_frequency_secs: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the pruning policy.

        Args:
            executor: Executor the checks are queued on
            storage: Storage the delete is issued against
            diagnostics: Channel that receives prune failures
            prune_limit_days: Retention window in days
            prune_frequency_secs: Minimum seconds between two prune passes
            clock: Source of the current time in epoch seconds
        """
        self.executor = executor
        self.storage = storage
        self.diagnostics = diagnostics
        self.prune_limit_days = prune_limit_days
        self.prune_frequency_secs = prune_frequency_secs
        self.clock = clock
        # Not persisted: a fresh instance prunes on its first check
        self.last_check_for_pruning = 0.0
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def prune_limit_days(self) -> float:
        return self._prune_limit_days

    @prune_limit_days.setter
    def prune_limit_days(self, value: float) -> None:
        self._prune_limit_days = _validate_limit("prune_limit_days", value)

    @property
    def prune_frequency_secs(self) -> float:
        return self._prune_frequency_secs

    @prune_frequency_secs.setter
    def prune_frequency_secs(self, value: float) -> None:
        self._prune_frequency_secs = _validate_limit("prune_frequency_secs", value)

    @property
    def state(self) -> PruneState:
        with self._lock:
            return PruneState.CHECK_SCHEDULED if self._pending else PruneState.IDLE

    def schedule_check(self) -> None:
        """Queue a prune-or-skip decision on the executor."""
        with self._lock:
            self._pending += 1
        self.executor.submit(self._run_scheduled_check)

    def is_due(self, now: float) -> bool:
        return now - self.last_check_for_pruning >= self.prune_frequency_secs

    def run_check(self) -> int:
        """Prune now if the last pass is old enough. Must run on the executor.

        Returns:
            Number of entries removed (0 when skipped or failed)
        """
        now = self.clock()
        if not self.is_due(now):
            return 0

        cutoff = now - self.prune_limit_days * SECONDS_PER_DAY
        removed = 0
        try:
            removed = self.storage.delete_older_than(cutoff)
        except PruneFailedError as e:
            self.diagnostics.error(
                "Unable to prune log store",
                path=str(self.storage.path),
                code=e.code,
                error=e.message,
            )
        else:
            if removed:
                logger.debug(f"PruningPolicy: removed {removed} entries older than {cutoff}")
        finally:
            self.last_check_for_pruning = now
        return removed

    def _run_scheduled_check(self) -> None:
        try:
            self.run_check()
        finally:
            with self._lock:
                self._pending -= 1
