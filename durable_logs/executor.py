# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Single-worker FIFO executor.

Every operation against a log store runs on one worker thread, in the
order it was submitted. Writes and prune checks are fire-and-forget;
open, close and queries wait for their result.
"""

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


class SerialExecutor:
    """Runs submitted callables one at a time on a dedicated thread.

    The worker is started lazily on the first submission and can be
    restarted after shutdown(). A restarted worker joins its predecessor
    before running anything, so two workers never overlap.
    """

    def __init__(self, name: str = "durable-logs-executor"):
        """Initialize the executor.

        Args:
            name: Name given to the worker thread
        """
        self.name = name
        self._lock = threading.Lock()
        self._queue: queue.SimpleQueue | None = None
        self._thread: threading.Thread | None = None
        self._retired: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def on_worker_thread(self) -> bool:
        """Return True if called from this executor's worker thread."""
        return getattr(threading.current_thread(), "_durable_logs_executor", None) is self

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Enqueue fn without waiting for it.

        Exceptions raised by fn are logged and otherwise ignored.
        """
        self._enqueue(None, fn, args, kwargs)

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Enqueue fn and block until it has run.

        Returns:
            The value returned by fn

        Raises:
            RuntimeError: If called from the worker thread itself
            Exception: Whatever fn raised
        """
        if self.on_worker_thread():
            raise RuntimeError(f"{self.name}: call() from the worker thread would deadlock")
        future: Future = Future()
        self._enqueue(future, fn, args, kwargs)
        return future.result()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker once every task queued so far has run.

        Args:
            wait: Block until the worker thread has exited
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
            self._retired = thread
            self._thread = None
            self._queue = None

        if wait and thread is not threading.current_thread():
            thread.join()
        logger.debug(f"{self.name}: shut down")

    def _enqueue(
        self,
        future: Future | None,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        with self._lock:
            if self._thread is None:
                self._start_worker()
            self._queue.put((future, fn, args, kwargs))

    def _start_worker(self) -> None:
        # Caller holds self._lock
        predecessor, self._retired = self._retired, None
        work_queue: queue.SimpleQueue = queue.SimpleQueue()
        thread = threading.Thread(
            target=self._run,
            args=(work_queue, predecessor),
            name=self.name,
            daemon=True,
        )
        thread._durable_logs_executor = self  # type: ignore[attr-defined]
        self._queue = work_queue
        self._thread = thread
        thread.start()
        logger.debug(f"{self.name}: worker started")

    def _run(self, work_queue: queue.SimpleQueue, predecessor: threading.Thread | None) -> None:
        if predecessor is not None:
            predecessor.join()

        while True:
            item = work_queue.get()
            if item is _STOP:
                return

            future, fn, args, kwargs = item
            if future is not None and not future.set_running_or_notify_cancel():
                continue

            try:
                result = fn(*args, **kwargs)
            except BaseException as exc:
                if future is not None:
                    future.set_exception(exc)
                else:
                    logger.exception(f"{self.name}: unhandled error in background task {fn!r}")
            else:
                if future is not None:
                    future.set_result(result)
