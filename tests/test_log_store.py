# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the LogStore facade."""

import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from durable_logs import (
    CloseFailedError,
    Entry,
    InsertFailedError,
    JsonMetadataCodec,
    LogStore,
    LogStoreConfig,
    OpenFailedError,
    QueryFailedError,
    Severity,
    SilentDiagnosticLogger,
)
from durable_logs.pruning import SECONDS_PER_DAY

from .helpers import FakeClock, at


class TestConstruction:
    """Tests for LogStore construction."""

    def test_defaults(self, store_path, diagnostics):
        """Test default settings."""
        store = LogStore(store_path, diagnostics=diagnostics)

        assert store.path == Path(store_path)
        assert store.filter_severity is Severity.WARNING
        assert store.prune_limit_days == 7.0
        assert store.prune_frequency_secs == 3600.0
        assert store.echo_entries is False
        assert not store.is_open

    def test_path_required(self):
        """Test that a missing path is a programming error."""
        with pytest.raises(TypeError, match="path"):
            LogStore(None)

    def test_empty_path_rejected(self):
        """Test that an empty path raises ValueError."""
        with pytest.raises(ValueError, match="empty"):
            LogStore("")

    def test_filter_severity_accepts_names(self, store_path, diagnostics):
        """Test that the filter can be set by name or ordinal."""
        store = LogStore(store_path, filter_severity="info", diagnostics=diagnostics)
        assert store.filter_severity is Severity.INFO

        store.filter_severity = 2
        assert store.filter_severity is Severity.CRITICAL

    def test_from_config(self, store_path):
        """Test building a store from LogStoreConfig."""
        config = LogStoreConfig(
            path=str(store_path),
            filter_severity="error",
            prune_limit_days=2,
            prune_frequency_secs=10,
            echo_entries=True,
            diagnostics_type="silent",
        )

        store = LogStore.from_config(config)

        assert store.filter_severity is Severity.ERROR
        assert store.prune_limit_days == 2.0
        assert store.prune_frequency_secs == 10.0
        assert store.echo_entries is True
        assert isinstance(store.diagnostics, SilentDiagnosticLogger)

    def test_from_config_requires_path(self):
        """Test that from_config needs an explicit path."""
        with pytest.raises(ValueError, match="path"):
            LogStore.from_config(LogStoreConfig())


class TestLifecycle:
    """Tests for open/close."""

    def test_open_and_close(self, store_path, diagnostics):
        """Test that open creates the file and close stops the worker."""
        store = LogStore(store_path, diagnostics=diagnostics)

        store.open()
        assert store.is_open
        assert store_path.exists()

        store.close()
        assert not store.is_open
        assert not store._executor.is_running

    def test_close_twice(self, store):
        """Test that a second close never errors."""
        store.close()
        store.close()

        assert not store.is_open

    def test_close_drains_pending_writes(self, store_path, diagnostics):
        """Test that writes queued before close are applied."""
        store = LogStore(store_path, filter_severity=Severity.DEBUG, diagnostics=diagnostics)
        store.open()
        for i in range(50):
            store.log(Severity.INFO, "entry %d", i)
        store.close()

        store.open()
        try:
            assert store.count() == 50
        finally:
            store.close()

    def test_close_failure_still_stops_worker(self, store):
        """Test that the worker is shut down even when closing the file fails."""
        with patch.object(store._storage, "close", side_effect=CloseFailedError("busy", code=5)):
            with pytest.raises(CloseFailedError):
                store.close()

        assert not store._executor.is_running
        store._storage.close()

    def test_context_manager(self, store_path, diagnostics):
        """Test deterministic teardown through a with block."""
        with LogStore(store_path, diagnostics=diagnostics) as store:
            assert store.is_open
            store.log(Severity.ERROR, "inside")

        assert not store.is_open

    def test_context_manager_ignores_close_errors(self, store_path, diagnostics, caplog):
        """Test that close errors on scope exit are logged, not raised."""
        with LogStore(store_path, diagnostics=diagnostics) as store:
            close = patch.object(store._storage, "close", side_effect=CloseFailedError("busy", code=5))
            close.start()

        close.stop()
        store._storage.close()
        assert "error closing" in caplog.text

    def test_context_manager_open_failure_stops_worker(self, tmp_path, diagnostics):
        """Test that a failed open on scope entry leaves no worker running."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        store = LogStore(blocker / "app.logdb", diagnostics=diagnostics)

        with pytest.raises(OpenFailedError):
            with store:
                pass

        assert not store._executor.is_running

    def test_reopen_after_close(self, store_path, diagnostics):
        """Test that a closed store can be opened again."""
        store = LogStore(store_path, filter_severity=Severity.DEBUG, diagnostics=diagnostics)
        store.open()
        store.log(Severity.INFO, "first session")
        store.close()

        store.open()
        store.log(Severity.INFO, "second session")
        try:
            messages = [e.message for e in store.query_range()]
        finally:
            store.close()

        assert messages == ["first session", "second session"]


class TestWrite:
    """Tests for write() and log()."""

    def test_round_trip(self, store):
        """Test that severity, message, metadata and timestamp survive a write and read."""
        written = Entry(timestamp=at(int(time.time()) - 5), severity=Severity.ALERT, message="round trip",
                        metadata={"user": "alice", "ids": [1, 2]})

        store.write(written)
        entries = store.query_range(at(time.time() - 60), None)

        assert entries == [written]

    def test_write_without_metadata(self, store):
        """Test that entries without metadata read back with metadata None."""
        store.write(Entry(severity=Severity.ERROR, message="plain"))

        (entry,) = store.query_range()

        assert entry.metadata is None

    @pytest.mark.parametrize("severity", list(Severity))
    def test_severity_filter(self, store, severity):
        """Test that entries are dropped iff less severe than the filter."""
        store.filter_severity = Severity.WARNING

        store.write(Entry(severity=severity, message="filtered?"))
        stored = store.query_range()

        assert (len(stored) == 1) is (severity <= Severity.WARNING)

    def test_filtered_write_does_not_touch_executor(self, store_path, diagnostics):
        """Test that a dropped entry never reaches the worker or the pruning policy."""
        store = LogStore(store_path, filter_severity=Severity.ERROR, diagnostics=diagnostics)

        with patch.object(store._executor, "submit") as submit:
            store.write(Entry(severity=Severity.DEBUG, message="dropped"))

        submit.assert_not_called()
        assert not store._executor.is_running

    def test_write_returns_before_insert(self, store):
        """Test that write() does not wait for the insert."""
        release = threading.Event()
        store._executor.submit(release.wait)

        store.write(Entry(severity=Severity.ERROR, message="queued"))
        release.set()

        assert [e.message for e in store.query_range()] == ["queued"]

    def test_log_formats_message(self, store):
        """Test printf-style formatting in log()."""
        store.log(Severity.ERROR, "%d files copied to %s", 3, "/tmp", metadata={"job": 7})

        (entry,) = store.query_range()

        assert entry.message == "3 files copied to /tmp"
        assert entry.severity is Severity.ERROR
        assert entry.metadata == {"job": 7}

    def test_log_skips_formatting_when_filtered(self, store):
        """Test that filtered messages are not formatted."""
        store.filter_severity = Severity.ERROR

        with patch("durable_logs.log_store.format_message") as format_message:
            store.log(Severity.DEBUG, "expensive %s", object())

        format_message.assert_not_called()

    def test_insert_failure_reported_to_diagnostics(self, store, diagnostics):
        """Test that insert failures are reported, not raised."""
        failure = InsertFailedError("Failed to save log entry: database is locked", code=5)

        with patch.object(store._storage, "insert", side_effect=failure):
            store.log(Severity.ERROR, "lost entry")
            store.count()

        errors = diagnostics.get_logs("ERROR")
        assert len(errors) == 1
        assert errors[0]["message"] == "Failed to save log entry"
        assert errors[0]["extra"]["code"] == 5
        assert "lost entry" in errors[0]["extra"]["entry"]
        assert store.count() == 0

    def test_unbindable_message_reported_to_diagnostics(self, store, diagnostics):
        """Test that a message SQLite cannot store is reported with the entry text."""
        store.write(Entry(severity=Severity.ERROR, message="bad \udcff bytes"))

        assert store.query_recent(10) == []
        errors = diagnostics.get_logs("ERROR")
        assert len(errors) == 1
        assert errors[0]["message"] == "Failed to save log entry"
        assert "bad" in errors[0]["extra"]["entry"]

    def test_codec_failure_reported_to_diagnostics(self, store_path, diagnostics):
        """Test that an arbitrary codec error is reported, not raised."""

        class BrokenCodec(JsonMetadataCodec):
            def encode(self, metadata):
                raise RecursionError("too deep")

        with LogStore(store_path, diagnostics=diagnostics, codec=BrokenCodec()) as store:
            store.log(Severity.ERROR, "nested", metadata={"a": {}})
            assert store.count() == 0

        assert diagnostics.has_log("Failed to save log entry", level="ERROR")

    def test_metadata_changed_after_write(self, store):
        """Test that the stored metadata is the value at write time."""
        release = threading.Event()
        store._executor.submit(release.wait)
        metadata = {"attempt": 1}

        store.write(Entry(severity=Severity.ERROR, message="queued", metadata=metadata))
        metadata["attempt"] = 2
        release.set()

        (entry,) = store.query_recent(1)
        assert entry.metadata == {"attempt": 1}

    def test_write_after_close_is_silent_no_op(self, store_path, diagnostics):
        """Test that writing to a closed store does not raise into the caller."""
        store = LogStore(store_path, diagnostics=diagnostics)
        store.open()
        store.close()

        store.log(Severity.ERROR, "after close")
        store._executor.shutdown()

        assert diagnostics.has_log("Failed to save log entry", level="ERROR")

    def test_echo_entries(self, store, diagnostics):
        """Test that echo sends each written entry to diagnostics."""
        store.echo_entries = True

        store.log(Severity.WARNING, "echo me")
        store.count()

        echoed = diagnostics.get_logs("INFO")
        assert len(echoed) == 1
        assert "[Warning] echo me" in echoed[0]["message"]
        assert echoed[0]["extra"]["echo"] is True

    def test_no_echo_by_default(self, store, diagnostics):
        """Test that nothing is echoed unless enabled."""
        store.log(Severity.WARNING, "quiet")
        store.count()

        assert diagnostics.logs == []

    def test_concurrent_writers(self, store):
        """Test that writes from many threads are all stored."""

        def writer(tag):
            for i in range(40):
                store.log(Severity.INFO, "%s-%d", tag, i)

        threads = [threading.Thread(target=writer, args=(tag,)) for tag in "abcdef"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 240


class TestQueries:
    """Tests for query_range() and query_recent()."""

    def test_range_orders_by_timestamp_not_write_order(self, store_path, diagnostics):
        """Test ascending timestamp order for writes at t=100, 200, 150."""
        store = LogStore(store_path, filter_severity=Severity.DEBUG, diagnostics=diagnostics,
                         clock=FakeClock(300.0))
        store.open()
        try:
            for seconds in (100, 200, 150):
                store.write(Entry(timestamp=at(seconds), severity=Severity.ERROR, message=f"t{seconds}"))

            entries = store.query_range(0, 300, Severity.DEBUG)
        finally:
            store.close()

        assert [e.epoch_seconds for e in entries] == [100, 150, 200]

    def test_recent_returns_newest_first(self, store):
        """Test that query_recent(3) returns the 3 most recent entries, newest first."""
        now = time.time()
        for i in range(10):
            store.write(Entry(timestamp=at(now - 100 + i), severity=Severity.ERROR, message=f"entry {i}"))

        entries = store.query_recent(3)

        assert [e.message for e in entries] == ["entry 9", "entry 8", "entry 7"]

    def test_recent_applies_severity(self, store):
        """Test that query_recent filters by severity before limiting."""
        now = time.time()
        store.write(Entry(timestamp=at(now - 3), severity=Severity.ERROR, message="error"))
        store.write(Entry(timestamp=at(now - 2), severity=Severity.DEBUG, message="debug"))
        store.write(Entry(timestamp=at(now - 1), severity=Severity.INFO, message="info"))

        entries = store.query_recent(1, Severity.WARNING)

        assert [e.message for e in entries] == ["error"]

    def test_severity_by_name(self, store):
        """Test that queries accept severity names like the filter does."""
        now = time.time()
        store.write(Entry(timestamp=at(now - 2), severity=Severity.ERROR, message="error"))
        store.write(Entry(timestamp=at(now - 1), severity=Severity.INFO, message="info"))

        assert [e.message for e in store.query_recent(5, "warning")] == ["error"]
        assert [e.message for e in store.query_range(severity="Info")] == ["error", "info"]

    def test_unknown_severity_name(self, store):
        """Test that an unknown severity name raises ValueError on the caller."""
        with pytest.raises(ValueError, match="Invalid severity"):
            store.query_recent(5, "loud")

    def test_recent_rejects_negative_count(self, store):
        """Test that a negative count raises ValueError."""
        with pytest.raises(ValueError, match="count"):
            store.query_recent(-1)

    def test_read_your_own_writes(self, store):
        """Test that a query issued right after a write observes it."""
        for i in range(100):
            store.log(Severity.ERROR, "write %d", i)
            assert store.query_recent(1)[0].message == f"write {i}"

    def test_query_when_closed(self, store_path, diagnostics):
        """Test that queries on a closed store raise QueryFailedError."""
        store = LogStore(store_path, diagnostics=diagnostics)

        with pytest.raises(QueryFailedError):
            store.query_range()
        with pytest.raises(QueryFailedError):
            store.query_recent(5)
        store.close()

    def test_query_failure_propagates(self, store):
        """Test that engine errors surface to the caller."""
        with patch.object(store._storage, "query_range", side_effect=QueryFailedError("malformed", code=11)):
            with pytest.raises(QueryFailedError) as exc_info:
                store.query_recent(1)

        assert exc_info.value.code == 11

    def test_custom_codec(self, store_path, diagnostics):
        """Test that the configured codec is used for metadata."""

        class UpperCodec(JsonMetadataCodec):
            def decode(self, data):
                return {k.upper(): v for k, v in super().decode(data).items()}

        with LogStore(store_path, diagnostics=diagnostics, codec=UpperCodec()) as store:
            store.log(Severity.ERROR, "custom", metadata={"key": 1})
            (entry,) = store.query_range()

        assert entry.metadata == {"KEY": 1}


class TestPruningThroughFacade:
    """Tests for pruning triggered by reads and writes."""

    def test_read_triggered_prune(self, store_path, diagnostics):
        """Test that the next read removes an entry older than the retention window."""
        store = LogStore(store_path, filter_severity=Severity.DEBUG, prune_limit_days=1,
                         prune_frequency_secs=0, diagnostics=diagnostics)
        store.open()
        try:
            now = time.time()
            store._storage.insert(Entry(timestamp=at(now - 2 * SECONDS_PER_DAY), message="two days old"))
            store._storage.insert(Entry(timestamp=at(now), message="current"))

            entries = store.query_range()
        finally:
            store.close()

        assert [e.message for e in entries] == ["current"]

    def test_write_triggered_prune(self, store_path, diagnostics):
        """Test that writes also run the prune check."""
        store = LogStore(store_path, filter_severity=Severity.DEBUG, prune_limit_days=1,
                         prune_frequency_secs=0, diagnostics=diagnostics)
        store.open()
        try:
            now = time.time()
            store.write(Entry(timestamp=at(now - 2 * SECONDS_PER_DAY), message="two days old"))
            store.write(Entry(timestamp=at(now), message="current"))

            count = store.count()
        finally:
            store.close()

        assert count == 1

    def test_prune_respects_frequency(self, store, clock):
        """Test that no prune runs again until the frequency has elapsed."""
        store.prune_limit_days = 1
        store.query_range()
        old = Entry(timestamp=at(clock.now - 2 * SECONDS_PER_DAY), message="old")
        store._executor.call(store._storage.insert, old)

        clock.advance(10)
        assert [e.message for e in store.query_range()] == ["old"]

        clock.advance(3600)
        assert store.query_range() == []

    def test_prune_failure_does_not_break_writes(self, store, diagnostics):
        """Test that a failing prune is reported and writes continue."""
        from durable_logs import PruneFailedError

        with patch.object(store._storage, "delete_older_than", side_effect=PruneFailedError("locked", code=5)):
            store.log(Severity.ERROR, "still written")
            stored = store.query_range()

        assert [e.message for e in stored] == ["still written"]
        assert diagnostics.has_log("Unable to prune log store", level="ERROR")


class TestScenarios:
    """End-to-end scenarios."""

    def test_error_persists_with_warning_filter(self, store_path, diagnostics):
        """Test that an ERROR entry passes a WARNING filter and is the most recent entry."""
        with LogStore(store_path, filter_severity=Severity.WARNING, diagnostics=diagnostics) as store:
            store.log(Severity.ERROR, "disk full")

            entries = store.query_recent(1, Severity.WARNING)

        assert len(entries) == 1
        assert entries[0].message == "disk full"
        assert entries[0].severity is Severity.ERROR

    def test_debug_dropped_with_default_filter(self, store_path, diagnostics):
        """Test that a DEBUG entry is dropped by the default WARNING filter."""
        with LogStore(store_path, diagnostics=diagnostics) as store:
            store.log(Severity.DEBUG, "trace")

            entries = store.query_range(severity=Severity.DEBUG)

        assert [e for e in entries if e.message == "trace"] == []
