# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared fixtures for durable_logs tests."""

import pytest

from durable_logs import LogStore, Severity, SilentDiagnosticLogger

from .helpers import FakeClock


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "logs" / "test.logdb"


@pytest.fixture
def diagnostics():
    return SilentDiagnosticLogger()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(store_path, diagnostics, clock):
    """An open LogStore that accepts every severity and records diagnostics in memory."""
    log_store = LogStore(
        store_path,
        filter_severity=Severity.DEBUG,
        diagnostics=diagnostics,
        clock=clock,
    )
    log_store.open()
    yield log_store
    log_store.close()
