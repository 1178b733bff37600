# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Test helpers shared across test modules."""

import time
from datetime import datetime, timezone


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, now: float | None = None):
        self.now = time.time() if now is None else now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def at(seconds: float) -> datetime:
    """Aware UTC datetime for an epoch offset."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
