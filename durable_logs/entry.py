# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Log entry value type and severity scale."""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any


class Severity(IntEnum):
    """Syslog-style severity scale. Lower ordinal means more severe."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    @property
    def label(self) -> str:
        """Human readable name, e.g. ``"Warning"``."""
        return self.name.capitalize()

    def is_at_least_as_severe_as(self, threshold: "Severity | int") -> bool:
        """Return True if this severity passes a filter set at ``threshold``."""
        return self <= threshold

    @classmethod
    def parse(cls, value: "Severity | int | str") -> "Severity":
        """Convert an ordinal or a case-insensitive name to a Severity.

        Args:
            value: Severity, integer ordinal (0-7) or name such as "warning"

        Returns:
            Matching Severity member

        Raises:
            ValueError: If value does not name a severity
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid severity: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                pass
        raise ValueError(
            f"Invalid severity: {value!r}. Must be one of {[s.name for s in cls]} or 0-7"
        )


def severity_label(severity: "Severity | int") -> str:
    """Label for a severity, tolerating ordinals outside the known scale."""
    try:
        return Severity(severity).label
    except ValueError:
        return "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Entry:
    """One log record.

    Used both for writing to a log store and for entries read back from it.

    Attributes:
        timestamp: When the entry was logged (defaults to the current time)
        severity: Severity ordinal (defaults to NOTICE)
        message: Message text (defaults to empty string, never None)
        metadata: Optional key/value mapping stored alongside the message.
            Copied on construction, so later changes to the caller's
            mapping do not reach an entry that is already queued.
    """

    timestamp: datetime = field(default_factory=_utcnow)
    severity: Severity = Severity.NOTICE
    message: str = ""
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.message is None:
            object.__setattr__(self, "message", "")
        if self.metadata is not None:
            object.__setattr__(self, "metadata", copy.deepcopy(self.metadata))

    @property
    def epoch_seconds(self) -> float:
        """Timestamp as floating seconds since the Unix epoch."""
        return self.timestamp.timestamp()

    def __str__(self) -> str:
        metadata = "" if self.metadata is None else str(self.metadata)
        return f"{self.timestamp.isoformat()} [{severity_label(self.severity)}] {self.message} {metadata}"
