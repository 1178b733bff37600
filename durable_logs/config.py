# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Log store configuration."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from .diagnostics import LEVELS
from .entry import Severity
from .providers import ConfigProvider, EnvConfigProvider

ENV_PATH = "DURABLE_LOGS_PATH"
ENV_FILTER_SEVERITY = "DURABLE_LOGS_FILTER_SEVERITY"
ENV_PRUNE_LIMIT_DAYS = "DURABLE_LOGS_PRUNE_LIMIT_DAYS"
ENV_PRUNE_FREQUENCY_SECS = "DURABLE_LOGS_PRUNE_FREQUENCY_SECS"
ENV_ECHO = "DURABLE_LOGS_ECHO"
ENV_METADATA_CODEC = "DURABLE_LOGS_METADATA_CODEC"
ENV_DIAGNOSTICS_TYPE = "DURABLE_LOGS_DIAGNOSTICS_TYPE"
ENV_DIAGNOSTICS_LEVEL = "DURABLE_LOGS_DIAGNOSTICS_LEVEL"


@dataclass
class LogStoreConfig:
    """Configuration for a log store.

    Attributes:
        path: Location of the store file (None selects the default location)
        filter_severity: Least severe level that is written (default: WARNING)
        prune_limit_days: Days of entries to keep (default: 7)
        prune_frequency_secs: Minimum seconds between prune passes (default: 3600)
        echo_entries: Echo every written entry to the diagnostics logger
        metadata_codec: Name of the metadata codec (default: "json")
        diagnostics_type: Diagnostics logger driver ("stdout" or "silent")
        diagnostics_level: Diagnostics logger level
    """
    path: str | None = None
    filter_severity: Severity = Severity.WARNING
    prune_limit_days: float = 7.0
    prune_frequency_secs: float = 3600.0
    echo_entries: bool = False
    metadata_codec: str = "json"
    diagnostics_type: str = "stdout"
    diagnostics_level: str = "INFO"

    def __post_init__(self) -> None:
        self.filter_severity = Severity.parse(self.filter_severity)
        self.prune_limit_days = float(self.prune_limit_days)
        self.prune_frequency_secs = float(self.prune_frequency_secs)
        if self.prune_limit_days < 0:
            raise ValueError(f"prune_limit_days must be >= 0, got {self.prune_limit_days}")
        if self.prune_frequency_secs < 0:
            raise ValueError(f"prune_frequency_secs must be >= 0, got {self.prune_frequency_secs}")
        self.diagnostics_level = self.diagnostics_level.upper()
        if self.diagnostics_level not in LEVELS:
            raise ValueError(f"Invalid diagnostics level: {self.diagnostics_level}. Must be one of {list(LEVELS)}")
        if self.path is not None:
            self.path = os.fspath(self.path)

    @classmethod
    def from_provider(cls, provider: ConfigProvider) -> "LogStoreConfig":
        """Build a configuration from a provider, keeping defaults for unset keys."""
        defaults = cls()
        return cls(
            path=provider.get(ENV_PATH) or None,
            filter_severity=provider.get(ENV_FILTER_SEVERITY) or defaults.filter_severity,
            prune_limit_days=provider.get_float(ENV_PRUNE_LIMIT_DAYS, defaults.prune_limit_days),
            prune_frequency_secs=provider.get_float(ENV_PRUNE_FREQUENCY_SECS, defaults.prune_frequency_secs),
            echo_entries=provider.get_bool(ENV_ECHO, defaults.echo_entries),
            metadata_codec=provider.get(ENV_METADATA_CODEC) or defaults.metadata_codec,
            diagnostics_type=provider.get(ENV_DIAGNOSTICS_TYPE) or defaults.diagnostics_type,
            diagnostics_level=provider.get(ENV_DIAGNOSTICS_LEVEL) or defaults.diagnostics_level,
        )


def load_config(
    dotenv_path: str | os.PathLike | None = None,
    environ: Mapping[str, str] | None = None,
) -> LogStoreConfig:
    """Load configuration from the environment and an optional .env file.

    Values from the environment take precedence over the .env file. The
    .env file is read without modifying ``os.environ``.

    Args:
        dotenv_path: Optional path to a .env file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        LogStoreConfig instance

    Raises:
        ValueError: If a configured value is invalid
    """
    values: dict[str, str] = {}
    if dotenv_path is not None and Path(dotenv_path).is_file():
        values.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
    values.update(environ if environ is not None else os.environ)
    return LogStoreConfig.from_provider(EnvConfigProvider(values))
