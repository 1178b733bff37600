# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""printf-style message formatting used by LogStore.log()."""

from collections.abc import Mapping
from typing import Any


def format_message(fmt: str, *args: Any) -> str:
    """Substitute args into fmt using %-formatting.

    A single mapping argument is used for named placeholders such as
    ``%(user)s``. Formatting never raises; on a mismatch the format string
    is returned with the arguments appended.

    Example:
        >>> format_message("%d files copied to %s", 3, "/tmp")
        '3 files copied to /tmp'
    """
    if fmt is None:
        fmt = ""
    if not args:
        return fmt

    values: Any = args
    if len(args) == 1 and isinstance(args[0], Mapping):
        values = args[0]

    try:
        return fmt % values
    except (TypeError, ValueError, KeyError) as e:
        return f"{fmt} {args!r} (format error: {e})"
