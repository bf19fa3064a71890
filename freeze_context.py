"""
Freeze context for cross-cutting build options.

This module defines the FreezeContext dataclass which holds options that
affect multiple stages of a freeze (compilation, diagnostics, logging).
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Hierarchical logging levels for the freezer."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # General progress messages (-v)
    DEBUG = 30      # Per-file traversal details (-vvv)


@dataclass
class FreezeContext:
    """
    Holds cross-cutting options that affect multiple freeze stages.

    Attributes:
        optimize:           Optimization level handed to `compile()`:
                            0 keeps asserts and docstrings, 1 strips asserts,
                            2 also strips docstrings.
        log_rich_format:    If True, emit logs in rich format: timestamps and level tags.
        log_level:          Current logging level.
    """
    optimize: int = 0
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING

    @staticmethod
    def default() -> 'FreezeContext':
        """Create a FreezeContext with default settings."""
        return FreezeContext(log_level=LogLevel.WARNING)
