"""
Logging utilities for the freezer.

Every function takes the FreezeContext of the running build and prints to
stderr only when the context's log level admits the message.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import sys
import time
from typing import Optional

from freeze_context import FreezeContext, LogLevel


_LEVEL_TAGS = {
    LogLevel.ERROR: "ERROR",
    LogLevel.WARNING: "WARNING",
    LogLevel.INFO: "INFO",
    LogLevel.DEBUG: "DEBUG",
}


def log(context: Optional[FreezeContext], log_level: LogLevel, message: str) -> None:
    """
    Log a message if the context's level is at least `log_level`.

    Args:
        context:    The freeze context containing the logging level.
        log_level:  The level of the message to log.
        message:    The message to log.
    """
    if context is None:
        print(message, file=sys.stderr)
        return
    if context.log_level < log_level:
        return
    prefix = ""
    if context.log_rich_format and log_level in _LEVEL_TAGS:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        prefix = f"{timestamp} [{_LEVEL_TAGS[log_level]}] "
    print(f"{prefix}{message}", file=sys.stderr)


def log_error(context: Optional[FreezeContext], message: str) -> None:
    """Log an error-level message."""
    log(context, LogLevel.ERROR, message)


def log_warning(context: Optional[FreezeContext], message: str) -> None:
    """Log a warning-level message."""
    log(context, LogLevel.WARNING, message)


def log_info(context: Optional[FreezeContext], message: str) -> None:
    """Log an info-level message."""
    log(context, LogLevel.INFO, message)


def log_debug(context: Optional[FreezeContext], message: str) -> None:
    """Log a debug-level message."""
    log(context, LogLevel.DEBUG, message)


def log_stage(context: Optional[FreezeContext], stage: str, subject: Optional[str] = None) -> None:
    """
    Log the start of a freeze stage.

    Args:
        context: The freeze context containing logging flags.
        stage:   The name of the stage (e.g., "Walking", "Compiling").
        subject: Optional path or module name being processed.
    """
    if subject:
        log(context, LogLevel.INFO, f"{stage} '{subject}'")
    else:
        log(context, LogLevel.INFO, f"{stage}...")
