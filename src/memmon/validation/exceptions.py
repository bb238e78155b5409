"""
Exception types and error handling helpers.

This module provides the exception hierarchy used across memmon and a small
set of helpers that log an error with a severity and optionally re-raise it.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """How loudly an error is reported."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def log_level(self) -> int:
        return getattr(logging, self.name)


class ValidationError(Exception):
    """
    A configuration value was rejected.

    Carries the name of the offending field and the value that was given,
    e.g. a non-positive granularity or an unknown stat source kind.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class MemoryStatError(Exception):
    """Raised when the current process's memory counters cannot be read."""


class MonitorStateError(RuntimeError):
    """Raised when a monitor is used in a state that does not allow it."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log an error with its context, then re-raise it unless told not to.

    Args:
        error: The exception being handled
        context: Where the error happened, e.g. "parsing configuration file"
        severity: An ErrorSeverity or its string value
        reraise: Re-raise `error` after logging
        logger: Logger to report through, defaults to this module's logger
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    target = logger or globals()["logger"]

    # Tracebacks only for the extremes: debugging detail and fatal errors.
    with_traceback = severity in (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL)
    target.log(severity.log_level, f"Error in {context}: {error}", exc_info=with_traceback)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle errors raised while loading or validating configuration."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle errors raised while opening or writing the output file."""
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI error and exit the process with `exit_code` (default 1)."""
    exit_code = kwargs.pop("exit_code", 1)
    kwargs.setdefault("severity", ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", reraise=False, **kwargs)
    sys.exit(exit_code)
