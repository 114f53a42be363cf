"""Standardized Error Handling Utilities

Every failure in the cinemagraph pipeline is surfaced as one of four typed
errors so that library callers can react to it and the CLI can print a
single line naming the stage that failed.
"""

from __future__ import annotations

import logging
import traceback
from contextlib import contextmanager
from enum import Enum
from typing import Any


class ErrorLevel(Enum):
    """Error severity levels for consistent logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class CinemagifError(Exception):
    """Base exception class for all cinemagif errors."""

    def __init__(
        self, message: str, cause: Exception | None = None, context: dict | None = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    @property
    def operation(self) -> str | None:
        """Name of the pipeline stage that failed, when known."""
        return self.context.get("operation")

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause:
            return f"{base_msg} (caused by: {self.cause})"
        return base_msg


class InputError(CinemagifError):
    """Raised for unreadable or non-RGB sources, missing regions or bad parameters."""

    pass


class ResourceError(CinemagifError):
    """Raised when memory or another system resource runs out."""

    pass


class EncodingError(CinemagifError):
    """Raised when writing the animated file fails."""

    pass


class InternalError(CinemagifError):
    """Raised when an invariant that should hold by construction is broken."""

    pass


def handle_error(
    error: Exception,
    operation: str,
    error_type: type[CinemagifError] = InternalError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
    reraise: bool = True,
) -> CinemagifError | None:
    """Standardized error handling with consistent logging and error transformation.

    ``MemoryError`` is always reported as :class:`ResourceError`, whatever
    ``error_type`` the caller asked for.

    Args:
        error: Original exception that occurred
        operation: Description of operation that failed
        error_type: Type of CinemagifError to raise
        level: Logging level for the error
        context: Additional context information
        logger: Logger to use (defaults to module logger)
        reraise: Whether to reraise the transformed exception

    Returns:
        The transformed error if reraise=False, otherwise None

    Raises:
        CinemagifError: Transformed error if reraise=True
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    if isinstance(error, MemoryError):
        error_type = ResourceError

    message = f"Failed to {operation}"

    error_context = dict(context or {})
    error_context.update(
        {
            "operation": operation,
            "original_error_type": type(error).__name__,
            "original_error_message": str(error),
        }
    )

    transformed_error = error_type(message, cause=error, context=error_context)

    log_message = f"🚨 {operation.capitalize()} failed: {error}"
    context_str = ", ".join(
        f"{k}={v}"
        for k, v in error_context.items()
        if k not in ("operation", "original_error_message")
    )
    if context_str:
        log_message += f" (context: {context_str})"

    log_func = getattr(logger, level.value)
    log_func(log_message)

    if level in (ErrorLevel.ERROR, ErrorLevel.CRITICAL):
        logger.debug(f"Traceback for {operation}: {traceback.format_exc()}")

    if reraise:
        raise transformed_error from error
    return transformed_error


@contextmanager
def error_context(
    operation: str,
    error_type: type[CinemagifError] = InternalError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> Any:
    """Context manager for standardized error handling.

    Usage:
        with error_context("write trailer", EncodingError, context={"path": path}):
            fh.write(b";")

    Args:
        operation: Description of operation being performed
        error_type: Type of CinemagifError to raise on failure
        level: Logging level for errors
        context: Additional context information
        logger: Logger to use
    """
    try:
        yield
    except CinemagifError:
        # Already typed further down the stack
        raise
    except Exception as e:
        handle_error(e, operation, error_type, level, context, logger, reraise=True)


def log_warning_with_context(
    message: str, context: dict | None = None, logger: logging.Logger | None = None
) -> None:
    """Log a warning with standardized context formatting.

    Args:
        message: Warning message
        context: Additional context information
        logger: Logger to use
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    warning_msg = f"⚠️  {message}"
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        warning_msg += f" (context: {context_str})"

    logger.warning(warning_msg)


def log_info_with_context(
    message: str, context: dict | None = None, logger: logging.Logger | None = None
) -> None:
    """Log an info message with standardized context formatting.

    Args:
        message: Info message
        context: Additional context information
        logger: Logger to use
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    info_msg = f"ℹ️  {message}"
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        info_msg += f" (context: {context_str})"

    logger.info(info_msg)
