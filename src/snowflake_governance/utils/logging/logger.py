"""Structured logging with context support.

Policy evaluation happens per request, so log lines carry the caller's role
and the policy being evaluated as context fields rather than interpolating
them into every message.

Classes:
    StructuredLogger: Logger with context support
    LogContext: Context manager for adding temporary context
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Literal, Optional

from snowflake_governance.utils.logging.formatters import ContextFormatter

# Per-thread and per-task log context
_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


class StructuredLogger:
    """Structured logger with context support.

    Wraps a standard library logger and merges the current LogContext and a
    per-instance correlation ID into every record under the ``context``
    attribute, where the formatters pick it up.

    Attributes:
        name: Logger name
        logger: Underlying Python logger
        correlation_id: Unique ID for this logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Policy registered", extra={"policy_id": "FMG_EMAIL_MASK"})
        >>>
        >>> with LogContext(role="FMG_ANALYST"):
        ...     logger.debug("Evaluating mask")
    """

    def __init__(self, name: str, correlation_id: Optional[str] = None) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID (auto-generated if not provided)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id or str(uuid.uuid4())

        # Set default formatter if no handlers exist
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(ContextFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def _get_context(self) -> Dict[str, Any]:
        context = _log_context.get().copy()
        context["correlation_id"] = self.correlation_id
        return context

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
    ) -> None:
        # Merge context with extra
        context = self._get_context()
        if extra:
            context.update(extra)

        self.logger.log(level, message, extra={"context": context}, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log a debug message."""
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log an info message."""
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log a warning message."""
        self._log(logging.WARNING, message, extra)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True,
    ) -> None:
        """Log an error message.

        Args:
            message: Log message
            extra: Optional extra context
            exc_info: Whether to include exception info (default: True)
        """
        self._log(logging.ERROR, message, extra, exc_info)

    def set_level(self, level: int) -> None:
        """Set the logging level."""
        self.logger.setLevel(level)


class LogContext:
    """Context manager for adding temporary log context.

    Fields added here are included in every record logged inside the block,
    by any StructuredLogger, and removed on exit. Contexts nest.

    Example:
        >>> with LogContext(policy_id="FMG_PHONE_MASK", role="FMG_VIEWER"):
        ...     logger.debug("Applying default outcome")
    """

    def __init__(self, **context: Any) -> None:
        """Initialize the log context.

        Args:
            **context: Context fields as keyword arguments
        """
        self.context = context
        self._previous_context: Optional[Dict[str, Any]] = None

    def __enter__(self) -> "LogContext":
        """Push the context fields."""
        self._previous_context = _log_context.get().copy()

        current_context = _log_context.get().copy()
        current_context.update(self.context)
        _log_context.set(current_context)

        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> Literal[False]:
        """Restore the previous context and propagate any exception."""
        if self._previous_context is not None:
            _log_context.set(self._previous_context)
        else:
            _log_context.set({})

        # Don't suppress exceptions
        return False


def get_logger(name: str, correlation_id: Optional[str] = None) -> StructuredLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name, correlation_id)


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the context fields active in this thread or task."""
    return _log_context.get().copy()
