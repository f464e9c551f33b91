"""Structured logging for the governance framework.

Classes:
    StructuredLogger: Main logger with context support
    LogContext: Context manager for adding log context
"""

from snowflake_governance.utils.logging.formatters import (
    ContextFormatter,
    JSONFormatter,
)
from snowflake_governance.utils.logging.logger import (
    LogContext,
    StructuredLogger,
    get_log_context,
    get_logger,
)

__all__ = [
    "StructuredLogger",
    "LogContext",
    "get_logger",
    "get_log_context",
    "JSONFormatter",
    "ContextFormatter",
]
