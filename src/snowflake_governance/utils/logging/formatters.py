"""Log formatters for structured logging.

Classes:
    JSONFormatter: One JSON object per record, for log shipping
    ContextFormatter: Human-readable line with context fields appended
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "context",
    }
)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON.

    Example output:
        {
            "timestamp": "2026-10-16T21:30:45.123456+00:00",
            "level": "INFO",
            "logger": "snowflake_governance.policies.registry",
            "message": "Policy bound",
            "context": {
                "correlation_id": "abc-123",
                "policy_id": "FMG_EMAIL_MASK"
            }
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string
        """
        # Build log entry
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add context if present
        if hasattr(record, "context"):
            log_entry["context"] = record.context

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ContextFormatter(logging.Formatter):
    """Format log records with context fields.

    Example output:
        2026-10-16 21:30:45 - INFO - snowflake_governance.policies.registry - Policy bound [correlation_id=abc-123, policy_id=FMG_EMAIL_MASK]
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        """Initialize the formatter.

        Args:
            fmt: Log format string
            datefmt: Date format string
        """
        super().__init__(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with context appended in brackets."""
        base_message = super().format(record)

        if hasattr(record, "context") and record.context:
            context_str = ", ".join(f"{k}={v}" for k, v in record.context.items())
            return f"{base_message} [{context_str}]"

        return base_message
