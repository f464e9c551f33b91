"""Unit tests for logging formatters."""

import json
import logging

from snowflake_governance.utils.logging.formatters import (
    ContextFormatter,
    JSONFormatter,
)


def test_json_formatter_basic_and_context_and_exception():
    """Test JSON formatter with basic and context and exception."""
    rec = logging.makeLogRecord(
        {
            "levelname": "INFO",
            "name": "t_json",
            "msg": "hello",
        }
    )
    fmt = JSONFormatter()
    obj = json.loads(fmt.format(rec))
    assert obj["level"] == "INFO"
    assert obj["logger"] == "t_json"
    assert obj["message"] == "hello"
    assert "timestamp" in obj

    rec2 = logging.makeLogRecord(
        {
            "levelname": "ERROR",
            "name": "t_json",
            "msg": "oops",
            "context": {"policy_id": "P"},
            "extra_field": "x",
            "exc_info": (ValueError, ValueError("bad"), None),
        }
    )
    obj2 = json.loads(fmt.format(rec2))
    assert obj2["context"] == {"policy_id": "P"}
    assert obj2["extra_field"] == "x"
    assert "ValueError: bad" in obj2["exception"]


def test_context_formatter_with_and_without_context():
    """Test context formatter with and without context."""
    fmt = ContextFormatter()
    rec = logging.makeLogRecord({"levelname": "INFO", "name": "t_ctx", "msg": "hi"})
    out = fmt.format(rec)
    assert out.endswith("INFO - t_ctx - hi")

    rec_ctx = logging.makeLogRecord(
        {
            "levelname": "INFO",
            "name": "t_ctx",
            "msg": "bound",
            "context": {"policy_id": "P", "table": "T"},
        }
    )
    assert fmt.format(rec_ctx).endswith("bound [policy_id=P, table=T]")
