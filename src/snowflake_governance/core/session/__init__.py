"""Caller session state.

Classes:
    CallerContext: Immutable caller identity passed to policy evaluation
"""

from snowflake_governance.core.session.context import (
    CallerContext,
    normalize_identifier,
)

__all__ = ["CallerContext", "normalize_identifier"]
