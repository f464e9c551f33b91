"""Snowflake provisioning of governance policies."""

from snowflake_governance.infrastructure.provisioning.base import (
    BaseProvisioner,
    SqlExecutionResult,
)
from snowflake_governance.infrastructure.provisioning.policies import (
    PolicyProvisioner,
)

__all__ = ["BaseProvisioner", "PolicyProvisioner", "SqlExecutionResult"]
