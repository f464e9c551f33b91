"""Configuration management for the governance framework.

Policy catalogs and Snowflake connection settings are pydantic models loaded
from YAML files, environment variables and explicit overrides.

Classes:
    ConfigLoader: Load and merge configurations from multiple sources

Pydantic Models:
    GovernanceConfig: Policies, bindings, tags and role grants
    PolicyModel: A single policy definition
    SnowflakeConfig: Snowflake connection configuration
"""

from snowflake_governance.core.config.builder import (
    build_catalog,
    build_hierarchy,
    build_policy,
    build_registry,
)
from snowflake_governance.core.config.loader import ConfigLoader
from snowflake_governance.core.config.models import (
    BindingModel,
    ColumnTagModel,
    GovernanceConfig,
    PolicyModel,
    RoleGrantModel,
    RuleModel,
    SnowflakeConfig,
)

__all__ = [
    "ConfigLoader",
    "GovernanceConfig",
    "PolicyModel",
    "RuleModel",
    "BindingModel",
    "ColumnTagModel",
    "RoleGrantModel",
    "SnowflakeConfig",
    "build_policy",
    "build_registry",
    "build_hierarchy",
    "build_catalog",
]
