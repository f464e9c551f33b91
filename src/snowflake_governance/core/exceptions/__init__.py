"""Custom exception hierarchy for the governance framework.

Exception Hierarchy:
    GovernanceError (base)
    ├── ConfigurationError
    └── PolicyError
        ├── PolicyDefinitionError
        │   └── NoDefaultRuleError
        ├── DuplicateNameError
        ├── UnknownPolicyError
        ├── ConflictError
        ├── InvalidBindingError
        └── PolicyKindMismatchError
"""

from snowflake_governance.core.exceptions.errors import (
    ConfigurationError,
    ConflictError,
    DuplicateNameError,
    GovernanceError,
    InvalidBindingError,
    NoDefaultRuleError,
    PolicyDefinitionError,
    PolicyError,
    PolicyKindMismatchError,
    UnknownPolicyError,
)

__all__ = [
    # Base
    "GovernanceError",
    # Configuration
    "ConfigurationError",
    # Policy
    "PolicyError",
    "PolicyDefinitionError",
    "NoDefaultRuleError",
    "DuplicateNameError",
    "UnknownPolicyError",
    "ConflictError",
    "InvalidBindingError",
    "PolicyKindMismatchError",
]
