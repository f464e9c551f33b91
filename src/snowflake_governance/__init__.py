"""snowflake_governance.

Role-conditioned masking and row access policies, evaluated in Python and
deployable to Snowflake as DDL. The policy engine does not import Snowflake
modules, so it runs and tests without a Snowflake connection.
"""

__version__ = "0.1.0"

__all__ = [
    "api",
    "core",
    "infrastructure",
    "policies",
    "utils",
]
