"""Snowflake-facing infrastructure: DDL rendering, sessions and provisioners.

This package imports ``snowflake.snowpark``; the policy engine itself does not.
"""

__all__ = ["ddl", "provisioning", "session"]
