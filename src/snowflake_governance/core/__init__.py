"""Core framework foundation.

Submodules:
    session: Caller identity (CallerContext)
    config: Catalog and connection configuration
    exceptions: Custom exception hierarchy
"""

__all__ = [
    "session",
    "config",
    "exceptions",
]
