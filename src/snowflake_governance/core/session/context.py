"""Caller identity used to evaluate visibility policies.

Snowflake evaluates ``CURRENT_ROLE()``, ``CURRENT_USER()`` and
``IS_ROLE_IN_SESSION()`` against ambient session state. Here that state is an
explicit, immutable value built once per request and passed to the evaluator.

Classes:
    CallerContext: Active role, user and secondary roles of a caller
"""

import json
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional

from snowflake_governance.core.exceptions import ConfigurationError


def normalize_identifier(value: str) -> str:
    """Normalize an unquoted Snowflake identifier for comparison.

    Unquoted identifiers are case-insensitive and stored upper-case; quoted
    identifiers returned by Snowpark (``'"SYSADMIN"'``) are unwrapped.
    """
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('""', '"')
    return value.upper()


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller a policy is evaluated for.

    Attributes:
        role: Active (primary) role, as ``CURRENT_ROLE()`` would return it
        user: Login name, as ``CURRENT_USER()`` would return it
        secondary_roles: Roles activated through ``USE SECONDARY ROLES``

    Example:
        >>> ctx = CallerContext(role="fmg_analyst", user="FMG_DEMO_ANALYST")
        >>> ctx.role
        'FMG_ANALYST'
    """

    role: str
    user: Optional[str] = None
    secondary_roles: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Normalize identifiers; frozen, so assign through object."""
        if not self.role or not self.role.strip():
            raise ValueError("Caller role cannot be empty")
        object.__setattr__(self, "role", normalize_identifier(self.role))
        if self.user is not None:
            object.__setattr__(self, "user", normalize_identifier(self.user))
        object.__setattr__(
            self,
            "secondary_roles",
            frozenset(normalize_identifier(r) for r in self.secondary_roles if r),
        )

    @property
    def session_roles(self) -> FrozenSet[str]:
        """Primary role plus secondary roles."""
        return frozenset({self.role}) | self.secondary_roles

    def with_role(self, role: str) -> "CallerContext":
        """Return a copy with a different primary role (``USE ROLE``)."""
        return CallerContext(
            role=role, user=self.user, secondary_roles=self.secondary_roles
        )

    def without_secondary_roles(self) -> "CallerContext":
        """Return a copy with secondary roles cleared (``USE SECONDARY ROLES NONE``)."""
        return CallerContext(role=self.role, user=self.user)

    @classmethod
    def from_session(cls, session: Any) -> "CallerContext":
        """Build a caller context from a live Snowpark session.

        Args:
            session: ``snowflake.snowpark.Session``

        Returns:
            CallerContext for the session's current role, user and secondary roles

        Raises:
            ConfigurationError: If the session has no active role
        """
        role = session.get_current_role()
        if not role:
            raise ConfigurationError("Session has no active role")
        user = session.get_current_user()
        rows = session.sql("SELECT CURRENT_SECONDARY_ROLES()").collect()
        raw = rows[0][0] if rows else None
        return cls(role=role, user=user, secondary_roles=_parse_secondary_roles(raw))


def _parse_secondary_roles(raw: Optional[str]) -> Iterable[str]:
    # CURRENT_SECONDARY_ROLES() returns '{"roles":"R1,R2","value":""}'
    if not raw:
        return ()
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            "Unparseable CURRENT_SECONDARY_ROLES() value",
            context={"value": raw},
            original_error=exc,
        ) from exc
    roles = payload.get("roles") or ""
    return [r for r in roles.split(",") if r]
