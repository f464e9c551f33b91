"""Role inheritance graph.

``GRANT ROLE FMG_VIEWER TO ROLE FMG_ANALYST`` makes every privilege of
FMG_VIEWER available to FMG_ANALYST. Snowflake's ``IS_ROLE_IN_SESSION``
follows these grants; ``CURRENT_ROLE()`` does not.
"""

from collections import deque
from typing import Dict, FrozenSet, Iterable, Set, Tuple

from snowflake_governance.core.exceptions import ConflictError
from snowflake_governance.core.session import normalize_identifier


class RoleHierarchy:
    """Directed graph of role grants.

    Example:
        >>> hierarchy = RoleHierarchy()
        >>> hierarchy.grant("FMG_VIEWER", to_role="FMG_ANALYST")
        >>> hierarchy.grant("FMG_ANALYST", to_role="FMG_ADMIN")
        >>> sorted(hierarchy.expand(["FMG_ADMIN"]))
        ['FMG_ADMIN', 'FMG_ANALYST', 'FMG_VIEWER']
    """

    def __init__(self) -> None:
        """Create an empty hierarchy."""
        self._granted: Dict[str, Set[str]] = {}

    def grant(self, role: str, to_role: str) -> None:
        """Record ``GRANT ROLE <role> TO ROLE <to_role>``.

        Raises:
            ConflictError: If the grant would create a cycle
        """
        role = normalize_identifier(role)
        to_role = normalize_identifier(to_role)
        if role == to_role or to_role in self.expand([role]):
            raise ConflictError(
                "Role grant would create a cycle",
                context={"role": role, "to_role": to_role},
            )
        self._granted.setdefault(to_role, set()).add(role)

    def revoke(self, role: str, from_role: str) -> None:
        """Record ``REVOKE ROLE <role> FROM ROLE <from_role>``."""
        granted = self._granted.get(normalize_identifier(from_role))
        if granted:
            granted.discard(normalize_identifier(role))

    def expand(self, roles: Iterable[str]) -> FrozenSet[str]:
        """Return the given roles plus every role they inherit."""
        seen: Set[str] = set()
        queue = deque(normalize_identifier(r) for r in roles)
        while queue:
            role = queue.popleft()
            if role in seen:
                continue
            seen.add(role)
            queue.extend(self._granted.get(role, ()))
        return frozenset(seen)

    def grants(self) -> Tuple[Tuple[str, str], ...]:
        """All ``(role, to_role)`` pairs, sorted."""
        return tuple(
            sorted(
                (role, to_role)
                for to_role, roles in self._granted.items()
                for role in roles
            )
        )
