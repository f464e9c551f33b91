"""Unit tests for RoleHierarchy."""

import pytest

from snowflake_governance.core.exceptions import ConflictError
from snowflake_governance.policies.hierarchy import RoleHierarchy


def test_expand_follows_grants_transitively():
    """Test expand follows grants transitively."""
    hierarchy = RoleHierarchy()
    hierarchy.grant("fmg_viewer", to_role="fmg_analyst")
    hierarchy.grant("FMG_ANALYST", to_role="FMG_ADMIN")
    assert hierarchy.expand(["FMG_ADMIN"]) == frozenset(
        {"FMG_ADMIN", "FMG_ANALYST", "FMG_VIEWER"}
    )
    assert hierarchy.expand(["FMG_VIEWER"]) == frozenset({"FMG_VIEWER"})
    assert hierarchy.expand([]) == frozenset()


def test_grant_cycle_raises():
    """Test grant cycle raises."""
    hierarchy = RoleHierarchy()
    hierarchy.grant("A", to_role="B")
    hierarchy.grant("B", to_role="C")
    with pytest.raises(ConflictError):
        hierarchy.grant("C", to_role="A")
    with pytest.raises(ConflictError):
        hierarchy.grant("A", to_role="A")


def test_revoke_and_grants():
    """Test revoke and grants."""
    hierarchy = RoleHierarchy()
    hierarchy.grant("A", to_role="B")
    hierarchy.grant("C", to_role="B")
    assert hierarchy.grants() == (("A", "B"), ("C", "B"))

    hierarchy.revoke("a", from_role="b")
    assert hierarchy.grants() == (("C", "B"),)
    assert "A" not in hierarchy.expand(["B"])
    hierarchy.revoke("X", from_role="UNKNOWN")
