"""Unit tests for PolicyRegistry and BindingResolver."""

import threading
from unittest.mock import patch

import pytest

from snowflake_governance.core.exceptions import (
    ConflictError,
    DuplicateNameError,
    InvalidBindingError,
    UnknownPolicyError,
)
from snowflake_governance.policies.models import Policy, PolicyKind, Rule, ValueType
from snowflake_governance.policies.outcomes import Constant, DiscriminantIn, Identity
from snowflake_governance.policies.predicates import RoleIn
from snowflake_governance.policies.registry import PolicyRegistry, normalize_table


def _mask(name="EMAIL_MASK"):
    return Policy(
        policy_id=name,
        kind=PolicyKind.MASK,
        value_type=ValueType.STRING,
        rules=(Rule(RoleIn(["ADMIN"]), Identity()),),
        default=Constant("***"),
    )


def _row_filter(name="ACTIVE_ONLY"):
    return Policy(
        policy_id=name,
        kind=PolicyKind.ROW_FILTER,
        value_type=ValueType.STRING,
        rules=(Rule(RoleIn(["ANALYST"]), DiscriminantIn(["Active"])),),
        default=Constant(True),
    )


def test_normalize_table():
    """Test normalize table."""
    assert normalize_table("db.raw.users") == "DB.RAW.USERS"
    assert normalize_table('DB."Mixed".t') == "DB.Mixed.T"
    with pytest.raises(InvalidBindingError):
        normalize_table("")


def test_register_and_get():
    """Test register and get."""
    registry = PolicyRegistry()
    assert registry.register(_mask()) == "EMAIL_MASK"
    assert registry.get("email_mask").policy_id == "EMAIL_MASK"
    assert "email_mask" in registry
    assert len(registry) == 1


def test_register_duplicate_raises():
    """Test register duplicate raises."""
    registry = PolicyRegistry()
    registry.register(_mask())
    with pytest.raises(DuplicateNameError):
        registry.register(_mask("email_mask"))
    assert len(registry) == 1


def test_get_unknown_raises():
    """Test get unknown raises."""
    with pytest.raises(UnknownPolicyError):
        PolicyRegistry().get("NOPE")


def test_policies_sorted():
    """Test policies sorted."""
    registry = PolicyRegistry()
    registry.register(_mask("B_MASK"))
    registry.register(_mask("A_MASK"))
    assert [p.policy_id for p in registry.policies()] == ["A_MASK", "B_MASK"]


def test_bind_and_resolve_mask():
    """Test bind and resolve mask."""
    registry = PolicyRegistry()
    registry.register(_mask())
    binding = registry.bind("db.raw.users", "email", "email_mask")
    assert binding.table == "DB.RAW.USERS"
    assert binding.column == "EMAIL"
    assert binding.kind is PolicyKind.MASK

    assert registry.resolve("DB.RAW.USERS", "Email").policy_id == "EMAIL_MASK"
    assert registry.resolve("DB.RAW.USERS", "phone") is None
    assert registry.resolve("DB.RAW.USERS") is None


def test_bind_unknown_policy_raises():
    """Test bind unknown policy raises."""
    with pytest.raises(UnknownPolicyError):
        PolicyRegistry().bind("T", "C", "NOPE")


def test_bind_mask_without_column_raises():
    """Test bind mask without column raises."""
    registry = PolicyRegistry()
    registry.register(_mask())
    with pytest.raises(InvalidBindingError):
        registry.bind("T", None, "EMAIL_MASK")


def test_second_mask_on_column_conflicts():
    """Test second mask on column conflicts."""
    registry = PolicyRegistry()
    registry.register(_mask())
    registry.register(_mask("OTHER_MASK"))
    registry.bind("T", "EMAIL", "EMAIL_MASK")
    with pytest.raises(ConflictError):
        registry.bind("t", "email", "OTHER_MASK")
    assert registry.resolve("T", "EMAIL").policy_id == "EMAIL_MASK"

    # the same policy may mask several columns
    registry.bind("T", "ALT_EMAIL", "EMAIL_MASK")


def test_second_row_filter_on_table_conflicts():
    """Test second row filter on table conflicts."""
    registry = PolicyRegistry()
    registry.register(_row_filter())
    registry.register(_row_filter("OTHER_FILTER"))
    binding = registry.bind("T", "status", "ACTIVE_ONLY")
    assert binding.column is None
    assert binding.on_column == "STATUS"

    with pytest.raises(ConflictError):
        registry.bind("T", "region", "OTHER_FILTER")
    assert registry.resolve("T").policy_id == "ACTIVE_ONLY"


def test_row_filter_and_mask_coexist_on_table():
    """Test row filter and mask coexist on table."""
    registry = PolicyRegistry()
    registry.register(_row_filter())
    registry.register(_mask())
    registry.bind("T", "status", "ACTIVE_ONLY")
    registry.bind("T", "email", "EMAIL_MASK")
    assert [b.policy_id for b in registry.bindings()] == ["ACTIVE_ONLY", "EMAIL_MASK"]


def test_unbind():
    """Test unbind."""
    registry = PolicyRegistry()
    registry.register(_row_filter())
    registry.register(_mask())
    registry.bind("T", "status", "ACTIVE_ONLY")
    registry.bind("T", "email", "EMAIL_MASK")

    assert registry.unbind("T", "email").policy_id == "EMAIL_MASK"
    assert registry.unbind("T", "email") is None
    assert registry.unbind("T").policy_id == "ACTIVE_ONLY"
    assert registry.bindings() == []


def test_unregister_bound_policy_conflicts():
    """Test unregister bound policy conflicts."""
    registry = PolicyRegistry()
    registry.register(_mask())
    registry.bind("T", "EMAIL", "EMAIL_MASK")
    with pytest.raises(ConflictError):
        registry.unregister("EMAIL_MASK")

    registry.unbind("T", "EMAIL")
    assert registry.unregister("EMAIL_MASK").policy_id == "EMAIL_MASK"
    assert "EMAIL_MASK" not in registry
    with pytest.raises(UnknownPolicyError):
        registry.unregister("EMAIL_MASK")


def test_rejected_operations_log_warnings():
    """Test rejected operations log warnings."""
    registry = PolicyRegistry()
    registry.register(_mask())
    registry.bind("T", "EMAIL", "EMAIL_MASK")

    with patch.object(registry.logger, "warning") as warning:
        with pytest.raises(UnknownPolicyError):
            registry.bind("T", "C", "MISSING")
        with pytest.raises(InvalidBindingError):
            registry.bind("T", None, "EMAIL_MASK")
        with pytest.raises(UnknownPolicyError):
            registry.unregister("MISSING")
        with pytest.raises(ConflictError):
            registry.unregister("EMAIL_MASK")

    messages = [call.args[0] for call in warning.call_args_list]
    assert messages == [
        "Rejected bind of unknown policy",
        "Rejected masking binding without a column",
        "Rejected unregister of unknown policy",
        "Rejected unregister of bound policy",
    ]


def test_column_tags():
    """Test column tags."""
    registry = PolicyRegistry()
    registry.tag_column("db.raw.users", "email", "gov.pii", "DIRECT")
    assert registry.column_tags("DB.RAW.USERS", "EMAIL") == {"GOV.PII": "DIRECT"}
    assert registry.tagged_columns() == [("DB.RAW.USERS", "EMAIL", "GOV.PII", "DIRECT")]

    registry.resolver.unset_tag("DB.RAW.USERS", "EMAIL", "gov.pii")
    assert registry.column_tags("DB.RAW.USERS", "EMAIL") == {}


def test_policy_references():
    """Test policy references."""
    registry = PolicyRegistry()
    registry.register(_row_filter())
    registry.register(_mask())
    registry.bind("T", "status", "ACTIVE_ONLY")
    registry.bind("T", "email", "EMAIL_MASK")
    refs = [r.as_dict() for r in registry.policy_references()]
    assert refs == [
        {
            "policy_name": "ACTIVE_ONLY",
            "policy_kind": "ROW_ACCESS_POLICY",
            "table_name": "T",
            "column_name": "STATUS",
        },
        {
            "policy_name": "EMAIL_MASK",
            "policy_kind": "MASKING_POLICY",
            "table_name": "T",
            "column_name": "EMAIL",
        },
    ]


def test_concurrent_binding_admits_one_row_filter():
    """Test concurrent binding admits one row filter."""
    registry = PolicyRegistry()
    for i in range(8):
        registry.register(_row_filter(f"FILTER_{i}"))

    conflicts = []

    def bind(i):
        try:
            registry.bind("T", "status", f"FILTER_{i}")
        except ConflictError:
            conflicts.append(i)

    threads = [threading.Thread(target=bind, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(conflicts) == 7
    assert len(registry.bindings()) == 1
