"""Unit tests for exceptions."""

from snowflake_governance.core.exceptions import (
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


def test_governance_error_builds_full_message_with_context_and_cause():
    """Test governance error builds full message with context and cause."""
    original = ValueError("bad")
    err = GovernanceError("base", context={"a": 1, "b": 2}, original_error=original)
    msg = str(err)
    assert msg.startswith("base (Context: a=1, b=2)")
    assert "(Caused by: bad)" in msg
    assert err.original_error is original


def test_governance_error_without_context():
    """Test governance error without context keeps the bare message."""
    err = GovernanceError("plain")
    assert str(err) == "plain"
    assert err.context == {}


def test_exception_hierarchy():
    """Test exception hierarchy."""
    assert isinstance(ConfigurationError("x"), GovernanceError)
    assert isinstance(PolicyError("x"), GovernanceError)
    assert isinstance(PolicyDefinitionError("x"), PolicyError)
    assert isinstance(NoDefaultRuleError("P"), PolicyDefinitionError)
    assert isinstance(DuplicateNameError("P"), PolicyError)
    assert isinstance(UnknownPolicyError("P"), PolicyError)
    assert isinstance(ConflictError("x"), PolicyError)
    assert isinstance(InvalidBindingError("x"), PolicyError)
    assert isinstance(PolicyKindMismatchError("P", "mask", "row_filter"), PolicyError)


def test_named_policy_errors_carry_identifier():
    """Test named policy errors carry identifier."""
    assert DuplicateNameError("EMAIL_MASK").policy_id == "EMAIL_MASK"
    assert "Policy already registered: EMAIL_MASK" in str(
        DuplicateNameError("EMAIL_MASK")
    )
    assert "Policy not found: NOPE" in str(UnknownPolicyError("NOPE"))
    assert "Policy has no default rule: P" in str(NoDefaultRuleError("P"))

    err = PolicyKindMismatchError("P", expected="mask", actual="row_filter")
    assert err.expected == "mask" and err.actual == "row_filter"
    assert "row_filter policy, not mask" in str(err)
