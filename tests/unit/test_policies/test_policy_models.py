"""Unit tests for policy records."""

import pytest

from snowflake_governance.core.exceptions import (
    NoDefaultRuleError,
    PolicyDefinitionError,
)
from snowflake_governance.policies.models import (
    Policy,
    PolicyKind,
    PolicyReference,
    Rule,
    ValueType,
)
from snowflake_governance.policies.outcomes import Constant, Identity, Round
from snowflake_governance.policies.predicates import RoleIn


def test_policy_normalizes_identifier_and_enums():
    """Test policy normalizes identifier and enums."""
    policy = Policy(
        policy_id="email_mask",
        kind="mask",
        value_type="string",
        rules=[Rule(RoleIn(["ADMIN"]), Identity())],
        default=Constant("***"),
    )
    assert policy.policy_id == "EMAIL_MASK"
    assert policy.kind is PolicyKind.MASK
    assert policy.value_type is ValueType.STRING
    assert isinstance(policy.rules, tuple)
    assert policy.argument == "val"


def test_policy_without_default_raises():
    """Test policy without default raises."""
    with pytest.raises(NoDefaultRuleError) as excinfo:
        Policy(
            policy_id="P",
            kind=PolicyKind.MASK,
            value_type=ValueType.STRING,
            rules=(),
            default=None,
        )
    assert excinfo.value.policy_id == "P"


def test_policy_with_blank_identifier_raises():
    """Test policy with blank identifier raises."""
    with pytest.raises(PolicyDefinitionError):
        Policy("  ", PolicyKind.MASK, ValueType.STRING, (), Constant("x"))


def test_policy_rejects_outcome_that_does_not_fit():
    """Test policy rejects outcome that does not fit."""
    with pytest.raises(PolicyDefinitionError) as excinfo:
        Policy(
            policy_id="P",
            kind=PolicyKind.MASK,
            value_type=ValueType.STRING,
            rules=(Rule(RoleIn(["A"]), Round(-2)),),
            default=Constant("x"),
        )
    assert excinfo.value.context == {"policy_id": "P", "rule": 0}

    with pytest.raises(PolicyDefinitionError):
        Policy(
            policy_id="RF",
            kind=PolicyKind.ROW_FILTER,
            value_type=ValueType.STRING,
            rules=(),
            default=Identity(),
        )


def test_policy_reference_as_dict():
    """Test policy reference as dict."""
    ref = PolicyReference("P", "MASKING_POLICY", "DB.S.T", "EMAIL")
    assert ref.as_dict() == {
        "policy_name": "P",
        "policy_kind": "MASKING_POLICY",
        "table_name": "DB.S.T",
        "column_name": "EMAIL",
    }


def test_value_type_sql_type():
    """Test value type sql type."""
    assert ValueType.STRING.sql_type == "STRING"
    assert ValueType.NUMBER.sql_type == "NUMBER"
    assert ValueType.BOOLEAN.sql_type == "BOOLEAN"
