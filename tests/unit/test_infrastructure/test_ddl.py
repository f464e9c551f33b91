"""Tests for policy DDL rendering."""

import pytest

from snowflake_governance.core.exceptions import (
    InvalidBindingError,
    PolicyDefinitionError,
)
from snowflake_governance.infrastructure.ddl import (
    policy_identifier,
    render_binding_ddl,
    render_drop_policy_ddl,
    render_policy_body,
    render_policy_ddl,
    render_tag_ddl,
    render_unbinding_ddl,
    table_identifier,
)
from snowflake_governance.policies.catalog import (
    active_customer_access,
    email_mask,
    revenue_mask,
)
from snowflake_governance.policies.models import Binding, Policy, PolicyKind, ValueType
from snowflake_governance.policies.outcomes import Constant


def test_identifiers():
    """Test identifiers."""
    assert policy_identifier("P") == '"P"'
    assert policy_identifier("P", "DB", "GOV") == '"DB"."GOV"."P"'
    assert table_identifier("DB.RAW.USERS") == '"DB"."RAW"."USERS"'
    with pytest.raises(ValueError):
        policy_identifier("P", schema="GOV")


def test_render_masking_policy_ddl():
    """Test render masking policy ddl."""
    sql = render_policy_ddl(email_mask(), "FMG_PRODUCTION", "GOVERNANCE")
    lines = sql.splitlines()
    assert lines[0] == (
        'CREATE OR REPLACE MASKING POLICY "FMG_PRODUCTION"."GOVERNANCE".'
        '"FMG_EMAIL_MASK" AS (val STRING) RETURNS STRING ->'
    )
    assert lines[1] == "CASE"
    assert lines[2] == (
        "    WHEN CURRENT_ROLE() IN ('ACCOUNTADMIN', 'FMG_ADMIN', "
        "'FMG_COMPLIANCE_OFFICER') THEN val"
    )
    assert lines[3] == (
        "    WHEN CURRENT_ROLE() IN ('FMG_ANALYST', 'FMG_ENGINEER') "
        "THEN REGEXP_REPLACE(val, '^[^@]+', '****')"
    )
    assert lines[4] == "    ELSE '****@****.***'"
    assert lines[5] == "END"
    assert lines[6] == "COMMENT = 'Email masking for PII protection'"


def test_render_number_and_row_access_policy_ddl():
    """Test render number and row access policy ddl."""
    revenue = render_policy_ddl(revenue_mask())
    assert 'MASKING POLICY "FMG_REVENUE_MASK" AS (val NUMBER) RETURNS NUMBER' in revenue
    assert "THEN ROUND(val, -2)" in revenue
    assert "ELSE NULL" in revenue

    rap = render_policy_ddl(active_customer_access())
    assert rap.startswith(
        'CREATE OR REPLACE ROW ACCESS POLICY "ACTIVE_CUSTOMER_ACCESS" '
        "AS (account_status VARCHAR) RETURNS BOOLEAN ->"
    )
    assert "THEN account_status IN ('Active', 'Paused', 'Trial')" in rap
    assert "ELSE FALSE" in rap
    assert "COMMENT" not in rap


def test_render_policy_body_without_rules():
    """Test render policy body without rules."""
    policy = Policy("ALL", PolicyKind.ROW_FILTER, ValueType.STRING, (), Constant(True))
    assert render_policy_body(policy) == "TRUE"


def test_render_policy_body_rejects_unsafe_argument():
    """Test render policy body rejects unsafe argument."""
    policy = Policy(
        "P",
        PolicyKind.MASK,
        ValueType.STRING,
        (),
        Constant("x"),
        argument="val); DROP TABLE x; --",
    )
    with pytest.raises(PolicyDefinitionError):
        render_policy_body(policy)


def test_render_binding_and_unbinding_ddl():
    """Test render binding and unbinding ddl."""
    mask = Binding("DB.RAW.USERS", "EMAIL", "FMG_EMAIL_MASK", PolicyKind.MASK)
    assert render_binding_ddl(mask, "DB", "GOV") == (
        'ALTER TABLE "DB"."RAW"."USERS" MODIFY COLUMN "EMAIL" '
        'SET MASKING POLICY "DB"."GOV"."FMG_EMAIL_MASK"'
    )
    assert render_unbinding_ddl(mask) == (
        'ALTER TABLE "DB"."RAW"."USERS" MODIFY COLUMN "EMAIL" UNSET MASKING POLICY'
    )

    rap = Binding(
        "DB.RAW.CUSTOMERS",
        None,
        "ACTIVE_CUSTOMER_ACCESS",
        PolicyKind.ROW_FILTER,
        on_column="ACCOUNT_STATUS",
    )
    assert render_binding_ddl(rap) == (
        'ALTER TABLE "DB"."RAW"."CUSTOMERS" ADD ROW ACCESS POLICY '
        '"ACTIVE_CUSTOMER_ACCESS" ON ("ACCOUNT_STATUS")'
    )
    assert render_unbinding_ddl(rap) == (
        'ALTER TABLE "DB"."RAW"."CUSTOMERS" DROP ROW ACCESS POLICY '
        '"ACTIVE_CUSTOMER_ACCESS"'
    )


def test_render_row_access_binding_without_column_raises():
    """Test render row access binding without column raises."""
    rap = Binding("T", None, "P", PolicyKind.ROW_FILTER)
    with pytest.raises(InvalidBindingError):
        render_binding_ddl(rap)


def test_render_drop_and_tag_ddl():
    """Test render drop and tag ddl."""
    assert render_drop_policy_ddl(email_mask()) == (
        'DROP MASKING POLICY IF EXISTS "FMG_EMAIL_MASK"'
    )
    assert render_drop_policy_ddl(active_customer_access(), "DB", "GOV") == (
        'DROP ROW ACCESS POLICY IF EXISTS "DB"."GOV"."ACTIVE_CUSTOMER_ACCESS"'
    )
    assert render_tag_ddl("DB.RAW.USERS", "EMAIL", "DB.GOV.PII", "O'Brien") == (
        'ALTER TABLE "DB"."RAW"."USERS" MODIFY COLUMN "EMAIL" '
        "SET TAG \"DB\".\"GOV\".\"PII\" = 'O''Brien'"
    )
