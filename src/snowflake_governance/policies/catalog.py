"""Built-in FMG workshop policies.

Masking matrix enforced by these policies:

    Data type        | FMG_ADMIN | FMG_COMPLIANCE | FMG_ANALYST | FMG_VIEWER
    -----------------|-----------|----------------|-------------|-----------
    Email            | Full      | Full           | Domain only | Masked
    Phone            | Full      | Full           | Last 4      | Masked
    First/last name  | Full      | Full           | Initial     | Masked
    Revenue (MRR/ARR)| Full      | Full           | Full        | Rounded

Row access: analysts, viewers and data scientists only see Active, Paused
and Trial customers; admins, compliance and engineers see every status.
"""

from typing import Dict, Optional

from snowflake_governance.policies.hierarchy import RoleHierarchy
from snowflake_governance.policies.models import Policy, PolicyKind, Rule, ValueType
from snowflake_governance.policies.outcomes import (
    Constant,
    DiscriminantIn,
    FirstInitial,
    Identity,
    MappedOwner,
    MaskDigits,
    RegexReplace,
    Round,
)
from snowflake_governance.policies.predicates import AllOf, RoleIn, RoleNotIn, TagEquals
from snowflake_governance.policies.registry import PolicyRegistry

FULL_ACCESS_ROLES = ("ACCOUNTADMIN", "FMG_ADMIN", "FMG_COMPLIANCE_OFFICER")
PARTIAL_ACCESS_ROLES = ("FMG_ANALYST", "FMG_ENGINEER")

DATABASE = "FMG_PRODUCTION"
USERS_TABLE = f"{DATABASE}.RAW.USERS"
CUSTOMERS_TABLE = f"{DATABASE}.RAW.CUSTOMERS"
SUBSCRIPTIONS_TABLE = f"{DATABASE}.RAW.SUBSCRIPTIONS"
PII_TAG = f"{DATABASE}.GOVERNANCE.PII_CATEGORY"

# (role, granted to role) from the lab 1 user and role setup
ROLE_GRANTS = (
    ("FMG_VIEWER", "FMG_ANALYST"),
    ("FMG_ANALYST", "FMG_ADMIN"),
    ("FMG_ENGINEER", "FMG_ADMIN"),
    ("FMG_COMPLIANCE_OFFICER", "FMG_ADMIN"),
    ("FMG_DATA_SCIENTIST", "FMG_ADMIN"),
    ("FMG_ADMIN", "SYSADMIN"),
)


def email_mask() -> Policy:
    """FMG_EMAIL_MASK: hide the local part for analysts, everything for others."""
    return Policy(
        policy_id="FMG_EMAIL_MASK",
        kind=PolicyKind.MASK,
        value_type=ValueType.STRING,
        rules=(
            Rule(RoleIn(FULL_ACCESS_ROLES), Identity()),
            Rule(RoleIn(PARTIAL_ACCESS_ROLES), RegexReplace(r"^[^@]+", "****")),
        ),
        default=Constant("****@****.***"),
        comment="Email masking for PII protection",
    )


def phone_mask() -> Policy:
    """FMG_PHONE_MASK: last four digits for analysts."""
    return Policy(
        policy_id="FMG_PHONE_MASK",
        kind=PolicyKind.MASK,
        value_type=ValueType.STRING,
        rules=(
            Rule(RoleIn(FULL_ACCESS_ROLES), Identity()),
            Rule(RoleIn(PARTIAL_ACCESS_ROLES), MaskDigits(keep_last=4)),
        ),
        default=Constant("(***) ***-****"),
        comment="Phone masking, last four digits visible to analysts",
    )


def name_mask() -> Policy:
    """FMG_NAME_MASK: first initial for analysts."""
    return Policy(
        policy_id="FMG_NAME_MASK",
        kind=PolicyKind.MASK,
        value_type=ValueType.STRING,
        rules=(
            Rule(RoleIn(FULL_ACCESS_ROLES), Identity()),
            Rule(RoleIn(PARTIAL_ACCESS_ROLES), FirstInitial("***")),
        ),
        default=Constant("***"),
    )


def revenue_mask() -> Policy:
    """FMG_REVENUE_MASK: rounded to the nearest hundred for viewers."""
    return Policy(
        policy_id="FMG_REVENUE_MASK",
        kind=PolicyKind.MASK,
        value_type=ValueType.NUMBER,
        rules=(
            Rule(RoleIn(FULL_ACCESS_ROLES + PARTIAL_ACCESS_ROLES), Identity()),
            Rule(RoleIn(["FMG_VIEWER"]), Round(-2)),
        ),
        default=Constant(None),
    )


def tag_based_pii_mask() -> Policy:
    """TAG_BASED_PII_MASK: redact by the column's PII_CATEGORY tag."""
    return Policy(
        policy_id="TAG_BASED_PII_MASK",
        kind=PolicyKind.MASK,
        value_type=ValueType.STRING,
        rules=(
            Rule(
                AllOf(
                    [
                        TagEquals(PII_TAG, "DIRECT_IDENTIFIER"),
                        RoleNotIn(FULL_ACCESS_ROLES),
                    ]
                ),
                Constant("***REDACTED***"),
            ),
            Rule(
                AllOf(
                    [
                        TagEquals(PII_TAG, "QUASI_IDENTIFIER"),
                        RoleNotIn(FULL_ACCESS_ROLES),
                    ]
                ),
                FirstInitial("***"),
            ),
        ),
        default=Identity(),
    )


def active_customer_access() -> Policy:
    """ACTIVE_CUSTOMER_ACCESS: hide churned customers from non-admin roles."""
    return Policy(
        policy_id="ACTIVE_CUSTOMER_ACCESS",
        kind=PolicyKind.ROW_FILTER,
        value_type=ValueType.STRING,
        rules=(
            Rule(RoleIn(FULL_ACCESS_ROLES + ("FMG_ENGINEER",)), Constant(True)),
            Rule(
                RoleIn(["FMG_ANALYST", "FMG_VIEWER", "FMG_DATA_SCIENTIST"]),
                DiscriminantIn(["Active", "Paused", "Trial"]),
            ),
        ),
        default=Constant(False),
        argument="account_status",
    )


def csm_customer_access(
    mapping: Optional[Dict[str, Optional[str]]] = None,
    mapping_table: Optional[str] = f"{DATABASE}.GOVERNANCE.CSM_USER_MAPPING",
) -> Policy:
    """CSM_CUSTOMER_ACCESS: customer success managers see their own accounts.

    Args:
        mapping: Snowflake user to CSM name; ``None`` values see all customers
        mapping_table: Lookup table referenced by the rendered SQL
    """
    if mapping is None:
        mapping = {
            "FMG_DEMO_ANALYST": "Sarah Mitchell",
            "FMG_DEMO_COMPLIANCE": None,
            "FMG_DEMO_EXEC": None,
        }
    return Policy(
        policy_id="CSM_CUSTOMER_ACCESS",
        kind=PolicyKind.ROW_FILTER,
        value_type=ValueType.STRING,
        rules=(
            Rule(
                RoleIn(FULL_ACCESS_ROLES + ("FMG_DATA_SCIENTIST",)),
                Constant(True),
            ),
            Rule(
                RoleIn(["FMG_ANALYST", "FMG_VIEWER"]),
                MappedOwner(
                    mapping,
                    mapping_table=mapping_table,
                    user_column="snowflake_user",
                    owner_column="csm_name",
                ),
            ),
            Rule(RoleIn(["FMG_ENGINEER"]), Constant(True)),
        ),
        default=Constant(False),
        argument="csm_owner",
    )


def fmg_hierarchy() -> RoleHierarchy:
    """Role graph from the lab 1 grants."""
    hierarchy = RoleHierarchy()
    for role, to_role in ROLE_GRANTS:
        hierarchy.grant(role, to_role=to_role)
    return hierarchy


def fmg_registry() -> PolicyRegistry:
    """Registry with every workshop policy, its lab 2 bindings and PII tags.

    CSM_CUSTOMER_ACCESS is registered but left unbound because CUSTOMERS
    already carries ACTIVE_CUSTOMER_ACCESS and a table takes one row access
    policy.
    """
    registry = PolicyRegistry()
    for policy in (
        email_mask(),
        phone_mask(),
        name_mask(),
        revenue_mask(),
        tag_based_pii_mask(),
        active_customer_access(),
        csm_customer_access(),
    ):
        registry.register(policy)

    registry.bind(USERS_TABLE, "email", "FMG_EMAIL_MASK")
    registry.bind(USERS_TABLE, "phone", "FMG_PHONE_MASK")
    registry.bind(USERS_TABLE, "first_name", "FMG_NAME_MASK")
    registry.bind(USERS_TABLE, "last_name", "FMG_NAME_MASK")
    registry.bind(SUBSCRIPTIONS_TABLE, "mrr_amount", "FMG_REVENUE_MASK")
    registry.bind(SUBSCRIPTIONS_TABLE, "arr_amount", "FMG_REVENUE_MASK")
    registry.bind(CUSTOMERS_TABLE, "account_status", "ACTIVE_CUSTOMER_ACCESS")

    registry.tag_column(USERS_TABLE, "email", PII_TAG, "DIRECT_IDENTIFIER")
    registry.tag_column(USERS_TABLE, "phone", PII_TAG, "DIRECT_IDENTIFIER")
    registry.tag_column(USERS_TABLE, "first_name", PII_TAG, "QUASI_IDENTIFIER")
    registry.tag_column(USERS_TABLE, "last_name", PII_TAG, "QUASI_IDENTIFIER")
    return registry
