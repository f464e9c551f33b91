"""Pydantic models for policy catalogs and Snowflake connections.

A policy catalog is the YAML form of a PolicyRegistry:

.. code-block:: yaml

    database: FMG_PRODUCTION
    schema: GOVERNANCE
    policies:
      - name: FMG_EMAIL_MASK
        kind: mask
        value_type: string
        rules:
          - when: {role_in: [ACCOUNTADMIN, FMG_ADMIN, FMG_COMPLIANCE_OFFICER]}
            then: identity
          - when: {role_in: [FMG_ANALYST, FMG_ENGINEER]}
            then: {regex_replace: {pattern: "^[^@]+", replacement: "****"}}
        default: {constant: "****@****.***"}
    bindings:
      - {table: FMG_PRODUCTION.RAW.USERS, column: email, policy: FMG_EMAIL_MASK}

Models:
    RuleModel: One ``when``/``then`` arm
    PolicyModel: Policy definition
    BindingModel: Policy attachment
    ColumnTagModel: Governance tag on a column
    RoleGrantModel: Role inheritance edge
    GovernanceConfig: Complete catalog
    SnowflakeConfig: Snowflake connection configuration
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from snowflake_governance.policies.models import PolicyKind, ValueType


class RuleModel(BaseModel):
    """One ``WHEN``/``THEN`` arm of a policy."""

    when: Any = Field(..., description="Predicate specification")
    then: Any = Field(..., description="Outcome specification")

    model_config = ConfigDict(extra="forbid")


class PolicyModel(BaseModel):
    """Declarative policy definition.

    ``default`` is optional here so that a missing fallback surfaces as
    NoDefaultRuleError when the policy is built, not as a schema error.
    """

    name: str = Field(..., description="Policy identifier")
    kind: PolicyKind = Field(..., description="mask or row_filter")
    value_type: ValueType = Field(
        ValueType.STRING, description="Type of the masked value or discriminant"
    )
    rules: List[RuleModel] = Field(default_factory=list)
    default: Any = Field(None, description="Outcome when no rule matches")
    argument: Optional[str] = Field(None, description="Argument name in DDL")
    comment: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank identifiers."""
        if not v or not v.strip():
            raise ValueError("Policy name cannot be empty")
        return v.strip()


class BindingModel(BaseModel):
    """Attachment of a policy to a column or table."""

    table: str
    column: Optional[str] = None
    policy: str

    model_config = ConfigDict(extra="forbid")


class ColumnTagModel(BaseModel):
    """Governance tag value on a column."""

    table: str
    column: str
    tag: str
    value: str

    model_config = ConfigDict(extra="forbid")


class RoleGrantModel(BaseModel):
    """``GRANT ROLE <role> TO ROLE <to_role>``."""

    role: str
    to_role: str

    model_config = ConfigDict(extra="forbid")


class GovernanceConfig(BaseModel):
    """A complete policy catalog.

    Attributes:
        database: Database holding the policy objects
        schema: Schema holding the policy objects
        policies: Policy definitions, registered in order
        bindings: Attachments applied after every policy is registered
        tags: Column tags
        role_grants: Role inheritance edges for ``role_in_session``
    """

    database: Optional[str] = Field(None, description="Policy database")
    schema_: Optional[str] = Field(
        None,
        alias="schema",
        validation_alias="schema",
        serialization_alias="schema",
        description="Policy schema",
    )
    policies: List[PolicyModel] = Field(default_factory=list)
    bindings: List[BindingModel] = Field(default_factory=list)
    tags: List[ColumnTagModel] = Field(default_factory=list)
    role_grants: List[RoleGrantModel] = Field(default_factory=list)

    model_config = ConfigDict(
        extra="forbid", protected_namespaces=(), populate_by_name=True
    )


class SnowflakeConfig(BaseModel):
    """Snowflake connection configuration.

    Attributes:
        account: Snowflake account identifier
        user: Snowflake username
        password: Optional password for authentication
        authenticator: Optional authenticator (e.g., 'externalbrowser')
        warehouse: Default warehouse to use
        database: Default database to use
        schema: Default schema to use
        role: Optional role to use
        session_parameters: Optional session parameters
    """

    account: str = Field(..., description="Snowflake account identifier")
    user: str = Field(..., description="Snowflake username")
    password: Optional[str] = Field(None, description="Password for authentication")
    authenticator: Optional[str] = Field(None, description="Authentication method")
    warehouse: Optional[str] = Field(None, description="Default warehouse")
    database: Optional[str] = Field(None, description="Default database")
    schema_: Optional[str] = Field(
        None,
        alias="schema",
        validation_alias="schema",
        serialization_alias="schema",
        description="Default schema",
    )
    role: Optional[str] = Field(None, description="Role to use")
    session_parameters: Dict[str, Any] = Field(
        default_factory=dict, description="Additional session parameters"
    )

    @field_validator("account", "user")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank account and user values."""
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    model_config = ConfigDict(
        extra="allow",
        protected_namespaces=(),
        populate_by_name=True,
    )

    def connection_parameters(self) -> Dict[str, Any]:
        """Return Snowpark ``Session.builder.configs`` parameters."""
        params = self.model_dump(by_alias=True, exclude_none=True)
        if not params.get("session_parameters"):
            params.pop("session_parameters", None)
        return params
