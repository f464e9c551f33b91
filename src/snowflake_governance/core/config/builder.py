"""Turn validated catalog models into live policy objects."""

from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from snowflake_governance.core.config.models import GovernanceConfig, PolicyModel
from snowflake_governance.core.exceptions import ConfigurationError
from snowflake_governance.policies.hierarchy import RoleHierarchy
from snowflake_governance.policies.models import Policy, Rule
from snowflake_governance.policies.outcomes import build_outcome
from snowflake_governance.policies.predicates import build_predicate
from snowflake_governance.policies.registry import PolicyRegistry


def build_policy(definition: Union[PolicyModel, Mapping[str, Any]]) -> Policy:
    """Build a Policy from its declarative definition.

    Args:
        definition: PolicyModel or a mapping with the same fields

    Returns:
        Policy ready to register

    Raises:
        ConfigurationError: If a mapping does not fit PolicyModel
        PolicyDefinitionError: If a predicate or outcome is invalid
        NoDefaultRuleError: If no default outcome is declared
    """
    if not isinstance(definition, PolicyModel):
        try:
            definition = PolicyModel.model_validate(dict(definition))
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid policy definition", original_error=e
            ) from e

    rules = tuple(
        Rule(predicate=build_predicate(rule.when), outcome=build_outcome(rule.then))
        for rule in definition.rules
    )
    default = None if definition.default is None else build_outcome(definition.default)
    extra = {"argument": definition.argument} if definition.argument else {}
    return Policy(
        policy_id=definition.name,
        kind=definition.kind,
        value_type=definition.value_type,
        rules=rules,
        default=default,
        comment=definition.comment,
        **extra,
    )


def build_hierarchy(config: GovernanceConfig) -> Optional[RoleHierarchy]:
    """Role graph declared in the catalog, or None if it declares no grants."""
    if not config.role_grants:
        return None
    hierarchy = RoleHierarchy()
    for grant in config.role_grants:
        hierarchy.grant(grant.role, to_role=grant.to_role)
    return hierarchy


def build_registry(
    config: GovernanceConfig,
    registry: Optional[PolicyRegistry] = None,
) -> PolicyRegistry:
    """Register every policy, binding and tag of a catalog.

    Policies are registered before any binding so bindings may reference
    policies declared later in the file.
    """
    registry = registry or PolicyRegistry()
    for definition in config.policies:
        registry.register(build_policy(definition))
    for binding in config.bindings:
        registry.bind(binding.table, binding.column, binding.policy)
    for tag in config.tags:
        registry.tag_column(tag.table, tag.column, tag.tag, tag.value)
    return registry


def build_catalog(
    config: GovernanceConfig,
) -> Tuple[PolicyRegistry, Optional[RoleHierarchy]]:
    """Build both the registry and the role hierarchy of a catalog."""
    return build_registry(config), build_hierarchy(config)
