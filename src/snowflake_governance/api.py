"""High-level governance API.

GovernanceService bundles a registry, an optional role hierarchy and an
evaluator behind the four operations callers need: register a policy, bind
it, and evaluate masks and row filters.

Example:
    >>> service = GovernanceService.from_yaml("config/defaults/governance.yaml")
    >>> analyst = CallerContext(role="FMG_ANALYST")
    >>> service.evaluate_mask("FMG_EMAIL_MASK", analyst, "a@b.com")
    '****@b.com'
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Union

from snowflake_governance.core.config import (
    ConfigLoader,
    GovernanceConfig,
    PolicyModel,
    build_catalog,
    build_policy,
)
from snowflake_governance.core.session import CallerContext
from snowflake_governance.policies import (
    Binding,
    Policy,
    PolicyEvaluator,
    PolicyRegistry,
    RoleHierarchy,
)

PolicyDefinition = Union[Policy, PolicyModel, Mapping[str, Any]]


class GovernanceService:
    """Register, bind and evaluate visibility policies.

    Attributes:
        registry: Policy and binding store
        evaluator: Evaluator reading from ``registry``
    """

    def __init__(
        self,
        registry: Optional[PolicyRegistry] = None,
        hierarchy: Optional[RoleHierarchy] = None,
    ) -> None:
        """Initialize the service around an existing or empty registry."""
        self.registry = registry or PolicyRegistry()
        self.evaluator = PolicyEvaluator(self.registry, hierarchy=hierarchy)

    @classmethod
    def from_config(cls, config: GovernanceConfig) -> "GovernanceService":
        """Build a service from a validated catalog."""
        registry, hierarchy = build_catalog(config)
        return cls(registry=registry, hierarchy=hierarchy)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "GovernanceService":
        """Build a service from a single catalog YAML file."""
        path = Path(path)
        config = ConfigLoader(config_dir=path.parent).load_file(GovernanceConfig, path)
        return cls.from_config(config)

    def register_policy(self, definition: PolicyDefinition) -> str:
        """Register a policy given as a Policy, PolicyModel or mapping.

        Returns:
            The normalized policy identifier

        Raises:
            DuplicateNameError: If the identifier already exists
            NoDefaultRuleError: If the definition has no default outcome
            PolicyDefinitionError: If a rule is malformed
        """
        if isinstance(definition, Policy):
            policy = definition
        else:
            policy = build_policy(definition)
        return self.registry.register(policy)

    def bind_policy(self, table: str, column: Optional[str], policy_id: str) -> Binding:
        """Attach a registered policy to a column or table.

        Raises:
            UnknownPolicyError: If the policy is not registered
            ConflictError: If the target already carries a policy of that kind
        """
        return self.registry.bind(table, column, policy_id)

    def evaluate_mask(
        self, policy_id: str, caller_context: CallerContext, raw_value: Any
    ) -> Any:
        """Return ``raw_value`` as the caller is allowed to see it."""
        return self.evaluator.evaluate_mask(policy_id, caller_context, raw_value)

    def evaluate_row_filter(
        self, policy_id: str, caller_context: CallerContext, row_discriminant: Any
    ) -> bool:
        """Return whether the caller may see a row with this discriminant."""
        return self.evaluator.evaluate_row_filter(
            policy_id, caller_context, row_discriminant
        )

    def select(
        self,
        table: str,
        rows: Iterable[Mapping[str, Any]],
        caller_context: CallerContext,
    ) -> Iterator[Dict[str, Any]]:
        """Yield visible rows of ``table`` with masks applied."""
        return self.evaluator.apply_to_rows(table, rows, caller_context)
