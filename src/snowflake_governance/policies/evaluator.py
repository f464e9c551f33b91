"""Policy evaluation.

Evaluation is a pure function of (policy, caller context, subject value):
rules are tried in declaration order, the first matching predicate selects
the outcome, and the default outcome applies otherwise. No caller role can
make evaluation fail, because every policy carries a default.

Classes:
    PolicyEvaluator: Evaluate masks and row filters, alone or over row sets
"""

from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from snowflake_governance.core.exceptions import PolicyKindMismatchError
from snowflake_governance.core.session import CallerContext, normalize_identifier
from snowflake_governance.policies.hierarchy import RoleHierarchy
from snowflake_governance.policies.models import Policy, PolicyKind, Subject
from snowflake_governance.policies.registry import PolicyRegistry
from snowflake_governance.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
)


class PolicyEvaluator:
    """Evaluate registered policies for a caller.

    Attributes:
        registry: Registry the policies and bindings are read from
        hierarchy: Optional role graph for ``role_in_session`` predicates
        logger: Structured logger

    Example:
        >>> evaluator = PolicyEvaluator(registry)
        >>> analyst = CallerContext(role="FMG_ANALYST")
        >>> evaluator.evaluate_mask("FMG_EMAIL_MASK", analyst, "a@b.com")
        '****@b.com'
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        hierarchy: Optional[RoleHierarchy] = None,
    ) -> None:
        """Initialize the evaluator."""
        if registry is None:
            raise ValueError("Registry cannot be None")
        self.registry = registry
        self.hierarchy = hierarchy
        self.logger: StructuredLogger = get_logger(__name__)

    def evaluate(
        self,
        policy: Policy,
        context: CallerContext,
        value: Any = None,
        tags: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Apply the first matching rule of ``policy`` to ``value``.

        Args:
            policy: Policy to evaluate
            context: Caller identity
            value: Raw column value or row discriminant
            tags: Governance tags on the column, for tag-based masks

        Returns:
            The masked value, or the row-filter decision
        """
        subject = Subject(
            context=context,
            value=value,
            tags=dict(tags or {}),
            hierarchy=self.hierarchy,
        )
        with LogContext(policy_id=policy.policy_id, role=context.role):
            for position, rule in enumerate(policy.rules):
                if rule.predicate.matches(subject):
                    self.logger.debug("Rule matched", extra={"rule": position})
                    return rule.outcome.apply(subject)
            self.logger.debug("No rule matched, applying default")
            return policy.default.apply(subject)

    def _policy(self, policy_id: str, kind: PolicyKind) -> Policy:
        policy = self.registry.get(policy_id)
        if policy.kind is not kind:
            raise PolicyKindMismatchError(
                policy.policy_id, expected=kind.value, actual=policy.kind.value
            )
        return policy

    def evaluate_mask(
        self,
        policy_id: str,
        context: CallerContext,
        raw_value: Any,
        tags: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Return ``raw_value`` as the masking policy shows it to the caller.

        Raises:
            UnknownPolicyError: If the policy is not registered
            PolicyKindMismatchError: If the policy is a row filter
        """
        policy = self._policy(policy_id, PolicyKind.MASK)
        return self.evaluate(policy, context, raw_value, tags)

    def evaluate_row_filter(
        self,
        policy_id: str,
        context: CallerContext,
        row_discriminant: Any,
    ) -> bool:
        """Return whether the caller may see a row with this discriminant.

        Raises:
            UnknownPolicyError: If the policy is not registered
            PolicyKindMismatchError: If the policy is a masking policy
        """
        policy = self._policy(policy_id, PolicyKind.ROW_FILTER)
        return bool(self.evaluate(policy, context, row_discriminant))

    def mask_column(
        self,
        table: str,
        column: str,
        context: CallerContext,
        raw_value: Any,
    ) -> Any:
        """Mask a value through whatever policy is bound to the column.

        Columns without a masking policy are returned unchanged.
        """
        policy = self.registry.resolve(table, column)
        if policy is None:
            return raw_value
        tags = self.registry.column_tags(table, column)
        return self.evaluate(policy, context, raw_value, tags)

    def is_row_visible(
        self,
        table: str,
        context: CallerContext,
        row: Mapping[str, Any],
    ) -> bool:
        """Apply the table's row access policy to one row.

        Tables without a row access policy admit every row.
        """
        binding = self.registry.resolver.row_filter(table)
        if binding is None:
            return True
        policy = self.registry.get(binding.policy_id)
        discriminant = None
        if binding.on_column is not None:
            discriminant = _lookup(row, binding.on_column)
        return bool(self.evaluate(policy, context, discriminant))

    def apply_to_rows(
        self,
        table: str,
        rows: Iterable[Mapping[str, Any]],
        context: CallerContext,
    ) -> Iterator[Dict[str, Any]]:
        """Yield the rows a caller can see, with column masks applied.

        The row access policy decides visibility on raw values first; masks
        are applied afterwards and only change what visible rows display.
        Keys of the yielded dictionaries keep the caller's spelling.
        """
        masks = self.registry.resolver.masks(table)
        tags = {column: self.registry.column_tags(table, column) for column in masks}
        policies = {
            column: self.registry.get(binding.policy_id)
            for column, binding in masks.items()
        }

        for row in rows:
            if not self.is_row_visible(table, context, row):
                continue
            shown: Dict[str, Any] = {}
            for key, value in row.items():
                column = normalize_identifier(key)
                policy = policies.get(column)
                if policy is None:
                    shown[key] = value
                else:
                    shown[key] = self.evaluate(policy, context, value, tags[column])
            yield shown


def _lookup(row: Mapping[str, Any], column: str) -> Any:
    if column in row:
        return row[column]
    for key, value in row.items():
        if normalize_identifier(key) == column:
            return value
    return None
