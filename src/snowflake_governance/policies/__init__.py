"""Role-conditioned data-visibility policies.

Masking policies decide how a column value is shown; row access policies
decide which rows are visible. Both are ordered rule lists evaluated against
an explicit CallerContext.

Classes:
    Policy, Rule, Binding: Policy records
    PolicyRegistry, BindingResolver: Storage and lookup
    PolicyEvaluator: Evaluation of masks, row filters and row sets
    RoleHierarchy: Role inheritance for ``role_in_session`` predicates
"""

from snowflake_governance.policies.evaluator import PolicyEvaluator
from snowflake_governance.policies.hierarchy import RoleHierarchy
from snowflake_governance.policies.models import (
    Binding,
    Policy,
    PolicyKind,
    PolicyReference,
    Rule,
    Subject,
    ValueType,
)
from snowflake_governance.policies.outcomes import Outcome, build_outcome
from snowflake_governance.policies.predicates import Predicate, build_predicate
from snowflake_governance.policies.registry import BindingResolver, PolicyRegistry

__all__ = [
    "Binding",
    "BindingResolver",
    "Outcome",
    "Policy",
    "PolicyEvaluator",
    "PolicyKind",
    "PolicyReference",
    "PolicyRegistry",
    "Predicate",
    "RoleHierarchy",
    "Rule",
    "Subject",
    "ValueType",
    "build_outcome",
    "build_predicate",
]
