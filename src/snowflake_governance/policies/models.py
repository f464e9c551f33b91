"""Policy, rule and binding records.

Classes:
    PolicyKind: ``mask`` or ``row_filter``
    ValueType: Type of the value a policy receives
    Subject: Everything a predicate or outcome may inspect
    Rule: One ``WHEN <predicate> THEN <outcome>`` arm
    Policy: Ordered rules plus a mandatory default outcome
    Binding: Attachment of a policy to a table or column
    PolicyReference: Summary row describing one binding
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

from snowflake_governance.core.exceptions import (
    NoDefaultRuleError,
    PolicyDefinitionError,
)
from snowflake_governance.core.session import CallerContext, normalize_identifier

if TYPE_CHECKING:  # pragma: no cover
    from snowflake_governance.policies.hierarchy import RoleHierarchy
    from snowflake_governance.policies.outcomes import Outcome
    from snowflake_governance.policies.predicates import Predicate


class PolicyKind(str, Enum):
    """Kinds of visibility policy."""

    MASK = "mask"
    ROW_FILTER = "row_filter"


class ValueType(str, Enum):
    """Type of the value handed to a policy."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    @property
    def sql_type(self) -> str:
        """Snowflake type used in the policy signature."""
        return {"string": "STRING", "number": "NUMBER", "boolean": "BOOLEAN"}[
            self.value
        ]


@dataclass(frozen=True)
class Subject:
    """Input to a single policy evaluation.

    Attributes:
        context: Caller identity
        value: Raw column value (masks) or row discriminant (row filters)
        tags: Governance tags on the column being evaluated, keyed by tag name
        hierarchy: Optional role graph for inheritance-aware predicates
    """

    context: CallerContext
    value: Any = None
    tags: Mapping[str, str] = field(default_factory=dict)
    hierarchy: Optional["RoleHierarchy"] = None


@dataclass(frozen=True)
class Rule:
    """One ``WHEN <predicate> THEN <outcome>`` arm of a policy."""

    predicate: "Predicate"
    outcome: "Outcome"


@dataclass(frozen=True)
class Policy:
    """A named, ordered rule set with a fallback outcome.

    Rules are tried in declaration order and the first matching predicate
    wins. ``default`` is the ``ELSE`` branch and is mandatory, which keeps
    evaluation total.

    Attributes:
        policy_id: Identifier (normalized upper-case)
        kind: Mask or row filter
        value_type: Type of the masked value or row discriminant
        rules: Ordered rule arms
        default: Outcome when no rule matches
        argument: Argument name used when rendering DDL
        comment: Optional description
    """

    policy_id: str
    kind: PolicyKind
    value_type: ValueType
    rules: Tuple[Rule, ...]
    default: Optional["Outcome"]
    argument: str = "val"
    comment: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize the identifier and validate outcomes against the kind."""
        if not self.policy_id or not self.policy_id.strip():
            raise PolicyDefinitionError("Policy identifier cannot be empty")
        object.__setattr__(self, "policy_id", normalize_identifier(self.policy_id))
        object.__setattr__(self, "kind", PolicyKind(self.kind))
        object.__setattr__(self, "value_type", ValueType(self.value_type))
        object.__setattr__(self, "rules", tuple(self.rules))

        if self.default is None:
            raise NoDefaultRuleError(self.policy_id)

        outcomes = [rule.outcome for rule in self.rules] + [self.default]
        for position, outcome in enumerate(outcomes):
            try:
                outcome.check(self.kind, self.value_type)
            except PolicyDefinitionError as exc:
                raise PolicyDefinitionError(
                    exc.message,
                    context={"policy_id": self.policy_id, "rule": position},
                ) from exc


@dataclass(frozen=True)
class Binding:
    """Attachment of a policy to a table (row filter) or column (mask).

    Attributes:
        table: Table name (normalized)
        column: Masked column, ``None`` for row filters
        policy_id: Bound policy
        kind: Kind of the bound policy
        on_column: Row-filter discriminant column (``ADD ROW ACCESS POLICY ... ON (col)``)
    """

    table: str
    column: Optional[str]
    policy_id: str
    kind: PolicyKind
    on_column: Optional[str] = None


@dataclass(frozen=True)
class PolicyReference:
    """Summary row in the shape of ``INFORMATION_SCHEMA.POLICY_REFERENCES``."""

    policy_name: str
    policy_kind: str
    table_name: str
    column_name: Optional[str]

    def as_dict(self) -> dict:
        """Return the reference as a plain dictionary."""
        return {
            "policy_name": self.policy_name,
            "policy_kind": self.policy_kind,
            "table_name": self.table_name,
            "column_name": self.column_name,
        }
