"""Rule predicates.

A predicate is the ``WHEN`` half of a policy rule. Each one evaluates against
a Subject in Python and can render the equivalent Snowflake SQL condition.

Predicates are declared in catalogs as single-key mappings, for example
``{"role_in": ["FMG_ADMIN", "FMG_COMPLIANCE_OFFICER"]}`` or
``{"tag_equals": {"tag": "PII_CATEGORY", "value": "DIRECT_IDENTIFIER"}}``,
and built with build_predicate().
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Tuple

from snowflake_governance.core.exceptions import PolicyDefinitionError
from snowflake_governance.core.session import normalize_identifier
from snowflake_governance.policies.models import Subject
from snowflake_governance.policies.sqltext import literal_list, quote_literal


class Predicate(ABC):
    """Condition selecting a rule arm."""

    @abstractmethod
    def matches(self, subject: Subject) -> bool:
        """Return True if the rule arm applies to this subject."""

    @abstractmethod
    def to_sql(self) -> str:
        """Render the condition as Snowflake SQL."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_sql()})"


def _identifier_set(values: Iterable[str], what: str) -> FrozenSet[str]:
    if isinstance(values, str):
        values = [values]
    if values is None:
        raise PolicyDefinitionError(f"{what} predicate expects a list of names")
    names = frozenset(normalize_identifier(str(v)) for v in values if v)
    if not names:
        raise PolicyDefinitionError(f"{what} predicate needs at least one name")
    return names


class RoleIn(Predicate):
    """``CURRENT_ROLE() IN (...)``: primary role only, no inheritance."""

    def __init__(self, roles: Iterable[str]) -> None:
        self.roles = _identifier_set(roles, "role_in")

    def matches(self, subject: Subject) -> bool:
        return subject.context.role in self.roles

    def to_sql(self) -> str:
        return f"CURRENT_ROLE() IN {literal_list(sorted(self.roles))}"


class RoleNotIn(RoleIn):
    """``CURRENT_ROLE() NOT IN (...)``."""

    def matches(self, subject: Subject) -> bool:
        return subject.context.role not in self.roles

    def to_sql(self) -> str:
        return f"CURRENT_ROLE() NOT IN {literal_list(sorted(self.roles))}"


class RoleInSession(Predicate):
    """``IS_ROLE_IN_SESSION``: primary and secondary roles plus inherited roles."""

    def __init__(self, roles: Iterable[str]) -> None:
        self.roles = _identifier_set(roles, "role_in_session")

    def matches(self, subject: Subject) -> bool:
        session_roles = subject.context.session_roles
        if subject.hierarchy is not None:
            session_roles = subject.hierarchy.expand(session_roles)
        return not self.roles.isdisjoint(session_roles)

    def to_sql(self) -> str:
        checks = [f"IS_ROLE_IN_SESSION({quote_literal(r)})" for r in sorted(self.roles)]
        if len(checks) == 1:
            return checks[0]
        return "(" + " OR ".join(checks) + ")"


class UserIn(Predicate):
    """``CURRENT_USER() IN (...)``."""

    def __init__(self, users: Iterable[str]) -> None:
        self.users = _identifier_set(users, "user_in")

    def matches(self, subject: Subject) -> bool:
        return subject.context.user is not None and subject.context.user in self.users

    def to_sql(self) -> str:
        return f"CURRENT_USER() IN {literal_list(sorted(self.users))}"


class TagEquals(Predicate):
    """``SYSTEM$GET_TAG_ON_CURRENT_COLUMN(tag) = value``."""

    def __init__(self, tag: str, value: str) -> None:
        if not tag:
            raise PolicyDefinitionError("tag_equals predicate needs a tag name")
        self.tag = normalize_identifier(tag)
        self.value = value

    def matches(self, subject: Subject) -> bool:
        return subject.tags.get(self.tag) == self.value

    def to_sql(self) -> str:
        return (
            f"SYSTEM$GET_TAG_ON_CURRENT_COLUMN({quote_literal(self.tag)}) "
            f"= {quote_literal(self.value)}"
        )


class AllOf(Predicate):
    """Conjunction of nested predicates."""

    joiner = "AND"

    def __init__(self, predicates: Iterable[Predicate]) -> None:
        self.predicates: Tuple[Predicate, ...] = tuple(predicates)
        if not self.predicates:
            raise PolicyDefinitionError(
                f"{self.__class__.__name__} needs at least one nested predicate"
            )

    def matches(self, subject: Subject) -> bool:
        return all(p.matches(subject) for p in self.predicates)

    def to_sql(self) -> str:
        if len(self.predicates) == 1:
            return self.predicates[0].to_sql()
        return f" {self.joiner} ".join(f"({p.to_sql()})" for p in self.predicates)


class AnyOf(AllOf):
    """Disjunction of nested predicates."""

    joiner = "OR"

    def matches(self, subject: Subject) -> bool:
        return any(p.matches(subject) for p in self.predicates)


class Always(Predicate):
    """Matches every subject."""

    def matches(self, subject: Subject) -> bool:
        return True

    def to_sql(self) -> str:
        return "TRUE"


def _build_tag_equals(args: Any) -> Predicate:
    if not isinstance(args, Mapping) or "tag" not in args or "value" not in args:
        raise PolicyDefinitionError("tag_equals expects {tag: ..., value: ...}")
    return TagEquals(args["tag"], args["value"])


def _build_nested(cls: Callable[[Iterable[Predicate]], Predicate]) -> Callable:
    def build(args: Any) -> Predicate:
        if not isinstance(args, (list, tuple)):
            raise PolicyDefinitionError("Nested predicates must be given as a list")
        return cls([build_predicate(definition) for definition in args])

    return build


PREDICATE_BUILDERS: Dict[str, Callable[[Any], Predicate]] = {
    "role_in": RoleIn,
    "role_not_in": RoleNotIn,
    "role_in_session": RoleInSession,
    "user_in": UserIn,
    "tag_equals": _build_tag_equals,
    "all_of": _build_nested(AllOf),
    "any_of": _build_nested(AnyOf),
    "always": lambda _args: Always(),
}


def build_predicate(definition: Any) -> Predicate:
    """Build a predicate from its declarative form.

    Args:
        definition: A Predicate, the string ``"always"``, or a single-key mapping
            ``{type: arguments}``

    Returns:
        Predicate instance

    Raises:
        PolicyDefinitionError: If the type is unknown or arguments are invalid
    """
    if isinstance(definition, Predicate):
        return definition
    if isinstance(definition, str):
        definition = {definition: None}
    if not isinstance(definition, Mapping) or len(definition) != 1:
        raise PolicyDefinitionError(
            "Predicate must be a single-key mapping", context={"definition": definition}
        )
    ((kind, args),) = definition.items()
    builder = PREDICATE_BUILDERS.get(kind)
    if builder is None:
        raise PolicyDefinitionError(
            f"Unknown predicate type: {kind}",
            context={"known": ", ".join(sorted(PREDICATE_BUILDERS))},
        )
    return builder(args)
