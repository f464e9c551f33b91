"""Rule outcomes.

An outcome is the ``THEN`` half of a policy rule: what the caller sees when
the rule's predicate matches. Mask outcomes transform the column value; row
filter outcomes return the admit/deny decision for a row.

Transforming outcomes pass ``None`` through unchanged, mirroring SQL
``NULL`` propagation through ``REGEXP_REPLACE``, ``LEFT`` and ``ROUND``.

Outcomes are declared as ``"identity"`` or single-key mappings such as
``{"regex_replace": {"pattern": "^[^@]+", "replacement": "****"}}`` and
built with build_outcome().
"""

import re
from abc import ABC, abstractmethod
from decimal import (
    ROUND_HALF_UP,
    Decimal,
    DecimalException,
    InvalidOperation,
    localcontext,
)
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional

from snowflake_governance.core.exceptions import PolicyDefinitionError
from snowflake_governance.core.session import normalize_identifier
from snowflake_governance.policies.models import PolicyKind, Subject, ValueType
from snowflake_governance.policies.sqltext import (
    format_qualified_identifier,
    literal_list,
    quote_literal,
    split_qualified_name,
    sql_literal,
)

_MASK_ONLY = frozenset({PolicyKind.MASK})
_ROW_ONLY = frozenset({PolicyKind.ROW_FILTER})


def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PolicyDefinitionError(
            f"{name} must be an integer", context={name: value}
        )
    return value


class Outcome(ABC):
    """Result of a matched rule."""

    #: Policy kinds this outcome may appear in
    kinds: FrozenSet[PolicyKind] = _MASK_ONLY
    #: Value types this outcome accepts; empty means any
    value_types: FrozenSet[ValueType] = frozenset()

    def check(self, kind: PolicyKind, value_type: ValueType) -> None:
        """Validate that the outcome fits a policy declaration.

        Raises:
            PolicyDefinitionError: If kind or value type is unsupported
        """
        name = self.__class__.__name__
        if kind not in self.kinds:
            raise PolicyDefinitionError(
                f"{name} outcome cannot be used in a {kind.value} policy"
            )
        if self.value_types and value_type not in self.value_types:
            raise PolicyDefinitionError(
                f"{name} outcome cannot be used with {value_type.value} values"
            )

    @abstractmethod
    def apply(self, subject: Subject) -> Any:
        """Return the value (mask) or decision (row filter) for the subject."""

    @abstractmethod
    def to_sql(self, argument: str) -> str:
        """Render the outcome as a Snowflake SQL expression over ``argument``."""


class Identity(Outcome):
    """Return the original value."""

    def apply(self, subject: Subject) -> Any:
        return subject.value

    def to_sql(self, argument: str) -> str:
        return argument


class Constant(Outcome):
    """Return a fixed value; ``TRUE``/``FALSE`` in row filters."""

    kinds = frozenset({PolicyKind.MASK, PolicyKind.ROW_FILTER})

    def __init__(self, value: Any) -> None:
        self.value = value

    def check(self, kind: PolicyKind, value_type: ValueType) -> None:
        super().check(kind, value_type)
        if kind is PolicyKind.ROW_FILTER:
            if not isinstance(self.value, bool):
                raise PolicyDefinitionError(
                    "Row filter constants must be true or false"
                )
            return
        if self.value is None:
            return
        expected = {
            ValueType.STRING: (str,),
            ValueType.NUMBER: (int, float, Decimal),
            ValueType.BOOLEAN: (bool,),
        }[value_type]
        is_bool = isinstance(self.value, bool)
        if not isinstance(self.value, expected) or (
            is_bool and value_type is not ValueType.BOOLEAN
        ):
            raise PolicyDefinitionError(
                f"Constant {self.value!r} does not match value type {value_type.value}"
            )

    def apply(self, subject: Subject) -> Any:
        return self.value

    def to_sql(self, argument: str) -> str:
        return sql_literal(self.value)


class RegexReplace(Outcome):
    """Replace every match of ``pattern`` with ``replacement``."""

    value_types = frozenset({ValueType.STRING})

    def __init__(self, pattern: str, replacement: str = "") -> None:
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise PolicyDefinitionError(
                "Invalid regular expression",
                context={"pattern": pattern},
                original_error=exc,
            ) from exc
        self.pattern = pattern
        self.replacement = replacement

    def apply(self, subject: Subject) -> Any:
        if subject.value is None:
            return None
        return self._regex.sub(self.replacement, str(subject.value))

    def to_sql(self, argument: str) -> str:
        return (
            f"REGEXP_REPLACE({argument}, {quote_literal(self.pattern)}, "
            f"{quote_literal(self.replacement)})"
        )


class MaskDigits(Outcome):
    """Mask digits outside the trailing ``keep_last`` characters.

    ``(555) 123-4567`` becomes ``(***) ***-4567`` with the defaults;
    punctuation keeps its position so the output length matches the input.
    """

    value_types = frozenset({ValueType.STRING})

    def __init__(self, keep_last: int = 4, mask_char: str = "*") -> None:
        keep_last = _require_int("keep_last", keep_last)
        if keep_last < 0:
            raise PolicyDefinitionError("keep_last cannot be negative")
        if not isinstance(mask_char, str) or len(mask_char) != 1:
            raise PolicyDefinitionError("mask_char must be a single character")
        self.keep_last = keep_last
        self.mask_char = mask_char

    def apply(self, subject: Subject) -> Any:
        if subject.value is None:
            return None
        text = str(subject.value)
        split = max(len(text) - self.keep_last, 0)
        head = re.sub(r"[0-9]", self.mask_char, text[:split])
        return head + text[split:]

    def to_sql(self, argument: str) -> str:
        keep = self.keep_last
        head = f"LEFT({argument}, GREATEST(LENGTH({argument}) - {keep}, 0))"
        return (
            f"REGEXP_REPLACE({head}, '[0-9]', {quote_literal(self.mask_char)}) "
            f"|| RIGHT({argument}, {keep})"
        )


class FirstInitial(Outcome):
    """Keep the first character and append ``suffix``."""

    value_types = frozenset({ValueType.STRING})

    def __init__(self, suffix: str = "***") -> None:
        if not isinstance(suffix, str):
            raise PolicyDefinitionError("first_initial suffix must be a string")
        self.suffix = suffix

    def apply(self, subject: Subject) -> Any:
        if subject.value is None:
            return None
        return str(subject.value)[:1] + self.suffix

    def to_sql(self, argument: str) -> str:
        return f"LEFT({argument}, 1) || {quote_literal(self.suffix)}"


class Round(Outcome):
    """Round numbers half away from zero, like Snowflake ``ROUND``.

    ``digits=-2`` buckets revenue to the nearest hundred.
    """

    value_types = frozenset({ValueType.NUMBER})

    def __init__(self, digits: int = 0) -> None:
        self.digits = _require_int("digits", digits)

    def apply(self, subject: Subject) -> Any:
        value = subject.value
        if value is None:
            return None
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return None
        if not number.is_finite():
            return value
        with localcontext() as ctx:
            # Room for every digit left of the rounding position
            ctx.prec = max(ctx.prec, number.adjusted() + self.digits + 2)
            try:
                step = Decimal(1).scaleb(-self.digits)
                rounded = number.quantize(step, rounding=ROUND_HALF_UP)
            except DecimalException:
                return None
        if isinstance(value, int) and not isinstance(value, bool):
            return int(rounded)
        if isinstance(value, float):
            return float(rounded)
        return rounded

    def to_sql(self, argument: str) -> str:
        return f"ROUND({argument}, {self.digits})"


class DiscriminantIn(Outcome):
    """Admit rows whose discriminant is one of ``values``."""

    kinds = _ROW_ONLY

    def __init__(self, values: Iterable[Any]) -> None:
        if values is None or isinstance(values, (str, bytes)):
            raise PolicyDefinitionError("discriminant_in expects a list of values")
        self.values = tuple(values)
        if not self.values:
            raise PolicyDefinitionError("discriminant_in needs at least one value")

    def apply(self, subject: Subject) -> bool:
        return subject.value is not None and subject.value in self.values

    def to_sql(self, argument: str) -> str:
        return f"{argument} IN {literal_list(self.values)}"


class MappedOwner(Outcome):
    """Admit rows owned by the value mapped to the caller's user.

    A user mapped to ``None`` sees every row; an unmapped user sees none.
    This is the ``CSM_USER_MAPPING`` pattern from the workshop, where each
    customer success manager only sees accounts they own.

    Attributes:
        mapping: User name to owner value
        mapping_table: Optional lookup table used when rendering SQL
        user_column: Column holding the Snowflake user in ``mapping_table``
        owner_column: Column holding the owner value in ``mapping_table``
    """

    kinds = _ROW_ONLY

    def __init__(
        self,
        mapping: Mapping[str, Optional[str]],
        mapping_table: Optional[str] = None,
        user_column: str = "snowflake_user",
        owner_column: str = "owner",
    ) -> None:
        self.mapping: Dict[str, Optional[str]] = {
            normalize_identifier(user): owner for user, owner in (mapping or {}).items()
        }
        self.mapping_table = mapping_table
        self.user_column = user_column
        self.owner_column = owner_column

    def apply(self, subject: Subject) -> bool:
        user = subject.context.user
        if user is None or user not in self.mapping:
            return False
        owner = self.mapping[user]
        if owner is None:
            return True
        return subject.value == owner

    def to_sql(self, argument: str) -> str:
        if self.mapping_table:
            parts = split_qualified_name(self.mapping_table)
            table = format_qualified_identifier(*parts)
            user_col = self.user_column
            owner_col = self.owner_column
            return (
                f"{argument} = (SELECT {owner_col} FROM {table} "
                f"WHERE {user_col} = CURRENT_USER()) "
                f"OR EXISTS (SELECT 1 FROM {table} "
                f"WHERE {user_col} = CURRENT_USER() AND {owner_col} IS NULL)"
            )

        see_all = sorted(u for u, o in self.mapping.items() if o is None)
        owned = sorted((u, o) for u, o in self.mapping.items() if o is not None)
        clauses = []
        if see_all:
            clauses.append(f"CURRENT_USER() IN {literal_list(see_all)}")
        if owned:
            whens = " ".join(
                f"WHEN {quote_literal(u)} THEN {quote_literal(o)}" for u, o in owned
            )
            clauses.append(f"{argument} = CASE CURRENT_USER() {whens} END")
        if not clauses:
            return "FALSE"
        if len(clauses) == 1:
            return clauses[0]
        return " OR ".join(f"({c})" for c in clauses)


def _kwargs(args: Any, name: str) -> Dict[str, Any]:
    if args is None:
        return {}
    if not isinstance(args, Mapping):
        raise PolicyDefinitionError(f"{name} expects a mapping of arguments")
    return dict(args)


def _build(cls: Callable[..., Outcome], name: str, scalar: Optional[str] = None):
    def build(args: Any) -> Outcome:
        if scalar is not None and not isinstance(args, (Mapping, type(None))):
            kwargs = {scalar: args}
        else:
            kwargs = _kwargs(args, name)
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as exc:
            raise PolicyDefinitionError(
                f"Invalid arguments for {name}",
                context={"arguments": args},
                original_error=exc,
            ) from exc

    return build


OUTCOME_BUILDERS: Dict[str, Callable[[Any], Outcome]] = {
    "identity": lambda _args: Identity(),
    "constant": Constant,
    "allow": lambda _args: Constant(True),
    "deny": lambda _args: Constant(False),
    "regex_replace": _build(RegexReplace, "regex_replace"),
    "mask_digits": _build(MaskDigits, "mask_digits", scalar="keep_last"),
    "first_initial": _build(FirstInitial, "first_initial", scalar="suffix"),
    "round": _build(Round, "round", scalar="digits"),
    "discriminant_in": DiscriminantIn,
    "mapped_owner": _build(MappedOwner, "mapped_owner"),
}


def build_outcome(definition: Any) -> Outcome:
    """Build an outcome from its declarative form.

    Args:
        definition: An Outcome, a bare type name such as ``"identity"`` or
            ``"deny"``, or a single-key mapping ``{type: arguments}``

    Returns:
        Outcome instance

    Raises:
        PolicyDefinitionError: If the type is unknown or arguments are invalid
    """
    if isinstance(definition, Outcome):
        return definition
    if isinstance(definition, str):
        definition = {definition: None}
    if not isinstance(definition, Mapping) or len(definition) != 1:
        raise PolicyDefinitionError(
            "Outcome must be a type name or single-key mapping",
            context={"definition": definition},
        )
    ((kind, args),) = definition.items()
    builder = OUTCOME_BUILDERS.get(kind)
    if builder is None:
        raise PolicyDefinitionError(
            f"Unknown outcome type: {kind}",
            context={"known": ", ".join(sorted(OUTCOME_BUILDERS))},
        )
    return builder(args)
