"""Policy registry and binding resolution.

The registry owns every Policy and Binding record. It enforces the same
attachment rules Snowflake enforces in DDL: one row access policy per table,
one masking policy per column, and no dropping a policy that is still
attached.

Classes:
    BindingResolver: Table/column to policy lookups and column tags
    PolicyRegistry: Policy definitions plus a BindingResolver
"""

import threading
from typing import Dict, List, Optional, Tuple

from snowflake_governance.core.exceptions import (
    ConflictError,
    DuplicateNameError,
    InvalidBindingError,
    UnknownPolicyError,
)
from snowflake_governance.core.session import normalize_identifier
from snowflake_governance.policies.models import (
    Binding,
    Policy,
    PolicyKind,
    PolicyReference,
)
from snowflake_governance.policies.sqltext import split_qualified_name
from snowflake_governance.utils.logging import StructuredLogger, get_logger

_REFERENCE_KINDS = {
    PolicyKind.MASK: "MASKING_POLICY",
    PolicyKind.ROW_FILTER: "ROW_ACCESS_POLICY",
}


def normalize_table(name: str) -> str:
    """Normalize a possibly qualified table name part by part."""
    parts = split_qualified_name(name or "")
    if not parts:
        raise InvalidBindingError("Table name cannot be empty")
    return ".".join(normalize_identifier(part) for part in parts)


class BindingResolver:
    """Map table and column references to bound policies.

    Row-filter bindings are keyed by table; mask bindings by
    ``(table, column)``. Column tags live here too because tag-based
    masking reads them for the column being evaluated.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        """Create an empty resolver.

        Args:
            lock: Lock shared with the owning registry
        """
        self._lock = lock or threading.RLock()
        self._row_filters: Dict[str, Binding] = {}
        self._masks: Dict[Tuple[str, str], Binding] = {}
        self._tags: Dict[Tuple[str, str], Dict[str, str]] = {}

    def add(self, binding: Binding) -> None:
        """Store a binding.

        Raises:
            ConflictError: If the table already has a row filter or the
                column already has a mask
        """
        with self._lock:
            if binding.kind is PolicyKind.ROW_FILTER:
                existing = self._row_filters.get(binding.table)
                if existing is not None:
                    raise ConflictError(
                        "Table already has a row access policy",
                        context={
                            "table": binding.table,
                            "existing_policy": existing.policy_id,
                            "policy": binding.policy_id,
                        },
                    )
                self._row_filters[binding.table] = binding
                return

            key = (binding.table, binding.column or "")
            existing = self._masks.get(key)
            if existing is not None:
                raise ConflictError(
                    "Column already has a masking policy",
                    context={
                        "table": binding.table,
                        "column": binding.column,
                        "existing_policy": existing.policy_id,
                        "policy": binding.policy_id,
                    },
                )
            self._masks[key] = binding

    def remove(self, table: str, column: Optional[str] = None) -> Optional[Binding]:
        """Remove the row filter (no column) or the column mask; return it."""
        table = normalize_table(table)
        with self._lock:
            if column is None:
                return self._row_filters.pop(table, None)
            return self._masks.pop((table, normalize_identifier(column)), None)

    def resolve(self, table: str, column: Optional[str] = None) -> Optional[Binding]:
        """Return the binding for a table (row filter) or column (mask)."""
        table = normalize_table(table)
        with self._lock:
            if column is None:
                return self._row_filters.get(table)
            return self._masks.get((table, normalize_identifier(column)))

    def row_filter(self, table: str) -> Optional[Binding]:
        """Row-filter binding of a table, if any."""
        return self.resolve(table)

    def masks(self, table: str) -> Dict[str, Binding]:
        """Column-name to mask binding for one table."""
        table = normalize_table(table)
        with self._lock:
            return {col: b for (tbl, col), b in self._masks.items() if tbl == table}

    def all(self) -> List[Binding]:
        """Every binding, row filters first, sorted by table then column."""
        with self._lock:
            rows = sorted(self._row_filters.values(), key=lambda b: b.table)
            masks = sorted(self._masks.values(), key=lambda b: (b.table, b.column))
        return rows + masks

    def is_bound(self, policy_id: str) -> bool:
        """Return True if the policy is attached anywhere."""
        with self._lock:
            return any(b.policy_id == policy_id for b in self.all())

    def set_tag(self, table: str, column: str, tag: str, value: str) -> None:
        """Record ``ALTER TABLE t MODIFY COLUMN c SET TAG tag = 'value'``."""
        key = (normalize_table(table), normalize_identifier(column))
        with self._lock:
            self._tags.setdefault(key, {})[normalize_identifier(tag)] = value

    def unset_tag(self, table: str, column: str, tag: str) -> None:
        """Record ``ALTER TABLE t MODIFY COLUMN c UNSET TAG tag``."""
        key = (normalize_table(table), normalize_identifier(column))
        with self._lock:
            self._tags.get(key, {}).pop(normalize_identifier(tag), None)

    def tags(self, table: str, column: str) -> Dict[str, str]:
        """Tags set on a column."""
        key = (normalize_table(table), normalize_identifier(column))
        with self._lock:
            return dict(self._tags.get(key, {}))

    def all_tags(self) -> List[Tuple[str, str, str, str]]:
        """Every ``(table, column, tag, value)``, sorted."""
        with self._lock:
            return sorted(
                (table, column, tag, value)
                for (table, column), tags in self._tags.items()
                for tag, value in tags.items()
            )


class PolicyRegistry:
    """Thread-safe store of policies and their bindings.

    Attributes:
        resolver: BindingResolver holding table/column attachments
        logger: Structured logger

    Example:
        >>> registry = PolicyRegistry()
        >>> registry.register(email_mask)
        'FMG_EMAIL_MASK'
        >>> registry.bind("FMG_PRODUCTION.RAW.USERS", "email", "FMG_EMAIL_MASK")
        >>> registry.resolve("fmg_production.raw.users", "EMAIL").policy_id
        'FMG_EMAIL_MASK'
    """

    def __init__(self) -> None:
        """Create an empty registry."""
        self._lock = threading.RLock()
        self._policies: Dict[str, Policy] = {}
        self.resolver = BindingResolver(self._lock)
        self.logger: StructuredLogger = get_logger(__name__)

    def __contains__(self, policy_id: str) -> bool:
        return normalize_identifier(policy_id) in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def register(self, policy: Policy) -> str:
        """Register a policy definition.

        Args:
            policy: Policy to store

        Returns:
            The policy identifier

        Raises:
            DuplicateNameError: If the identifier is already registered
        """
        with self._lock:
            if policy.policy_id in self._policies:
                self.logger.warning(
                    "Rejected duplicate policy", extra={"policy_id": policy.policy_id}
                )
                raise DuplicateNameError(policy.policy_id)
            self._policies[policy.policy_id] = policy

        self.logger.info(
            "Policy registered",
            extra={"policy_id": policy.policy_id, "kind": policy.kind.value},
        )
        return policy.policy_id

    def get(self, policy_id: str) -> Policy:
        """Return a registered policy.

        Raises:
            UnknownPolicyError: If the identifier is not registered
        """
        key = normalize_identifier(policy_id)
        with self._lock:
            policy = self._policies.get(key)
        if policy is None:
            raise UnknownPolicyError(key)
        return policy

    def _get_or_warn(self, policy_id: str, operation: str) -> Policy:
        try:
            return self.get(policy_id)
        except UnknownPolicyError:
            self.logger.warning(
                f"Rejected {operation} of unknown policy",
                extra={"policy_id": normalize_identifier(policy_id)},
            )
            raise

    def policies(self) -> List[Policy]:
        """All registered policies, sorted by identifier."""
        with self._lock:
            return [self._policies[k] for k in sorted(self._policies)]

    def unregister(self, policy_id: str) -> Policy:
        """Remove a policy that is no longer attached anywhere.

        Raises:
            UnknownPolicyError: If the identifier is not registered
            ConflictError: If the policy is still bound
        """
        with self._lock:
            policy = self._get_or_warn(policy_id, "unregister")
            if self.resolver.is_bound(policy.policy_id):
                self.logger.warning(
                    "Rejected unregister of bound policy",
                    extra={"policy_id": policy.policy_id},
                )
                raise ConflictError(
                    "Policy is still attached",
                    context={"policy_id": policy.policy_id},
                )
            del self._policies[policy.policy_id]

        self.logger.info("Policy dropped", extra={"policy_id": policy.policy_id})
        return policy

    def bind(self, table: str, column: Optional[str], policy_id: str) -> Binding:
        """Attach a policy to a column (mask) or table (row filter).

        For a row filter, ``column`` names the discriminant column the policy
        receives (``ADD ROW ACCESS POLICY p ON (column)``) and may be None
        when the policy only inspects the caller.

        Raises:
            UnknownPolicyError: If the policy is not registered
            InvalidBindingError: If a masking policy is bound without a column
            ConflictError: If the target already has a policy of that kind
        """
        with self._lock:
            policy = self._get_or_warn(policy_id, "bind")
            table_name = normalize_table(table)
            column_name = normalize_identifier(column) if column else None

            if policy.kind is PolicyKind.MASK:
                if column_name is None:
                    self.logger.warning(
                        "Rejected masking binding without a column",
                        extra={"table": table_name, "policy_id": policy.policy_id},
                    )
                    raise InvalidBindingError(
                        "Masking policy must be bound to a column",
                        context={"table": table_name, "policy": policy.policy_id},
                    )
                binding = Binding(
                    table=table_name,
                    column=column_name,
                    policy_id=policy.policy_id,
                    kind=policy.kind,
                )
            else:
                binding = Binding(
                    table=table_name,
                    column=None,
                    policy_id=policy.policy_id,
                    kind=policy.kind,
                    on_column=column_name,
                )

            try:
                self.resolver.add(binding)
            except ConflictError:
                self.logger.warning(
                    "Rejected conflicting binding",
                    extra={"table": table_name, "column": column_name},
                )
                raise

        self.logger.info(
            "Policy bound",
            extra={
                "policy_id": binding.policy_id,
                "table": binding.table,
                "column": binding.column or binding.on_column,
            },
        )
        return binding

    def unbind(self, table: str, column: Optional[str] = None) -> Optional[Binding]:
        """Detach the mask on ``column``, or the row filter when column is None."""
        binding = self.resolver.remove(table, column)
        if binding is not None:
            self.logger.info(
                "Policy unbound",
                extra={"policy_id": binding.policy_id, "table": binding.table},
            )
        return binding

    def resolve(self, table: str, column: Optional[str] = None) -> Optional[Policy]:
        """Return the policy bound to a column, or the table's row filter.

        Returns:
            Zero or one policy
        """
        binding = self.resolver.resolve(table, column)
        if binding is None:
            return None
        return self.get(binding.policy_id)

    def bindings(self) -> List[Binding]:
        """Every binding in the registry."""
        return self.resolver.all()

    def tag_column(self, table: str, column: str, tag: str, value: str) -> None:
        """Set a governance tag on a column."""
        self.resolver.set_tag(table, column, tag, value)

    def column_tags(self, table: str, column: str) -> Dict[str, str]:
        """Governance tags set on a column."""
        return self.resolver.tags(table, column)

    def tagged_columns(self) -> List[Tuple[str, str, str, str]]:
        """Every column tag as ``(table, column, tag, value)``."""
        return self.resolver.all_tags()

    def policy_references(self) -> List[PolicyReference]:
        """Summarize every binding like ``INFORMATION_SCHEMA.POLICY_REFERENCES``."""
        return [
            PolicyReference(
                policy_name=b.policy_id,
                policy_kind=_REFERENCE_KINDS[b.kind],
                table_name=b.table,
                column_name=b.column or b.on_column,
            )
            for b in self.bindings()
        ]
