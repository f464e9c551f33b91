"""Render policies and bindings as Snowflake DDL.

Functions:
    render_policy_ddl: ``CREATE OR REPLACE MASKING|ROW ACCESS POLICY``
    render_binding_ddl: ``ALTER TABLE ... SET MASKING POLICY`` / ``ADD ROW ACCESS POLICY``
    render_unbinding_ddl: ``UNSET MASKING POLICY`` / ``DROP ROW ACCESS POLICY``
    render_drop_policy_ddl: ``DROP ... POLICY IF EXISTS``
    render_tag_ddl: ``ALTER TABLE ... MODIFY COLUMN ... SET TAG``
"""

import re
from typing import Optional

from snowflake_governance.core.exceptions import (
    InvalidBindingError,
    PolicyDefinitionError,
)
from snowflake_governance.policies.models import Binding, Policy, PolicyKind, ValueType
from snowflake_governance.policies.sqltext import (
    format_qualified_identifier,
    quote_identifier,
    quote_literal,
    split_qualified_name,
)

_ARGUMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")

_OBJECT_TYPES = {
    PolicyKind.MASK: "MASKING POLICY",
    PolicyKind.ROW_FILTER: "ROW ACCESS POLICY",
}


def policy_identifier(
    policy_id: str, database: Optional[str] = None, schema: Optional[str] = None
) -> str:
    """Quoted, optionally qualified, policy name."""
    if schema and not database:
        raise ValueError("Schema cannot be specified without database")
    return format_qualified_identifier(database, schema, policy_id)


def table_identifier(table: str) -> str:
    """Quote each part of a ``DB.SCHEMA.TABLE`` name."""
    return format_qualified_identifier(*split_qualified_name(table))


def _argument_type(policy: Policy) -> str:
    if policy.kind is PolicyKind.ROW_FILTER and policy.value_type is ValueType.STRING:
        return "VARCHAR"
    return policy.value_type.sql_type


def render_policy_body(policy: Policy) -> str:
    """Render the ``CASE ... END`` body of a policy."""
    argument = policy.argument
    if not _ARGUMENT_RE.match(argument):
        raise PolicyDefinitionError(
            "Policy argument must be a simple identifier",
            context={"policy_id": policy.policy_id, "argument": argument},
        )
    default_sql = policy.default.to_sql(argument)
    if not policy.rules:
        return default_sql

    lines = ["CASE"]
    for rule in policy.rules:
        lines.append(
            f"    WHEN {rule.predicate.to_sql()} THEN {rule.outcome.to_sql(argument)}"
        )
    lines.append(f"    ELSE {default_sql}")
    lines.append("END")
    return "\n".join(lines)


def render_policy_ddl(
    policy: Policy,
    database: Optional[str] = None,
    schema: Optional[str] = None,
) -> str:
    """Render ``CREATE OR REPLACE`` DDL for a policy.

    Example output::

        CREATE OR REPLACE MASKING POLICY "FMG_EMAIL_MASK" AS (val STRING) RETURNS STRING ->
        CASE
            WHEN CURRENT_ROLE() IN ('ACCOUNTADMIN', 'FMG_ADMIN') THEN val
            ELSE '****@****.***'
        END
    """
    name = policy_identifier(policy.policy_id, database, schema)
    if policy.kind is PolicyKind.ROW_FILTER:
        returns = "BOOLEAN"
    else:
        returns = policy.value_type.sql_type
    sql = (
        f"CREATE OR REPLACE {_OBJECT_TYPES[policy.kind]} {name} "
        f"AS ({policy.argument} {_argument_type(policy)}) RETURNS {returns} ->\n"
        f"{render_policy_body(policy)}"
    )
    if policy.comment:
        sql += f"\nCOMMENT = {quote_literal(policy.comment)}"
    return sql


def render_binding_ddl(
    binding: Binding,
    database: Optional[str] = None,
    schema: Optional[str] = None,
) -> str:
    """Render the ``ALTER TABLE`` statement attaching a binding.

    Raises:
        InvalidBindingError: If a row filter binding has no discriminant column
    """
    table = table_identifier(binding.table)
    policy = policy_identifier(binding.policy_id, database, schema)
    if binding.kind is PolicyKind.MASK:
        column = quote_identifier(binding.column or "")
        return f"ALTER TABLE {table} MODIFY COLUMN {column} SET MASKING POLICY {policy}"
    if not binding.on_column:
        raise InvalidBindingError(
            "Row access policy DDL needs a discriminant column",
            context={"table": binding.table, "policy": binding.policy_id},
        )
    column = quote_identifier(binding.on_column)
    return f"ALTER TABLE {table} ADD ROW ACCESS POLICY {policy} ON ({column})"


def render_unbinding_ddl(
    binding: Binding,
    database: Optional[str] = None,
    schema: Optional[str] = None,
) -> str:
    """Render the ``ALTER TABLE`` statement detaching a binding."""
    table = table_identifier(binding.table)
    if binding.kind is PolicyKind.MASK:
        column = quote_identifier(binding.column or "")
        return f"ALTER TABLE {table} MODIFY COLUMN {column} UNSET MASKING POLICY"
    policy = policy_identifier(binding.policy_id, database, schema)
    return f"ALTER TABLE {table} DROP ROW ACCESS POLICY {policy}"


def render_drop_policy_ddl(
    policy: Policy,
    database: Optional[str] = None,
    schema: Optional[str] = None,
) -> str:
    """Render ``DROP ... POLICY IF EXISTS``."""
    name = policy_identifier(policy.policy_id, database, schema)
    return f"DROP {_OBJECT_TYPES[policy.kind]} IF EXISTS {name}"


def render_tag_ddl(table: str, column: str, tag: str, value: str) -> str:
    """Render ``ALTER TABLE ... MODIFY COLUMN ... SET TAG``."""
    return (
        f"ALTER TABLE {table_identifier(table)} "
        f"MODIFY COLUMN {quote_identifier(column)} "
        f"SET TAG {table_identifier(tag)} = {quote_literal(value)}"
    )
