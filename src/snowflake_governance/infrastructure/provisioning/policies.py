"""Push policies from a PolicyRegistry to Snowflake.

Classes:
    PolicyProvisioner: Create, attach, detach and drop policies
"""

from typing import Dict, List, Optional

from snowflake.snowpark import Session

from snowflake_governance.infrastructure.ddl import (
    render_binding_ddl,
    render_drop_policy_ddl,
    render_policy_ddl,
    render_tag_ddl,
    render_unbinding_ddl,
)
from snowflake_governance.infrastructure.provisioning.base import BaseProvisioner
from snowflake_governance.policies.models import Binding, Policy
from snowflake_governance.policies.registry import PolicyRegistry


class PolicyProvisioner(BaseProvisioner):
    """Provision masking and row access policies.

    Policies are created in ``database.schema`` when both are given, the
    same way the workshop keeps them in ``FMG_PRODUCTION.GOVERNANCE``.

    Example:
        >>> provisioner = PolicyProvisioner(session, "FMG_PRODUCTION", "GOVERNANCE")
        >>> provisioner.deploy(fmg_registry())
        {'FMG_EMAIL_MASK': True, ...}
    """

    def __init__(
        self,
        session: Session,
        database: Optional[str] = None,
        schema: Optional[str] = None,
    ) -> None:
        """Initialize the provisioner.

        Raises:
            ValueError: If schema is given without database
        """
        super().__init__(session=session)
        if schema and not database:
            raise ValueError("Schema cannot be specified without database")
        self.database = database
        self.schema = schema

    def create_policy(self, policy: Policy) -> bool:
        """Create or replace a policy.

        Raises:
            ConfigurationError: If Snowflake rejects the DDL
        """
        self.logger.info("Creating policy", extra={"policy_id": policy.policy_id})
        self._execute_sql(
            render_policy_ddl(policy, self.database, self.schema),
            context={"policy_id": policy.policy_id},
        )
        return True

    def attach(self, binding: Binding) -> bool:
        """Attach a bound policy to its table or column."""
        self.logger.info(
            "Attaching policy",
            extra={"policy_id": binding.policy_id, "table": binding.table},
        )
        self._execute_sql(
            render_binding_ddl(binding, self.database, self.schema),
            context={"policy_id": binding.policy_id, "table": binding.table},
        )
        return True

    def detach(self, binding: Binding) -> bool:
        """Detach a policy from its table or column."""
        self._execute_sql(
            render_unbinding_ddl(binding, self.database, self.schema),
            context={"policy_id": binding.policy_id, "table": binding.table},
        )
        return True

    def drop_policy(self, policy: Policy) -> bool:
        """Drop a policy; Snowflake refuses while it is still attached."""
        self._execute_sql(
            render_drop_policy_ddl(policy, self.database, self.schema),
            context={"policy_id": policy.policy_id},
        )
        return True

    def deploy(self, registry: PolicyRegistry) -> Dict[str, bool]:
        """Create every policy, set column tags, then attach every binding.

        If an attachment fails, bindings attached earlier in this call are
        detached again before the error propagates.

        Returns:
            Mapping of policy identifier to creation status
        """
        results: Dict[str, bool] = {}
        for policy in registry.policies():
            results[policy.policy_id] = self.create_policy(policy)

        for table, column, tag, value in registry.tagged_columns():
            self._execute_sql(
                render_tag_ddl(table, column, tag, value),
                context={"table": table, "column": column},
            )

        undo: List[str] = []
        with self.transactional(rollback=undo):
            for binding in registry.bindings():
                self.attach(binding)
                undo.append(render_unbinding_ddl(binding, self.database, self.schema))

        self.logger.info("Policies deployed", extra={"results": results})
        return results

    def teardown(self, registry: PolicyRegistry) -> None:
        """Detach every binding, then drop every policy."""
        for binding in registry.bindings():
            self.detach(binding)
        for policy in registry.policies():
            self.drop_policy(policy)
