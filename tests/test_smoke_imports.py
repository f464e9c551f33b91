"""Smoke tests for package imports."""

import snowflake_governance
from snowflake_governance import api
from snowflake_governance.core import config, exceptions, session
from snowflake_governance.infrastructure import ddl, provisioning
from snowflake_governance.policies import catalog


def test_package_version():
    """Test package version."""
    assert snowflake_governance.__version__ == "0.1.0"


def test_public_modules_import():
    """Test public modules import."""
    assert hasattr(api, "GovernanceService")
    assert hasattr(config, "ConfigLoader")
    assert hasattr(exceptions, "GovernanceError")
    assert hasattr(session, "CallerContext")
    assert hasattr(ddl, "render_policy_ddl")
    assert hasattr(provisioning, "PolicyProvisioner")
    assert hasattr(catalog, "fmg_registry")
