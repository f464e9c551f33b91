"""Pytest configuration and fixtures."""

from unittest.mock import Mock

import pytest
from snowflake.snowpark import Session

from snowflake_governance.core.session import CallerContext
from snowflake_governance.policies.catalog import fmg_hierarchy, fmg_registry


@pytest.fixture
def mock_session():
    """Create a mock Snowflake session."""
    session = Mock(spec=Session)
    session.sql = Mock(return_value=Mock(collect=Mock(return_value=[])))
    session.get_current_role = Mock(return_value='"FMG_ANALYST"')
    session.get_current_user = Mock(return_value='"FMG_DEMO_ANALYST"')
    return session


@pytest.fixture
def registry():
    """Registry preloaded with the FMG workshop policies."""
    return fmg_registry()


@pytest.fixture
def hierarchy():
    """FMG role hierarchy."""
    return fmg_hierarchy()


@pytest.fixture
def admin():
    """Caller with the FMG_ADMIN role."""
    return CallerContext(role="FMG_ADMIN", user="FMG_DEMO_ADMIN")


@pytest.fixture
def analyst():
    """Caller with the FMG_ANALYST role."""
    return CallerContext(role="FMG_ANALYST", user="FMG_DEMO_ANALYST")


@pytest.fixture
def viewer():
    """Caller with the FMG_VIEWER role."""
    return CallerContext(role="FMG_VIEWER", user="FMG_DEMO_VIEWER")
