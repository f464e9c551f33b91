"""Tests for Snowpark session creation."""

from unittest.mock import MagicMock, patch

import pytest

from snowflake_governance.core.config import SnowflakeConfig
from snowflake_governance.core.exceptions import ConfigurationError
from snowflake_governance.infrastructure.session import create_session


def _config():
    return SnowflakeConfig.model_validate(
        {"account": "acct", "user": "deployer", "role": "FMG_ADMIN", "schema": "GOV"}
    )


def test_create_session_passes_connection_parameters():
    """Test create session passes connection parameters."""
    with patch("snowflake_governance.infrastructure.session.Session") as session_cls:
        builder = MagicMock()
        session_cls.builder.configs.return_value = builder
        builder.create.return_value = "session"

        assert create_session(_config()) == "session"
        session_cls.builder.configs.assert_called_once_with(
            {"account": "acct", "user": "deployer", "role": "FMG_ADMIN", "schema": "GOV"}
        )


def test_create_session_wraps_errors():
    """Test create session wraps errors."""
    with patch("snowflake_governance.infrastructure.session.Session") as session_cls:
        session_cls.builder.configs.return_value.create.side_effect = RuntimeError(
            "no network"
        )
        with pytest.raises(ConfigurationError) as excinfo:
            create_session(_config())
    assert excinfo.value.context == {"account": "acct", "user": "deployer"}
    assert "no network" in str(excinfo.value)
