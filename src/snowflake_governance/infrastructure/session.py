"""Snowpark session creation from SnowflakeConfig."""

from snowflake.snowpark import Session

from snowflake_governance.core.config.models import SnowflakeConfig
from snowflake_governance.core.exceptions import ConfigurationError
from snowflake_governance.utils.logging import get_logger

logger = get_logger(__name__)


def create_session(config: SnowflakeConfig) -> Session:
    """Open a Snowpark session.

    Raises:
        ConfigurationError: If the connection cannot be established
    """
    logger.info(
        "Creating Snowflake session",
        extra={"account": config.account, "role": config.role},
    )
    try:
        return Session.builder.configs(config.connection_parameters()).create()
    except Exception as exc:
        raise ConfigurationError(
            "Failed to create Snowflake session",
            context={"account": config.account, "user": config.user},
            original_error=exc,
        ) from exc
