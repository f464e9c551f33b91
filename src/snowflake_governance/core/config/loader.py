"""Configuration loader with support for multiple sources.

Configuration is merged from, lowest to highest priority:

1. Default config file (``<config_dir>/defaults/<file>``)
2. Environment file (``<config_dir>/environments/<env>.yaml``), either the
   section named after the config file or the whole document
3. Environment variables matching model fields, with an optional prefix
4. Explicit overrides passed to load()

String values of the form ``${VAR}`` are then replaced from the environment.

Classes:
    ConfigLoader: Load and merge configurations from multiple sources
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from snowflake_governance.core.exceptions import ConfigurationError
from snowflake_governance.utils.logging import StructuredLogger, get_logger

T = TypeVar("T", bound=BaseModel)

ENVIRONMENTS = ("dev", "test", "prod")


class ConfigLoader:
    """Load and merge configurations from multiple sources.

    Attributes:
        config_dir: Directory containing configuration files
        environment: Current environment (dev, test, prod)

    Example:
        >>> loader = ConfigLoader(config_dir="config", environment="prod")
        >>> catalog = loader.load(GovernanceConfig, config_file="governance.yaml")
        >>> snowflake = loader.load_from_env(SnowflakeConfig, prefix="SNOWFLAKE_")
    """

    def __init__(
        self, config_dir: Union[str, Path] = "config", environment: str = "dev"
    ) -> None:
        """Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files
            environment: Current environment (dev, test, prod)

        Raises:
            ValueError: If environment is invalid
        """
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"Invalid environment: {environment}. "
                f"Must be one of: {', '.join(ENVIRONMENTS)}"
            )

        self.config_dir = Path(config_dir)
        self.environment = environment
        self._logger: StructuredLogger = get_logger(__name__)

        self._logger.debug(
            "Initialized ConfigLoader",
            extra={"config_dir": str(self.config_dir), "environment": environment},
        )

    def load(
        self,
        model_class: Type[T],
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_env_vars: bool = True,
        env_prefix: str = "",
    ) -> T:
        """Load configuration from every source and validate it.

        Args:
            model_class: Pydantic model class to instantiate
            config_file: Optional config file name (relative to config_dir/defaults)
            overrides: Optional dictionary of override values
            use_env_vars: Whether to load from environment variables
            env_prefix: Prefix for environment variables (e.g., "GOVERNANCE_")

        Returns:
            Instantiated and validated Pydantic model

        Raises:
            ConfigurationError: If a file is malformed or validation fails
        """
        self._logger.info(f"Loading configuration for {model_class.__name__}")
        merged: Dict[str, Any] = {}

        if config_file:
            # 1. Default config file
            default_path = self.config_dir / "defaults" / config_file
            if default_path.exists():
                merged = self._deep_merge(merged, self._load_yaml(default_path))

            # 2. Environment file, section named after the config file if present
            env_path = self.config_dir / "environments" / f"{self.environment}.yaml"
            if env_path.exists():
                env_config = self._load_yaml(env_path)
                section = Path(config_file).stem
                if section in env_config:
                    env_config = env_config[section] or {}
                merged = self._deep_merge(merged, env_config)

        # 3. Environment variables
        if use_env_vars:
            env_config = self._load_from_env(model_class, env_prefix)
            merged = self._deep_merge(merged, env_config)

        # 4. Explicit overrides
        if overrides:
            self._logger.debug(
                "Applying overrides", extra={"keys": sorted(overrides.keys())}
            )
            merged = self._deep_merge(merged, overrides)

        # Substitute ${VAR} values, then validate
        merged = self._substitute_env_vars(merged)
        return self._validate(model_class, merged)

    def load_file(self, model_class: Type[T], path: Union[str, Path]) -> T:
        """Load a single YAML file into ``model_class``, without merging."""
        data = self._substitute_env_vars(self._load_yaml(Path(path)))
        return self._validate(model_class, data)

    def load_from_env(self, model_class: Type[T], prefix: str = "") -> T:
        """Load configuration from environment variables only."""
        return self._validate(model_class, self._load_from_env(model_class, prefix))

    def load_from_dict(self, model_class: Type[T], config_dict: Dict[str, Any]) -> T:
        """Load configuration from a dictionary."""
        if not isinstance(config_dict, dict):
            raise ValueError("config_dict must be a dictionary")
        return self._validate(model_class, config_dict)

    def _validate(self, model_class: Type[T], data: Dict[str, Any]) -> T:
        try:
            config: T = model_class.model_validate(data)
        except ValidationError as e:
            self._logger.error(
                f"Configuration validation failed for {model_class.__name__}",
                extra={"errors": e.error_count()},
                exc_info=False,
            )
            raise ConfigurationError(
                f"Invalid {model_class.__name__} configuration", original_error=e
            ) from e
        self._logger.info(f"Successfully loaded {model_class.__name__}")
        return config

    def _load_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Load a YAML file that must contain a mapping.

        Raises:
            ConfigurationError: If the file is missing, unparseable or not a mapping
        """
        if not file_path.exists():
            raise ConfigurationError(
                "Config file not found", context={"path": str(file_path)}
            )

        try:
            with open(file_path, "r", encoding="utf8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                "Failed to parse YAML file",
                context={"path": str(file_path)},
                original_error=e,
            ) from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Expected YAML to parse to a dictionary, got {type(config).__name__}",
                context={"path": str(file_path)},
            )
        return config

    def _load_from_env(self, model_class: Type[T], prefix: str = "") -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        for field_name, field_info in model_class.model_fields.items():
            key = field_info.alias or field_name
            env_value = os.environ.get(f"{prefix}{key.upper()}")
            if env_value is not None:
                config[key] = self._parse_env_value(env_value)
        return config

    def _parse_env_value(self, value: str) -> Any:
        """Parse an environment variable into bool, int, float, JSON or str."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                pass

        if value.startswith("{") or value.startswith("["):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Recursively merge ``override`` into a copy of ``base``."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                # Recursively merge nested dictionaries
                result[key] = self._deep_merge(result[key], value)
            else:
                # Override value
                result[key] = value
        return result

    def _substitute_env_vars(self, value: Any) -> Any:
        """Replace ``${VAR}`` strings, recursing into dicts and lists."""
        if isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._substitute_env_vars(v) for v in value]
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var_name = value[2:-1]
            env_value = os.environ.get(env_var_name)
            if env_value is None:
                self._logger.warning(
                    f"Environment variable {env_var_name} not found, "
                    f"keeping original value: {value}"
                )
                return value
            return env_value
        return value

    def save_to_yaml(self, config: BaseModel, file_path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = config.model_dump(mode="json", by_alias=True, exclude_none=True)
        with open(file_path, "w", encoding="utf8") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        self._logger.info(f"Saved configuration to {file_path}")
