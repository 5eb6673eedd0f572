"""Configuration manager for loading and validating .flowpath.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from pydantic import ValidationError

from flowpath.domain.config import (
    BatchPolicy,
    BatchSettings,
    FlowPathConfig,
    RetryPolicy,
    RetrySettings,
)
from flowpath.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".flowpath.yml"

# (section, key) per environment variable
ENV_OVERRIDES = {
    "FLOWPATH_RETRY_MAX_ATTEMPTS": ("retry", "max_attempts"),
    "FLOWPATH_RETRY_BASE_DELAY": ("retry", "base_delay"),
    "FLOWPATH_BATCH_CONCURRENCY": ("batch", "concurrency"),
    "FLOWPATH_BATCH_RETRIES": ("batch", "retries"),
    "FLOWPATH_BATCH_RETRY_DELAY": ("batch", "retry_delay"),
    "FLOWPATH_BATCH_TIMEOUT": ("batch", "timeout"),
}


class ConfigManager:
    """Manages retry/batch defaults from .flowpath.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .flowpath.yml file (searched from current directory upwards)
    3. Environment variables (FLOWPATH_*)
    4. Keyword overrides passed to retry_policy()/batch_policy()
    """

    DEFAULT_CONFIG = {
        "retry": {
            "max_attempts": 3,
            "base_delay": 1.0,
            "exponential_backoff": False,
        },
        "batch": {
            "concurrency": None,
            "retries": 0,
            "retry_delay": 1.0,
            "exponential_backoff": False,
            "timeout": None,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .flowpath.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: FlowPathConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .flowpath.yml starting from the current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> FlowPathConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                if not isinstance(file_config, dict):
                    raise ValueError("top-level YAML value must be a mapping")
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError, ValueError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)
        return FlowPathConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply FLOWPATH_* environment variable overrides"""
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                logger.debug(f"Overriding {section}.{key} from {env_name}")
                config.setdefault(section, {})[key] = value
        return config

    def get_retry_settings(self) -> RetrySettings:
        """Get retry defaults"""
        return self.config.retry

    def get_batch_settings(self) -> BatchSettings:
        """Get batch defaults"""
        return self.config.batch

    def retry_policy(self, **overrides: Any) -> RetryPolicy:
        """Build a RetryPolicy from configured defaults

        Args:
            **overrides: RetryPolicy fields (e.g. retry_if, on_retry) taking precedence

        Returns:
            Validated retry policy

        Raises:
            InvalidArgumentError: If an override is invalid
        """
        return RetryPolicy.from_options(None, **{**self.config.retry.model_dump(), **overrides})

    def batch_policy(self, process: Callable[..., Any], **overrides: Any) -> BatchPolicy:
        """Build a BatchPolicy from configured defaults

        Args:
            process: Item processing function
            **overrides: BatchPolicy fields (e.g. on_progress) taking precedence

        Returns:
            Validated batch policy

        Raises:
            InvalidArgumentError: If an override is invalid
        """
        return BatchPolicy.from_options(
            None, process=process, **{**self.config.batch.model_dump(), **overrides}
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "batch.concurrency" or "retry")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config.model_dump()
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
