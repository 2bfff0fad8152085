"""Configuration loading service.

Loads config.yaml, validates it against the Pydantic schema and falls back
to defaults when the file is missing or invalid.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from claudeye.models.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class ConfigService:
    """Service for loading and managing application configuration.

    Handles:
    - Loading config from config.yaml
    - Validating against Pydantic schema
    - Saving updated config
    """

    def __init__(self, config_path: str | Path = DEFAULT_CONFIG_PATH):
        """Initialize the config service.

        Args:
            config_path: Path to the config file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load and validate configuration.

        Returns:
            Validated AppConfig instance.
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            self._config = AppConfig()
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error reading config file: {e}, using defaults")
            self._config = AppConfig()
            return self._config

        if not isinstance(raw_config, dict):
            logger.warning(f"Config file {self.config_path} is not a mapping, using defaults")
            self._config = AppConfig()
            return self._config

        try:
            self._config = AppConfig(**raw_config)
        except ValidationError as e:
            logger.warning(f"Config validation error: {e}, using defaults")
            self._config = AppConfig()

        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Loads from disk if not already loaded.
        """
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()

    def save(self, config: AppConfig | None = None) -> bool:
        """Save configuration to disk.

        Args:
            config: Config to save. Uses current config if not provided.

        Returns:
            True if save succeeded.
        """
        config = config or self._config
        if config is None:
            return False

        try:
            config_dict = config.model_dump(mode="json")
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False


# Module-level singleton
_config_service: ConfigService | None = None


def get_config_service(config_path: str | Path = DEFAULT_CONFIG_PATH) -> ConfigService:
    """Get the global config service instance.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        ConfigService singleton.
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigService(config_path)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (for testing)."""
    global _config_service
    _config_service = None
