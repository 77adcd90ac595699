# src/i18n_checker/managers/config_manager.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..model import CheckerSettings
from ..utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Manages the checker's configuration.
    It loads settings from a JSON file and allows for in-memory modifications;
    `to_settings()` freezes the current state into a CheckerSettings object.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else PathUtils.get_settings_file()
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized from %s.", self.config_path)

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire current configuration dictionary."""
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'http.timeout'.
        """
        keys = key_path.split('.')
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration.
        e.g., 'logging.level', 'INFO'
        """
        keys = key_path.split('.')
        d = self._config
        # Navigate to the second-to-last dictionary
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        # Cast the new value to the type of the old one, if there is one
        original_value = d.get(keys[-1])
        if original_value is not None:
            try:
                value = type(original_value)(value)
            except (ValueError, TypeError):
                logger.warning(
                    "Could not cast new value for '%s' to type %s. Storing as given.",
                    key_path, type(original_value).__name__
                )

        d[keys[-1]] = value
        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    def reset(self) -> None:
        """
        Resets the in-memory configuration from the settings file.
        A missing or unreadable file gives an empty configuration, so defaults apply.
        """
        if not self.config_path.exists():
            logger.warning("Settings file not found at %s. Using defaults.", self.config_path)
            self._config = {}
            return
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.info("Configuration has been (re)loaded from %s.", self.config_path.name)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s: %s", self.config_path, e, exc_info=True)
            self._config = {}

    def to_settings(self) -> CheckerSettings:
        """Builds the immutable settings object handed to controllers and services."""
        defaults = CheckerSettings()
        return CheckerSettings(
            templates_file=self.get_nested("templates.file", defaults.templates_file),
            log_level=self.get_nested("logging.level", defaults.log_level),
            request_timeout=self.get_nested("http.timeout", defaults.request_timeout),
            user_agent=self.get_nested("http.user_agent", defaults.user_agent),
            workers=self.get_nested("checker.workers", defaults.workers),
        )
