"""Configuration management for recurrence_lite."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .lite_rrule_expander import RRuleExpanderConfig

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class ConfigManager:
    """Manages expansion configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.debug(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - RECURRENCE_LITE_MAX_OCCURRENCES -> 'max_occurrences_per_window' (int > 0)
        - RECURRENCE_LITE_ANCHOR_ADVANCE -> 'enable_anchor_advance' (bool)

        Returns:
            Configuration dictionary accepted by load_expander_config
        """
        cfg: dict[str, Any] = {}

        max_occurrences = os.environ.get("RECURRENCE_LITE_MAX_OCCURRENCES")
        if max_occurrences:
            try:
                value = int(max_occurrences)
                if value <= 0:
                    raise ValueError(value)
                cfg["max_occurrences_per_window"] = value
            except ValueError:
                logger.warning(
                    "Invalid RECURRENCE_LITE_MAX_OCCURRENCES=%r; ignoring", max_occurrences
                )

        anchor_advance = os.environ.get("RECURRENCE_LITE_ANCHOR_ADVANCE")
        if anchor_advance:
            flag = anchor_advance.strip().lower()
            if flag in _TRUE_VALUES:
                cfg["enable_anchor_advance"] = True
            elif flag in _FALSE_VALUES:
                cfg["enable_anchor_advance"] = False
            else:
                logger.warning("Invalid RECURRENCE_LITE_ANCHOR_ADVANCE=%r; ignoring", anchor_advance)

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()

    def load_expander_config(self) -> RRuleExpanderConfig:
        """Load configuration and convert it into an ``RRuleExpanderConfig``."""
        return build_expander_config(self.load_full_config())


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)


def build_expander_config(config: Any) -> RRuleExpanderConfig:
    """Create an ``RRuleExpanderConfig`` from a dict or settings object."""
    defaults = RRuleExpanderConfig()
    return RRuleExpanderConfig(
        max_occurrences_per_window=get_config_value(
            config, "max_occurrences_per_window", defaults.max_occurrences_per_window
        ),
        enable_anchor_advance=get_config_value(
            config, "enable_anchor_advance", defaults.enable_anchor_advance
        ),
        count_epsilon_microseconds=get_config_value(
            config, "count_epsilon_microseconds", defaults.count_epsilon_microseconds
        ),
    )
