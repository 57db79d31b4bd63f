"""Board configuration loading."""

from sysfs_lines.config.config_manager import ConfigError, ConfigManager

__all__ = ["ConfigError", "ConfigManager"]
