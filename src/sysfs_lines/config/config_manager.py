"""Configuration manager for loading and validating board description files."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TypeVar, Union

import yaml

from sysfs_lines.hardware.board import DEFAULT_GPIO_LINES, DEFAULT_PWM_CHIPS, GPIO_ROOT, PWM_ROOT
from sysfs_lines.hardware.paths import GpioPaths, PwmChipTable, PwmPaths

T = TypeVar("T")


logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "gpio": {
        "root": GPIO_ROOT,
        "lines": sorted(DEFAULT_GPIO_LINES),
    },
    "pwm": {
        "root": PWM_ROOT,
        "chips": {chip: list(line_ids) for chip, line_ids in DEFAULT_PWM_CHIPS.items()},
    },
}


class ConfigError(Exception):
    """Raised when configuration is invalid."""


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict) and key != "chips":
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _is_line_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class ConfigManager:
    """Manages loading and accessing the board description.

    Built-in defaults describe a Raspberry Pi; a YAML file may override the
    sysfs roots, the usable GPIO lines and the PWM chip table. A chip table
    given in the file replaces the default one as a whole.
    """

    def __init__(self, user_config_path: Optional[str] = None) -> None:
        """Initialize the configuration manager.

        Args:
            user_config_path: Optional path to a YAML board description

        Raises:
            ConfigError: If the config file doesn't exist or is invalid
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._user_config_path = user_config_path
        self._load_config()

    def _load_yaml_file(self, path: Path) -> Dict[str, Any]:
        """Load a YAML file and return its contents.

        Args:
            path: Path to YAML file

        Returns:
            Dictionary containing the YAML contents

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load config file {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return content

    def _validate_config(self) -> None:  # pylint: disable=too-many-branches
        """Validate the loaded configuration.

        Raises:
            ConfigError: If configuration is invalid
        """
        for section in ("gpio", "pwm"):
            if not isinstance(self._config.get(section), dict):
                raise ConfigError(f"'{section}' section must be a dictionary")
            if not isinstance(self._config[section].get("root"), str) or not self._config[section]["root"]:
                raise ConfigError(f"'{section}.root' must be a non-empty string")

        lines = self._config["gpio"].get("lines")
        if not isinstance(lines, list):
            raise ConfigError("'gpio.lines' must be a list")
        for line in lines:
            if not _is_line_number(line):
                raise ConfigError(f"GPIO line {line!r} must be a non-negative integer")

        chips = self._config["pwm"].get("chips")
        if not isinstance(chips, dict):
            raise ConfigError("'pwm.chips' must be a dictionary")

        normalized: Dict[int, List[int]] = {}
        seen: Dict[int, int] = {}
        for chip, line_ids in chips.items():
            # YAML keys may be quoted
            if isinstance(chip, str) and chip.isdigit():
                chip = int(chip)
            if not _is_line_number(chip):
                raise ConfigError(f"PWM chip {chip!r} must be a non-negative integer")
            if not isinstance(line_ids, list):
                raise ConfigError(f"Lines of PWM chip {chip} must be a list")
            for line_id in line_ids:
                if not _is_line_number(line_id):
                    raise ConfigError(f"PWM line {line_id!r} must be a non-negative integer")
                if line_id in seen:
                    raise ConfigError(
                        f"PWM line {line_id} is listed for chip {seen[line_id]} and chip {chip}"
                    )
                seen[line_id] = chip
            normalized[chip] = list(line_ids)

        self._config["pwm"]["chips"] = normalized

    def _load_config(self) -> None:
        """Load configuration from the user config file, if any.

        Raises:
            ConfigError: If config file doesn't exist or is invalid
        """
        if self._user_config_path is not None:
            config_path = Path(self._user_config_path)

            # Check if file exists first
            if not config_path.exists():
                raise ConfigError(f"Configuration file not found: {config_path}")

            logger.info("Loading configuration from: %s", config_path)
            self._config = _merge(self._config, self._load_yaml_file(config_path))

        self._validate_config()
        logger.debug("Configuration loaded and validated successfully")

    def get(self, key: str, default: Optional[T] = None) -> Union[Any, T]:
        """Get a configuration value by key.

        Supports dot notation for nested values (e.g., 'gpio.root')

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value: Any = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default  # type: ignore[return-value]

        return value

    def get_gpio_paths(self) -> GpioPaths:
        """Build the GPIO path resolver described by the configuration."""
        return GpioPaths(root=self._config["gpio"]["root"], allowed_ids=self._config["gpio"]["lines"])

    def get_pwm_paths(self) -> PwmPaths:
        """Build the PWM path resolver described by the configuration."""
        return PwmPaths(
            root=self._config["pwm"]["root"],
            table=PwmChipTable(self._config["pwm"]["chips"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Get the entire configuration as a dictionary.

        Returns:
            Complete configuration dictionary
        """
        return copy.deepcopy(self._config)
