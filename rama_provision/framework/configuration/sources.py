"""
Configuration sources for loading configuration data.
"""

import os
import yaml
from abc import ABC, abstractmethod
from typing import Dict, Any, Union, Optional
from pathlib import Path

from ...infrastructure.exceptions import ConfigurationError

# Top-level sections an environment variable may address
ENVIRONMENT_SECTIONS = ('logging', 'provision')


class ConfigurationSource(ABC):
    """Abstract base class for configuration sources."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load configuration data from the source."""
        pass

    @abstractmethod
    def get_priority(self) -> int:
        """Get the priority of this source (higher number = higher priority)."""
        pass


class DictConfigurationSource(ConfigurationSource):
    """In-memory configuration source, mostly for tests and embedding."""

    def __init__(self, data: Dict[str, Any], priority: int = 50):
        self.data = data
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        return dict(self.data)

    def get_priority(self) -> int:
        return self.priority


class YAMLConfigurationSource(ConfigurationSource):
    """YAML file configuration source."""

    def __init__(self, file_path: Union[str, Path], priority: int = 100):
        self.file_path = Path(file_path)
        self.priority = priority
        self._last_modified: Optional[float] = None

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.file_path}",
                config_path=str(self.file_path),
                error_code="CONFIG_FILE_NOT_FOUND",
            )

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {self.file_path}",
                config_path=str(self.file_path),
                error_code="INVALID_YAML",
                context={"yaml_error": str(e)},
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error reading configuration file: {self.file_path}",
                config_path=str(self.file_path),
                error_code="CONFIG_READ_ERROR",
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {self.file_path}",
                config_path=str(self.file_path),
                error_code="INVALID_YAML",
            )

        self._last_modified = self.file_path.stat().st_mtime
        return data

    def get_priority(self) -> int:
        return self.priority

    def has_changed(self) -> bool:
        """Check if the file has been modified since last load."""
        if not self.file_path.exists():
            return False

        current_modified = self.file_path.stat().st_mtime
        if self._last_modified is None:
            self._last_modified = current_modified
            return False

        if current_modified != self._last_modified:
            self._last_modified = current_modified
            return True

        return False


class EnvironmentConfigurationSource(ConfigurationSource):
    """
    Environment variable configuration source.

    ``RAMA_PROVISION_CONTROL_INTERVAL=2`` sets ``provision.control_interval``;
    the first word after the prefix selects the section, the rest is the key.
    """

    def __init__(self, prefix: str = "RAMA_", priority: int = 200):
        self.prefix = prefix.upper()
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.prefix):
                continue
            config_key = key[len(self.prefix):].lower()
            section, _, field_name = config_key.partition('_')
            if section not in ENVIRONMENT_SECTIONS or not field_name:
                continue
            config.setdefault(section, {})[field_name] = self._parse_value(value)

        return config

    def _parse_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get_priority(self) -> int:
        return self.priority
