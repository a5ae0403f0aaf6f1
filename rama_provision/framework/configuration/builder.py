"""
Configuration builder for creating ProvisionSettings instances.
"""

from typing import Any, Dict, List, Union
from pathlib import Path

from .core import ProvisionSettings
from .sources import (
    ConfigurationSource,
    DictConfigurationSource,
    EnvironmentConfigurationSource,
    YAMLConfigurationSource,
)


class ConfigurationBuilder:
    """
    Builder for ProvisionSettings with multiple sources.

    Supports YAML files, environment variables, in-memory dictionaries,
    custom sources and hot-reloading.
    """

    def __init__(self):
        self._sources: List[ConfigurationSource] = []
        self._enable_hot_reload: bool = False
        self._poll_interval: float = 1.0

    def add_yaml_source(self, path: Union[str, Path], priority: int = 100) -> 'ConfigurationBuilder':
        """
        Add a YAML configuration source.

        Args:
            path: Path to the YAML configuration file
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(YAMLConfigurationSource(path, priority))
        return self

    def add_environment_source(self, prefix: str = "RAMA_", priority: int = 200) -> 'ConfigurationBuilder':
        """
        Add environment variable configuration source.

        Args:
            prefix: Environment variable prefix (default: RAMA_)
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(EnvironmentConfigurationSource(prefix, priority))
        return self

    def add_dict_source(self, data: Dict[str, Any], priority: int = 50) -> 'ConfigurationBuilder':
        self._sources.append(DictConfigurationSource(data, priority))
        return self

    def add_source(self, source: ConfigurationSource) -> 'ConfigurationBuilder':
        """Add a custom configuration source."""
        self._sources.append(source)
        return self

    def enable_hot_reload(self, enable: bool = True, poll_interval: float = 1.0) -> 'ConfigurationBuilder':
        """
        Enable or disable polling of YAML sources for changes.

        Args:
            enable: Whether to enable hot-reloading
            poll_interval: Seconds between checks
        """
        self._enable_hot_reload = enable
        self._poll_interval = poll_interval
        return self

    def build(self) -> ProvisionSettings:
        """Build the settings with all added sources loaded and merged."""
        if not self._sources:
            self.add_environment_source()

        return ProvisionSettings(self._sources.copy(), self._enable_hot_reload, self._poll_interval)
