"""
Utility functions for common configuration patterns.
"""

from typing import Union
from pathlib import Path

from .builder import ConfigurationBuilder
from .core import ProvisionSettings
from .models import LoggingConfiguration
from ...infrastructure.observability import FileLogHandler, LogLevel, ProvisionLogger, configure_default_logging


def load_configuration_from_file(file_path: Union[str, Path], enable_hot_reload: bool = False) -> ProvisionSettings:
    """
    Load settings from a YAML file with environment variable overrides.

    Args:
        file_path: Path to the YAML configuration file
        enable_hot_reload: Whether to poll the file for changes

    Returns:
        ProvisionSettings instance
    """
    return (ConfigurationBuilder()
            .add_yaml_source(file_path, 100)
            .add_environment_source("RAMA_", 200)
            .enable_hot_reload(enable_hot_reload)
            .build())


def load_default_configuration() -> ProvisionSettings:
    """Load settings from environment variables only."""
    return ConfigurationBuilder().add_environment_source("RAMA_", 200).build()


def configure_logging(config: LoggingConfiguration) -> ProvisionLogger:
    """Install the root log handlers described by a logging configuration."""
    log_file = config.file_path if config.output in ('file', 'both') else None
    root = configure_default_logging(
        level=LogLevel(config.level),
        use_json=config.format == 'json',
        log_file=log_file,
    )
    if config.output == 'file':
        root.handlers = [h for h in root.handlers if isinstance(h, FileLogHandler)]
    return root
