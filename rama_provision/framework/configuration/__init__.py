"""
Configuration Management

Type-safe settings for the provisioning controller with layered YAML and
environment variable sources, validation and hot-reloading.
"""

from .models import (
    PIDParametersConfiguration,
    IndicatorTargetConfiguration,
    PolicyRamaConfiguration,
    ProvisionConfiguration,
    LoggingConfiguration,
    RootConfiguration,
)

from .sources import (
    ConfigurationSource,
    DictConfigurationSource,
    YAMLConfigurationSource,
    EnvironmentConfigurationSource,
)

from .validation import (
    ConfigurationValidator,
    ConfigurationValidationError,
)

from .core import ProvisionSettings

from .builder import ConfigurationBuilder

from .utils import (
    load_configuration_from_file,
    load_default_configuration,
    configure_logging,
)

__all__ = [
    # Models
    'PIDParametersConfiguration',
    'IndicatorTargetConfiguration',
    'PolicyRamaConfiguration',
    'ProvisionConfiguration',
    'LoggingConfiguration',
    'RootConfiguration',

    # Sources
    'ConfigurationSource',
    'DictConfigurationSource',
    'YAMLConfigurationSource',
    'EnvironmentConfigurationSource',

    # Validation
    'ConfigurationValidator',
    'ConfigurationValidationError',

    # Core
    'ProvisionSettings',

    # Builder
    'ConfigurationBuilder',

    # Utilities
    'load_configuration_from_file',
    'load_default_configuration',
    'configure_logging',
]
