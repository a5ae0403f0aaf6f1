"""
Framework Layer - cycle driver and configuration management.
"""

from .configuration import ProvisionSettings, ConfigurationBuilder, load_configuration_from_file
from .provision_advisor import ProvisionAdvisor, CycleReport

__all__ = [
    "ProvisionSettings",
    "ConfigurationBuilder",
    "load_configuration_from_file",
    "ProvisionAdvisor",
    "CycleReport",
]
