"""
Infrastructure Layer - registry, metric sources, errors and observability.
"""

from .exceptions import (
    ProvisionException,
    ConfigurationError,
    InvalidBoundsError,
    IndicatorUnavailableError,
    PolicyStateError,
    RegistryError,
)
from .region_registry import InMemoryRegionRegistry
from .metric_source import StaticMetricSource

__all__ = [
    "ProvisionException",
    "ConfigurationError",
    "InvalidBoundsError",
    "IndicatorUnavailableError",
    "PolicyStateError",
    "RegistryError",
    "InMemoryRegionRegistry",
    "StaticMetricSource",
]
