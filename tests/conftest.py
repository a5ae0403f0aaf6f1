"""
Shared fixtures for the provisioning controller tests.
"""

import pytest

from rama_provision.control_reasoning.policy_factory import default_rama_config
from rama_provision.control_reasoning.policy_rama import PolicyRama
from rama_provision.domain.models import (
    ControlEssentials,
    ControlKnobName,
    ControlKnobValue,
    IndicatorValue,
    RegionInfo,
    RegionType,
    ResourceEssentials,
)
from rama_provision.infrastructure.metric_source import StaticMetricSource
from rama_provision.infrastructure.observability.logging import (
    ROOT_LOGGER_NAME,
    LogLevel,
    MemoryLogHandler,
    get_logger,
    reset_logging,
)
from rama_provision.infrastructure.observability.metrics import reset_metrics_collector
from rama_provision.infrastructure.region_registry import InMemoryRegionRegistry

KNOB = ControlKnobName.NON_RECLAIMED_CPU_SIZE


@pytest.fixture(autouse=True)
def clean_observability():
    """Every test starts with fresh loggers and metrics."""
    reset_logging()
    reset_metrics_collector()
    yield
    reset_logging()
    reset_metrics_collector()


@pytest.fixture
def log_records():
    """Capture every record reaching the root logger."""
    handler = MemoryLogHandler()
    root = get_logger(ROOT_LOGGER_NAME)
    root.set_level(LogLevel.DEBUG)
    root.add_handler(handler)
    return handler


@pytest.fixture
def registry():
    return InMemoryRegionRegistry()


@pytest.fixture
def rama_config():
    return default_rama_config()


@pytest.fixture
def resource():
    return ResourceEssentials(enable_reclaim=True, resource_upper_bound=90.0, resource_lower_bound=4.0)


def knob_at(value):
    return {KNOB: ControlKnobValue(value=value)}


def control_with(knob_value, readings, reclaim_overlap=False):
    """Build control essentials from ``{name: (current, target)}``."""
    return ControlEssentials(
        control_knobs=knob_at(knob_value),
        indicators={name: IndicatorValue(current=c, target=t) for name, (c, t) in readings.items()},
        reclaim_overlap=reclaim_overlap,
    )


@pytest.fixture
def make_policy(registry, rama_config):
    """Factory for policies of a populated region."""

    def _make(region_type=RegionType.SHARE, name="share-0", config=None, pods=None):
        registry.set_region_info(RegionInfo(region_name=name, region_type=region_type, owner_pool_name="share"))
        policy = PolicyRama(name, region_type, "share", config or rama_config, registry)
        policy.set_pod_set(pods if pods is not None else {"pod-1": {"container-1"}})
        return policy

    return _make


@pytest.fixture
def metric_source():
    return StaticMetricSource()


@pytest.fixture
def build_control():
    return control_with
