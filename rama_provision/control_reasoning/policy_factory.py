"""
Provision Policy Factory

Resolves policy names to policy classes and provides the default Rama
configuration used when no configuration file is supplied.
"""

from typing import Dict, Optional, Type

from .policy_rama import PolicyRama, RamaPolicyConfig
from .provision_policy import ProvisionPolicy
from ..domain.consts import (
    MAX_RAMP_DOWN_STEP,
    MAX_RAMP_UP_STEP,
    METRIC_CPU_CPI_CONTAINER,
    METRIC_CPU_SCHEDWAIT,
    METRIC_MEM_BANDWIDTH_NUMA,
    POLICY_NAME_RAMA,
)
from ..domain.interfaces import RegionRegistry
from ..domain.models import FirstOrderPIDParams, RegionInfo, RegionType
from ..infrastructure.exceptions import ConfigurationError
from ..infrastructure.observability import get_logger

_POLICY_KINDS: Dict[str, Type[ProvisionPolicy]] = {
    POLICY_NAME_RAMA: PolicyRama,
}


def register_policy(name: str, policy_class: Type[ProvisionPolicy]) -> None:
    """Make a policy class available under ``name``."""
    _POLICY_KINDS[name] = policy_class


def create_provision_policy(
    policy_name: str,
    region_info: RegionInfo,
    config: RamaPolicyConfig,
    registry: Optional[RegionRegistry] = None,
) -> ProvisionPolicy:
    """
    Create a policy bound to a region.

    Args:
        policy_name: Registered policy name, e.g. ``rama``
        region_info: Identity and NUMA binding of the region
        config: Policy configuration
        registry: Registry holding cross-cycle state for the region

    Raises:
        ConfigurationError: If the policy name is not registered
    """
    policy_class = _POLICY_KINDS.get(policy_name)
    if policy_class is None:
        raise ConfigurationError(
            f"Unknown provision policy: {policy_name}",
            region_name=region_info.region_name,
            error_code="UNKNOWN_POLICY",
            context={"known_policies": sorted(_POLICY_KINDS)},
        )

    policy = policy_class(
        region_info.region_name,
        region_info.region_type,
        region_info.owner_pool_name,
        config,
        registry,
    )
    policy.set_binding_numas(region_info.binding_numas)

    get_logger("rama_provision.policy_factory").debug("Provision policy created", extra={
        "policy": policy_name,
        "region_name": region_info.region_name,
    })
    return policy


def default_rama_config() -> RamaPolicyConfig:
    """Indicator table and response parameters suitable for a typical node."""
    ramp = dict(
        adjustment_upper_bound=MAX_RAMP_UP_STEP,
        adjustment_lower_bound=-MAX_RAMP_DOWN_STEP,
    )
    return RamaPolicyConfig(
        region_indicators={
            RegionType.SHARE: [METRIC_CPU_SCHEDWAIT],
            RegionType.DEDICATED_NUMA_EXCLUSIVE: [METRIC_CPU_CPI_CONTAINER, METRIC_MEM_BANDWIDTH_NUMA],
        },
        pid_parameters={
            METRIC_CPU_SCHEDWAIT: FirstOrderPIDParams(
                kpp=10.0, kpn=1.0, deadband_lower_pct=0.8, deadband_upper_pct=0.05, **ramp
            ),
            METRIC_CPU_CPI_CONTAINER: FirstOrderPIDParams(
                kpp=10.0, kpn=1.0, deadband_lower_pct=0.95, deadband_upper_pct=0.02, **ramp
            ),
            METRIC_MEM_BANDWIDTH_NUMA: FirstOrderPIDParams(
                kpp=10.0, kpn=1.0, deadband_lower_pct=0.95, deadband_upper_pct=0.02, **ramp
            ),
        },
    )
