"""
Control & Reasoning Layer - indicator-driven provisioning

Deadband policy, per-indicator PD evaluation, multi-indicator arbitration and
the region provision policies built from them.
"""

from .deadband import in_band, deadband_thresholds
from .indicator_evaluator import IndicatorEvaluator, normalized_error
from .arbiter import MultiIndicatorArbiter
from .provision_policy import ProvisionPolicy, PolicyState
from .policy_rama import PolicyRama, RamaPolicyConfig
from .policy_factory import create_provision_policy, default_rama_config, register_policy
from .indicator_collector import collect_indicators

__all__ = [
    "in_band",
    "deadband_thresholds",
    "IndicatorEvaluator",
    "normalized_error",
    "MultiIndicatorArbiter",
    "ProvisionPolicy",
    "PolicyState",
    "PolicyRama",
    "RamaPolicyConfig",
    "create_provision_policy",
    "default_rama_config",
    "register_policy",
    "collect_indicators",
]
