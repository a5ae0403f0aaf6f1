"""
Domain Layer - Core domain models and interfaces

Value objects describing regions, indicators and control knobs, plus the
contracts of the collaborators the controller depends on.
"""

from .models import (
    RegionType,
    RegionInfo,
    PodSet,
    IndicatorValue,
    Indicator,
    ControlKnobName,
    ControlKnobAction,
    ControlKnobValue,
    ControlKnob,
    ResourceEssentials,
    ControlEssentials,
    FirstOrderPIDParams,
    AdjustmentDirection,
    AdjustmentDelta,
    FinalDelta,
    ClampReason,
    IncreaseAggregation,
    ProvisionResult,
)
from .interfaces import MetricSource, MembershipSource, RegionRegistry

__all__ = [
    "RegionType",
    "RegionInfo",
    "PodSet",
    "IndicatorValue",
    "Indicator",
    "ControlKnobName",
    "ControlKnobAction",
    "ControlKnobValue",
    "ControlKnob",
    "ResourceEssentials",
    "ControlEssentials",
    "FirstOrderPIDParams",
    "AdjustmentDirection",
    "AdjustmentDelta",
    "FinalDelta",
    "ClampReason",
    "IncreaseAggregation",
    "ProvisionResult",
    "MetricSource",
    "MembershipSource",
    "RegionRegistry",
]
