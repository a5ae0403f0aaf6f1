"""
Core Domain Models

Value objects exchanged between the provisioning components: regions, indicator
readings, control knobs, per-cycle resource/control snapshots and cycle results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Set

from .consts import MAX_RAMP_DOWN_STEP, MAX_RAMP_UP_STEP


class RegionType(Enum):
    """Kinds of QoS regions. Each kind is governed by its own indicator list."""
    SHARE = "share"
    ISOLATION = "isolation"
    DEDICATED_NUMA_EXCLUSIVE = "dedicated-numa-exclusive"


class ControlKnobName(Enum):
    """Tunable resource quantities a policy may adjust."""
    NON_RECLAIMED_CPU_SIZE = "non-reclaimed-cpu-size"


class ControlKnobAction(Enum):
    """What the last cycle did to a knob."""
    NONE = "none"
    INCREASE = "increase"
    DECREASE = "decrease"
    AT_LIMIT = "at-limit"


class AdjustmentDirection(Enum):
    NONE = "none"
    INCREASE = "increase"
    DECREASE = "decrease"


class ClampReason(Enum):
    """Why the applied knob value differs from knob + arbitrated delta."""
    NONE = "none"
    LOWER_BOUND = "lower-bound"
    UPPER_BOUND = "upper-bound"
    RECLAIM_DISABLED = "reclaim-disabled"
    RECLAIM_OVERLAP = "reclaim-overlap"
    EMPTY_REGION = "empty-region"


class IncreaseAggregation(Enum):
    """How several increase requests from one region are merged."""
    MAX = "max"
    SUM = "sum"


# pod UID -> container names
PodSet = Dict[str, Set[str]]


@dataclass(frozen=True)
class RegionInfo:
    """Identity and hardware binding of a region."""
    region_name: str
    region_type: RegionType
    owner_pool_name: str = ""
    binding_numas: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class IndicatorValue:
    """One indicator reading: what was observed and what is wanted."""
    current: float
    target: float


# indicator name -> reading
Indicator = Dict[str, IndicatorValue]


@dataclass(frozen=True)
class ControlKnobValue:
    value: float
    action: ControlKnobAction = ControlKnobAction.NONE


ControlKnob = Dict[ControlKnobName, ControlKnobValue]


@dataclass(frozen=True)
class ResourceEssentials:
    """Hard constraints on the knob for one cycle."""
    enable_reclaim: bool
    resource_upper_bound: float
    resource_lower_bound: float
    reserved_for_allocate: float = 0.0


@dataclass(frozen=True)
class ControlEssentials:
    """Knob state and indicator readings for one cycle."""
    control_knobs: ControlKnob = field(default_factory=dict)
    indicators: Indicator = field(default_factory=dict)
    reclaim_overlap: bool = False


@dataclass(frozen=True)
class FirstOrderPIDParams:
    """
    Response parameters of one indicator.

    Gains are split by error sign: ``kpp``/``kdp`` apply when the indicator is
    above target, ``kpn``/``kdn`` when it is below. Adjustment bounds cap the
    knob change one indicator may request per cycle; deadband percentages
    define the no-action band ``[target*(1-lower), target*(1+upper)]``.
    """
    kpp: float
    kpn: float
    kdp: float = 0.0
    kdn: float = 0.0
    adjustment_upper_bound: float = MAX_RAMP_UP_STEP
    adjustment_lower_bound: float = -MAX_RAMP_DOWN_STEP
    deadband_lower_pct: float = 0.0
    deadband_upper_pct: float = 0.0


@dataclass(frozen=True)
class AdjustmentDelta:
    """Clamped knob change requested by one indicator."""
    indicator: str
    value: float
    direction: AdjustmentDirection
    error: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.direction == AdjustmentDirection.NONE


@dataclass(frozen=True)
class FinalDelta:
    """Outcome of arbitrating all indicator deltas of a region."""
    value: float
    direction: AdjustmentDirection
    source_indicators: List[str] = field(default_factory=list)
    suppressed_by_overlap: bool = False


@dataclass(frozen=True)
class ProvisionResult:
    """Everything one Update() decided, for callers and telemetry."""
    region_name: str
    region_type: RegionType
    control_knobs: ControlKnob
    final_delta: float = 0.0
    indicator_deltas: Dict[str, AdjustmentDelta] = field(default_factory=dict)
    skipped_indicators: List[str] = field(default_factory=list)
    clamp_reason: ClampReason = ClampReason.NONE

    def knob(self, name: ControlKnobName = ControlKnobName.NON_RECLAIMED_CPU_SIZE) -> Optional[ControlKnobValue]:
        return self.control_knobs.get(name)
