"""
Rama Provision Policy

Adjusts the non-reclaimed CPU size of a region from the performance indicators
configured for its region type.

Per cycle:
- every configured indicator is evaluated on its own (deadband, PD law, ramp clamp)
- the arbiter merges the per-indicator deltas into one adjustment
- the adjustment is added to the current knob and clamped to the resource bounds
- with reclaim disabled the knob is pinned to upper bound minus reserved

Nothing is mutated unless the whole cycle succeeds: a configuration error or a
complete lack of indicator readings leaves both the knob and the derivative
carry as they were.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .arbiter import MultiIndicatorArbiter
from .indicator_evaluator import IndicatorEvaluator
from .provision_policy import PolicyState, ProvisionPolicy
from ..domain.consts import DEFAULT_CONTROL_INTERVAL_SECONDS
from ..domain.interfaces import RegionRegistry
from ..domain.models import (
    AdjustmentDelta,
    ClampReason,
    ControlEssentials,
    ControlKnob,
    ControlKnobAction,
    ControlKnobName,
    ControlKnobValue,
    FirstOrderPIDParams,
    IncreaseAggregation,
    ProvisionResult,
    RegionType,
    ResourceEssentials,
)
from ..infrastructure.exceptions import (
    ConfigurationError,
    IndicatorUnavailableError,
    PolicyStateError,
)
from ..infrastructure.region_registry import InMemoryRegionRegistry


@dataclass
class RamaPolicyConfig:
    """Static configuration of the Rama policy."""
    region_indicators: Dict[RegionType, List[str]] = field(default_factory=dict)
    pid_parameters: Dict[str, FirstOrderPIDParams] = field(default_factory=dict)
    control_interval: float = DEFAULT_CONTROL_INTERVAL_SECONDS
    increase_aggregation: IncreaseAggregation = IncreaseAggregation.MAX

    def indicators_for(self, region_type: RegionType) -> List[str]:
        """
        Raises:
            ConfigurationError: If the region type has no indicator list
        """
        if region_type not in self.region_indicators:
            raise ConfigurationError(
                f"No indicators configured for region type {region_type.value}",
                error_code="UNKNOWN_REGION_TYPE",
                context={"region_type": region_type.value},
            )
        return list(self.region_indicators[region_type])

    def params_for(self, indicator: str) -> FirstOrderPIDParams:
        """
        Raises:
            ConfigurationError: If the indicator has no response parameters
        """
        params = self.pid_parameters.get(indicator)
        if params is None:
            raise ConfigurationError(
                f"Indicator {indicator} has no response parameters",
                indicator=indicator,
                error_code="UNMAPPED_INDICATOR",
            )
        return params


def _clamp_to_bounds(value: float, resource: ResourceEssentials) -> Tuple[float, ClampReason]:
    if value > resource.resource_upper_bound:
        return resource.resource_upper_bound, ClampReason.UPPER_BOUND
    if value < resource.resource_lower_bound:
        return resource.resource_lower_bound, ClampReason.LOWER_BOUND
    return value, ClampReason.NONE


def _resolve_action(previous: float, value: float, clamped: bool) -> ControlKnobAction:
    if clamped:
        return ControlKnobAction.AT_LIMIT
    if value > previous:
        return ControlKnobAction.INCREASE
    if value < previous:
        return ControlKnobAction.DECREASE
    return ControlKnobAction.NONE


class PolicyRama(ProvisionPolicy):
    """Indicator-driven provision policy for one region."""

    knob_name = ControlKnobName.NON_RECLAIMED_CPU_SIZE

    def __init__(
        self,
        region_name: str,
        region_type: RegionType,
        owner_pool_name: str,
        config: RamaPolicyConfig,
        registry: Optional[RegionRegistry] = None,
    ):
        super().__init__(region_name, region_type, owner_pool_name, registry or InMemoryRegionRegistry())
        self.config = config
        self.evaluator = IndicatorEvaluator(config.control_interval)
        self.arbiter = MultiIndicatorArbiter(config.increase_aggregation)

        self.logger.info("Rama policy initialized", extra={
            "region_name": region_name,
            "region_type": region_type.value,
            "owner_pool_name": owner_pool_name,
            "indicators": self.config.region_indicators.get(region_type, []),
        })

    def update(self) -> ProvisionResult:
        """
        Run one control cycle.

        Returns:
            ProvisionResult: The adjusted knob plus what led to it

        Raises:
            PolicyStateError: If no essentials were set
            ConfigurationError: On zero targets, unknown region types,
                unmapped indicators or a missing knob
            IndicatorUnavailableError: If none of the region's indicators
                could be read
        """
        if self._resource_essentials is None or self._control_essentials is None:
            raise PolicyStateError(
                "Update called before essentials were set",
                region_name=self.region_name,
                state=self.state.value,
            )

        resource = self._resource_essentials
        control = self._control_essentials

        with self.registry.region_lock(self.region_name), self.logger.region_context(self.region_name):
            previous = self._current_knob(control)

            if not resource.enable_reclaim:
                result, carry = self._pin_without_reclaim(previous, resource, control), {}
            elif not self._pod_set:
                result, carry = self._hold_empty_region(previous, resource, control), {}
            else:
                result, carry = self._regulate(previous, resource, control)

            for indicator, error in carry.items():
                self.registry.set_previous_error(self.region_name, indicator, error)
            self.registry.set_control_knob(self.region_name, result.control_knobs)

            self._control_knob_adjusted = result.control_knobs
            self.state = PolicyState.UPDATED

            knob = result.control_knobs[self.knob_name]
            log = self.logger.warning if knob.action == ControlKnobAction.AT_LIMIT else self.logger.info
            log("Control knob updated", extra={
                "previous": previous.value,
                "value": knob.value,
                "action": knob.action.value,
                "final_delta": result.final_delta,
                "clamp_reason": result.clamp_reason.value,
                "skipped_indicators": result.skipped_indicators,
            })
            return result

    def _current_knob(self, control: ControlEssentials) -> ControlKnobValue:
        knob = control.control_knobs.get(self.knob_name)
        if knob is None and self._control_knob_adjusted is not None:
            knob = self._control_knob_adjusted.get(self.knob_name)
        if knob is None:
            checkpoint = self.registry.get_control_knob(self.region_name) or {}
            knob = checkpoint.get(self.knob_name)
        if knob is None:
            raise ConfigurationError(
                f"No {self.knob_name.value} knob available for region {self.region_name}",
                region_name=self.region_name,
                error_code="MISSING_CONTROL_KNOB",
            )
        return knob

    def _build_result(
        self,
        value: float,
        action: ControlKnobAction,
        control: ControlEssentials,
        clamp_reason: ClampReason,
        final_delta: float = 0.0,
        indicator_deltas: Optional[Dict[str, AdjustmentDelta]] = None,
        skipped: Optional[List[str]] = None,
    ) -> ProvisionResult:
        knobs: ControlKnob = dict(control.control_knobs)
        knobs[self.knob_name] = ControlKnobValue(value=value, action=action)
        return ProvisionResult(
            region_name=self.region_name,
            region_type=self.region_type,
            control_knobs=knobs,
            final_delta=final_delta,
            indicator_deltas=indicator_deltas or {},
            skipped_indicators=skipped or [],
            clamp_reason=clamp_reason,
        )

    def _pin_without_reclaim(
        self, previous: ControlKnobValue, resource: ResourceEssentials, control: ControlEssentials
    ) -> ProvisionResult:
        pinned = resource.resource_upper_bound - resource.reserved_for_allocate
        value, bound = _clamp_to_bounds(pinned, resource)
        action = _resolve_action(previous.value, value, bound != ClampReason.NONE)
        return self._build_result(value, action, control, ClampReason.RECLAIM_DISABLED)

    def _hold_empty_region(
        self, previous: ControlKnobValue, resource: ResourceEssentials, control: ControlEssentials
    ) -> ProvisionResult:
        value, bound = _clamp_to_bounds(previous.value, resource)
        action = ControlKnobAction.AT_LIMIT if bound != ClampReason.NONE else ControlKnobAction.NONE
        return self._build_result(value, action, control, ClampReason.EMPTY_REGION)

    def _regulate(
        self, previous: ControlKnobValue, resource: ResourceEssentials, control: ControlEssentials
    ) -> Tuple[ProvisionResult, Dict[str, float]]:
        names = self.config.indicators_for(self.region_type)

        deltas: Dict[str, AdjustmentDelta] = {}
        skipped: List[str] = []
        for name in names:
            params = self.config.params_for(name)
            reading = control.indicators.get(name)
            if reading is None:
                skipped.append(name)
                continue
            previous_error = self.registry.get_previous_error(self.region_name, name)
            deltas[name] = self.evaluator.evaluate(name, reading, params, previous_error)

        if skipped:
            if not deltas:
                raise IndicatorUnavailableError(
                    f"No indicator readings available for region {self.region_name}",
                    indicators=skipped,
                    region_name=self.region_name,
                )
            self.logger.warning("Indicators unavailable, treated as in-band", extra={
                "indicators": skipped,
            })

        final = self.arbiter.combine(deltas.values(), control.reclaim_overlap)

        unclamped = previous.value + final.value
        value, bound = _clamp_to_bounds(unclamped, resource)
        action = _resolve_action(previous.value, value, bound != ClampReason.NONE)

        if bound != ClampReason.NONE:
            clamp_reason = bound
        elif final.suppressed_by_overlap:
            clamp_reason = ClampReason.RECLAIM_OVERLAP
        else:
            clamp_reason = ClampReason.NONE

        result = self._build_result(
            value, action, control, clamp_reason,
            final_delta=final.value,
            indicator_deltas=deltas,
            skipped=skipped,
        )
        return result, {name: delta.error for name, delta in deltas.items()}
