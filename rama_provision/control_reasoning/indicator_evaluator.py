"""
Indicator Evaluator

Turns one indicator reading into a bounded knob adjustment using a first-order
PD law with sign-dependent gains.

Mathematical Implementation:
- Normalized error: e = 100 * (current - target) / target  (percent of target)
- Gains: (Kpp, Kdp) when e > 0, (Kpn, Kdn) otherwise
- Raw delta: Kp * e + Kd * (e - previous_error) / dt
- The raw delta never points against the error, and is clamped to
  [adjustment_lower_bound, adjustment_upper_bound]

Readings inside the deadband contribute nothing. The evaluator keeps no state:
the previous error comes in as an argument and the new error goes out on the
returned delta, so the caller decides where the derivative carry lives.
"""

from typing import Optional

from .deadband import in_band
from ..domain.consts import DEFAULT_CONTROL_INTERVAL_SECONDS, ERROR_SCALE
from ..domain.models import AdjustmentDelta, AdjustmentDirection, FirstOrderPIDParams, IndicatorValue
from ..infrastructure.exceptions import ConfigurationError
from ..infrastructure.observability import get_logger


def normalized_error(current: float, target: float) -> float:
    """Deviation from target in percent of target."""
    return ERROR_SCALE * (current - target) / target


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class IndicatorEvaluator:
    """Stateless per-indicator PD evaluation."""

    def __init__(self, control_interval: float = DEFAULT_CONTROL_INTERVAL_SECONDS):
        if control_interval <= 0:
            raise ValueError("control_interval must be positive")
        self.control_interval = control_interval
        self.logger = get_logger("rama_provision.control_reasoning.indicator_evaluator")

    def evaluate(
        self,
        name: str,
        indicator: IndicatorValue,
        params: FirstOrderPIDParams,
        previous_error: Optional[float] = None,
    ) -> AdjustmentDelta:
        """
        Compute the adjustment one indicator asks for.

        Args:
            name: Indicator name, carried on the result
            indicator: Current and target value
            params: Response parameters of the indicator
            previous_error: Normalized error of the previous cycle; ``None``
                disables the derivative term

        Returns:
            AdjustmentDelta: Clamped delta and direction; ``error`` holds the
            normalized error to carry into the next cycle

        Raises:
            ConfigurationError: If the target is not positive
        """
        if indicator.target <= 0:
            raise ConfigurationError(
                f"Indicator {name} has non-positive target {indicator.target}",
                indicator=name,
                error_code="INVALID_TARGET",
            )

        error = normalized_error(indicator.current, indicator.target)

        if in_band(indicator.current, indicator.target, params.deadband_lower_pct, params.deadband_upper_pct):
            self.logger.debug("Indicator inside deadband", extra={
                "indicator": name,
                "current": indicator.current,
                "target": indicator.target,
            })
            return AdjustmentDelta(indicator=name, value=0.0, direction=AdjustmentDirection.NONE, error=error)

        if error > 0:
            kp, kd = params.kpp, params.kdp
        else:
            kp, kd = params.kpn, params.kdn

        proportional = kp * error
        derivative = 0.0
        if kd != 0 and previous_error is not None:
            derivative = kd * (error - previous_error) / self.control_interval

        raw = proportional + derivative
        # the derivative term may damp the correction but never reverse it
        if error > 0:
            raw = max(raw, 0.0)
        else:
            raw = min(raw, 0.0)

        delta = _clamp(raw, params.adjustment_lower_bound, params.adjustment_upper_bound)

        if delta > 0:
            direction = AdjustmentDirection.INCREASE
        elif delta < 0:
            direction = AdjustmentDirection.DECREASE
        else:
            direction = AdjustmentDirection.NONE
            delta = 0.0

        self.logger.debug("Indicator evaluated", extra={
            "indicator": name,
            "current": indicator.current,
            "target": indicator.target,
            "error": error,
            "proportional": proportional,
            "derivative": derivative,
            "raw_delta": raw,
            "delta": delta,
        })

        return AdjustmentDelta(indicator=name, value=delta, direction=direction, error=error)
