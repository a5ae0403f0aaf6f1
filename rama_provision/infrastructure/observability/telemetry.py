"""
Provision Telemetry

Translates the results of control cycles into metrics and log records. The
policies never call this module; the cycle driver hands results over after
each update.
"""

from typing import Iterable, Optional

from .logging import ProvisionLogger, get_logger
from .metrics import ProvisionMetricsCollector, get_metrics_collector
from ...domain.models import ControlKnobAction, ProvisionResult


class ProvisionTelemetryEmitter:
    """Records knob values, actions and clamp events for every cycle result."""

    def __init__(
        self,
        metrics_collector: Optional[ProvisionMetricsCollector] = None,
        logger: Optional[ProvisionLogger] = None,
    ):
        self.metrics = metrics_collector or get_metrics_collector()
        self.logger = logger or get_logger("rama_provision.telemetry")

    def emit(self, result: ProvisionResult) -> None:
        region = result.region_name

        for knob_name, knob in result.control_knobs.items():
            self.metrics.set_gauge("rama_control_knob_value", knob.value, {
                "region": region,
                "region_type": result.region_type.value,
                "knob": knob_name.value,
            })
            self.metrics.increment_counter("rama_control_knob_actions_total", {
                "region": region,
                "action": knob.action.value,
            })

        for indicator, delta in result.indicator_deltas.items():
            self.metrics.set_gauge("rama_indicator_delta", delta.value, {
                "region": region,
                "indicator": indicator,
            })

        self.record_unavailable(region, result.skipped_indicators)

        knob = result.knob()
        if knob is not None and knob.action == ControlKnobAction.AT_LIMIT:
            self.metrics.increment_counter("rama_knob_at_limit_total", {
                "region": region,
                "reason": result.clamp_reason.value,
            })
            self.logger.warning("Control knob held at resource limit", extra={
                "region_name": region,
                "value": knob.value,
                "clamp_reason": result.clamp_reason.value,
                "final_delta": result.final_delta,
            })

    def record_unavailable(self, region_name: str, indicators: Iterable[str]) -> None:
        for indicator in indicators:
            self.metrics.increment_counter("rama_indicator_unavailable_total", {
                "region": region_name,
                "indicator": indicator,
            })

    def record_failure(self, region_name: str, error: Exception) -> None:
        error_code = getattr(error, "error_code", None) or type(error).__name__
        self.metrics.increment_counter("rama_cycle_failures_total", {
            "region": region_name,
            "error_code": error_code,
        })
