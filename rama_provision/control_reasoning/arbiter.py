"""
Multi-Indicator Arbiter

Merges the deltas of every indicator governing a region into one adjustment.
Rules, first match wins:

1. No indicator asks for anything: no action.
2. Any indicator asks for more: increase. A starvation signal is never
   cancelled by slack reported elsewhere. Several increases are merged with
   the configured aggregation (largest by default).
3. Otherwise every request is a decrease: take the smallest one.
4. A decrease is suppressed while reclaimed work overlaps the region.
"""

from typing import Iterable

from ..domain.models import AdjustmentDelta, AdjustmentDirection, FinalDelta, IncreaseAggregation
from ..infrastructure.observability import get_logger


class MultiIndicatorArbiter:

    def __init__(self, increase_aggregation: IncreaseAggregation = IncreaseAggregation.MAX):
        self.increase_aggregation = increase_aggregation
        self.logger = get_logger("rama_provision.control_reasoning.arbiter")

    def combine(self, deltas: Iterable[AdjustmentDelta], reclaim_overlap: bool = False) -> FinalDelta:
        active = [d for d in deltas if not d.is_zero]
        if not active:
            return FinalDelta(value=0.0, direction=AdjustmentDirection.NONE)

        increases = [d for d in active if d.direction == AdjustmentDirection.INCREASE]
        if increases:
            if self.increase_aggregation == IncreaseAggregation.SUM:
                value = sum(d.value for d in increases)
                sources = [d.indicator for d in increases]
            else:
                winner = max(increases, key=lambda d: d.value)
                value = winner.value
                sources = [winner.indicator]

            ignored = [d.indicator for d in active if d.direction == AdjustmentDirection.DECREASE]
            if ignored:
                self.logger.debug("Decrease requests overridden by increase", extra={
                    "increase_from": sources,
                    "ignored": ignored,
                })
            return FinalDelta(value=value, direction=AdjustmentDirection.INCREASE, source_indicators=sources)

        # all decreases; the smallest magnitude is the closest to zero
        winner = max(active, key=lambda d: d.value)

        if reclaim_overlap:
            self.logger.info("Decrease suppressed by reclaim overlap", extra={
                "indicator": winner.indicator,
                "delta": winner.value,
            })
            return FinalDelta(
                value=0.0,
                direction=AdjustmentDirection.NONE,
                source_indicators=[winner.indicator],
                suppressed_by_overlap=True,
            )

        return FinalDelta(value=winner.value, direction=AdjustmentDirection.DECREASE, source_indicators=[winner.indicator])
