"""
Tests for multi-indicator arbitration.
"""

import pytest

from rama_provision.control_reasoning.arbiter import MultiIndicatorArbiter
from rama_provision.domain.models import AdjustmentDelta, AdjustmentDirection, IncreaseAggregation


def up(name, value):
    return AdjustmentDelta(indicator=name, value=value, direction=AdjustmentDirection.INCREASE)


def down(name, value):
    return AdjustmentDelta(indicator=name, value=value, direction=AdjustmentDirection.DECREASE)


def none(name):
    return AdjustmentDelta(indicator=name, value=0.0, direction=AdjustmentDirection.NONE)


class TestMultiIndicatorArbiter:

    def setup_method(self):
        self.arbiter = MultiIndicatorArbiter()

    def test_no_deltas_means_no_action(self):
        final = self.arbiter.combine([])
        assert final.value == 0.0
        assert final.direction == AdjustmentDirection.NONE

    def test_all_zero_means_no_action(self):
        final = self.arbiter.combine([none("a"), none("b")])
        assert final.direction == AdjustmentDirection.NONE
        assert final.source_indicators == []

    def test_largest_increase_wins(self):
        final = self.arbiter.combine([up("a", 3.0), up("b", 8.0), none("c")])
        assert final.value == 8.0
        assert final.direction == AdjustmentDirection.INCREASE
        assert final.source_indicators == ["b"]

    def test_increase_overrides_decrease(self):
        """Slack elsewhere never cancels a starvation signal."""
        final = self.arbiter.combine([down("a", -2.0), up("b", 1.0)])
        assert final.value == 1.0
        assert final.direction == AdjustmentDirection.INCREASE

    def test_smallest_decrease_wins(self):
        final = self.arbiter.combine([down("a", -2.0), down("b", -0.5)])
        assert final.value == -0.5
        assert final.direction == AdjustmentDirection.DECREASE
        assert final.source_indicators == ["b"]

    def test_reclaim_overlap_suppresses_decrease(self):
        final = self.arbiter.combine([down("a", -2.0)], reclaim_overlap=True)
        assert final.value == 0.0
        assert final.direction == AdjustmentDirection.NONE
        assert final.suppressed_by_overlap

    def test_reclaim_overlap_keeps_increase(self):
        final = self.arbiter.combine([up("a", 4.0)], reclaim_overlap=True)
        assert final.value == 4.0
        assert not final.suppressed_by_overlap

    def test_sum_aggregation(self):
        arbiter = MultiIndicatorArbiter(IncreaseAggregation.SUM)
        final = arbiter.combine([up("a", 3.0), up("b", 2.5), down("c", -1.0)])
        assert final.value == pytest.approx(5.5)
        assert final.source_indicators == ["a", "b"]

    @pytest.mark.parametrize("deltas", [
        [up("a", 0.1), down("b", -2.0)],
        [down("a", -2.0), down("b", -1.0), up("c", 0.01)],
        [up("a", 8.0), up("b", 8.0)],
    ])
    def test_never_decreases_when_any_indicator_increases(self, deltas):
        final = self.arbiter.combine(deltas)
        assert final.direction == AdjustmentDirection.INCREASE
        assert final.value > 0

    def test_accepts_generators(self):
        final = self.arbiter.combine(d for d in [up("a", 2.0)])
        assert final.value == 2.0
