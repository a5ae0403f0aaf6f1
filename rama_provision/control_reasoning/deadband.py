"""
Deadband policy: the tolerance band around an indicator target inside which
no correction is issued. Lower and upper widths are independent, so a band can
tolerate a large undershoot while reacting to the smallest overshoot.
"""

import math
from typing import Tuple


def deadband_thresholds(target: float, lower_pct: float, upper_pct: float) -> Tuple[float, float]:
    """Return ``(lower_threshold, upper_threshold)`` for a target."""
    return target - target * lower_pct, target + target * upper_pct


def in_band(current: float, target: float, lower_pct: float, upper_pct: float) -> bool:
    """True when ``current`` lies inside the band (bounds inclusive)."""
    lower_threshold, upper_threshold = deadband_thresholds(target, lower_pct, upper_pct)
    # a reading on a threshold is in band even when the threshold carries rounding error
    if math.isclose(current, lower_threshold) or math.isclose(current, upper_threshold):
        return True
    return lower_threshold <= current <= upper_threshold
