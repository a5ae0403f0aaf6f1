"""
Builds the indicator map of a cycle from a metric source.
"""

from typing import Dict, List, Optional, Tuple

from ..domain.interfaces import MetricSource
from ..domain.models import Indicator, IndicatorValue
from ..infrastructure.exceptions import IndicatorUnavailableError
from ..infrastructure.observability import get_logger

logger = get_logger("rama_provision.control_reasoning.indicator_collector")


def collect_indicators(
    source: MetricSource,
    targets: Dict[str, Optional[float]],
    region_name: Optional[str] = None,
) -> Tuple[Indicator, List[str]]:
    """
    Read every configured indicator of a region.

    Args:
        source: Where current readings come from
        targets: Indicator name -> target value. Indicators without a target
            are skipped since they cannot be evaluated
        region_name: Region scope passed through to the source

    Returns:
        The readings that could be obtained, and the names that could not.
        Missing readings are never defaulted.
    """
    indicators: Indicator = {}
    unavailable: List[str] = []

    for name, target in targets.items():
        if target is None:
            unavailable.append(name)
            continue
        try:
            current = source.get_indicator_value(name, region_name)
        except IndicatorUnavailableError as e:
            logger.debug("Indicator reading unavailable", extra={
                "indicator": name,
                "region_name": region_name,
                "error": str(e),
            })
            unavailable.append(name)
            continue
        indicators[name] = IndicatorValue(current=float(current), target=float(target))

    return indicators, unavailable
