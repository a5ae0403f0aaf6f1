"""
Static metric source

Dictionary-backed ``MetricSource`` for local runs and tests. Readings can be
scoped to a region or set node-wide; a region-scoped reading wins.
"""

import threading
from typing import Dict, Optional, Tuple

from ..domain.interfaces import MetricSource
from .exceptions import IndicatorUnavailableError


class StaticMetricSource(MetricSource):
    """Holds the latest value pushed for each (region, indicator) pair."""

    def __init__(self, values: Optional[Dict[str, float]] = None):
        # region None means node-wide
        self._values: Dict[Tuple[Optional[str], str], float] = {}
        self._lock = threading.Lock()
        for name, value in (values or {}).items():
            self.set_value(name, value)

    def set_value(self, name: str, value: float, region_name: Optional[str] = None) -> None:
        with self._lock:
            self._values[(region_name, name)] = float(value)

    def clear_value(self, name: str, region_name: Optional[str] = None) -> None:
        with self._lock:
            self._values.pop((region_name, name), None)

    def get_indicator_value(self, name: str, region_name: Optional[str] = None) -> float:
        with self._lock:
            if (region_name, name) in self._values:
                return self._values[(region_name, name)]
            if (None, name) in self._values:
                return self._values[(None, name)]

        raise IndicatorUnavailableError(
            f"No reading for indicator {name}",
            indicators=[name],
            region_name=region_name,
        )
