"""
Core Domain Interfaces

Contracts the controller needs from its collaborators: where indicator readings
come from, who knows region membership, and where cross-cycle state lives.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import List, Optional

from .models import ControlKnob, PodSet, RegionInfo


class MetricSource(ABC):
    """Provides current readings for named indicators."""

    @abstractmethod
    def get_indicator_value(self, name: str, region_name: Optional[str] = None) -> float:
        """
        Get a fresh reading for an indicator.

        Args:
            name: Indicator name, e.g. ``cpu.schedwait``
            region_name: Region the reading is scoped to, when the source keeps
                per-region values

        Returns:
            float: The current value

        Raises:
            IndicatorUnavailableError: If no reading can be obtained
        """
        pass


class MembershipSource(ABC):
    """Knows which pods and containers currently belong to a region."""

    @abstractmethod
    def get_pod_set(self, region_name: str) -> PodSet:
        """
        Get the pod -> container-set mapping of a region.

        Returns:
            PodSet: Empty when the region has no members or is unknown
        """
        pass


class RegionRegistry(MembershipSource):
    """
    Holds region and container state across control cycles.

    Implementations must serialize access per region: a policy holds
    ``region_lock(region_name)`` for the whole of a cycle so that the carried
    derivative error and the knob checkpoint see strictly ordered updates.
    """

    @abstractmethod
    def set_region_info(self, region_info: RegionInfo) -> None:
        pass

    @abstractmethod
    def get_region_info(self, region_name: str) -> Optional[RegionInfo]:
        pass

    @abstractmethod
    def list_regions(self) -> List[RegionInfo]:
        pass

    @abstractmethod
    def add_container(self, region_name: str, pod_uid: str, container_name: str) -> None:
        pass

    @abstractmethod
    def remove_container(self, region_name: str, pod_uid: str, container_name: str) -> bool:
        pass

    @abstractmethod
    def get_previous_error(self, region_name: str, indicator: str) -> Optional[float]:
        """Normalized error an indicator had in the previous cycle, if any."""
        pass

    @abstractmethod
    def set_previous_error(self, region_name: str, indicator: str, error: float) -> None:
        pass

    @abstractmethod
    def get_control_knob(self, region_name: str) -> Optional[ControlKnob]:
        """Last knob checkpointed for a region."""
        pass

    @abstractmethod
    def set_control_knob(self, region_name: str, control_knob: ControlKnob) -> None:
        pass

    @abstractmethod
    def evict_empty_regions(self) -> List[str]:
        """Remove regions whose last member left. Returns the evicted names."""
        pass

    @abstractmethod
    def region_lock(self, region_name: str) -> AbstractContextManager:
        """Exclusive, re-entrant lock scoped to one region."""
        pass
