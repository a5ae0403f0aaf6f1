"""
In-memory Region Registry

Keeps region info, container membership, the per-indicator derivative carry and
knob checkpoints across control cycles. Suitable for a single agent process and
for tests; durable checkpointing is left to other implementations.
"""

import copy
import threading
from contextlib import contextmanager
from typing import Dict, List, Optional, Set, Tuple

from ..domain.interfaces import RegionRegistry
from ..domain.models import ControlKnob, PodSet, RegionInfo
from .exceptions import RegistryError
from .observability import get_logger


class InMemoryRegionRegistry(RegionRegistry):
    """Dictionary-backed registry with one re-entrant lock per region."""

    def __init__(self) -> None:
        self._regions: Dict[str, RegionInfo] = {}
        self._pod_sets: Dict[str, PodSet] = {}
        self._previous_errors: Dict[Tuple[str, str], float] = {}
        self._control_knobs: Dict[str, ControlKnob] = {}
        # regions that have had at least one member; only these can become empty
        self._populated: Set[str] = set()
        self._region_locks: Dict[str, threading.RLock] = {}
        # guards the dictionaries themselves, never held across a cycle
        self._lock = threading.RLock()
        self.logger = get_logger("rama_provision.infrastructure.region_registry")

    def set_region_info(self, region_info: RegionInfo) -> None:
        with self._lock:
            is_new = region_info.region_name not in self._regions
            self._regions[region_info.region_name] = region_info
            self._pod_sets.setdefault(region_info.region_name, {})

        if is_new:
            self.logger.info("Region registered", extra={
                "region_name": region_info.region_name,
                "region_type": region_info.region_type.value,
                "owner_pool_name": region_info.owner_pool_name,
            })

    def get_region_info(self, region_name: str) -> Optional[RegionInfo]:
        with self._lock:
            return self._regions.get(region_name)

    def list_regions(self) -> List[RegionInfo]:
        with self._lock:
            return [self._regions[name] for name in sorted(self._regions)]

    def add_container(self, region_name: str, pod_uid: str, container_name: str) -> None:
        with self._lock:
            if region_name not in self._regions:
                raise RegistryError(
                    f"Cannot add container to unknown region {region_name}",
                    region_name=region_name,
                    operation="add_container",
                )
            self._pod_sets[region_name].setdefault(pod_uid, set()).add(container_name)
            self._populated.add(region_name)

    def remove_container(self, region_name: str, pod_uid: str, container_name: str) -> bool:
        with self._lock:
            containers = self._pod_sets.get(region_name, {}).get(pod_uid)
            if not containers or container_name not in containers:
                return False
            containers.discard(container_name)
            if not containers:
                del self._pod_sets[region_name][pod_uid]
            return True

    def get_pod_set(self, region_name: str) -> PodSet:
        with self._lock:
            return copy.deepcopy(self._pod_sets.get(region_name, {}))

    def get_previous_error(self, region_name: str, indicator: str) -> Optional[float]:
        with self._lock:
            return self._previous_errors.get((region_name, indicator))

    def set_previous_error(self, region_name: str, indicator: str, error: float) -> None:
        with self._lock:
            self._previous_errors[(region_name, indicator)] = error

    def get_control_knob(self, region_name: str) -> Optional[ControlKnob]:
        with self._lock:
            knob = self._control_knobs.get(region_name)
            return dict(knob) if knob is not None else None

    def set_control_knob(self, region_name: str, control_knob: ControlKnob) -> None:
        with self._lock:
            self._control_knobs[region_name] = dict(control_knob)

    def evict_empty_regions(self) -> List[str]:
        with self._lock:
            evicted = [
                name for name, pods in self._pod_sets.items()
                if not pods and name in self._populated
            ]
            for name in evicted:
                self._regions.pop(name, None)
                self._pod_sets.pop(name, None)
                self._control_knobs.pop(name, None)
                self._populated.discard(name)
                for key in [k for k in self._previous_errors if k[0] == name]:
                    del self._previous_errors[key]

        if evicted:
            self.logger.info("Empty regions evicted", extra={"regions": evicted})
        return evicted

    @contextmanager
    def region_lock(self, region_name: str):
        with self._lock:
            lock = self._region_locks.setdefault(region_name, threading.RLock())
        with lock:
            yield region_name
