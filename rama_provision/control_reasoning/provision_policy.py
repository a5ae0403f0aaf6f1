"""
Provision Policy base

A provision policy owns the control state of one region: its identity, its
hardware binding and membership, the essentials of the current cycle and the
knob produced by the last Update().
"""

import copy
from abc import ABC, abstractmethod
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from ..domain.interfaces import RegionRegistry
from ..domain.models import (
    ControlEssentials,
    ControlKnob,
    PodSet,
    ProvisionResult,
    RegionType,
    ResourceEssentials,
)
from ..infrastructure.exceptions import InvalidBoundsError, PolicyStateError
from ..infrastructure.observability import get_logger


class PolicyState(Enum):
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"
    UPDATED = "updated"


class ProvisionPolicy(ABC):
    """
    Abstract base for region provision policies.

    Lifecycle: a policy is bound to its region on construction, accepts
    essentials every cycle via ``set_essentials``, and produces a new knob on
    ``update``. Membership and NUMA binding may change at any time and take
    effect from the next cycle. A single instance is meant for one writer.
    """

    def __init__(
        self,
        region_name: str,
        region_type: RegionType,
        owner_pool_name: str,
        registry: RegionRegistry,
    ):
        self.state = PolicyState.UNINITIALIZED
        if not region_name:
            raise ValueError("region_name must not be empty")

        self.region_name = region_name
        self.region_type = region_type
        self.owner_pool_name = owner_pool_name
        self.registry = registry
        self.logger = get_logger(f"rama_provision.policy.{type(self).__name__.lower()}")

        self._binding_numas: FrozenSet[int] = frozenset()
        self._pod_set: PodSet = {}
        self._resource_essentials: Optional[ResourceEssentials] = None
        self._control_essentials: Optional[ControlEssentials] = None
        self._control_knob_adjusted: Optional[ControlKnob] = None

        self.state = PolicyState.BOUND

    @property
    def binding_numas(self) -> FrozenSet[int]:
        return self._binding_numas

    @property
    def pod_set(self) -> PodSet:
        return copy.deepcopy(self._pod_set)

    def set_binding_numas(self, numas: Iterable[int]) -> None:
        self._binding_numas = frozenset(numas)

    def set_pod_set(self, pod_set: PodSet) -> None:
        self._pod_set = {pod: set(containers) for pod, containers in pod_set.items()}

    def set_essentials(self, resource_essentials: ResourceEssentials, control_essentials: ControlEssentials) -> None:
        """
        Store the snapshot for the next ``update``.

        Raises:
            InvalidBoundsError: If the lower resource bound exceeds the upper one
        """
        if resource_essentials.resource_lower_bound > resource_essentials.resource_upper_bound:
            raise InvalidBoundsError(
                f"Resource lower bound {resource_essentials.resource_lower_bound} exceeds "
                f"upper bound {resource_essentials.resource_upper_bound}",
                lower_bound=resource_essentials.resource_lower_bound,
                upper_bound=resource_essentials.resource_upper_bound,
                region_name=self.region_name,
            )

        self._resource_essentials = resource_essentials
        self._control_essentials = control_essentials

    @abstractmethod
    def update(self) -> ProvisionResult:
        """Run one control cycle over the stored essentials."""
        pass

    def get_control_knob_adjusted(self) -> ControlKnob:
        """
        Knob map produced by the last successful ``update``.

        Raises:
            PolicyStateError: If no update has completed yet
        """
        if self._control_knob_adjusted is None:
            raise PolicyStateError(
                "Control knob requested before any update",
                region_name=self.region_name,
                state=self.state.value,
            )
        return dict(self._control_knob_adjusted)
