"""
Provision Advisor

Drives one control cycle across every region in the registry: keeps a policy
per region, refreshes membership and NUMA binding, gathers indicator readings
and hands each result to telemetry. A failing region is reported and skipped;
the others still get their cycle.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set

from ..control_reasoning.indicator_collector import collect_indicators
from ..control_reasoning.policy_factory import create_provision_policy
from ..control_reasoning.policy_rama import RamaPolicyConfig
from ..control_reasoning.provision_policy import ProvisionPolicy
from ..domain.consts import POLICY_NAME_RAMA
from ..domain.interfaces import MetricSource, RegionRegistry
from ..domain.models import (
    ControlEssentials,
    ControlKnob,
    ControlKnobName,
    ControlKnobValue,
    ProvisionResult,
    RegionInfo,
    ResourceEssentials,
)
from ..infrastructure.exceptions import (
    ConfigurationError,
    IndicatorUnavailableError,
    ProvisionException,
)
from ..infrastructure.observability import ProvisionTelemetryEmitter, get_logger
from .configuration.core import ProvisionSettings


@dataclass
class CycleReport:
    """What one advisor cycle did."""
    cycle_id: str
    results: Dict[str, ProvisionResult] = field(default_factory=dict)
    failures: Dict[str, ProvisionException] = field(default_factory=dict)
    evicted_regions: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class ProvisionAdvisor:
    """
    Runs the provision policies of all known regions.

    Resource essentials are supplied per cycle by the caller. The knob a
    region starts from is the registry checkpoint; a region seen for the first
    time starts at its upper bound minus the reserve.
    """

    def __init__(
        self,
        registry: RegionRegistry,
        metric_source: MetricSource,
        policy_config: RamaPolicyConfig,
        indicator_targets: Mapping[str, Optional[float]],
        policy_name: str = POLICY_NAME_RAMA,
        telemetry: Optional[ProvisionTelemetryEmitter] = None,
        evict_empty_regions: bool = True,
    ):
        self.registry = registry
        self.metric_source = metric_source
        self.policy_config = policy_config
        self.indicator_targets = dict(indicator_targets)
        self.policy_name = policy_name
        self.telemetry = telemetry or ProvisionTelemetryEmitter()
        self.evict_empty_regions = evict_empty_regions
        self.logger = get_logger("rama_provision.advisor")

        self._policies: Dict[str, ProvisionPolicy] = {}

    @classmethod
    def from_settings(
        cls,
        settings: ProvisionSettings,
        registry: RegionRegistry,
        metric_source: MetricSource,
        telemetry: Optional[ProvisionTelemetryEmitter] = None,
    ) -> "ProvisionAdvisor":
        """Create an advisor that follows configuration reloads."""
        provision = settings.get_provision_config()
        advisor = cls(
            registry,
            metric_source,
            settings.to_policy_config(),
            settings.indicator_targets(),
            policy_name=provision.policy,
            telemetry=telemetry,
            evict_empty_regions=provision.evict_empty_regions,
        )
        settings.add_reload_callback(lambda: advisor.apply_settings(settings))
        return advisor

    def apply_settings(self, settings: ProvisionSettings) -> None:
        """Switch to new settings. Policies are rebuilt; carried state lives in the registry."""
        provision = settings.get_provision_config()
        self.policy_config = settings.to_policy_config()
        self.indicator_targets = settings.indicator_targets()
        self.policy_name = provision.policy
        self.evict_empty_regions = provision.evict_empty_regions
        self._policies.clear()
        self.logger.info("Advisor settings applied", extra={"policy": self.policy_name})

    @property
    def policies(self) -> Dict[str, ProvisionPolicy]:
        return dict(self._policies)

    def run_cycle(
        self,
        resources: Mapping[str, ResourceEssentials],
        reclaim_overlap: Optional[Set[str]] = None,
        cycle_id: Optional[str] = None,
    ) -> CycleReport:
        """
        Run one control cycle over every registered region.

        Args:
            resources: Region name -> resource constraints of this cycle
            reclaim_overlap: Regions currently overlapping reclaimed work
            cycle_id: Identifier attached to every log record of the cycle

        Returns:
            CycleReport: Per-region results and failures
        """
        report = CycleReport(cycle_id=cycle_id or str(uuid.uuid4()))
        overlap = reclaim_overlap or set()

        with self.logger.correlation_context(report.cycle_id):
            if self.evict_empty_regions:
                report.evicted_regions = self.registry.evict_empty_regions()

            regions = self.registry.list_regions()
            known = {info.region_name for info in regions}
            for name in [n for n in self._policies if n not in known]:
                del self._policies[name]

            for info in regions:
                self._run_region(info, resources.get(info.region_name), info.region_name in overlap, report)

            self.logger.info("Provision cycle finished", extra={
                "regions": len(regions),
                "failures": sorted(report.failures),
                "evicted": report.evicted_regions,
            })
        return report

    def _run_region(
        self,
        info: RegionInfo,
        resource: Optional[ResourceEssentials],
        overlap: bool,
        report: CycleReport,
    ) -> None:
        name = info.region_name
        with self.logger.region_context(name, report.cycle_id), self.telemetry.metrics.time_cycle(name):
            try:
                if resource is None:
                    raise ConfigurationError(
                        f"No resource essentials supplied for region {name}",
                        region_name=name,
                        error_code="MISSING_RESOURCE_ESSENTIALS",
                    )

                policy = self._policy_for(info)
                policy.set_binding_numas(info.binding_numas)
                policy.set_pod_set(self.registry.get_pod_set(name))

                names = self.policy_config.region_indicators.get(info.region_type, [])
                targets = {indicator: self.indicator_targets.get(indicator) for indicator in names}
                indicators, _ = collect_indicators(self.metric_source, targets, name)

                control = ControlEssentials(
                    control_knobs=self._starting_knobs(name, resource),
                    indicators=indicators,
                    reclaim_overlap=overlap,
                )
                policy.set_essentials(resource, control)
                result = policy.update()
            except ProvisionException as e:
                report.failures[name] = e
                self.telemetry.record_failure(name, e)
                if isinstance(e, IndicatorUnavailableError):
                    self.telemetry.record_unavailable(name, e.indicators)
                self.logger.error("Region cycle failed", extra={"region_name": name}, exc_info=e)
                return

            report.results[name] = result
            self.telemetry.emit(result)

    def _policy_for(self, info: RegionInfo) -> ProvisionPolicy:
        policy = self._policies.get(info.region_name)
        if policy is None or policy.region_type != info.region_type:
            policy = create_provision_policy(self.policy_name, info, self.policy_config, self.registry)
            self._policies[info.region_name] = policy
        return policy

    def _starting_knobs(self, region_name: str, resource: ResourceEssentials) -> ControlKnob:
        checkpoint = self.registry.get_control_knob(region_name)
        if checkpoint:
            return checkpoint
        seed = resource.resource_upper_bound - resource.reserved_for_allocate
        seed = max(resource.resource_lower_bound, min(resource.resource_upper_bound, seed))
        return {ControlKnobName.NON_RECLAIMED_CPU_SIZE: ControlKnobValue(value=seed)}
