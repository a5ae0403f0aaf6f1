"""
Tests for the provision advisor cycle driver.
"""

import pytest

from rama_provision.control_reasoning.policy_factory import default_rama_config
from rama_provision.domain.consts import (
    METRIC_CPU_CPI_CONTAINER,
    METRIC_CPU_SCHEDWAIT,
    METRIC_MEM_BANDWIDTH_NUMA,
)
from rama_provision.domain.models import (
    ClampReason,
    ControlKnobAction,
    ControlKnobName,
    ControlKnobValue,
    IncreaseAggregation,
    RegionInfo,
    RegionType,
    ResourceEssentials,
)
from rama_provision.framework.configuration import ConfigurationBuilder
from rama_provision.framework.provision_advisor import ProvisionAdvisor
from rama_provision.infrastructure.observability import ProvisionMetricsCollector, ProvisionTelemetryEmitter

KNOB = ControlKnobName.NON_RECLAIMED_CPU_SIZE

TARGETS = {
    METRIC_CPU_SCHEDWAIT: 400.0,
    METRIC_CPU_CPI_CONTAINER: 1.0,
    METRIC_MEM_BANDWIDTH_NUMA: 40.0,
}


@pytest.fixture
def collector():
    return ProvisionMetricsCollector()


@pytest.fixture
def advisor(registry, metric_source, collector):
    return ProvisionAdvisor(
        registry,
        metric_source,
        default_rama_config(),
        TARGETS,
        telemetry=ProvisionTelemetryEmitter(collector),
    )


def add_region(registry, name, region_type, pods=("pod-1",), knob=40.0):
    registry.set_region_info(RegionInfo(name, region_type, "pool", frozenset({0})))
    for pod in pods:
        registry.add_container(name, pod, "main")
    if knob is not None:
        registry.set_control_knob(name, {KNOB: ControlKnobValue(knob)})


def bounds(upper=90.0, lower=4.0, enable_reclaim=True, reserved=0.0):
    return ResourceEssentials(enable_reclaim, upper, lower, reserved)


class TestProvisionAdvisor:

    def test_cycle_adjusts_every_region(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        add_region(registry, "dedicated-0", RegionType.DEDICATED_NUMA_EXCLUSIVE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0, region_name="share-0")
        metric_source.set_value(METRIC_CPU_CPI_CONTAINER, 1.0)
        metric_source.set_value(METRIC_MEM_BANDWIDTH_NUMA, 4.0)

        report = advisor.run_cycle({"share-0": bounds(), "dedicated-0": bounds()})

        assert report.succeeded
        assert report.results["share-0"].knob().value == pytest.approx(48.0)
        assert report.results["dedicated-0"].knob().action == ControlKnobAction.NONE
        assert registry.get_control_knob("share-0")[KNOB].value == pytest.approx(48.0)

    def test_knob_continues_from_checkpoint(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0)

        advisor.run_cycle({"share-0": bounds()})
        report = advisor.run_cycle({"share-0": bounds()})

        assert report.results["share-0"].knob().value == pytest.approx(56.0)

    def test_new_region_starts_at_upper_bound_minus_reserve(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE, knob=None)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 400.0)

        report = advisor.run_cycle({"share-0": bounds(reserved=10.0)})

        assert report.results["share-0"].knob().value == pytest.approx(80.0)

    def test_failing_region_does_not_stop_others(self, advisor, registry, metric_source, collector):
        add_region(registry, "share-0", RegionType.SHARE)
        add_region(registry, "share-1", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0, region_name="share-1")

        report = advisor.run_cycle({"share-0": bounds(), "share-1": bounds()})

        assert not report.succeeded
        assert report.failures["share-0"].error_code == "INDICATOR_UNAVAILABLE"
        assert report.results["share-1"].knob().value == pytest.approx(48.0)
        failures = collector.get_metric("rama_cycle_failures_total").get_value({
            "region": "share-0", "error_code": "INDICATOR_UNAVAILABLE"
        })
        assert failures.value == 1

    def test_missing_resource_essentials_reported(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0)

        report = advisor.run_cycle({})

        assert report.failures["share-0"].error_code == "MISSING_RESOURCE_ESSENTIALS"

    def test_empty_regions_evicted(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        add_region(registry, "share-1", RegionType.SHARE)
        registry.remove_container("share-1", "pod-1", "main")
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 401.0)

        report = advisor.run_cycle({"share-0": bounds(), "share-1": bounds()})

        assert report.evicted_regions == ["share-1"]
        assert set(report.results) == {"share-0"}
        assert set(advisor.policies) == {"share-0"}

    def test_new_region_without_members_is_held(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE, pods=())
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0)

        report = advisor.run_cycle({"share-0": bounds()})

        assert report.evicted_regions == []
        assert report.results["share-0"].knob().value == pytest.approx(40.0)
        assert report.results["share-0"].clamp_reason == ClampReason.EMPTY_REGION
        assert registry.get_region_info("share-0") is not None

    def test_policy_dropped_when_region_removed(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 401.0)
        advisor.run_cycle({"share-0": bounds()})
        assert "share-0" in advisor.policies

        registry.remove_container("share-0", "pod-1", "main")
        advisor.run_cycle({"share-0": bounds()})

        assert advisor.policies == {}

    def test_reclaim_overlap_passed_per_region(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 4.0)

        report = advisor.run_cycle({"share-0": bounds()}, reclaim_overlap={"share-0"})

        assert report.results["share-0"].knob().value == pytest.approx(40.0)
        assert report.results["share-0"].clamp_reason == ClampReason.RECLAIM_OVERLAP

    def test_binding_numas_refreshed(self, advisor, registry, metric_source):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 401.0)

        advisor.run_cycle({"share-0": bounds()})

        assert advisor.policies["share-0"].binding_numas == frozenset({0})
        assert advisor.policies["share-0"].pod_set == {"pod-1": {"main"}}

    def test_cycle_logs_carry_cycle_id(self, advisor, registry, metric_source, log_records):
        add_region(registry, "share-0", RegionType.SHARE)
        metric_source.set_value(METRIC_CPU_SCHEDWAIT, 800.0)

        advisor.run_cycle({"share-0": bounds()}, cycle_id="cycle-42")

        updated = [r for r in log_records.records if r["message"] == "Control knob updated"]
        assert updated[0]["correlation_id"] == "cycle-42"
        assert updated[0]["region_name"] == "share-0"


class TestAdvisorSettings:

    def _document(self, aggregation):
        return {
            "provision": {
                "increase_aggregation": aggregation,
                "region_indicators": {"share": [METRIC_CPU_SCHEDWAIT]},
                "indicator_targets": [{"name": METRIC_CPU_SCHEDWAIT, "target": 400}],
                "rama": {"pid_parameters": {METRIC_CPU_SCHEDWAIT: {"kpp": 10, "kpn": 1}}},
            }
        }

    def test_from_settings_follows_reload(self, registry, metric_source):
        data = self._document("max")
        settings = ConfigurationBuilder().add_dict_source(data).build()
        advisor = ProvisionAdvisor.from_settings(settings, registry, metric_source)
        assert advisor.policy_config.increase_aggregation == IncreaseAggregation.MAX

        data["provision"]["increase_aggregation"] = "sum"
        settings.reload_configuration()

        assert advisor.policy_config.increase_aggregation == IncreaseAggregation.SUM
        assert advisor.indicator_targets == {METRIC_CPU_SCHEDWAIT: 400.0}
