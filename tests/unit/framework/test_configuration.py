"""
Tests for the configuration management system.
"""

import os
from unittest.mock import patch

import pytest
import yaml

from rama_provision.domain.models import IncreaseAggregation, RegionType
from rama_provision.framework.configuration import (
    ConfigurationBuilder,
    ConfigurationValidationError,
    ConfigurationValidator,
    EnvironmentConfigurationSource,
    IndicatorTargetConfiguration,
    LoggingConfiguration,
    PIDParametersConfiguration,
    ProvisionConfiguration,
    ProvisionSettings,
    YAMLConfigurationSource,
    configure_logging,
    load_configuration_from_file,
)
from rama_provision.infrastructure.exceptions import ConfigurationError
from rama_provision.infrastructure.observability import get_logger


SCHEDWAIT = {
    "kpp": 10.0,
    "kpn": 1.0,
    "deadband_lower_pct": 0.8,
    "deadband_upper_pct": 0.05,
}


def provision_document(**overrides):
    document = {
        "provision": {
            "control_interval": 1.0,
            "region_indicators": {"share": ["cpu.schedwait"]},
            "indicator_targets": [{"name": "cpu.schedwait", "target": 400}],
            "rama": {"pid_parameters": {"cpu.schedwait": dict(SCHEDWAIT)}},
        }
    }
    document["provision"].update(overrides)
    return document


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "provision.yaml"
    path.write_text(yaml.safe_dump(provision_document()), encoding="utf-8")
    return path


class TestConfigurationModels:
    """Test configuration data models."""

    def test_pid_parameters_defaults(self):
        params = PIDParametersConfiguration(kpp=10, kpn=1)
        assert params.adjustment_upper_bound == 8.0
        assert params.adjustment_lower_bound == -2.0
        assert params.kdp == 0.0

    def test_negative_gain_rejected(self):
        with pytest.raises(ValueError):
            PIDParametersConfiguration(kpp=-1, kpn=1)

    def test_adjustment_bounds_must_straddle_zero(self):
        with pytest.raises(ValueError, match="adjustment_lower_bound must not be positive"):
            PIDParametersConfiguration(kpp=1, kpn=1, adjustment_lower_bound=1.0)
        with pytest.raises(ValueError, match="adjustment_upper_bound must not be negative"):
            PIDParametersConfiguration(kpp=1, kpn=1, adjustment_upper_bound=-1.0)

    def test_lower_deadband_above_one_rejected(self):
        with pytest.raises(ValueError):
            PIDParametersConfiguration(kpp=1, kpn=1, deadband_lower_pct=1.5)

    def test_target_must_be_positive(self):
        with pytest.raises(ValueError, match="target must be positive"):
            IndicatorTargetConfiguration(name="cpu.schedwait", target=0)
        assert IndicatorTargetConfiguration(name="cpu.schedwait").target is None

    def test_region_types_parsed(self):
        config = ProvisionConfiguration(**provision_document()["provision"])
        assert config.region_indicators == {RegionType.SHARE: ["cpu.schedwait"]}
        assert config.increase_aggregation == IncreaseAggregation.MAX
        assert config.targets() == {"cpu.schedwait": 400.0}

    def test_unknown_region_type_rejected(self):
        with pytest.raises(ValueError):
            ProvisionConfiguration(**provision_document(region_indicators={"burstable": ["cpu.schedwait"]})["provision"])

    def test_unmapped_indicator_rejected(self):
        document = provision_document(region_indicators={"share": ["cpu.schedwait", "cpu.cpi.container"]})
        with pytest.raises(ValueError, match="without pid_parameters: cpu.cpi.container"):
            ProvisionConfiguration(**document["provision"])

    def test_duplicate_targets_rejected(self):
        targets = [{"name": "cpu.schedwait", "target": 1}, {"name": "cpu.schedwait", "target": 2}]
        with pytest.raises(ValueError, match="Duplicate indicator targets"):
            ProvisionConfiguration(**provision_document(indicator_targets=targets)["provision"])

    def test_control_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            ProvisionConfiguration(control_interval=0)

    def test_logging_file_output_requires_path(self):
        with pytest.raises(ValueError, match="file_path is required"):
            LoggingConfiguration(output="file")


class TestConfigurationSources:

    def test_yaml_source_loads(self, config_file):
        data = YAMLConfigurationSource(config_file).load()
        assert data["provision"]["control_interval"] == 1.0

    def test_yaml_source_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            YAMLConfigurationSource(tmp_path / "missing.yaml").load()
        assert exc_info.value.error_code == "CONFIG_FILE_NOT_FOUND"

    def test_yaml_source_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("provision: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            YAMLConfigurationSource(path).load()
        assert exc_info.value.error_code == "INVALID_YAML"

    def test_yaml_source_change_detection(self, config_file):
        source = YAMLConfigurationSource(config_file)
        source.load()
        assert not source.has_changed()

        stat = config_file.stat()
        os.utime(config_file, (stat.st_atime, stat.st_mtime + 10))

        assert source.has_changed()
        assert not source.has_changed()

    def test_environment_source(self):
        env = {
            "RAMA_PROVISION_CONTROL_INTERVAL": "2.5",
            "RAMA_PROVISION_INCREASE_AGGREGATION": "sum",
            "RAMA_LOGGING_LEVEL": "DEBUG",
            "RAMA_UNRELATED": "x",
        }
        with patch.dict(os.environ, env, clear=True):
            data = EnvironmentConfigurationSource().load()

        assert data == {
            "provision": {"control_interval": 2.5, "increase_aggregation": "sum"},
            "logging": {"level": "DEBUG"},
        }


class TestConfigurationValidator:

    def test_collects_errors_with_location(self):
        document = provision_document(control_interval=-1)
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ConfigurationValidator.validate_configuration(document)

        locations = [tuple(e["loc"]) for e in exc_info.value.validation_errors]
        assert ("provision", "control_interval") in locations
        assert "provision -> control_interval" in exc_info.value.get_detailed_message()

    def test_unknown_keys_are_warnings(self):
        document = provision_document()
        document["framework"] = {}
        assert ConfigurationValidator.validate_configuration(document) == ["Unknown configuration key: framework"]

    def test_unknown_environment_variables(self):
        env = {"RAMA_PROVISION_CONTROL_INTERVAL": "1", "RAMA_PROVISION_GAIN": "3"}
        with patch.dict(os.environ, env, clear=True):
            warnings = ConfigurationValidator.validate_environment_variables()
        assert warnings == ["Unknown environment variable: RAMA_PROVISION_GAIN"]


class TestProvisionSettings:

    def test_load_from_file(self, config_file):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_configuration_from_file(config_file)

        assert settings.get_provision_config().control_interval == 1.0
        assert settings.indicator_targets() == {"cpu.schedwait": 400.0}
        assert not settings.is_hot_reload_enabled()

    def test_environment_overrides_file(self, config_file):
        with patch.dict(os.environ, {"RAMA_PROVISION_CONTROL_INTERVAL": "3"}, clear=True):
            settings = load_configuration_from_file(config_file)
        assert settings.get_provision_config().control_interval == 3.0

    def test_to_policy_config(self):
        settings = ConfigurationBuilder().add_dict_source(provision_document()).build()

        policy_config = settings.to_policy_config()

        assert policy_config.region_indicators == {RegionType.SHARE: ["cpu.schedwait"]}
        params = policy_config.params_for("cpu.schedwait")
        assert params.kpp == 10.0
        assert params.deadband_upper_pct == 0.05
        assert policy_config.control_interval == 1.0

    def test_invalid_configuration_fails_build(self):
        builder = ConfigurationBuilder().add_dict_source(provision_document(control_interval=0))
        with pytest.raises(ConfigurationValidationError):
            builder.build()

    def test_reload_notifies_callbacks(self, config_file):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_configuration_from_file(config_file)
            calls = []
            settings.add_reload_callback(lambda: calls.append(settings.get_provision_config().control_interval))

            config_file.write_text(yaml.safe_dump(provision_document(control_interval=5.0)), encoding="utf-8")
            settings.reload_configuration()

        assert calls == [5.0]

    def test_failed_reload_keeps_previous_settings(self, config_file):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_configuration_from_file(config_file)
            config_file.write_text(yaml.safe_dump(provision_document(control_interval=-1)), encoding="utf-8")

            with pytest.raises(ConfigurationValidationError):
                settings.reload_configuration()

        assert settings.get_provision_config().control_interval == 1.0

    def test_check_for_changes(self, config_file):
        settings = ProvisionSettings([YAMLConfigurationSource(config_file)])
        assert not settings.check_for_changes()

        stat = config_file.stat()
        os.utime(config_file, (stat.st_atime, stat.st_mtime + 10))

        assert settings.check_for_changes()

    def test_hot_reload_thread_lifecycle(self, config_file):
        settings = ConfigurationBuilder().add_yaml_source(config_file).enable_hot_reload(True, poll_interval=0.05).build()
        try:
            assert settings.is_hot_reload_enabled()
        finally:
            settings.stop_hot_reload()
        assert not settings.is_hot_reload_enabled()

    def test_configure_logging(self, tmp_path):
        log_file = tmp_path / "provision.log"
        root = configure_logging(LoggingConfiguration(level="WARNING", output="file", file_path=str(log_file)))

        get_logger("rama_provision.advisor").warning("written")

        assert len(root.handlers) == 1
        assert "written" in log_file.read_text(encoding="utf-8")

    def test_configure_logging_to_console_and_file(self, tmp_path):
        log_file = tmp_path / "provision.log"
        root = configure_logging(LoggingConfiguration(output="both", file_path=str(log_file)))

        assert sorted(type(h).__name__ for h in root.handlers) == ["ConsoleLogHandler", "FileLogHandler"]
