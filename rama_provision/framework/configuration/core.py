"""
Core configuration management class.
"""

import threading
from typing import Dict, Any, Optional, List, Callable

from .models import LoggingConfiguration, ProvisionConfiguration, RootConfiguration
from .sources import ConfigurationSource, YAMLConfigurationSource
from .validation import ConfigurationValidator
from ...control_reasoning.policy_rama import RamaPolicyConfig
from ...domain.models import FirstOrderPIDParams
from ...infrastructure.observability import get_logger

logger = get_logger("rama_provision.framework.configuration")


class ProvisionSettings:
    """
    Settings of the provisioning controller with layered sources and hot-reloading.

    Sources are merged in priority order, validated as a whole, and swapped in
    atomically: readers see either the old or the new settings, never a mix.
    """

    def __init__(self, sources: Optional[List[ConfigurationSource]] = None, enable_hot_reload: bool = False,
                 poll_interval: float = 1.0):
        self._sources = list(sources or [])
        self._root: RootConfiguration = RootConfiguration()
        self._enable_hot_reload = enable_hot_reload
        self._poll_interval = poll_interval
        self._reload_callbacks: List[Callable[[], None]] = []
        self._hot_reload_thread: Optional[threading.Thread] = None
        self._stop_hot_reload = threading.Event()
        self._config_lock = threading.RLock()

        if self._sources:
            self._load_configuration()

        if self._enable_hot_reload:
            self._start_hot_reload_monitoring()

    def _load_configuration(self) -> None:
        """Load, merge and validate configuration from all sources."""
        merged_config: Dict[str, Any] = {}

        for source in sorted(self._sources, key=lambda s: s.get_priority()):
            try:
                merged_config = self._deep_merge(merged_config, source.load())
            except Exception as e:
                logger.error("Failed to load configuration source", extra={
                    "source": type(source).__name__,
                }, exc_info=e)
                raise

        warnings = ConfigurationValidator.validate_configuration(merged_config)
        for warning in warnings:
            logger.warning(warning)

        root = RootConfiguration(**merged_config)

        with self._config_lock:
            self._root = root

        logger.info("Configuration loaded", extra={
            "sources": len(self._sources),
            "region_types": [t.value for t in root.provision.region_indicators],
        })

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get_root_config(self) -> RootConfiguration:
        with self._config_lock:
            return self._root

    def get_provision_config(self) -> ProvisionConfiguration:
        with self._config_lock:
            return self._root.provision

    def get_logging_config(self) -> LoggingConfiguration:
        with self._config_lock:
            return self._root.logging

    def indicator_targets(self) -> Dict[str, Optional[float]]:
        """Indicator name -> configured target."""
        return self.get_provision_config().targets()

    def to_policy_config(self) -> RamaPolicyConfig:
        """Build the runtime configuration of the Rama policy."""
        provision = self.get_provision_config()
        return RamaPolicyConfig(
            region_indicators={
                region_type: list(indicators)
                for region_type, indicators in provision.region_indicators.items()
            },
            pid_parameters={
                name: FirstOrderPIDParams(**params.model_dump())
                for name, params in provision.rama.pid_parameters.items()
            },
            control_interval=provision.control_interval,
            increase_aggregation=provision.increase_aggregation,
        )

    def reload_configuration(self) -> None:
        """
        Reload configuration from all sources.

        A failed reload keeps the previous settings in place.
        """
        self._load_configuration()

        for callback in list(self._reload_callbacks):
            try:
                callback()
            except Exception as e:
                logger.error("Error in reload callback", exc_info=e)

    def add_reload_callback(self, callback: Callable[[], None]) -> None:
        """Add a callback to be called when configuration is reloaded."""
        self._reload_callbacks.append(callback)

    def _start_hot_reload_monitoring(self) -> None:
        """Start hot-reload monitoring in a background thread."""
        if self._hot_reload_thread is not None:
            return

        self._stop_hot_reload.clear()
        self._hot_reload_thread = threading.Thread(
            target=self._hot_reload_worker,
            name="ProvisionConfigHotReload",
            daemon=True
        )
        self._hot_reload_thread.start()

    def _hot_reload_worker(self) -> None:
        """Poll YAML sources and reload when one of them changed."""
        while not self._stop_hot_reload.is_set():
            try:
                if self.check_for_changes():
                    logger.info("Configuration file changed, reloading")
                    self.reload_configuration()
                self._stop_hot_reload.wait(self._poll_interval)
            except Exception as e:
                logger.error("Hot-reload failed, keeping previous configuration", exc_info=e)
                self._stop_hot_reload.wait(self._poll_interval * 5)

    def check_for_changes(self) -> bool:
        """True if any YAML source changed on disk since it was last read."""
        changed = False
        for source in self._sources:
            if isinstance(source, YAMLConfigurationSource) and source.has_changed():
                changed = True
        return changed

    def stop_hot_reload(self) -> None:
        if self._hot_reload_thread is not None:
            self._stop_hot_reload.set()
            self._hot_reload_thread.join(timeout=5.0)
            self._hot_reload_thread = None
            logger.info("Hot-reload monitoring stopped")

    def is_hot_reload_enabled(self) -> bool:
        return self._enable_hot_reload and self._hot_reload_thread is not None
