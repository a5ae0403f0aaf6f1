"""
Observability - structured logging, in-process metrics and cycle telemetry.
"""

from .logging import (
    ProvisionLogger,
    LogLevel,
    LogFormatter,
    LogHandler,
    JSONLogFormatter,
    HumanReadableFormatter,
    ConsoleLogHandler,
    FileLogHandler,
    MemoryLogHandler,
    get_logger,
    configure_default_logging,
    reset_logging,
)
from .metrics import (
    ProvisionMetricsCollector,
    MetricType,
    Counter,
    Gauge,
    Histogram,
    PrometheusExporter,
    get_metrics_collector,
    reset_metrics_collector,
)
from .telemetry import ProvisionTelemetryEmitter

__all__ = [
    "ProvisionLogger",
    "LogLevel",
    "LogFormatter",
    "LogHandler",
    "JSONLogFormatter",
    "HumanReadableFormatter",
    "ConsoleLogHandler",
    "FileLogHandler",
    "MemoryLogHandler",
    "get_logger",
    "configure_default_logging",
    "reset_logging",
    "ProvisionMetricsCollector",
    "MetricType",
    "Counter",
    "Gauge",
    "Histogram",
    "PrometheusExporter",
    "get_metrics_collector",
    "reset_metrics_collector",
    "ProvisionTelemetryEmitter",
]
