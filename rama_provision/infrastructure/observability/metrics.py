"""
Metrics Collection for the provisioning controller

Counters, gauges and histograms kept in-process, with a Prometheus text exporter.
The control core never touches these; the telemetry emitter translates cycle
results into metric updates.
"""

import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone


class MetricType(Enum):
    """Types of metrics supported"""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass
class MetricSample:
    """A metric value with its labels"""
    value: Union[int, float, Dict[str, Any]]
    timestamp: datetime
    labels: Dict[str, str] = field(default_factory=dict)


def _label_key(labels: Optional[Dict[str, str]] = None) -> str:
    if not labels:
        return ""
    return "|".join(f"{k}={v}" for k, v in sorted(labels.items()))


def _key_labels(key: str) -> Dict[str, str]:
    if not key:
        return {}
    return dict(pair.split("=", 1) for pair in key.split("|"))


class Metric(ABC):
    """Abstract base class for all metrics"""

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.labels = labels or []
        self._lock = Lock()

    @abstractmethod
    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSample:
        """Get the current value for one label combination"""
        pass

    @abstractmethod
    def samples(self) -> List[MetricSample]:
        """Get the current value for every label combination seen so far"""
        pass

    @abstractmethod
    def get_type(self) -> MetricType:
        pass


class Counter(Metric):
    """Counter metric that only increases"""

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self._values: Dict[str, float] = defaultdict(float)

    def increment(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        if amount < 0:
            raise ValueError("Counter can only be incremented with positive values")

        key = _label_key(labels)
        with self._lock:
            self._values[key] += amount

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSample:
        key = _label_key(labels)
        with self._lock:
            value = self._values.get(key, 0.0)
        return MetricSample(value=value, timestamp=datetime.now(timezone.utc), labels=labels or {})

    def samples(self) -> List[MetricSample]:
        now = datetime.now(timezone.utc)
        with self._lock:
            return [MetricSample(v, now, _key_labels(k)) for k, v in self._values.items()]

    def get_type(self) -> MetricType:
        return MetricType.COUNTER


class Gauge(Metric):
    """Gauge metric that can go up and down"""

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self._values: Dict[str, float] = defaultdict(float)

    def set(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        key = _label_key(labels)
        with self._lock:
            self._values[key] = value

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSample:
        key = _label_key(labels)
        with self._lock:
            value = self._values.get(key, 0.0)
        return MetricSample(value=value, timestamp=datetime.now(timezone.utc), labels=labels or {})

    def samples(self) -> List[MetricSample]:
        now = datetime.now(timezone.utc)
        with self._lock:
            return [MetricSample(v, now, _key_labels(k)) for k, v in self._values.items()]

    def get_type(self) -> MetricType:
        return MetricType.GAUGE


class Histogram(Metric):
    """Histogram metric for tracking value distributions"""

    def __init__(self, name: str, description: str, buckets: Optional[List[float]] = None, labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self.buckets = buckets or [0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, float('inf')]
        self._bucket_counts: Dict[str, Dict[float, int]] = defaultdict(lambda: defaultdict(int))
        self._sums: Dict[str, float] = defaultdict(float)
        self._counts: Dict[str, int] = defaultdict(int)

    def observe(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        key = _label_key(labels)

        with self._lock:
            self._sums[key] += value
            self._counts[key] += 1
            for bucket in self.buckets:
                if value <= bucket:
                    self._bucket_counts[key][bucket] += 1

    def _snapshot(self, key: str) -> Dict[str, Any]:
        return {
            'count': self._counts.get(key, 0),
            'sum': self._sums.get(key, 0.0),
            'buckets': dict(self._bucket_counts.get(key, {}))
        }

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSample:
        key = _label_key(labels)
        with self._lock:
            value = self._snapshot(key)
        return MetricSample(value=value, timestamp=datetime.now(timezone.utc), labels=labels or {})

    def samples(self) -> List[MetricSample]:
        now = datetime.now(timezone.utc)
        with self._lock:
            return [MetricSample(self._snapshot(k), now, _key_labels(k)) for k in list(self._counts)]

    def get_type(self) -> MetricType:
        return MetricType.HISTOGRAM


class Timer:
    """Context manager for timing operations"""

    def __init__(self, histogram: Histogram, labels: Optional[Dict[str, str]] = None):
        self.histogram = histogram
        self.labels = labels
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.histogram.observe(time.perf_counter() - self.start_time, self.labels)


class ProvisionMetricsCollector:
    """
    Central metrics collector for the provisioning controller.

    Registers the core provisioning metrics on construction; further metrics
    can be registered by name.
    """

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = Lock()

        self._initialize_core_metrics()

    def _initialize_core_metrics(self) -> None:
        self.register_gauge(
            "rama_control_knob_value",
            "Adjusted control knob value per region",
            ["region", "region_type", "knob"]
        )

        self.register_counter(
            "rama_control_knob_actions_total",
            "Control knob adjustments by resulting action",
            ["region", "action"]
        )

        self.register_gauge(
            "rama_indicator_delta",
            "Per-indicator adjustment delta produced in the last cycle",
            ["region", "indicator"]
        )

        self.register_counter(
            "rama_knob_at_limit_total",
            "Cycles whose knob was clamped at a resource bound",
            ["region", "reason"]
        )

        self.register_counter(
            "rama_indicator_unavailable_total",
            "Indicator readings that could not be obtained",
            ["region", "indicator"]
        )

        self.register_counter(
            "rama_cycle_failures_total",
            "Control cycles that ended with an error",
            ["region", "error_code"]
        )

        self.register_histogram(
            "rama_cycle_duration_seconds",
            "Time taken by one region control cycle",
            labels=["region"]
        )

    def register_counter(self, name: str, description: str, labels: Optional[List[str]] = None) -> Counter:
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"Metric {name} already exists")

            counter = Counter(name, description, labels)
            self._metrics[name] = counter
            return counter

    def register_gauge(self, name: str, description: str, labels: Optional[List[str]] = None) -> Gauge:
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"Metric {name} already exists")

            gauge = Gauge(name, description, labels)
            self._metrics[name] = gauge
            return gauge

    def register_histogram(self, name: str, description: str, buckets: Optional[List[float]] = None, labels: Optional[List[str]] = None) -> Histogram:
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"Metric {name} already exists")

            histogram = Histogram(name, description, buckets, labels)
            self._metrics[name] = histogram
            return histogram

    def get_metric(self, name: str) -> Optional[Metric]:
        return self._metrics.get(name)

    def get_all_metrics(self) -> Dict[str, Metric]:
        return dict(self._metrics)

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None, amount: float = 1.0) -> None:
        """Increment a counter metric by name. No-op if the metric is not a registered counter."""
        metric = self.get_metric(name)
        if isinstance(metric, Counter):
            metric.increment(amount, labels=labels or {})

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        metric = self.get_metric(name)
        if isinstance(metric, Gauge):
            metric.set(value, labels=labels or {})

    def time_cycle(self, region_name: str) -> Timer:
        """Get timer for one control cycle"""
        histogram = self.get_metric("rama_cycle_duration_seconds")
        if isinstance(histogram, Histogram):
            return Timer(histogram, labels={"region": region_name})
        return Timer(Histogram("dummy", "dummy"))


class MetricsExporter(ABC):
    """Abstract base class for metrics exporters"""

    @abstractmethod
    def export(self, metrics: Dict[str, Metric]) -> str:
        pass


class PrometheusExporter(MetricsExporter):
    """Prometheus text format exporter"""

    def export(self, metrics: Dict[str, Metric]) -> str:
        lines = []

        for name, metric in metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.get_type().value}")

            for sample in metric.samples():
                if isinstance(metric, Histogram):
                    hist_data = sample.value
                    for bucket, count in sorted(hist_data.get('buckets', {}).items()):
                        bucket_labels = {**sample.labels, 'le': str(bucket)}
                        lines.append(f"{name}_bucket{self._format_labels(bucket_labels)} {count}")
                    labels_str = self._format_labels(sample.labels)
                    lines.append(f"{name}_count{labels_str} {hist_data.get('count', 0)}")
                    lines.append(f"{name}_sum{labels_str} {hist_data.get('sum', 0)}")
                else:
                    lines.append(f"{name}{self._format_labels(sample.labels)} {sample.value}")

        return '\n'.join(lines)

    def _format_labels(self, labels: Dict[str, str]) -> str:
        if not labels:
            return ""

        label_pairs = [f'{k}="{v}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(label_pairs) + "}"


# Global metrics collector instance
_metrics_collector: Optional[ProvisionMetricsCollector] = None


def get_metrics_collector() -> ProvisionMetricsCollector:
    """Get the global metrics collector instance"""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = ProvisionMetricsCollector()
    return _metrics_collector


def reset_metrics_collector() -> None:
    global _metrics_collector
    _metrics_collector = None
