"""
Metrics Collection Module for the Semantic Merge Engine
Provides in-process metrics collection, aggregation, and export
"""
from __future__ import annotations

import json
import statistics
import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional


class Histogram:
    """Histogram for tracking value distributions"""

    # Tuned for millisecond query latencies
    DEFAULT_BUCKETS = [1.0, 5.0, 10.0, 25.0, 50.0, 100.0, 250.0, 500.0, 1000.0, 5000.0]

    def __init__(self, name: str, buckets: Optional[List[float]] = None, labels: Optional[Dict[str, str]] = None):
        self.name = name
        self.labels = labels or {}
        self.buckets = sorted(buckets or self.DEFAULT_BUCKETS)
        self._counts = {b: 0 for b in self.buckets}
        self._counts[float('inf')] = 0
        self._sum = 0.0
        self._count = 0
        self._lock = threading.Lock()

    def observe(self, value: float) -> None:
        """Record an observation"""
        with self._lock:
            self._sum += value
            self._count += 1
            for bucket in self.buckets:
                if value <= bucket:
                    self._counts[bucket] += 1
            self._counts[float('inf')] += 1

    def get_percentile(self, percentile: float) -> float:
        """Get approximate percentile value"""
        if self._count == 0:
            return 0.0

        target_count = percentile * self._count
        for bucket in self.buckets:
            if self._counts[bucket] >= target_count:
                return bucket
        return self.buckets[-1] if self.buckets else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": "histogram",
            "labels": self.labels,
            "buckets": {str(k): v for k, v in self._counts.items()},
            "sum": self._sum,
            "count": self._count,
            "p50": self.get_percentile(0.5),
            "p90": self.get_percentile(0.9),
            "p99": self.get_percentile(0.99),
        }


class MetricsCollector:
    """Thread-safe, process-wide metrics collector"""

    _instance: Optional["MetricsCollector"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsCollector":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._counters: Dict[str, float] = defaultdict(float)
        self._gauges: Dict[str, float] = {}
        self._histograms: Dict[str, Histogram] = {}
        self._timers: Dict[str, List[float]] = defaultdict(list)
        self._data_lock = threading.Lock()
        self._enabled = True
        self._initialized = True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def counter(self, name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._counters[key] += value

    def gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge value"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._gauges[key] = value

    def histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None, buckets: Optional[List[float]] = None) -> None:
        """Record a histogram observation"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            if key not in self._histograms:
                self._histograms[key] = Histogram(name, buckets, labels)
            hist = self._histograms[key]
        hist.observe(value)

    def timer(self, name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a timer value in milliseconds"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._timers[key].append(duration_ms)

        self.histogram(f"{name}_histogram", duration_ms, labels)

    @contextmanager
    def time_operation(self, name: str, labels: Optional[Dict[str, str]] = None) -> Generator[None, None, None]:
        """Context manager for timing operations"""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.timer(name, (time.perf_counter() - start) * 1000, labels)

    def _make_key(self, name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for metric with labels"""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        with self._data_lock:
            return self._counters.get(self._make_key(name, labels), 0.0)

    def get_gauge(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        with self._data_lock:
            return self._gauges.get(self._make_key(name, labels))

    def get_metrics(self) -> Dict[str, Any]:
        """Get all collected metrics"""
        with self._data_lock:
            metrics = {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "histograms": {k: v.to_dict() for k, v in self._histograms.items()},
                "timers": {},
            }

            for key, values in self._timers.items():
                if values:
                    metrics["timers"][key] = {
                        "count": len(values),
                        "sum": sum(values),
                        "min": min(values),
                        "max": max(values),
                        "mean": statistics.mean(values),
                        "median": statistics.median(values),
                    }

            return metrics

    def reset(self) -> None:
        """Reset all metrics"""
        with self._data_lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._timers.clear()

    def export_json(self) -> str:
        """Export metrics as JSON string"""
        return json.dumps(self.get_metrics(), indent=2, default=str)

    def export_prometheus(self) -> str:
        """Export counters and gauges in Prometheus text format"""
        lines = []

        with self._data_lock:
            for key, value in self._counters.items():
                lines.append(f"# TYPE {key.split('{')[0]} counter")
                lines.append(f"{key} {value}")

            for key, value in self._gauges.items():
                lines.append(f"# TYPE {key.split('{')[0]} gauge")
                lines.append(f"{key} {value}")

            for key, hist in self._histograms.items():
                base_name = key.split('{')[0]
                label_str = key[len(base_name):] if '{' in key else ''
                lines.append(f"# TYPE {base_name} histogram")
                lines.append(f"{base_name}_sum{label_str} {hist._sum}")
                lines.append(f"{base_name}_count{label_str} {hist._count}")

        return "\n".join(lines)


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance"""
    return MetricsCollector()


def counter(name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().counter(name, value, labels)


def gauge(name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().gauge(name, value, labels)


def histogram(name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().histogram(name, value, labels)


def timer(name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().timer(name, duration_ms, labels)


@contextmanager
def time_operation(name: str, labels: Optional[Dict[str, str]] = None) -> Generator[None, None, None]:
    """Context manager for timing operations"""
    with get_metrics_collector().time_operation(name, labels):
        yield


class MergeEngineMetrics:
    """Semantic merge engine specific metrics helper"""

    @staticmethod
    def record_query(duration_ms: float, rows: int, sources: int, rules_applied: int) -> None:
        """Record one executed query"""
        timer("merge_query_duration", duration_ms)
        counter("merge_query_total")
        histogram("merge_query_rows", float(rows))
        histogram("merge_query_sources", float(sources))
        if rules_applied:
            counter("merge_rules_applied_total", float(rules_applied))

    @staticmethod
    def record_query_timeout() -> None:
        counter("merge_query_timeouts_total")

    @staticmethod
    def record_analysis(duration_ms: float, suggestions: int) -> None:
        """Record a suggestion analysis run"""
        timer("merge_analysis_duration", duration_ms)
        counter("merge_analysis_total")
        counter("merge_suggestions_total", float(suggestions))

    @staticmethod
    def record_rule_created(aggregation_type: str) -> None:
        counter("merge_rules_created_total", 1.0, {"aggregation": aggregation_type})

    @staticmethod
    def record_rule_deleted() -> None:
        counter("merge_rules_deleted_total")

    @staticmethod
    def set_rule_count(count: int) -> None:
        gauge("merge_rules_active", float(count))

    @staticmethod
    def record_warning(code: str) -> None:
        counter("merge_query_warnings_total", 1.0, {"code": code})
