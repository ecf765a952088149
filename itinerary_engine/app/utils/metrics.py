"""Prometheus metrics for engine stages."""

from prometheus_client import Counter, Histogram

# Stage metrics
engine_stage_latency_ms = Histogram(
    "engine_stage_latency_ms",
    "Engine stage latency in milliseconds",
    ["stage"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 4000],
)

conflicts_detected_total = Counter(
    "conflicts_detected_total",
    "Total conflicts detected",
    ["type", "severity"],
)

travel_estimate_fallbacks_total = Counter(
    "travel_estimate_fallbacks_total",
    "Travel legs that fell back to the default travel time",
    ["reason"],
)

availability_checks_total = Counter(
    "availability_checks_total",
    "Total per-activity availability checks",
    ["status"],
)


class PrometheusEngineMetrics:
    """Prometheus-based engine metrics implementation."""

    def record_latency(self, stage: str, latency_ms: float) -> None:
        """Record stage latency."""
        engine_stage_latency_ms.labels(stage=stage).observe(latency_ms)

    def inc_conflict(self, conflict_type: str, severity: str) -> None:
        """Increment conflict counter."""
        conflicts_detected_total.labels(type=conflict_type, severity=severity).inc()

    def inc_travel_fallback(self, reason: str) -> None:
        """Increment travel fallback counter."""
        travel_estimate_fallbacks_total.labels(reason=reason).inc()

    def inc_availability(self, status: str) -> None:
        """Increment availability check counter."""
        availability_checks_total.labels(status=status).inc()


_metrics = PrometheusEngineMetrics()


def get_metrics() -> PrometheusEngineMetrics:
    """Get the process-wide metrics recorder."""
    return _metrics
