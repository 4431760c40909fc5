"""Prometheus metrics for itinerary sync and normalization."""

from prometheus_client import Counter, Histogram

# Auto-save metrics
itinerary_saves_total = Counter(
    "itinerary_saves_total",
    "Total itinerary auto-save attempts",
    ["scope_kind", "outcome"],
)

itinerary_save_latency_ms = Histogram(
    "itinerary_save_latency_ms",
    "Itinerary auto-save write latency in milliseconds",
    ["scope_kind"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

# Normalization metrics
normalization_skips_total = Counter(
    "normalization_skips_total",
    "Booking fields skipped during event normalization",
    ["source", "reason"],
)

duplicate_events_skipped_total = Counter(
    "duplicate_events_skipped_total",
    "Booking-derived events skipped because the itinerary already had them",
    ["source"],
)


class PrometheusSyncMetrics:
    """Prometheus-based itinerary sync metrics implementation."""

    def record_save(self, scope_kind: str, outcome: str, latency_ms: float) -> None:
        """Record an auto-save attempt and its latency."""
        itinerary_saves_total.labels(scope_kind=scope_kind, outcome=outcome).inc()
        itinerary_save_latency_ms.labels(scope_kind=scope_kind).observe(latency_ms)

    def inc_normalization_skip(self, source: str, reason: str) -> None:
        """Increment normalization skip counter."""
        normalization_skips_total.labels(source=source, reason=reason).inc()

    def inc_duplicate_skipped(self, source: str, count: int = 1) -> None:
        """Increment duplicate-event counter."""
        duplicate_events_skipped_total.labels(source=source).inc(count)


metrics = PrometheusSyncMetrics()
