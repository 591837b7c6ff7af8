"""Admission metrics."""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class AdmissionMetrics:
    """Prometheus metrics for admission decisions and decay."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        self.decisions_total = Counter(
            "limiter_decisions_total",
            "Admission decisions by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.decay_ticks_total = Counter(
            "limiter_decay_ticks_total",
            "Decay ticks applied to the ledger",
            registry=self.registry,
        )
        self.tracked_keys = Gauge(
            "limiter_tracked_keys",
            "Identity keys currently held by the ledger",
            registry=self.registry,
        )

    def record_decision(self, allowed: bool) -> None:
        """Count one admission decision."""
        self.decisions_total.labels(
            outcome="allowed" if allowed else "rejected"
        ).inc()

    def record_decay(self, tracked_keys: int) -> None:
        """Count one decay tick and refresh the tracked key gauge."""
        self.decay_ticks_total.inc()
        self.tracked_keys.set(tracked_keys)

    def value(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Current sample value, 0.0 when the sample does not exist yet."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample if sample is not None else 0.0

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)
