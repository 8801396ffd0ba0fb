from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from ccwatch.models import UsageSnapshot


class MetricsUpdater:
    """
    exposes fetch cycle health and the latest usage figures as
    Prometheus metrics.
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self._fetch_duration: "Histogram" = Histogram(
            "ccwatch_fetch_duration_seconds",
            "Duration of usage fetches",
            ["source"],
            registry=registry,
        )
        self._fetch_errors: "Counter" = Counter(
            "ccwatch_fetch_errors_total",
            "Total number of failed usage fetches by source and trigger",
            ["source", "trigger"],
            registry=registry,
        )
        self._degraded: "Counter" = Counter(
            "ccwatch_degraded_snapshots_total",
            "Total number of degraded (zeroed) snapshots produced",
            ["source"],
            registry=registry,
        )
        self._last_fetch_success: "Gauge" = Gauge(
            "ccwatch_last_fetch_success_timestamp_seconds",
            "Unix timestamp of the last fetch that produced usable data",
            ["source"],
            registry=registry,
        )
        # cost gauges keyed by period: today, weekly, monthly, total
        self._cost: "Gauge" = Gauge(
            "ccwatch_cost_usd",
            "Latest reported cost in USD by period",
            ["period"],
            registry=registry,
        )
        self._tokens: "Gauge" = Gauge(
            "ccwatch_tokens",
            "Latest reported token count across all known days by kind",
            ["kind"],
            registry=registry,
        )

    def observe_fetch_duration(self, source: "str", duration_seconds: "float") -> "None":
        self._fetch_duration.labels(source=source).observe(duration_seconds)

    def inc_fetch_error(self, source: "str", trigger: "str") -> "None":
        self._fetch_errors.labels(source=source, trigger=trigger).inc()

    def update_snapshot(
        self,
        source: "str",
        snapshot: "UsageSnapshot",
        timestamp: "float",
    ) -> "None":
        """
        updates the figure gauges from a snapshot. Degraded snapshots
        only bump the degraded counter so the last good figures stay
        visible.
        """
        if snapshot.error is not None:
            self._degraded.labels(source=source).inc()
            return

        totals = snapshot.totals
        self._cost.labels(period="today").set(snapshot.today.cost)
        self._cost.labels(period="weekly").set(totals.weekly_cost)
        self._cost.labels(period="monthly").set(totals.monthly_cost)
        self._cost.labels(period="total").set(totals.total_cost)

        self._tokens.labels(kind="input").set(totals.input_tokens)
        self._tokens.labels(kind="output").set(totals.output_tokens)
        self._tokens.labels(kind="cache_creation").set(totals.cache_creation_tokens)
        self._tokens.labels(kind="cache_read").set(totals.cache_read_tokens)

        self._last_fetch_success.labels(source=source).set(timestamp)
