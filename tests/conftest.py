from datetime import datetime, timezone

import pytest
from prometheus_client import CollectorRegistry

from ccwatch.metrics import MetricsUpdater
from ccwatch.models import DayRecord, TotalsRecord, UsageSnapshot

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture()
def metrics_updater(registry: "CollectorRegistry") -> "MetricsUpdater":
    return MetricsUpdater(registry=registry)


def make_snapshot(cost: "float" = 1.5, error: "str | None" = None) -> "UsageSnapshot":
    """
    builds a snapshot whose figures are all derived from cost, so a
    mix of two snapshots is easy to spot.
    """
    today = DayRecord(date="2024-01-01", cost=cost, input_tokens=int(cost * 100))
    return UsageSnapshot(
        today=today,
        recent=(today,),
        totals=TotalsRecord(
            total_cost=cost,
            weekly_cost=cost,
            monthly_cost=cost,
            input_tokens=int(cost * 100),
        ),
        last_updated=FIXED_NOW,
        error=error,
    )


@pytest.fixture()
def snapshot_factory() -> "object":
    return make_snapshot
