from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# the only aggregation mode the direct ccusage invocation produces
DAILY_MODE = "daily"

DEFAULT_POLLING_FREQUENCY = "5min"
DEFAULT_INTERVAL_SECONDS = 300

_FALSE_VALUES = ("0", "false", "no", "off")


def parse_bool(value: "object") -> "bool":
    """
    reads a flag from the environment or the settings wire form.
    Strings such as "false" or "0" count as False.
    """
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


@dataclass(frozen=True, slots=True)
class PollingFrequency:
    """
    PollingFrequency describes one of the selectable refresh
    cadences offered to the settings UI.
    """

    key: "str"
    interval_seconds: "int"
    label: "str"
    description: "str"


POLLING_FREQUENCIES: "dict[str, PollingFrequency]" = {
    "1min": PollingFrequency(
        key="1min",
        interval_seconds=60,
        label="1 Minute",
        description="Fast updates - best for active development and real-time monitoring",
    ),
    "5min": PollingFrequency(
        key="5min",
        interval_seconds=300,
        label="5 Minutes",
        description="Balanced updates - good for regular usage monitoring",
    ),
    "10min": PollingFrequency(
        key="10min",
        interval_seconds=600,
        label="10 Minutes",
        description="Slower updates - conserves resources for background monitoring",
    ),
}


def interval_for(polling_frequency: "str") -> "int":
    """
    resolves a polling frequency to its interval in seconds. Unknown
    values are tolerated and fall back to the 5 minute cadence.
    """
    frequency = POLLING_FREQUENCIES.get(polling_frequency)
    if frequency is None:
        return DEFAULT_INTERVAL_SECONDS
    return frequency.interval_seconds


@dataclass(frozen=True, slots=True)
class DayRecord:
    """
    DayRecord holds the usage reported by the accounting tool for a
    single calendar day. The `models` presence map is always derived
    from `models_used` and never taken from upstream data.
    """

    # ISO calendar date, e.g. "2024-01-31"
    date: "str"
    cost: "float" = 0.0
    input_tokens: "int" = 0
    output_tokens: "int" = 0
    cache_creation_tokens: "int" = 0
    cache_read_tokens: "int" = 0
    total_tokens: "int" = 0
    models_used: "tuple[str, ...]" = ()
    # passed through untouched for UI consumers
    model_breakdowns: "Any" = field(default_factory=list)
    models: "dict[str, bool]" = field(init=False, compare=False)

    def __post_init__(self) -> "None":
        # dict.fromkeys keeps first-seen order while dropping duplicates
        unique = tuple(dict.fromkeys(self.models_used))
        object.__setattr__(self, "models_used", unique)
        object.__setattr__(self, "models", {model: True for model in unique})

    @classmethod
    def zero(cls, date: "str") -> "DayRecord":
        return cls(date=date)

    def to_dict(self) -> "dict[str, Any]":
        return {
            "date": self.date,
            "cost": self.cost,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "cacheCreationTokens": self.cache_creation_tokens,
            "cacheReadTokens": self.cache_read_tokens,
            "totalTokens": self.total_tokens,
            "modelsUsed": list(self.models_used),
            "modelBreakdowns": self.model_breakdowns,
            "models": dict(self.models),
        }


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """
    SessionRecord describes a single usage session. Only some fetch
    modes can produce one; the daily mode never does.
    """

    cost: "float"
    is_active: "bool" = False
    id: "str | None" = None
    start_time: "str | None" = None
    end_time: "str | None" = None

    def to_dict(self) -> "dict[str, Any]":
        return {
            "id": self.id,
            "cost": self.cost,
            "is_active": self.is_active,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass(frozen=True, slots=True)
class TotalsRecord:
    """
    TotalsRecord aggregates cost and token counters across all
    known days. `cost` duplicates `total_cost` for consumers that
    still read the older field name.
    """

    total_cost: "float" = 0.0
    weekly_cost: "float" = 0.0
    monthly_cost: "float" = 0.0
    input_tokens: "int" = 0
    output_tokens: "int" = 0
    cache_creation_tokens: "int" = 0
    cache_read_tokens: "int" = 0
    total_tokens: "int" = 0

    @property
    def cost(self) -> "float":
        return self.total_cost

    @classmethod
    def zero(cls) -> "TotalsRecord":
        return cls()

    def to_dict(self) -> "dict[str, Any]":
        return {
            "cost": self.cost,
            "totalCost": self.total_cost,
            "weekly_cost": self.weekly_cost,
            "monthly_cost": self.monthly_cost,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "cacheCreationTokens": self.cache_creation_tokens,
            "cacheReadTokens": self.cache_read_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    """
    UsageSnapshot is one complete fetch result. Snapshots are never
    mutated; each fetch produces a new one that replaces the last.
    A snapshot with `error` set is degraded: structurally valid but
    zeroed.
    """

    today: "DayRecord"
    recent: "tuple[DayRecord, ...]"
    totals: "TotalsRecord"
    last_updated: "datetime"
    mode: "str" = DAILY_MODE
    session: "SessionRecord | None" = None
    error: "str | None" = None

    @classmethod
    def degraded(cls, message: "str", now: "datetime") -> "UsageSnapshot":
        """
        builds the zeroed snapshot used in place of a failed fetch.
        """
        return cls(
            today=DayRecord.zero(now.date().isoformat()),
            recent=(),
            totals=TotalsRecord.zero(),
            last_updated=now,
            error=message,
        )

    def to_dict(self) -> "dict[str, Any]":
        return {
            "today": self.today.to_dict(),
            "session": self.session.to_dict() if self.session else None,
            "recent": [day.to_dict() for day in self.recent],
            "totals": self.totals.to_dict(),
            "lastUpdated": self.last_updated.isoformat(),
            "mode": self.mode,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Settings are the user-adjustable options. Any polling frequency
    string is accepted here; it is only interpreted when the poller
    resolves its interval.
    """

    polling_frequency: "str" = DEFAULT_POLLING_FREQUENCY
    auto_start: "bool" = True

    @property
    def interval_seconds(self) -> "int":
        return interval_for(self.polling_frequency)

    @classmethod
    def from_dict(cls, data: "dict[str, Any]") -> "Settings":
        return cls(
            polling_frequency=str(
                data.get("polling_frequency", DEFAULT_POLLING_FREQUENCY)
            ),
            auto_start=parse_bool(data.get("auto_start", True)),
        )

    def to_dict(self) -> "dict[str, Any]":
        return {
            "polling_frequency": self.polling_frequency,
            "auto_start": self.auto_start,
        }
