"""
Normalisation of the accounting tool's JSON output into the canonical
UsageSnapshot. Every tolerance for upstream schema drift lives here;
the rest of the package only sees the canonical model.
"""

import json
import math
from datetime import datetime
from typing import Any, Iterable

from ccwatch.errors import InvalidPayload
from ccwatch.models import DAILY_MODE, DayRecord, TotalsRecord, UsageSnapshot

# how many trailing days make up the recent window
RECENT_WINDOW_DAYS = 7


def _cost(value: "Any") -> "float":
    """
    coerces an upstream figure to a non-negative finite float. Anything
    else (strings, bools, negatives, overflowing numbers) counts as 0.
    """
    # bool is an int subclass and must not count as a figure
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _count(value: "Any") -> "int":
    return int(_cost(value))


def extract_daily(payload: "Any") -> "list[Any]":
    """
    returns the list of day entries from either known shape: a bare
    list, or an object carrying the list under `daily`.
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict) and isinstance(payload.get("daily"), list):
        return payload["daily"]

    raise InvalidPayload(
        "ccusage returned invalid data structure: " + json.dumps(payload)[:200]
    )


def decode_day(entry: "dict[str, Any]") -> "DayRecord":
    """
    decodes one upstream day entry. The cost comes from `totalCost`
    when present, else `cost`; older tool versions only sent the
    latter.
    """
    if "totalCost" in entry:
        cost = _cost(entry["totalCost"])
    else:
        cost = _cost(entry.get("cost"))

    input_tokens = _count(entry.get("inputTokens"))
    output_tokens = _count(entry.get("outputTokens"))
    cache_creation = _count(entry.get("cacheCreationTokens"))
    cache_read = _count(entry.get("cacheReadTokens"))

    if "totalTokens" in entry:
        total_tokens = _count(entry["totalTokens"])
    else:
        total_tokens = input_tokens + output_tokens + cache_creation + cache_read

    models_used = entry.get("modelsUsed") or []
    breakdowns = entry.get("modelBreakdowns")

    return DayRecord(
        date=entry["date"],
        cost=cost,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_creation_tokens=cache_creation,
        cache_read_tokens=cache_read,
        total_tokens=total_tokens,
        models_used=tuple(str(m) for m in models_used if isinstance(m, str)),
        model_breakdowns=breakdowns if breakdowns is not None else [],
    )


def decode_days(entries: "Iterable[Any]") -> "list[DayRecord]":
    """
    decodes every usable entry, keeping upstream order. Entries that
    are not objects or carry no date string are skipped.
    """
    days: "list[DayRecord]" = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("date"), str):
            continue
        days.append(decode_day(entry))
    return days


def _sum_costs(days: "Iterable[DayRecord]") -> "float":
    # fsum keeps the result independent of summation order
    try:
        return math.fsum(day.cost for day in days)
    except OverflowError as exc:
        raise InvalidPayload("ccusage reported costs out of range") from exc


def compute_totals(
    days: "list[DayRecord]",
    recent: "tuple[DayRecord, ...]",
    today: "str",
) -> "TotalsRecord":
    """
    sums counters over every known day. The weekly figure covers the
    recent window only, the monthly figure every day in today's
    calendar month.
    """
    month_prefix = today[:7]
    return TotalsRecord(
        total_cost=_sum_costs(days),
        weekly_cost=_sum_costs(recent),
        monthly_cost=_sum_costs(
            day for day in days if day.date.startswith(month_prefix)
        ),
        input_tokens=sum(day.input_tokens for day in days),
        output_tokens=sum(day.output_tokens for day in days),
        cache_creation_tokens=sum(day.cache_creation_tokens for day in days),
        cache_read_tokens=sum(day.cache_read_tokens for day in days),
        total_tokens=sum(day.total_tokens for day in days),
    )


def normalize_payload(payload: "Any", now: "datetime") -> "UsageSnapshot":
    """
    turns a parsed ccusage payload into a UsageSnapshot. `now` is the
    caller's local time; its calendar date selects today's entry.
    """
    days = decode_days(extract_daily(payload))
    today_key = now.date().isoformat()

    today = next((day for day in days if day.date == today_key), None)
    if today is None:
        today = DayRecord.zero(today_key)

    recent = tuple(days[-RECENT_WINDOW_DAYS:])

    return UsageSnapshot(
        today=today,
        recent=recent,
        totals=compute_totals(days, recent, today_key),
        last_updated=now,
        mode=DAILY_MODE,
        session=None,
        error=None,
    )
