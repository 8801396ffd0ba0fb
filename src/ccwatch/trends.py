from dataclasses import dataclass
from datetime import date, timedelta

from ccwatch.models import UsageSnapshot

UP = "up"
DOWN = "down"
NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class TrendSummary:
    """
    TrendSummary holds the statistics shown next to the recent
    usage chart.
    """

    average_cost: "float"
    max_cost: "float"
    min_cost: "float"
    week_total: "float"
    # cost of the latest earlier day with any spend, 0 if none
    previous_cost: "float"
    percentage_change: "float"
    direction: "str"


def trend_direction(costs: "list[float]") -> "str":
    """
    returns up or down when the last three costs (oldest first) move
    strictly in one direction, neutral otherwise.
    """
    if len(costs) < 3:
        return NEUTRAL

    a, b, c = costs[-3:]
    if a < b < c:
        return UP
    if a > b > c:
        return DOWN
    return NEUTRAL


def summarize(snapshot: "UsageSnapshot") -> "TrendSummary":
    costs = [day.cost for day in snapshot.recent]
    today = snapshot.today

    earlier = sorted(
        (day for day in snapshot.recent if day.date != today.date and day.cost > 0),
        key=lambda day: day.date,
    )
    previous_cost = earlier[-1].cost if earlier else 0.0

    if previous_cost > 0:
        change = (today.cost - previous_cost) / previous_cost * 100
    else:
        change = 0.0

    return TrendSummary(
        average_cost=sum(costs) / len(costs) if costs else 0.0,
        max_cost=max(costs, default=0.0),
        min_cost=min(costs, default=0.0),
        week_total=sum(costs),
        previous_cost=previous_cost,
        percentage_change=change,
        direction=trend_direction(costs),
    )


def seven_day_series(snapshot: "UsageSnapshot") -> "list[tuple[str, float]]":
    """
    returns (date, cost) for the seven days ending today, oldest
    first. Days missing from the recent window count as zero.
    """
    end = date.fromisoformat(snapshot.today.date)
    by_date = {day.date: day.cost for day in snapshot.recent}
    # today's record may be fresher than its copy in the window
    by_date[snapshot.today.date] = snapshot.today.cost

    series: "list[tuple[str, float]]" = []
    for offset in range(6, -1, -1):
        key = (end - timedelta(days=offset)).isoformat()
        series.append((key, by_date.get(key, 0.0)))
    return series
