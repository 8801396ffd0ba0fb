from datetime import datetime, timezone

import pytest

from ccwatch.errors import InvalidPayload
from ccwatch.normalize import decode_day, extract_daily, normalize_payload

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _day(date: "str", cost: "float", **extra: "object") -> "dict[str, object]":
    return {"date": date, "totalCost": cost, **extra}


class TestExtractDaily:
    def test_bare_list(self) -> "None":
        assert extract_daily([{"date": "2024-01-01"}]) == [{"date": "2024-01-01"}]

    def test_object_with_daily_key(self) -> "None":
        assert extract_daily({"daily": [], "totals": {}}) == []

    def test_rejects_other_shapes(self) -> "None":
        with pytest.raises(InvalidPayload):
            extract_daily({"sessions": []})
        with pytest.raises(InvalidPayload):
            extract_daily({"daily": "nope"})


class TestDecodeDay:
    def test_total_cost_preferred_over_cost(self) -> "None":
        day = decode_day({"date": "2024-01-01", "totalCost": 2.0, "cost": 9.0})
        assert day.cost == 2.0

    def test_falls_back_to_cost(self) -> "None":
        assert decode_day({"date": "2024-01-01", "cost": 3.5}).cost == 3.5

    def test_missing_cost_is_zero(self) -> "None":
        assert decode_day({"date": "2024-01-01"}).cost == 0.0

    def test_missing_counters_default_to_zero(self) -> "None":
        day = decode_day({"date": "2024-01-01", "inputTokens": 7})
        assert day.input_tokens == 7
        assert day.output_tokens == 0
        assert day.cache_creation_tokens == 0
        assert day.cache_read_tokens == 0
        assert day.total_tokens == 7

    def test_upstream_total_tokens_kept(self) -> "None":
        day = decode_day({"date": "2024-01-01", "inputTokens": 7, "totalTokens": 100})
        assert day.total_tokens == 100

    def test_models_map_recomputed_not_trusted(self) -> "None":
        day = decode_day(
            {
                "date": "2024-01-01",
                "modelsUsed": ["opus", "haiku"],
                "models": {"bogus": True},
            }
        )
        assert day.models == {"opus": True, "haiku": True}

    def test_model_breakdowns_passed_through(self) -> "None":
        breakdowns = [{"modelName": "opus", "cost": 1.0}]
        day = decode_day({"date": "2024-01-01", "modelBreakdowns": breakdowns})
        assert day.model_breakdowns == breakdowns


    def test_non_finite_figures_count_as_zero(self) -> "None":
        day = decode_day(
            {
                "date": "2024-01-01",
                "totalCost": float("inf"),
                "inputTokens": float("nan"),
                "outputTokens": 1e400,
                "totalTokens": 10**400,
            }
        )
        assert day.cost == 0.0
        assert day.input_tokens == 0
        assert day.output_tokens == 0
        assert day.total_tokens == 0

    def test_negative_figures_count_as_zero(self) -> "None":
        day = decode_day({"date": "2024-01-01", "cost": -2.5, "inputTokens": -10})
        assert day.cost == 0.0
        assert day.input_tokens == 0


class TestNormalizePayload:
    def test_single_day_scenario(self) -> "None":
        payload = {"daily": [{"date": "2024-01-01", "totalCost": 1.5, "inputTokens": 100}]}
        snapshot = normalize_payload(payload, NOW)

        assert snapshot.today.cost == 1.5
        assert snapshot.today.input_tokens == 100
        assert snapshot.totals.cost == 1.5
        assert snapshot.totals.weekly_cost == 1.5
        assert snapshot.totals.monthly_cost == 1.5
        assert snapshot.session is None
        assert snapshot.mode == "daily"
        assert snapshot.error is None
        assert snapshot.last_updated == NOW

    def test_shape_invariance(self) -> "None":
        days = [_day("2023-12-30", 1.0), _day("2023-12-31", 2.0), _day("2024-01-01", 3.0)]
        assert normalize_payload(days, NOW) == normalize_payload({"daily": days}, NOW)

    def test_missing_today_is_synthesized(self) -> "None":
        snapshot = normalize_payload([_day("2023-12-31", 2.0)], NOW)
        assert snapshot.today.date == "2024-01-01"
        assert snapshot.today.cost == 0.0
        assert snapshot.totals.cost == 2.0

    def test_recent_is_last_seven_in_order(self) -> "None":
        days = [_day(f"2023-12-{n:02d}", float(n)) for n in range(20, 31)]
        snapshot = normalize_payload(days, NOW)

        assert [d.date for d in snapshot.recent] == [
            f"2023-12-{n:02d}" for n in range(24, 31)
        ]
        assert snapshot.totals.weekly_cost == sum(d.cost for d in snapshot.recent)
        assert snapshot.totals.total_cost == sum(range(20, 31))

    def test_short_history_keeps_everything(self) -> "None":
        snapshot = normalize_payload([_day("2024-01-01", 1.0)], NOW)
        assert len(snapshot.recent) == 1

    def test_monthly_cost_filters_by_calendar_month(self) -> "None":
        now = datetime(2024, 2, 3, tzinfo=timezone.utc)
        days = [
            _day("2024-01-30", 10.0),
            _day("2024-01-31", 20.0),
            _day("2024-02-01", 1.0),
            _day("2024-02-03", 2.0),
        ]
        snapshot = normalize_payload(days, now)
        assert snapshot.totals.monthly_cost == 3.0
        assert snapshot.totals.total_cost == 33.0

    def test_monthly_cost_zero_when_no_day_this_month(self) -> "None":
        snapshot = normalize_payload([_day("2023-12-31", 5.0)], NOW)
        assert snapshot.totals.monthly_cost == 0.0

    def test_totals_sum_token_counters_over_all_days(self) -> "None":
        days = [
            _day(f"2023-12-{n:02d}", 0.0, inputTokens=1, outputTokens=2, cacheReadTokens=3)
            for n in range(1, 11)
        ]
        snapshot = normalize_payload(days, NOW)
        assert snapshot.totals.input_tokens == 10
        assert snapshot.totals.output_tokens == 20
        assert snapshot.totals.cache_read_tokens == 30
        assert snapshot.totals.cache_creation_tokens == 0

    def test_empty_daily_is_valid_zero_snapshot(self) -> "None":
        snapshot = normalize_payload({"daily": []}, NOW)
        assert snapshot.error is None
        assert snapshot.today.cost == 0.0
        assert snapshot.recent == ()
        assert snapshot.totals.cost == 0.0
        assert snapshot.totals.weekly_cost == 0.0
        assert snapshot.totals.monthly_cost == 0.0

    def test_unusable_entries_are_skipped(self) -> "None":
        payload = {"daily": ["junk", {"cost": 4.0}, _day("2024-01-01", 1.0)]}
        snapshot = normalize_payload(payload, NOW)
        assert len(snapshot.recent) == 1
        assert snapshot.totals.cost == 1.0

    def test_every_day_has_models_map(self) -> "None":
        days = [
            _day("2023-12-31", 1.0, modelsUsed=["a"]),
            _day("2024-01-01", 1.0, modelsUsed=["a", "b"]),
        ]
        snapshot = normalize_payload(days, NOW)
        for day in (snapshot.today, *snapshot.recent):
            assert set(day.models) == set(day.models_used)
            assert all(day.models.values())

    def test_cost_sum_out_of_range_is_invalid(self) -> "None":
        days = [_day("2023-12-31", 1e308), _day("2024-01-01", 1e308)]
        with pytest.raises(InvalidPayload, match="out of range"):
            normalize_payload(days, NOW)
