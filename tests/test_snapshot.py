"""Tests for UsageSnapshot derived values."""

from datetime import datetime, timedelta

import pytest

from claude_usage_monitor.types import (
    DailyActivity,
    MetricMode,
    ModelTokenSummary,
    PlanTier,
    RateLimitUsage,
    TrendDirection,
    UsageSnapshot,
)

NOW = datetime(2026, 2, 13, 6, 0).astimezone()


def days(counts, start="2026-02-01"):
    first = datetime.strptime(start, "%Y-%m-%d")
    return [
        DailyActivity(date=(first + timedelta(days=i)).strftime("%Y-%m-%d"), message_count=c)
        for i, c in enumerate(counts)
    ]


def snapshot(**kwargs):
    return UsageSnapshot(last_updated=NOW, **kwargs)


class TestTrend:
    def test_up(self):
        assert snapshot(daily_activity=days([10] * 7 + [20] * 7)).trend_direction == TrendDirection.UP

    def test_down(self):
        assert snapshot(daily_activity=days([20] * 7 + [10] * 7)).trend_direction == TrendDirection.DOWN

    def test_within_dead_band(self):
        assert snapshot(daily_activity=days([10] * 7 + [10.5] * 7)).trend_direction == TrendDirection.FLAT

    def test_not_enough_history(self):
        assert snapshot(daily_activity=days([1] * 7)).trend_direction == TrendDirection.FLAT


def test_daily_average_last_seven_days():
    assert snapshot(daily_activity=days([100] * 3 + [7] * 7)).daily_average == 7
    assert snapshot().daily_average == 0


def test_busiest_day_of_week():
    # 2026-02-09 is a Monday
    activity = [
        DailyActivity(date="2026-02-09", message_count=50),
        DailyActivity(date="2026-02-10", message_count=10),
        DailyActivity(date="garbage", message_count=999),
    ]
    assert snapshot(daily_activity=activity).busiest_day_of_week == ("Monday", 50)
    assert snapshot().busiest_day_of_week is None


def test_projected_today_total():
    snap = snapshot(today_messages=10)
    assert snap.projected_today_total(now=NOW) == 40
    assert snap.projected_today_total(now=NOW.replace(hour=0)) == 10


def test_percent_by_mode():
    snap = snapshot(rate_limits=RateLimitUsage(five_hour_utilization=0.3, seven_day_utilization=0.6))
    assert snap.percent(MetricMode.FIVE_HOUR) == pytest.approx(30.0)
    assert snap.percent(MetricMode.SEVEN_DAY) == pytest.approx(60.0)
    assert snap.percent(MetricMode.CONTEXT_HEALTH) == 0.0
    assert snapshot().percent(MetricMode.FIVE_HOUR) == 0.0


def test_totals_and_cost():
    snap = snapshot(model_tokens=[
        ModelTokenSummary("claude-opus-4-6", "Opus 4.6", input_tokens=1_000_000),
        ModelTokenSummary("claude-haiku-4-5-20251001", "Haiku 4.5", output_tokens=1_000_000),
    ])
    assert snap.total_tokens == 2_000_000
    assert snap.total_cost == pytest.approx(19.0)


class TestPlanTier:
    def test_known_tiers(self):
        assert PlanTier.from_billing_type("max").name == "Max"
        assert PlanTier.from_billing_type("Pro").price == "$20/mo"

    def test_unknown_tier_keeps_name(self):
        assert PlanTier.from_billing_type("enterprise").name == "Enterprise"

    def test_snapshot_plan_tier(self):
        assert snapshot(billing_type="team").plan_tier.name == "Teams"
        assert snapshot().plan_tier is None


def test_metric_mode_labels():
    assert MetricMode("5h").label == "5-Hour"
    assert MetricMode.CONTEXT_HEALTH.label == "Context"
    assert TrendDirection.UP.symbol == "↑"
