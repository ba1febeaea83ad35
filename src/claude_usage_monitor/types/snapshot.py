"""Snapshot types handed to callers, plus the data collaborators feed in."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional

from claude_usage_monitor.types.health import SessionHealth
from claude_usage_monitor.types.stats import DailyActivity
from claude_usage_monitor.types.usage import ModelTokenSummary

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_WINDOW_SECONDS = {
    "five_hour": 5 * 3600,
    "seven_day": 7 * 24 * 3600,
}


@dataclass(frozen=True)
class RateLimitUsage:
    """Unified rate-limit state from the API response headers.

    Utilizations are fractions in 0.0-1.0. ``representative_claim`` names the
    binding window ("five_hour" or "seven_day").
    """
    representative_claim: str = "five_hour"
    five_hour_utilization: float = 0.0
    five_hour_reset: Optional[datetime] = None
    five_hour_status: str = "allowed"
    seven_day_utilization: float = 0.0
    seven_day_reset: Optional[datetime] = None
    seven_day_status: str = "allowed"
    overall_status: str = "allowed"

    @property
    def five_hour_percent(self) -> float:
        return self.five_hour_utilization * 100.0

    @property
    def seven_day_percent(self) -> float:
        return self.seven_day_utilization * 100.0

    @property
    def requests_percent_used(self) -> float:
        if self.representative_claim == "seven_day":
            return self.seven_day_percent
        return self.five_hour_percent

    @property
    def binding_reset(self) -> Optional[datetime]:
        if self.representative_claim == "seven_day":
            return self.seven_day_reset
        return self.five_hour_reset

    @property
    def binding_window_label(self) -> str:
        return "7-day" if self.representative_claim == "seven_day" else "5-hour"

    @property
    def is_throttled(self) -> bool:
        return self.overall_status == "throttled"

    def estimated_time_to_limit(self, window: str, now: datetime | None = None) -> Optional[float]:
        """Seconds until the window fills at the current burn rate.

        Returns None below 50% utilization, with too little elapsed time, or
        when the projection lands after the reset.
        """
        if window == "seven_day":
            utilization, reset = self.seven_day_utilization, self.seven_day_reset
        else:
            window = "five_hour"
            utilization, reset = self.five_hour_utilization, self.five_hour_reset
        if utilization <= 0.50 or reset is None:
            return None

        now = now or datetime.now(timezone.utc)
        remaining = (reset - now).total_seconds()
        if remaining <= 0:
            return None

        elapsed = _WINDOW_SECONDS[window] - remaining
        if elapsed <= 60:
            return None

        rate = utilization / elapsed
        time_to_full = (1.0 - utilization) / rate
        if time_to_full >= remaining:
            return None
        return time_to_full

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["RateLimitUsage"]:
        """Parse the anthropic-ratelimit-unified-* headers, or None if absent."""
        lowered = {str(k).lower(): v for k, v in headers.items()}
        status = lowered.get("anthropic-ratelimit-unified-status")
        if status is None:
            return None

        def _float(key: str) -> float:
            try:
                return float(lowered.get(key, 0))
            except (TypeError, ValueError):
                return 0.0

        def _reset(key: str) -> Optional[datetime]:
            try:
                return datetime.fromtimestamp(float(lowered[key]), tz=timezone.utc)
            except (KeyError, TypeError, ValueError, OverflowError, OSError):
                return None

        prefix = "anthropic-ratelimit-unified-"
        return cls(
            representative_claim=lowered.get(prefix + "representative-claim", "five_hour"),
            five_hour_utilization=_float(prefix + "5h-utilization"),
            five_hour_reset=_reset(prefix + "5h-reset"),
            five_hour_status=lowered.get(prefix + "5h-status", status),
            seven_day_utilization=_float(prefix + "7d-utilization"),
            seven_day_reset=_reset(prefix + "7d-reset"),
            seven_day_status=lowered.get(prefix + "7d-status", status),
            overall_status=status,
        )


@dataclass(frozen=True)
class APIProfile:
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["APIProfile"]:
        lowered = {str(k).lower(): v for k, v in headers.items()}
        org_id = lowered.get("anthropic-organization-id")
        if org_id is None:
            return None
        return cls(organization_id=org_id, organization_name=lowered.get("x-organization-name"))


@dataclass(frozen=True)
class AccountInfo:
    """Identity fields cached locally by the client in its account file."""
    organization_name: Optional[str] = None
    display_name: Optional[str] = None
    billing_type: Optional[str] = None


class MetricMode(str, Enum):
    FIVE_HOUR = "5h"
    SEVEN_DAY = "7d"
    CONTEXT_HEALTH = "context"

    @property
    def label(self) -> str:
        return {"5h": "5-Hour", "7d": "7-Day", "context": "Context"}[self.value]


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @property
    def symbol(self) -> str:
        return {"up": "↑", "down": "↓", "flat": "→"}[self.value]


@dataclass(frozen=True)
class PlanTier:
    name: str
    price: Optional[str] = None

    @classmethod
    def from_billing_type(cls, billing_type: str) -> Optional["PlanTier"]:
        key = billing_type.lower()
        if not key:
            return None
        if key == "pro":
            return cls("Pro", "$20/mo")
        if key in ("max", "max_5x"):
            return cls("Max", "$100/mo per seat")
        if key in ("teams", "team"):
            return cls("Teams", "$30/mo per seat")
        if key == "free":
            return cls("Free")
        if key in ("api_evaluation", "api"):
            return cls("API", "Usage-based")
        # Unknown tiers keep their name instead of disappearing
        return cls(billing_type[:1].upper() + billing_type[1:])


@dataclass(frozen=True)
class UsageSnapshot:
    last_updated: datetime
    rate_limits: Optional[RateLimitUsage] = None
    organization_name: Optional[str] = None
    display_name: Optional[str] = None
    billing_type: Optional[str] = None
    first_session_date: Optional[datetime] = None
    total_sessions: int = 0
    total_messages: int = 0
    longest_session_duration: Optional[str] = None
    longest_session_messages: int = 0
    peak_hour: Optional[int] = None
    peak_hour_count: int = 0
    today_messages: int = 0
    today_sessions: int = 0
    today_tool_calls: int = 0
    model_tokens: list[ModelTokenSummary] = field(default_factory=list)
    daily_activity: list[DailyActivity] = field(default_factory=list)
    hour_counts: dict[str, int] = field(default_factory=dict)
    token_health: Optional[SessionHealth] = None
    top_session_healths: list[SessionHealth] = field(default_factory=list)
    token_window_days: int = 0
    corrupt_line_count: int = 0

    @property
    def total_tokens(self) -> int:
        return sum(m.total_tokens for m in self.model_tokens)

    @property
    def total_cost(self) -> float:
        return sum(m.cost for m in self.model_tokens)

    def percent(self, mode: MetricMode) -> float:
        if mode == MetricMode.CONTEXT_HEALTH:
            return self.token_health.usage_percentage if self.token_health else 0.0
        if self.rate_limits is None:
            return 0.0
        if mode == MetricMode.SEVEN_DAY:
            return self.rate_limits.seven_day_percent
        return self.rate_limits.five_hour_percent

    @property
    def daily_average(self) -> int:
        """Average messages per day over the last 7 days of activity."""
        recent = self.daily_activity[-7:]
        if not recent:
            return 0
        return sum(d.message_count for d in recent) // len(recent)

    def projected_today_total(self, now: datetime | None = None) -> int:
        hour = (now or datetime.now()).hour
        if hour <= 0 or self.today_messages <= 0:
            return self.today_messages
        return int(self.today_messages / (hour / 24.0))

    @property
    def trend_direction(self) -> TrendDirection:
        """This week's daily average vs last week's, with a 10% dead band."""
        if len(self.daily_activity) < 8:
            return TrendDirection.FLAT
        this_week = self.daily_activity[-7:]
        last_week = self.daily_activity[:-7][-7:]

        this_avg = sum(d.message_count for d in this_week) / len(this_week)
        last_avg = sum(d.message_count for d in last_week) / len(last_week)
        if last_avg <= 0:
            return TrendDirection.UP if this_avg > 0 else TrendDirection.FLAT
        change = (this_avg - last_avg) / last_avg
        if change > 0.10:
            return TrendDirection.UP
        if change < -0.10:
            return TrendDirection.DOWN
        return TrendDirection.FLAT

    @property
    def busiest_day_of_week(self) -> Optional[tuple[str, int]]:
        totals: dict[int, int] = {}
        counts: dict[int, int] = {}
        for day in self.daily_activity:
            parsed = day.parsed_date
            if parsed is None:
                continue
            weekday = parsed.weekday()
            totals[weekday] = totals.get(weekday, 0) + day.message_count
            counts[weekday] = counts.get(weekday, 0) + 1
        if not totals:
            return None

        weekday = max(totals, key=lambda w: totals[w] / counts[w])
        average = totals[weekday] // counts[weekday]
        if average <= 0:
            return None
        return _WEEKDAY_NAMES[weekday], average

    @property
    def plan_tier(self) -> Optional[PlanTier]:
        if not self.billing_type:
            return None
        return PlanTier.from_billing_type(self.billing_type)
