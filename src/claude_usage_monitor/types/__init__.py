"""Type definitions for Claude Usage Monitor."""

from claude_usage_monitor.types.usage import ModelTokenSummary, UsageRecord
from claude_usage_monitor.types.stats import (
    DailyActivity,
    DailyModelTokens,
    HistoricalSummary,
    LongestSession,
    ModelUsageEntry,
)
from claude_usage_monitor.types.health import (
    HealthAssessment,
    HealthBand,
    HealthWarning,
    SessionHealth,
    TokenHealthConfig,
    WarningSeverity,
)
from claude_usage_monitor.types.snapshot import (
    AccountInfo,
    APIProfile,
    MetricMode,
    PlanTier,
    RateLimitUsage,
    TrendDirection,
    UsageSnapshot,
)

__all__ = [
    "UsageRecord",
    "ModelTokenSummary",
    "DailyActivity",
    "DailyModelTokens",
    "HistoricalSummary",
    "LongestSession",
    "ModelUsageEntry",
    "HealthAssessment",
    "HealthBand",
    "HealthWarning",
    "SessionHealth",
    "TokenHealthConfig",
    "WarningSeverity",
    "AccountInfo",
    "APIProfile",
    "MetricMode",
    "PlanTier",
    "RateLimitUsage",
    "TrendDirection",
    "UsageSnapshot",
]
