"""Types for the precomputed historical summary (stats-cache.json)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class DailyActivity:
    date: str           # YYYY-MM-DD
    message_count: int = 0
    session_count: int = 0
    tool_call_count: int = 0

    @property
    def parsed_date(self) -> Optional[datetime]:
        try:
            return datetime.strptime(self.date, "%Y-%m-%d")
        except ValueError:
            return None


@dataclass(frozen=True)
class DailyModelTokens:
    date: str
    tokens_by_model: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelUsageEntry:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0


@dataclass(frozen=True)
class LongestSession:
    session_id: str
    duration_ms: int
    message_count: int
    timestamp: str

    @property
    def duration_formatted(self) -> str:
        """Format the duration as "2h 5m" or "42m"."""
        minutes = self.duration_ms // 1000 // 60
        hours = minutes // 60
        if hours > 0:
            return f"{hours}h {minutes % 60}m"
        return f"{minutes}m"


@dataclass(frozen=True)
class HistoricalSummary:
    version: int
    last_computed_date: str
    daily_activity: list[DailyActivity] = field(default_factory=list)
    daily_model_tokens: list[DailyModelTokens] = field(default_factory=list)
    model_usage: dict[str, ModelUsageEntry] = field(default_factory=dict)
    total_sessions: int = 0
    total_messages: int = 0
    longest_session: Optional[LongestSession] = None
    first_session_date: Optional[str] = None
    hour_counts: dict[str, int] = field(default_factory=dict)

    def covered_dates(self) -> set[str]:
        """Date keys already reflected in the per-day model tallies."""
        return {entry.date for entry in self.daily_model_tokens}
