"""Reader for the precomputed historical summary file."""

import logging
import os
from pathlib import Path

import orjson

from claude_usage_monitor.types.stats import (
    DailyActivity,
    DailyModelTokens,
    HistoricalSummary,
    LongestSession,
    ModelUsageEntry,
)
from claude_usage_monitor.utils.claude_paths import STATS_CACHE_PATH

logger = logging.getLogger(__name__)


class StatsCacheReader:
    """Decodes stats-cache.json and caches the result by (mtime, size).

    Never writes to the file. A missing or malformed file reads as None.
    """

    def __init__(self, file_path: str | Path | None = None):
        self._file_path = Path(file_path) if file_path else STATS_CACHE_PATH
        self._cached: HistoricalSummary | None = None
        self._cached_stamp: tuple[float, int] | None = None

    @property
    def file_path(self) -> Path:
        return self._file_path

    def invalidate(self):
        self._cached = None
        self._cached_stamp = None

    def read(self) -> HistoricalSummary | None:
        try:
            stat = os.stat(self._file_path)
        except FileNotFoundError:
            logger.info("Stats cache not found: %s", self._file_path)
            return None
        except OSError as e:
            logger.warning("Cannot stat stats cache %s: %s", self._file_path, e)
            return None

        stamp = (stat.st_mtime, stat.st_size)
        if self._cached is not None and self._cached_stamp == stamp:
            return self._cached

        try:
            raw = orjson.loads(self._file_path.read_bytes())
            summary = decode_summary(raw)
        except OSError as e:
            logger.warning("Cannot read stats cache %s: %s", self._file_path, e)
            return None
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Malformed stats cache %s: %s", self._file_path, e)
            return None

        self._cached = summary
        self._cached_stamp = stamp
        return summary


def decode_summary(raw) -> HistoricalSummary:
    """Decode a stats-cache document; raises on a malformed shape."""
    if not isinstance(raw, dict):
        raise TypeError(f"expected a JSON object, got {type(raw).__name__}")

    daily_activity = [
        DailyActivity(
            date=str(item["date"]),
            message_count=int(item.get("messageCount", 0)),
            session_count=int(item.get("sessionCount", 0)),
            tool_call_count=int(item.get("toolCallCount", 0)),
        )
        for item in raw.get("dailyActivity") or []
    ]

    daily_model_tokens = [
        DailyModelTokens(
            date=str(item["date"]),
            tokens_by_model={
                str(model): int(count)
                for model, count in (item.get("tokensByModel") or {}).items()
            },
        )
        for item in raw.get("dailyModelTokens") or []
    ]

    model_usage = {
        str(model): ModelUsageEntry(
            input_tokens=int(usage.get("inputTokens", 0)),
            output_tokens=int(usage.get("outputTokens", 0)),
            cache_read_input_tokens=int(usage.get("cacheReadInputTokens", 0)),
            cache_creation_input_tokens=int(usage.get("cacheCreationInputTokens", 0)),
        )
        for model, usage in (raw.get("modelUsage") or {}).items()
    }

    longest = raw.get("longestSession")
    longest_session = None
    if isinstance(longest, dict):
        longest_session = LongestSession(
            session_id=str(longest.get("sessionId", "")),
            duration_ms=int(longest.get("duration", 0)),
            message_count=int(longest.get("messageCount", 0)),
            timestamp=str(longest.get("timestamp", "")),
        )

    first_session_date = raw.get("firstSessionDate")

    return HistoricalSummary(
        version=int(raw.get("version", 0)),
        last_computed_date=str(raw.get("lastComputedDate", "")),
        daily_activity=daily_activity,
        daily_model_tokens=daily_model_tokens,
        model_usage=model_usage,
        total_sessions=int(raw.get("totalSessions", 0)),
        total_messages=int(raw.get("totalMessages", 0)),
        longest_session=longest_session,
        first_session_date=first_session_date if isinstance(first_session_date, str) else None,
        hour_counts={
            str(hour): int(count) for hour, count in (raw.get("hourCounts") or {}).items()
        },
    )
