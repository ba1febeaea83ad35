"""Combines live session records, the historical summary and external data into a UsageSnapshot."""

import logging
from datetime import datetime, timedelta

from claude_usage_monitor.services.account_config import AccountConfigReader
from claude_usage_monitor.services.config_manager import ConfigManager
from claude_usage_monitor.services.session_log_reader import SessionLogReader
from claude_usage_monitor.services.stats_cache_reader import StatsCacheReader
from claude_usage_monitor.services.token_health_monitor import DEFAULT_TOP_LIMIT, TokenHealthMonitor
from claude_usage_monitor.types.snapshot import APIProfile, RateLimitUsage, UsageSnapshot
from claude_usage_monitor.types.stats import HistoricalSummary
from claude_usage_monitor.types.usage import ModelTokenSummary, UsageRecord
from claude_usage_monitor.utils.dates import date_key, now_local, parse_timestamp, start_of_day
from claude_usage_monitor.utils.model_names import display_name

logger = logging.getLogger(__name__)

# Models without activity in this horizon are hidden from the all-time view
RECENT_MODEL_HOURS = 72

# Only first-party model ids are listed
MODEL_ID_PREFIX = "claude-"

_ORG_NAME_KEY = "account/orgName"
_DISPLAY_NAME_KEY = "account/displayName"
_PLAN_KEY = "account/plan"

# model id -> [input, output, cache_read, cache_write]
_TokenTotals = dict[str, list[int]]


class UsageAggregator:
    """Builds one UsageSnapshot per refresh cycle.

    Readers and the health monitor are injected so a process can share one
    instance of each across cycles (and tests can point them at temp dirs).
    """

    def __init__(
        self,
        session_log_reader: SessionLogReader,
        stats_cache_reader: StatsCacheReader,
        health_monitor: TokenHealthMonitor | None = None,
        account_reader: AccountConfigReader | None = None,
        config: ConfigManager | None = None,
        top_limit: int = DEFAULT_TOP_LIMIT,
    ):
        self._log_reader = session_log_reader
        self._stats_reader = stats_cache_reader
        self._health_monitor = health_monitor or TokenHealthMonitor()
        self._account_reader = account_reader
        self._config = config
        self._top_limit = top_limit

    def aggregate(
        self,
        rate_limits: RateLimitUsage | None = None,
        profile: APIProfile | None = None,
        token_window_days: int | None = None,
        now: datetime | None = None,
    ) -> UsageSnapshot:
        """Build a snapshot.

        ``token_window_days`` of 0 means all-time accounting; N > 0 sums only
        live records from the trailing N days. When omitted it comes from
        the config (or 0 without one).
        """
        summary = self._stats_reader.read()
        records = self._log_reader.read_all_usage_entries()

        if token_window_days is None:
            token_window_days = self._config.token_window_days() if self._config else 0
        now = now or now_local()
        window_start = now - timedelta(days=token_window_days) if token_window_days > 0 else None

        today_records, windowed = _partition(records, start_of_day(now), window_start)

        today_key = date_key(now)
        today_messages = len(today_records)
        today_sessions = len({r.session_id for r in today_records})
        today_tool_calls = 0
        if summary is not None:
            today_tool_calls = next(
                (d.tool_call_count for d in summary.daily_activity if d.date == today_key), 0
            )

        if window_start is not None:
            totals = windowed
        else:
            totals = _all_time_totals(
                summary, today_records, _recent_model_ids(summary, today_records, now)
            )

        peak_hour, peak_hour_count = _peak_hour(summary)
        health = self._health_monitor.assess_sessions(records, top_limit=self._top_limit, now=now)
        org_name, user_name, billing_type = self._resolve_identity(profile)

        first_session_date = None
        if summary is not None and summary.first_session_date:
            first_session_date = parse_timestamp(summary.first_session_date)

        longest = summary.longest_session if summary is not None else None

        return UsageSnapshot(
            last_updated=now,
            rate_limits=rate_limits,
            organization_name=org_name,
            display_name=user_name,
            billing_type=billing_type,
            first_session_date=first_session_date,
            total_sessions=(summary.total_sessions if summary else 0) + today_sessions,
            total_messages=(summary.total_messages if summary else 0) + today_messages,
            longest_session_duration=longest.duration_formatted if longest else None,
            longest_session_messages=longest.message_count if longest else 0,
            peak_hour=peak_hour,
            peak_hour_count=peak_hour_count,
            today_messages=today_messages,
            today_sessions=today_sessions,
            today_tool_calls=today_tool_calls,
            model_tokens=_summaries(totals),
            daily_activity=list(summary.daily_activity) if summary else [],
            hour_counts=dict(summary.hour_counts) if summary else {},
            token_health=health.current,
            top_session_healths=health.top,
            token_window_days=token_window_days,
            corrupt_line_count=self._log_reader.corrupt_line_count,
        )

    def _resolve_identity(self, profile: APIProfile | None) -> tuple[str | None, str | None, str | None]:
        """Identity fields: network value, then account file, then user override."""
        account = self._account_reader.read() if self._account_reader else None
        network_org = profile.organization_name if profile else None

        if network_org and self._config is not None and not self._config.has_value(_ORG_NAME_KEY):
            self._config.set_string(_ORG_NAME_KEY, network_org)

        org_name = (
            network_org
            or (account.organization_name if account else None)
            or self._override(_ORG_NAME_KEY)
        )
        user_name = (account.display_name if account else None) or self._override(_DISPLAY_NAME_KEY)
        billing_type = (account.billing_type if account else None) or self._override(_PLAN_KEY)
        return org_name, user_name, billing_type

    def _override(self, key: str) -> str | None:
        if self._config is None or not self._config.has_value(key):
            return None
        return self._config.get_string(key)


def _partition(
    records: list[UsageRecord],
    today_start: datetime,
    window_start: datetime | None,
) -> tuple[list[UsageRecord], _TokenTotals]:
    """Split time-sorted records into today's records and windowed per-model totals.

    Walks backwards from the newest record and stops at the earliest
    boundary, so older history is never touched.
    """
    boundary = min(today_start, window_start) if window_start is not None else today_start
    today: list[UsageRecord] = []
    windowed: _TokenTotals = {}

    for record in reversed(records):
        if record.timestamp < boundary:
            break
        if record.timestamp >= today_start:
            today.append(record)
        if window_start is not None and record.timestamp >= window_start:
            _add(windowed, record)

    today.reverse()
    return today, windowed


def _recent_model_ids(summary: HistoricalSummary | None, today_records: list[UsageRecord],
                      now: datetime) -> set[str]:
    cutoff_key = date_key(now - timedelta(hours=RECENT_MODEL_HOURS))
    recent = {r.model for r in today_records}
    if summary is not None:
        for day in summary.daily_model_tokens:
            if day.date >= cutoff_key:
                recent.update(model for model, tokens in day.tokens_by_model.items() if tokens > 0)
    return recent


def _all_time_totals(summary: HistoricalSummary | None, today_records: list[UsageRecord],
                     recent_models: set[str]) -> _TokenTotals:
    """Lifetime totals from the summary plus today's records it does not cover yet."""
    totals: _TokenTotals = {}
    covered: set[str] = set()
    if summary is not None:
        covered = summary.covered_dates()
        for model, usage in summary.model_usage.items():
            if model in recent_models:
                totals[model] = [
                    usage.input_tokens,
                    usage.output_tokens,
                    usage.cache_read_input_tokens,
                    usage.cache_creation_input_tokens,
                ]

    for record in today_records:
        if date_key(record.timestamp) not in covered:
            _add(totals, record)
    return totals


def _add(totals: _TokenTotals, record: UsageRecord):
    entry = totals.setdefault(record.model, [0, 0, 0, 0])
    entry[0] += record.input_tokens
    entry[1] += record.output_tokens
    entry[2] += record.cache_read_tokens
    entry[3] += record.cache_write_tokens


def _summaries(totals: _TokenTotals) -> list[ModelTokenSummary]:
    summaries = [
        ModelTokenSummary(
            model_id=model,
            display_name=display_name(model),
            input_tokens=tokens[0],
            output_tokens=tokens[1],
            cache_read_tokens=tokens[2],
            cache_write_tokens=tokens[3],
        )
        for model, tokens in totals.items()
        if model.startswith(MODEL_ID_PREFIX)
    ]
    summaries.sort(key=lambda s: (-s.total_tokens, s.model_id))
    return summaries


def _peak_hour(summary: HistoricalSummary | None) -> tuple[int | None, int]:
    if summary is None or not summary.hour_counts:
        return None, 0
    hour, count = max(summary.hour_counts.items(), key=lambda item: item[1])
    try:
        return int(hour), count
    except ValueError:
        return None, count
