"""Session health scoring: context pressure, warnings and token velocity.

Records are grouped by session in a single pass. Each assessed session gets
a usage percentage measured against the usable window (80% of the model's
context window, where auto-compaction starts), a colour band, a list of
independent warnings and, when the session spans long enough, a velocity in
tokens per minute.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import PurePath

from claude_usage_monitor.types.health import (
    USABLE_CONTEXT_RATIO,
    HealthAssessment,
    HealthBand,
    HealthWarning,
    SessionHealth,
    TokenHealthConfig,
    WarningSeverity,
)
from claude_usage_monitor.types.usage import UsageRecord

logger = logging.getLogger(__name__)

# Sessions idle longer than this are archived (not listed as recent)
RECENT_SESSION_HOURS = 24

DEFAULT_TOP_LIMIT = 5


class TokenHealthMonitor:
    """Produces SessionHealth assessments from time-sorted usage records."""

    def __init__(self, config: TokenHealthConfig | None = None):
        self._config = config or TokenHealthConfig()

    @property
    def config(self) -> TokenHealthConfig:
        return self._config

    def assess_sessions(
        self,
        records: list[UsageRecord],
        top_limit: int = DEFAULT_TOP_LIMIT,
        now: datetime | None = None,
    ) -> HealthAssessment:
        """Assess the current session and the most recent sessions in one pass.

        The current session (the one holding the latest record) is always
        assessed. Other sessions are skipped once their last activity is
        older than RECENT_SESSION_HOURS.
        """
        if not records:
            return HealthAssessment()

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=RECENT_SESSION_HOURS)
        current_id = records[-1].session_id

        grouped: dict[str, list[UsageRecord]] = {}
        for record in records:
            grouped.setdefault(record.session_id, []).append(record)

        current: SessionHealth | None = None
        recent: list[SessionHealth] = []
        for session_id, session_records in grouped.items():
            is_current = session_id == current_id
            is_recent = bool(session_id) and session_records[-1].timestamp > cutoff
            if not (is_current or is_recent):
                continue

            health = self._assess(session_id, session_records, now)
            if is_current:
                current = health
            if is_recent:
                recent.append(health)

        recent.sort(key=lambda h: h.last_activity, reverse=True)
        return HealthAssessment(current=current, top=recent[:max(top_limit, 0)])

    def assess_current_session(self, records: list[UsageRecord],
                               now: datetime | None = None) -> SessionHealth | None:
        return self.assess_sessions(records, top_limit=0, now=now).current

    def top_sessions(self, records: list[UsageRecord], limit: int = DEFAULT_TOP_LIMIT,
                     now: datetime | None = None) -> list[SessionHealth]:
        return self.assess_sessions(records, top_limit=limit, now=now).top

    def assess_all_sessions(self, records: list[UsageRecord],
                            now: datetime | None = None) -> dict[str, SessionHealth]:
        """Assess every session with a non-empty id, regardless of age."""
        now = now or datetime.now(timezone.utc)
        grouped: dict[str, list[UsageRecord]] = {}
        for record in records:
            if record.session_id:
                grouped.setdefault(record.session_id, []).append(record)
        return {
            session_id: self._assess(session_id, session_records, now)
            for session_id, session_records in grouped.items()
        }

    # ------------------------------------------------------------------
    # Core assessment
    # ------------------------------------------------------------------

    def _assess(self, session_id: str, records: list[UsageRecord], now: datetime) -> SessionHealth:
        config = self._config
        first = records[0]
        latest = records[-1]
        model = latest.model
        context_window = config.context_window_for(model)
        usable_window = int(context_window * USABLE_CONTEXT_RATIO)
        turn_count = len(records)

        # The latest input and cache counts already cover the whole context;
        # output tokens are per message and accumulate.
        input_tokens = latest.input_tokens
        cache_read_tokens = latest.cache_read_tokens
        cache_write_tokens = latest.cache_write_tokens
        output_tokens = sum(r.output_tokens for r in records)

        # Each component is capped before the sum is capped again
        total_used = min(
            min(input_tokens, context_window)
            + min(cache_read_tokens, context_window)
            + min(cache_write_tokens, context_window)
            + min(output_tokens, context_window),
            context_window,
        )

        usage_percentage = total_used * 100.0 / usable_window
        remaining = max(usable_window - total_used, 0)

        if usage_percentage >= config.red_threshold:
            band = HealthBand.RED
        elif usage_percentage >= config.green_threshold:
            band = HealthBand.ORANGE
        else:
            band = HealthBand.GREEN

        span_seconds = (latest.timestamp - first.timestamp).total_seconds()
        warnings = self._collect_warnings(
            turn_count=turn_count,
            total_input=input_tokens + cache_read_tokens + cache_write_tokens,
            output_tokens=output_tokens,
            total_used=total_used,
            span_seconds=span_seconds,
            idle_seconds=(now - latest.timestamp).total_seconds(),
            band=band,
        )

        tokens_per_minute = None
        if turn_count >= 2 and span_seconds > config.velocity_min_duration_seconds:
            tokens_per_minute = total_used / (span_seconds / 60.0)

        # Project from where the session started, branch from where it is now
        first_cwd = next((r.cwd for r in records if r.cwd), None)
        latest_with_cwd = next((r for r in reversed(records) if r.cwd), None)

        return SessionHealth(
            session_id=session_id,
            band=band,
            usage_percentage=min(usage_percentage, 100.0),
            total_used=total_used,
            context_window=context_window,
            usable_window=usable_window,
            remaining_tokens=remaining,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_read_tokens=cache_read_tokens,
            cache_write_tokens=cache_write_tokens,
            model=model,
            turn_count=turn_count,
            warnings=warnings,
            tokens_per_minute=tokens_per_minute,
            project_name=PurePath(first_cwd).name if first_cwd else None,
            git_branch=latest_with_cwd.git_branch if latest_with_cwd else None,
            session_start=first.timestamp,
            session_duration=span_seconds if span_seconds > 0 else None,
            last_activity=latest.timestamp,
        )

    def _collect_warnings(
        self,
        *,
        turn_count: int,
        total_input: int,
        output_tokens: int,
        total_used: int,
        span_seconds: float,
        idle_seconds: float,
        band: HealthBand,
    ) -> list[HealthWarning]:
        config = self._config
        warnings: list[HealthWarning] = []

        if turn_count > config.turn_count_strong:
            warnings.append(HealthWarning(
                WarningSeverity.STRONG,
                f"Long conversation ({turn_count} turns)",
                "Quality may be degrading. Consider starting fresh.",
            ))
        elif turn_count > config.turn_count_mild:
            warnings.append(HealthWarning(
                WarningSeverity.MILD,
                f"Extended conversation ({turn_count} turns)",
                "Consider starting a fresh conversation.",
            ))

        if output_tokens > 0:
            ratio = total_input / output_tokens
            if ratio > config.input_output_ratio_threshold:
                warnings.append(HealthWarning(
                    WarningSeverity.MILD,
                    f"High input-to-output ratio ({int(ratio)}:1)",
                    "You may be over-providing context.",
                ))

        if output_tokens == 0 and turn_count > config.zero_output_turn_threshold:
            warnings.append(HealthWarning(
                WarningSeverity.STRONG,
                f"No output after {turn_count} turns",
                "Session may be stuck. Check for errors.",
            ))

        if span_seconds < config.rapid_consumption_seconds and total_used > config.rapid_consumption_tokens:
            warnings.append(HealthWarning(
                WarningSeverity.MILD,
                "Rapid token consumption detected",
                "High token usage in under a minute.",
            ))

        if idle_seconds > config.stale_session_minutes * 60 and band != HealthBand.GREEN:
            warnings.append(HealthWarning(
                WarningSeverity.MILD,
                f"Session idle for {int(idle_seconds // 60)} min",
                "Context may be stale. Consider starting fresh.",
            ))

        return warnings
