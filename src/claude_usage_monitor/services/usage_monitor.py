"""Host-side controller: owns the readers, runs refresh cycles and schedules polling."""

import logging
from dataclasses import replace
from pathlib import Path

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from claude_usage_monitor.services.account_config import AccountConfigReader
from claude_usage_monitor.services.config_manager import ConfigManager
from claude_usage_monitor.services.file_watcher import FileWatcher
from claude_usage_monitor.services.session_log_reader import SessionLogReader
from claude_usage_monitor.services.stats_cache_reader import StatsCacheReader
from claude_usage_monitor.services.token_health_monitor import TokenHealthMonitor
from claude_usage_monitor.services.usage_aggregator import UsageAggregator
from claude_usage_monitor.types import APIProfile, RateLimitUsage, TokenHealthConfig, UsageSnapshot
from claude_usage_monitor.utils.adaptive_polling import AdaptivePollingState

logger = logging.getLogger(__name__)


class UsageMonitor(QObject):
    """Drives aggregation on the Qt event loop.

    Refreshes are triggered by the poll timer, by debounced file changes and
    by new API results. Cycles never overlap; a trigger that arrives while a
    cycle runs schedules exactly one follow-up cycle.
    """

    snapshot_updated = Signal(object)  # UsageSnapshot

    def __init__(
        self,
        parent=None,
        config: ConfigManager | None = None,
        projects_root: str | Path | None = None,
        stats_path: str | Path | None = None,
        account_path: str | Path | None = None,
        health_config: TokenHealthConfig | None = None,
        debounce_ms: int | None = None,
    ):
        super().__init__(parent)
        self._config = config if config is not None else ConfigManager(self)
        self._log_reader = SessionLogReader(projects_root)
        self._stats_reader = StatsCacheReader(stats_path)
        self._account_reader = AccountConfigReader(account_path)
        self._aggregator = UsageAggregator(
            self._log_reader,
            self._stats_reader,
            health_monitor=TokenHealthMonitor(health_config),
            account_reader=self._account_reader,
            config=self._config,
        )

        watcher_kwargs = {} if debounce_ms is None else {"debounce_ms": debounce_ms}
        self._watcher = FileWatcher(
            stats_path=self._stats_reader.file_path,
            projects_root=self._log_reader.projects_root,
            invalidators=[self._log_reader, self._stats_reader, self._account_reader],
            parent=self,
            **watcher_kwargs,
        )
        self._watcher.changed.connect(self.request_refresh)

        self._polling = AdaptivePollingState()
        self._poll_timer = QTimer(self)
        self._poll_timer.setSingleShot(True)
        self._poll_timer.timeout.connect(self.refresh)

        self._running = False
        self._refreshing = False
        self._pending = False
        self._snapshot: UsageSnapshot | None = None
        self._fingerprint: UsageSnapshot | None = None
        self._rate_limits: RateLimitUsage | None = None
        self._profile: APIProfile | None = None

    @property
    def config(self) -> ConfigManager:
        return self._config

    @property
    def watcher(self) -> FileWatcher:
        return self._watcher

    @property
    def snapshot(self) -> UsageSnapshot | None:
        return self._snapshot

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def poll_interval_ms(self) -> int:
        """Interval of the currently scheduled poll, or -1 when none is scheduled."""
        return self._poll_timer.interval() if self._poll_timer.isActive() else -1

    def start(self):
        if self._running:
            return
        self._running = True
        self._watcher.start()
        self.refresh()

    def stop(self):
        self._running = False
        self._pending = False
        self._poll_timer.stop()
        self._watcher.stop()

    @Slot()
    def request_refresh(self):
        if self._refreshing:
            self._pending = True
            return
        self.refresh()

    def update_api_result(self, rate_limits: RateLimitUsage | None, profile: APIProfile | None = None):
        """Store the latest network result and rebuild the snapshot with it."""
        self._rate_limits = rate_limits
        if profile is not None:
            self._profile = profile
        self.request_refresh()

    @Slot()
    def refresh(self):
        """Run one aggregation cycle and schedule the next poll."""
        if self._refreshing:
            self._pending = True
            return

        self._refreshing = True
        self._poll_timer.stop()
        try:
            try:
                snapshot = self._aggregator.aggregate(self._rate_limits, self._profile)
            except Exception:
                logger.exception("Refresh cycle failed")
                snapshot = None

            changed = False
            if snapshot is not None:
                fingerprint = replace(snapshot, last_updated=None)
                changed = fingerprint != self._fingerprint
                self._fingerprint = fingerprint
                self._snapshot = snapshot

            if self._running:
                interval = self._polling.evaluate(changed, self._config.refresh_interval())
                self._poll_timer.start(int(interval * 1000))

            if snapshot is not None:
                self.snapshot_updated.emit(snapshot)
        finally:
            self._refreshing = False

        if self._pending:
            self._pending = False
            QTimer.singleShot(0, self.request_refresh)
