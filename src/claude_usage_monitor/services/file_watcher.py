"""Change notifier for the summary file and the session log tree, with debounced signals."""

import logging
import os
from pathlib import Path
from typing import Iterable, Protocol

from PySide6.QtCore import QFileSystemWatcher, QObject, Qt, QTimer, Signal
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from claude_usage_monitor.utils.claude_paths import CLAUDE_PROJECTS_DIR, STATS_CACHE_PATH

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 2000
RETRY_INTERVAL_MS = 60_000
FALLBACK_INTERVAL_MS = 60_000

# Open/close-without-write events come from our own reads and must not retrigger
_WRITE_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED})


class Invalidatable(Protocol):
    def invalidate(self) -> None: ...


class _TreeEventHandler(FileSystemEventHandler):
    """Runs on the observer thread; only forwards a notification."""

    def __init__(self, notify):
        super().__init__()
        self._notify = notify

    def on_any_event(self, event):
        if event.event_type in _WRITE_EVENTS:
            self._notify()


class FileWatcher(QObject):
    """Watches the summary file and the projects tree.

    Bursts of raw events are coalesced into one ``changed`` emission after a
    quiet period. Before emitting, every registered invalidator has its
    ``invalidate()`` called so the next read rescans.
    """

    changed = Signal()
    _raw_event = Signal()

    def __init__(
        self,
        stats_path: str | Path | None = None,
        projects_root: str | Path | None = None,
        invalidators: Iterable[Invalidatable] = (),
        parent=None,
        debounce_ms: int = DEBOUNCE_MS,
        retry_ms: int = RETRY_INTERVAL_MS,
        fallback_ms: int = FALLBACK_INTERVAL_MS,
    ):
        super().__init__(parent)
        self._stats_path = str(stats_path) if stats_path else str(STATS_CACHE_PATH)
        self._projects_root = str(projects_root) if projects_root else str(CLAUDE_PROJECTS_DIR)
        self._invalidators = list(invalidators)
        self._stopped = True
        self._file_watched = False
        self._observer: Observer | None = None

        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_file_changed)

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(debounce_ms)
        self._debounce_timer.timeout.connect(self._fire)

        self._retry_timer = QTimer(self)
        self._retry_timer.setInterval(retry_ms)
        self._retry_timer.timeout.connect(self._retry_missing)

        self._fallback_timer = QTimer(self)
        self._fallback_timer.setInterval(fallback_ms)
        self._fallback_timer.timeout.connect(self._fire)

        # Observer thread -> owning thread
        self._raw_event.connect(self._debounce_notify, Qt.QueuedConnection)

    @property
    def is_watching_file(self) -> bool:
        return self._file_watched

    @property
    def is_watching_tree(self) -> bool:
        return self._observer is not None

    @property
    def is_polling(self) -> bool:
        return self._fallback_timer.isActive()

    @property
    def is_retrying(self) -> bool:
        return self._retry_timer.isActive()

    def add_invalidator(self, target: Invalidatable):
        self._invalidators.append(target)

    def start(self):
        """Establish both watches, falling back to a polling timer if neither works.

        A missing summary file or projects root is retried every retry
        interval until both watches are up.
        """
        self.stop()
        self._stopped = False
        if not self._watch_stats_file():
            logger.warning("Summary file %s not found, retrying every %ds",
                           self._stats_path, self._retry_timer.interval() // 1000)
        if not self._watch_projects_tree():
            logger.warning("Projects directory %s not found, retrying every %ds",
                           self._projects_root, self._retry_timer.interval() // 1000)
        self._update_retry()
        if not self._file_watched and self._observer is None:
            logger.warning("No file watches available, polling every %ds",
                           self._fallback_timer.interval() // 1000)
            self._fallback_timer.start()

    def stop(self):
        """Release every watch and timer. Safe to call repeatedly."""
        self._stopped = True
        self._debounce_timer.stop()
        self._retry_timer.stop()
        self._fallback_timer.stop()

        if self._watcher.files():
            self._watcher.removePaths(self._watcher.files())
        self._file_watched = False

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=2.0)

    def _watch_stats_file(self) -> bool:
        if not os.path.isfile(self._stats_path) or not self._watcher.addPath(self._stats_path):
            self._file_watched = False
            return False
        self._file_watched = True
        return True

    def _watch_projects_tree(self) -> bool:
        if not os.path.isdir(self._projects_root):
            return False
        observer = Observer()
        try:
            observer.schedule(_TreeEventHandler(self._raw_event.emit), self._projects_root, recursive=True)
            observer.start()
        except OSError as exc:
            logger.warning("Failed to watch %s: %s", self._projects_root, exc)
            return False
        self._observer = observer
        logger.debug("Watching %s recursively", self._projects_root)
        return True

    def _update_retry(self):
        if self._stopped or (self._file_watched and self._observer is not None):
            self._retry_timer.stop()
        elif not self._retry_timer.isActive():
            self._retry_timer.start()

    def _retry_missing(self):
        if self._stopped:
            self._retry_timer.stop()
            return

        established = False
        if not self._file_watched and self._watch_stats_file():
            logger.info("Summary file %s appeared, watching", self._stats_path)
            established = True
        if self._observer is None and self._watch_projects_tree():
            logger.info("Projects directory %s appeared, watching", self._projects_root)
            established = True

        if established:
            self._fallback_timer.stop()
            # Data may already be there; rescan without waiting for an event
            self._debounce_notify()
        self._update_retry()

    def _on_file_changed(self, path: str):
        # Atomic replace drops the path from the watcher; re-add it
        if self._stopped:
            return
        if path not in self._watcher.files() and not self._watch_stats_file():
            logger.warning("Summary file %s removed, retrying every %ds",
                           self._stats_path, self._retry_timer.interval() // 1000)
            self._update_retry()
        self._debounce_notify()

    def _debounce_notify(self):
        if self._stopped:
            return
        self._debounce_timer.start()

    def _fire(self):
        if self._stopped:
            return
        for target in self._invalidators:
            target.invalidate()
        self.changed.emit()
