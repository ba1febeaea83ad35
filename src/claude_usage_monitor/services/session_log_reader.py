"""Discovers session logs and keeps a merged, deduplicated usage record set."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from operator import attrgetter
from pathlib import Path

from claude_usage_monitor.services.jsonl_parser import parse_session_file
from claude_usage_monitor.types.usage import UsageRecord
from claude_usage_monitor.utils.claude_paths import CLAUDE_PROJECTS_DIR, SUBAGENTS_DIR_NAME
from claude_usage_monitor.utils.dates import now_local, start_of_day

logger = logging.getLogger(__name__)

# Maximum number of parsed files kept in memory
MAX_CACHED_FILES = 200


@dataclass
class _CachedFile:
    mtime: float
    size: int
    records: list[UsageRecord]
    corrupt_lines: int = 0


class SessionLogReader:
    """Reads usage records from every session log under the projects root.

    Three caches, all owned by this object:

    * per-file parse results keyed by absolute path, validated against the
      file's (mtime, size) on every read and evicted oldest-mtime first
      beyond ``max_cached_files``;
    * the discovered file list, valid while the mtimes of the root and of
      every visited directory are unchanged;
    * the merged record set, valid until ``invalidate()``.
    """

    def __init__(self, projects_root: str | Path | None = None,
                 max_cached_files: int = MAX_CACHED_FILES):
        self._projects_root = Path(projects_root) if projects_root else CLAUDE_PROJECTS_DIR
        self._max_cached_files = max_cached_files
        self._file_cache: dict[str, _CachedFile] = {}
        self._merged: list[UsageRecord] | None = None
        self._discovered: list[Path] | None = None
        self._dir_mtimes: dict[str, float] = {}
        self._corrupt_line_count = 0

    @property
    def projects_root(self) -> Path:
        return self._projects_root

    @property
    def corrupt_line_count(self) -> int:
        """Corrupt or skipped lines across the files behind the latest merge."""
        return self._corrupt_line_count

    @property
    def cached_file_count(self) -> int:
        return len(self._file_cache)

    def invalidate(self):
        """Drop the merged result and discovery caches.

        Per-file caches survive; they revalidate against mtime and size.
        """
        self._merged = None
        self._discovered = None
        self._dir_mtimes.clear()

    def read_all_usage_entries(self) -> list[UsageRecord]:
        """Return all usage records, deduplicated by message id and time-sorted."""
        if self._merged is not None:
            return self._merged

        merged: list[UsageRecord] = []
        seen_ids: set[str] = set()
        corrupt = 0
        for path in self.discover():
            records, corrupt_lines = self._cached_read(path)
            corrupt += corrupt_lines
            for record in records:
                if record.message_id not in seen_ids:
                    seen_ids.add(record.message_id)
                    merged.append(record)

        merged.sort(key=attrgetter("timestamp"))
        self._merged = merged
        self._corrupt_line_count = corrupt
        return merged

    def read_today_entries(self, now: datetime | None = None) -> list[UsageRecord]:
        today = start_of_day(now or now_local())
        return [r for r in self.read_all_usage_entries() if r.timestamp >= today]

    def read_file(self, file_path: str | Path) -> list[UsageRecord]:
        """Usage records of one file, served from cache while unchanged."""
        records, _ = self._cached_read(Path(file_path))
        return records

    # ------------------------------------------------------------------
    # Per-file cache
    # ------------------------------------------------------------------

    def _cached_read(self, path: Path) -> tuple[list[UsageRecord], int]:
        key = os.path.abspath(path)
        try:
            stat = os.stat(key)
        except OSError:
            result = parse_session_file(key)
            return result.records, result.corrupt_lines

        cached = self._file_cache.get(key)
        if cached is not None and cached.mtime == stat.st_mtime and cached.size == stat.st_size:
            return cached.records, cached.corrupt_lines

        result = parse_session_file(key)
        self._file_cache[key] = _CachedFile(
            mtime=stat.st_mtime,
            size=stat.st_size,
            records=result.records,
            corrupt_lines=result.corrupt_lines,
        )
        if len(self._file_cache) > self._max_cached_files:
            self._evict()
        return result.records, result.corrupt_lines

    def _evict(self):
        """Evict the oldest entries by mtime, sorting once for the whole batch."""
        overflow = len(self._file_cache) - self._max_cached_files
        if overflow <= 0:
            return
        oldest = sorted(self._file_cache.items(), key=lambda item: item[1].mtime)[:overflow]
        for key, _ in oldest:
            del self._file_cache[key]
        logger.debug("Evicted %d cached session files", overflow)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self) -> list[Path]:
        """List session logs: ``<root>/<project>/*.jsonl`` and ``<project>/subagents/*.jsonl``.

        Re-walks only when a tracked directory's mtime changed.
        """
        if self._discovered is not None and not self._dir_mtimes_changed():
            return self._discovered

        files: list[Path] = []
        dir_mtimes: dict[str, float] = {}
        root = self._projects_root

        try:
            dir_mtimes[str(root)] = os.stat(root).st_mtime
            project_dirs = sorted(
                entry.path for entry in os.scandir(root)
                if not entry.name.startswith(".") and entry.is_dir()
            )
        except OSError:
            logger.debug("Projects root not readable: %s", root)
            return []

        for project_dir in project_dirs:
            for directory in (project_dir, os.path.join(project_dir, SUBAGENTS_DIR_NAME)):
                try:
                    dir_mtimes[directory] = os.stat(directory).st_mtime
                    files.extend(sorted(
                        Path(entry.path) for entry in os.scandir(directory)
                        if entry.name.endswith(".jsonl")
                        and not entry.name.startswith(".")
                        and entry.is_file()
                    ))
                except OSError:
                    continue

        self._discovered = files
        self._dir_mtimes = dir_mtimes
        return files

    def _dir_mtimes_changed(self) -> bool:
        for directory, cached_mtime in self._dir_mtimes.items():
            try:
                if os.stat(directory).st_mtime != cached_mtime:
                    return True
            except OSError:
                return True
        return False
