"""Services for Claude Usage Monitor."""

from claude_usage_monitor.services.account_config import AccountConfigReader
from claude_usage_monitor.services.config_manager import ConfigManager
from claude_usage_monitor.services.file_watcher import FileWatcher
from claude_usage_monitor.services.jsonl_parser import ParseResult, make_usage_record, parse_session_file
from claude_usage_monitor.services.session_log_reader import SessionLogReader
from claude_usage_monitor.services.stats_cache_reader import StatsCacheReader
from claude_usage_monitor.services.token_health_monitor import TokenHealthMonitor
from claude_usage_monitor.services.usage_aggregator import UsageAggregator
from claude_usage_monitor.services.usage_monitor import UsageMonitor

__all__ = [
    "AccountConfigReader",
    "ConfigManager",
    "FileWatcher",
    "ParseResult",
    "make_usage_record",
    "parse_session_file",
    "SessionLogReader",
    "StatsCacheReader",
    "TokenHealthMonitor",
    "UsageAggregator",
    "UsageMonitor",
]
