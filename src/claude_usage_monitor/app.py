"""Application entry point: headless host loop around UsageMonitor."""

import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication
from PySide6.QtNetwork import QLocalServer, QLocalSocket

from claude_usage_monitor.services.config_manager import ConfigManager
from claude_usage_monitor.services.usage_monitor import UsageMonitor
from claude_usage_monitor.types import UsageSnapshot
from claude_usage_monitor.utils.pricing import format_cost, format_tokens

SOCKET_NAME = "claude-usage-monitor-instance"

logger = logging.getLogger(__name__)


def _check_single_instance() -> QLocalServer | None:
    """Enforce single instance via QLocalSocket. Returns server if we're the first instance."""
    socket = QLocalSocket()
    socket.connectToServer(SOCKET_NAME)
    if socket.waitForConnected(500):
        # Another instance is running
        socket.close()
        return None

    server = QLocalServer()
    server.removeServer(SOCKET_NAME)
    server.listen(SOCKET_NAME)
    return server


def summarize(snapshot: UsageSnapshot) -> str:
    """One-line description of a snapshot for the log."""
    parts = [
        f"today {snapshot.today_messages} msgs/{snapshot.today_sessions} sessions",
        f"tokens {format_tokens(snapshot.total_tokens)} ({format_cost(snapshot.total_cost)})",
    ]
    health = snapshot.token_health
    if health is not None:
        parts.append(f"context {health.usage_percentage:.0f}% {health.band.value}")
    if snapshot.rate_limits is not None:
        parts.append(f"5h {snapshot.rate_limits.five_hour_percent:.0f}%")
        parts.append(f"7d {snapshot.rate_limits.seven_day_percent:.0f}%")
    if snapshot.corrupt_line_count:
        parts.append(f"{snapshot.corrupt_line_count} corrupt lines")
    return ", ".join(parts)


def run() -> int:
    """Launch the monitor."""
    app = QCoreApplication(sys.argv)
    app.setApplicationName("Claude Usage Monitor")
    app.setOrganizationName("claude-usage-monitor")
    app.setOrganizationDomain("claude.local")

    config = ConfigManager()
    logging.basicConfig(
        level=logging.DEBUG if config.get_bool("advanced/debugLogging") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    instance_server = _check_single_instance()
    if instance_server is None:
        print("Another instance is already running.", file=sys.stderr)
        return 0

    # Allow Ctrl+C to kill the app
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    monitor = UsageMonitor(config=config)
    monitor.snapshot_updated.connect(lambda snapshot: logger.info(summarize(snapshot)))
    monitor.start()

    ret = app.exec()
    monitor.stop()
    instance_server.close()
    return ret
