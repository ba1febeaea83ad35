"""Timestamp parsing and local date-key helpers."""

from datetime import datetime, timezone


def now_local() -> datetime:
    """Timezone-aware current local time."""
    return datetime.now().astimezone()


def parse_timestamp(ts_value) -> datetime | None:
    """Parse an ISO-8601 string or epoch number into an aware datetime.

    Naive ISO strings are taken as UTC. Returns None if unparsable.
    """
    if isinstance(ts_value, bool):
        return None
    if isinstance(ts_value, (int, float)):
        seconds = ts_value / 1000 if ts_value > 1e12 else ts_value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(ts_value, str) and ts_value:
        try:
            # ISO 8601 format: "2026-02-13T12:00:00.000Z"
            parsed = datetime.fromisoformat(ts_value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def date_key(moment: datetime) -> str:
    """Local calendar date as YYYY-MM-DD."""
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%Y-%m-%d")


def start_of_day(moment: datetime) -> datetime:
    """Local midnight of the given moment, keeping it timezone-aware."""
    return moment.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)