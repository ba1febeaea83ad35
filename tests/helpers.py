"""Shared test helpers."""

import time
from datetime import datetime, timezone

import orjson
from PySide6.QtCore import QCoreApplication

from claude_usage_monitor.types.usage import UsageRecord


def iso(moment: datetime) -> str:
    """ISO-8601 UTC timestamp as written by the client ("...Z")."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def assistant_line(
    message_id: str,
    timestamp: datetime,
    model: str = "claude-opus-4-6",
    input_tokens: int = 100,
    output_tokens: int = 50,
    cache_read: int = 0,
    cache_write: int = 0,
    session_id: str = "session-1",
    cwd: str | None = "/home/wiz/projects/myapp",
    git_branch: str | None = "main",
) -> bytes:
    """Encode one assistant log line with usage."""
    line = {
        "type": "assistant",
        "uuid": f"uuid-{message_id}",
        "sessionId": session_id,
        "timestamp": iso(timestamp),
        "message": {
            "id": message_id,
            "model": model,
            "role": "assistant",
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "cache_read_input_tokens": cache_read,
                "cache_creation_input_tokens": cache_write,
            },
        },
    }
    if cwd is not None:
        line["cwd"] = cwd
    if git_branch is not None:
        line["gitBranch"] = git_branch
    return orjson.dumps(line)


def user_line(text: str, timestamp: datetime, session_id: str = "session-1") -> bytes:
    return orjson.dumps({
        "type": "user",
        "sessionId": session_id,
        "timestamp": iso(timestamp),
        "message": {"role": "user", "content": text},
    })


def write_jsonl(path, lines: list[bytes], trailing_newline: bool = True):
    data = b"\n".join(lines)
    if trailing_newline and lines:
        data += b"\n"
    path.write_bytes(data)
    return path


def record(
    message_id: str,
    timestamp: datetime,
    session_id: str = "session-1",
    model: str = "claude-opus-4-6",
    input_tokens: int = 0,
    output_tokens: int = 0,
    cache_read: int = 0,
    cache_write: int = 0,
    cwd: str | None = None,
    git_branch: str | None = None,
) -> UsageRecord:
    return UsageRecord(
        timestamp=timestamp,
        model=model,
        message_id=message_id,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_read_tokens=cache_read,
        cache_write_tokens=cache_write,
        session_id=session_id,
        cwd=cwd,
        git_branch=git_branch,
    )


def process_events_until(predicate, timeout: float = 5.0) -> bool:
    """Pump the Qt event loop until predicate() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        if predicate():
            return True
        time.sleep(0.02)
    QCoreApplication.processEvents()
    return predicate()


def process_events_for(seconds: float):
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        time.sleep(0.02)
