"""Streaming JSONL parser extracting assistant token usage from session logs."""

import logging
import uuid as uuid_mod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import orjson

from claude_usage_monitor.types.usage import UsageRecord
from claude_usage_monitor.utils.dates import parse_timestamp

logger = logging.getLogger(__name__)

# Read size per chunk (64KB)
CHUNK_SIZE = 64 * 1024

# Undelimited bytes allowed before a line is treated as corrupt (1MB)
MAX_LINE_SIZE = 1024 * 1024

# Cheap byte-level markers checked before paying for a full decode.
# Both compact and spaced variants of the type field occur in the wild.
_ASSISTANT_MARKERS = (b'"type":"assistant"', b'"type": "assistant"')
_USAGE_MARKER = b'"usage"'


@dataclass
class ParseResult:
    records: list[UsageRecord] = field(default_factory=list)
    corrupt_lines: int = 0


def parse_session_file(file_path: str | Path) -> ParseResult:
    """Stream-parse a session file into usage records.

    The file is read in CHUNK_SIZE pieces and split strictly on newline
    bytes. Lines without the assistant and usage markers are skipped without
    decoding. Decode failures and oversized lines are counted in
    ``corrupt_lines`` and skipped. A trailing line without a newline is only
    parsed when it ends with a closing brace, since the client may still be
    writing it.

    An unreadable file yields an empty result.
    """
    path = Path(file_path)
    result = ParseResult()
    buffer = bytearray()

    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                buffer += chunk

                if len(buffer) > MAX_LINE_SIZE and b"\n" not in buffer:
                    result.corrupt_lines += 1
                    logger.warning(
                        "Skipping oversized JSONL line (%d bytes) in %s",
                        len(buffer), path.name,
                    )
                    buffer.clear()
                    continue

                start = 0
                while True:
                    newline = buffer.find(b"\n", start)
                    if newline < 0:
                        break
                    _handle_line(bytes(buffer[start:newline]), result, path)
                    start = newline + 1
                del buffer[:start]
    except OSError as e:
        logger.debug("Cannot read session file %s: %s", path, e)
        return ParseResult()

    if buffer.strip():
        if buffer.endswith(b"}"):
            _handle_line(bytes(buffer), result, path)
        else:
            result.corrupt_lines += 1
            logger.debug("Skipping incomplete trailing line in %s", path.name)

    return result


def _handle_line(line: bytes, result: ParseResult, path: Path):
    if not line.strip():
        return
    if not any(marker in line for marker in _ASSISTANT_MARKERS):
        return
    if _USAGE_MARKER not in line:
        return

    try:
        raw = orjson.loads(line)
    except orjson.JSONDecodeError as e:
        result.corrupt_lines += 1
        logger.debug("JSONL decode failed in %s: %s", path.name, e)
        return

    if not isinstance(raw, dict):
        result.corrupt_lines += 1
        return

    try:
        record = make_usage_record(raw)
    except ValueError as e:
        result.corrupt_lines += 1
        logger.debug("Malformed usage line in %s: %s", path.name, e)
        return
    if record is not None:
        result.records.append(record)


def make_usage_record(raw: dict) -> UsageRecord | None:
    """Build a UsageRecord from a decoded line.

    Returns None unless the line is an assistant message with a usage
    object and a model id. Raises ValueError when those fields are present
    but have the wrong shape: a non-object ``message`` or ``usage``, a
    non-string ``model``, or a token count that is not a number. Missing
    token counts read as 0 and negative ones are clamped to 0.
    """
    if raw.get("type") != "assistant":
        return None

    message = raw.get("message")
    if message is None:
        return None
    if not isinstance(message, dict):
        raise ValueError(f"message is {type(message).__name__}, not an object")
    usage = message.get("usage")
    model = message.get("model")
    if usage is None or model is None:
        return None
    if not isinstance(usage, dict):
        raise ValueError(f"usage is {type(usage).__name__}, not an object")
    if not isinstance(model, str):
        raise ValueError(f"model is {type(model).__name__}, not a string")

    message_id = message.get("id") or raw.get("uuid") or str(uuid_mod.uuid4())
    timestamp = parse_timestamp(raw.get("timestamp")) or datetime.now(timezone.utc)

    return UsageRecord(
        timestamp=timestamp,
        model=model,
        message_id=str(message_id),
        input_tokens=_token_count(usage, "input_tokens"),
        output_tokens=_token_count(usage, "output_tokens"),
        cache_read_tokens=_token_count(usage, "cache_read_input_tokens"),
        cache_write_tokens=_token_count(usage, "cache_creation_input_tokens"),
        session_id=_optional_str(raw.get("sessionId")) or "",
        cwd=_optional_str(raw.get("cwd")),
        git_branch=_optional_str(raw.get("gitBranch")),
    )


def _token_count(usage: dict, key: str) -> int:
    value = usage.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} is {type(value).__name__}, not a number")
    try:
        return max(0, int(value))
    except OverflowError:
        raise ValueError(f"{key} is not finite") from None


def _optional_str(value) -> str | None:
    return value if isinstance(value, str) else None
