"""Tests for claude_usage_monitor.services.jsonl_parser."""

from datetime import datetime, timezone

import orjson
import pytest

from claude_usage_monitor.services import jsonl_parser
from claude_usage_monitor.services.jsonl_parser import make_usage_record, parse_session_file
from helpers import assistant_line, user_line, write_jsonl

T0 = datetime(2026, 2, 13, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# 1. Well-formed file
# ---------------------------------------------------------------------------

def test_parse_assistant_lines(tmp_path):
    """Assistant lines become records; user lines are skipped without counting."""
    path = write_jsonl(tmp_path / "s.jsonl", [
        user_line("hello", T0),
        assistant_line("msg_1", T0, input_tokens=100, output_tokens=50,
                       cache_read=10, cache_write=5),
        user_line("thanks", T0),
        assistant_line("msg_2", T0, model="claude-sonnet-4-5-20250929"),
    ])

    result = parse_session_file(path)

    assert [r.message_id for r in result.records] == ["msg_1", "msg_2"]
    assert result.corrupt_lines == 0
    first = result.records[0]
    assert first.input_tokens == 100
    assert first.output_tokens == 50
    assert first.cache_read_tokens == 10
    assert first.cache_write_tokens == 5
    assert first.total_tokens == 165
    assert first.timestamp == T0
    assert first.session_id == "session-1"
    assert first.cwd == "/home/wiz/projects/myapp"
    assert first.git_branch == "main"
    assert result.records[1].model == "claude-sonnet-4-5-20250929"


def test_spaced_type_marker(tmp_path):
    """Pretty-printed "type": "assistant" passes the byte prefilter too."""
    line = (b'{"type": "assistant", "timestamp": "2026-02-13T12:00:00.000Z", '
            b'"message": {"id": "msg_s", "model": "claude-opus-4-6", '
            b'"usage": {"input_tokens": 7, "output_tokens": 3}}}')
    path = write_jsonl(tmp_path / "s.jsonl", [line])

    result = parse_session_file(path)

    assert len(result.records) == 1
    assert result.records[0].input_tokens == 7
    assert result.records[0].cache_read_tokens == 0


# ---------------------------------------------------------------------------
# 2. Corrupt input
# ---------------------------------------------------------------------------

def test_truncated_trailing_line_is_corrupt(tmp_path):
    """A partial last line without a closing brace is skipped and counted."""
    full = assistant_line("msg_1", T0)
    partial = assistant_line("msg_2", T0)[:-20]
    path = tmp_path / "s.jsonl"
    path.write_bytes(full + b"\n" + partial)

    result = parse_session_file(path)

    assert [r.message_id for r in result.records] == ["msg_1"]
    assert result.corrupt_lines >= 1


def test_trailing_line_without_newline_is_parsed(tmp_path):
    path = write_jsonl(tmp_path / "s.jsonl", [assistant_line("msg_1", T0)], trailing_newline=False)

    result = parse_session_file(path)

    assert len(result.records) == 1
    assert result.corrupt_lines == 0


def test_invalid_json_counted(tmp_path):
    bad = b'{"type":"assistant","message":{"usage": {not json'
    path = write_jsonl(tmp_path / "s.jsonl", [bad, assistant_line("msg_1", T0)])

    result = parse_session_file(path)

    assert len(result.records) == 1
    assert result.corrupt_lines == 1


def test_non_object_line_counted(tmp_path):
    path = write_jsonl(tmp_path / "s.jsonl", [b'[{"type":"assistant","message":{"usage":{}}}]'])

    result = parse_session_file(path)

    assert result.records == []
    assert result.corrupt_lines == 1


def test_oversized_line_skipped(tmp_path, monkeypatch):
    """An undelimited run longer than the line limit is dropped and counted."""
    monkeypatch.setattr(jsonl_parser, "MAX_LINE_SIZE", 1024)
    monkeypatch.setattr(jsonl_parser, "CHUNK_SIZE", 512)
    huge = b'{"type":"assistant","usage":"' + b"x" * 4096 + b'"}'
    path = tmp_path / "s.jsonl"
    path.write_bytes(huge + b"\n" + assistant_line("msg_ok", T0) + b"\n")

    result = parse_session_file(path)

    assert [r.message_id for r in result.records] == ["msg_ok"]
    assert result.corrupt_lines >= 1


def test_blank_lines_ignored(tmp_path):
    path = write_jsonl(tmp_path / "s.jsonl", [b"", b"   ", assistant_line("msg_1", T0), b""])

    result = parse_session_file(path)

    assert len(result.records) == 1
    assert result.corrupt_lines == 0


def test_missing_file_returns_empty(tmp_path):
    result = parse_session_file(tmp_path / "missing.jsonl")
    assert result.records == []
    assert result.corrupt_lines == 0


def test_lines_spanning_chunks(tmp_path, monkeypatch):
    """Lines split across chunk boundaries are reassembled."""
    monkeypatch.setattr(jsonl_parser, "CHUNK_SIZE", 16)
    lines = [assistant_line(f"msg_{i}", T0) for i in range(5)]
    path = write_jsonl(tmp_path / "s.jsonl", lines)

    result = parse_session_file(path)

    assert [r.message_id for r in result.records] == [f"msg_{i}" for i in range(5)]


# ---------------------------------------------------------------------------
# 3. make_usage_record
# ---------------------------------------------------------------------------

class TestMakeUsageRecord:
    def _raw(self, **overrides):
        raw = orjson.loads(assistant_line("msg_1", T0))
        raw.update(overrides)
        return raw

    def test_requires_assistant_type(self):
        assert make_usage_record(self._raw(type="user")) is None

    def test_requires_usage(self):
        raw = self._raw()
        del raw["message"]["usage"]
        assert make_usage_record(raw) is None

    def test_requires_model(self):
        raw = self._raw()
        del raw["message"]["model"]
        assert make_usage_record(raw) is None

    def test_message_id_falls_back_to_uuid(self):
        raw = self._raw()
        del raw["message"]["id"]
        assert make_usage_record(raw).message_id == "uuid-msg_1"

    def test_message_id_generated_when_absent(self):
        raw = self._raw()
        del raw["message"]["id"]
        del raw["uuid"]
        first = make_usage_record(raw)
        second = make_usage_record(raw)
        assert first.message_id
        assert first.message_id != second.message_id

    def test_bad_timestamp_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        rec = make_usage_record(self._raw(timestamp="not a date"))
        assert rec.timestamp >= before

    def test_negative_counts_clamp_to_zero(self):
        raw = self._raw()
        raw["message"]["usage"] = {"input_tokens": -5, "output_tokens": 12}
        rec = make_usage_record(raw)
        assert (rec.input_tokens, rec.output_tokens, rec.cache_read_tokens) == (0, 12, 0)

    @pytest.mark.parametrize("usage", [
        {"input_tokens": 1, "output_tokens": "12"},
        {"input_tokens": 1, "cache_read_input_tokens": True},
        {"input_tokens": [1]},
    ])
    def test_wrong_typed_counts_raise(self, usage):
        raw = self._raw()
        raw["message"]["usage"] = usage
        with pytest.raises(ValueError):
            make_usage_record(raw)

    @pytest.mark.parametrize("field, value", [
        ("usage", "lots"),
        ("usage", [1, 2]),
        ("model", 4),
    ])
    def test_wrong_typed_message_fields_raise(self, field, value):
        raw = self._raw()
        raw["message"][field] = value
        with pytest.raises(ValueError):
            make_usage_record(raw)

    def test_non_object_message_raises(self):
        with pytest.raises(ValueError):
            make_usage_record(self._raw(message="usage"))


def test_wrong_typed_usage_counted_as_corrupt(tmp_path):
    """Malformed usage fields are counted, not read as zero."""
    bad_count = orjson.loads(assistant_line("msg_bad", T0))
    bad_count["message"]["usage"]["output_tokens"] = "12"
    bad_usage = orjson.loads(assistant_line("msg_worse", T0))
    bad_usage["message"]["usage"] = "usage"
    path = write_jsonl(tmp_path / "s.jsonl", [
        orjson.dumps(bad_count),
        orjson.dumps(bad_usage),
        assistant_line("msg_ok", T0),
    ])

    result = parse_session_file(path)

    assert [r.message_id for r in result.records] == ["msg_ok"]
    assert result.corrupt_lines == 2
