"""Well-known locations of the coding-assistant client's local data."""

from pathlib import Path

CLAUDE_DIR = Path.home() / ".claude"

# Session JSONL logs, one directory per project
CLAUDE_PROJECTS_DIR = CLAUDE_DIR / "projects"

# Precomputed historical aggregates, refreshed by the client
STATS_CACHE_PATH = CLAUDE_DIR / "stats-cache.json"

# Account info (organization, billing type)
ACCOUNT_CONFIG_PATH = Path.home() / ".claude.json"

# Per-project directory holding sub-agent session logs
SUBAGENTS_DIR_NAME = "subagents"
