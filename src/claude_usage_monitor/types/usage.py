"""Usage records parsed from session logs and per-model token totals."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from claude_usage_monitor.utils.pricing import calculate_cost


@dataclass(frozen=True)
class UsageRecord:
    """One assistant response with token usage, as written to a session log."""
    timestamp: datetime
    model: str
    message_id: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0
    session_id: str = ""
    cwd: Optional[str] = None
    git_branch: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_read_tokens + self.cache_write_tokens)


@dataclass(frozen=True)
class ModelTokenSummary:
    model_id: str
    display_name: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_read_tokens + self.cache_write_tokens)

    @property
    def cost(self) -> float:
        """API-equivalent cost in USD (0.0 for unpriced models)."""
        return calculate_cost(
            self.input_tokens,
            self.output_tokens,
            self.cache_read_tokens,
            self.cache_write_tokens,
            self.model_id,
        )
