"""Token health types: bands, warnings, thresholds and per-session assessments."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class HealthBand(str, Enum):
    GREEN = "Optimal"
    ORANGE = "Warning"
    RED = "Critical"
    UNKNOWN = "No Data"


class WarningSeverity(str, Enum):
    MILD = "mild"
    STRONG = "strong"


@dataclass(frozen=True)
class HealthWarning:
    severity: WarningSeverity
    message: str
    suggestion: str = ""


# Context window limits per model (in tokens)
CONTEXT_WINDOWS: dict[str, int] = {
    "claude-opus-4-6": 200_000,
    "claude-sonnet-4-5-20250929": 200_000,
    "claude-haiku-4-5-20251001": 200_000,
    "claude-3-5-sonnet-20241022": 200_000,
    "claude-3-5-haiku-20241022": 200_000,
    "claude-3-opus-20240229": 200_000,
    "claude-3-sonnet-20240229": 200_000,
    "claude-3-haiku-20240307": 200_000,
}

DEFAULT_CONTEXT_WINDOW = 200_000

# Auto-compaction kicks in at 80% of the raw window
USABLE_CONTEXT_RATIO = 0.80


def _model_prefix(model: str) -> str:
    return "-".join(model.split("-")[:3])


_PREFIX_WINDOWS: dict[str, int] = {
    _model_prefix(model): window for model, window in CONTEXT_WINDOWS.items()
}


@dataclass(frozen=True)
class TokenHealthConfig:
    """Thresholds for session health scoring.

    Band thresholds are percentages of the usable window, not the raw one.
    """
    green_threshold: float = 60.0
    red_threshold: float = 80.0
    turn_count_mild: int = 15
    turn_count_strong: int = 25
    input_output_ratio_threshold: float = 20.0
    zero_output_turn_threshold: int = 5
    rapid_consumption_tokens: int = 50_000
    rapid_consumption_seconds: float = 60.0
    stale_session_minutes: int = 30
    velocity_min_duration_seconds: float = 60.0

    @staticmethod
    def context_window_for(model: str) -> int:
        """Look up the context window: exact id, then 3-segment prefix, then default."""
        window = CONTEXT_WINDOWS.get(model)
        if window is not None:
            return window
        return _PREFIX_WINDOWS.get(_model_prefix(model), DEFAULT_CONTEXT_WINDOW)


@dataclass(frozen=True)
class SessionHealth:
    session_id: str
    band: HealthBand
    usage_percentage: float
    total_used: int
    context_window: int
    usable_window: int
    remaining_tokens: int
    input_tokens: int
    output_tokens: int
    cache_read_tokens: int
    cache_write_tokens: int
    model: str
    turn_count: int
    warnings: list[HealthWarning] = field(default_factory=list)
    tokens_per_minute: Optional[float] = None
    project_name: Optional[str] = None
    git_branch: Optional[str] = None
    session_start: Optional[datetime] = None
    session_duration: Optional[float] = None  # seconds
    last_activity: Optional[datetime] = None

    @property
    def suggested_action(self) -> Optional[str]:
        if self.band == HealthBand.ORANGE:
            return "Consider trimming context or starting a fresh conversation soon."
        if self.band == HealthBand.RED:
            return "Start a new conversation for best results. Context degradation is likely."
        return None


@dataclass(frozen=True)
class HealthAssessment:
    """Result of one grouping pass: the current session plus the recent top list."""
    current: Optional[SessionHealth] = None
    top: list[SessionHealth] = field(default_factory=list)
