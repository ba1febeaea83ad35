"""Ordered fallback over alternative upstream candidates (e.g. request models).

Remembers the last candidate that worked so later fetches start there
instead of walking the whole list again.

This is the model-selection hook for the network client that fetches
rate-limit headers. That client lives outside this package: it drives a
``ModelFallbackState`` per fetch and hands the parsed result to
``UsageMonitor.update_api_result``. Nothing inside the package imports
this module.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FetchOutcome(str, Enum):
    SUCCESS = "success"
    MODEL_UNAVAILABLE = "model-unavailable"
    AUTH_FAILED = "auth-failed"
    NETWORK_ERROR = "network-error"


class FallbackAction(str, Enum):
    DONE = "done"                # keep the result, remember the candidate
    TRY_NEXT = "try-next"        # retry immediately with the next candidate
    USE_CACHED = "use-cached"    # give up for this cycle, serve cached data
    EXHAUSTED = "exhausted"      # no candidate left; serve cached data


@dataclass(frozen=True)
class FallbackStep:
    action: FallbackAction
    candidate: Optional[str]


class ModelFallbackState:
    """Deterministic transition function over a fixed candidate list."""

    def __init__(self, candidates: list[str] | tuple[str, ...]):
        if not candidates:
            raise ValueError("at least one candidate is required")
        self._candidates = tuple(candidates)
        self._last_good = 0
        self._cursor = 0

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    @property
    def last_good_index(self) -> int:
        return self._last_good

    def begin(self) -> str:
        """Start a fetch cycle at the last candidate known to work."""
        self._cursor = self._last_good
        return self._candidates[self._cursor]

    def evaluate(self, outcome: FetchOutcome) -> FallbackStep:
        """Advance the cycle given the outcome of the current candidate."""
        if outcome == FetchOutcome.SUCCESS:
            self._last_good = self._cursor
            return FallbackStep(FallbackAction.DONE, self._candidates[self._cursor])
        if outcome == FetchOutcome.MODEL_UNAVAILABLE:
            if self._cursor + 1 < len(self._candidates):
                self._cursor += 1
                return FallbackStep(FallbackAction.TRY_NEXT, self._candidates[self._cursor])
            return FallbackStep(FallbackAction.EXHAUSTED, None)
        return FallbackStep(FallbackAction.USE_CACHED, None)
