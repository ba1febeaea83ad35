"""Adaptive poll interval: back off while data is unchanged, reset on change."""

from dataclasses import dataclass

ADAPTIVE_THRESHOLD = 3
MAX_POLLING_INTERVAL = 300.0  # seconds


@dataclass
class AdaptivePollingState:
    """Caller-owned polling state.

    After ``threshold`` consecutive unchanged cycles the interval doubles
    (capped at ``max_interval``) until data changes again.
    """
    unchanged_cycles: int = 0
    threshold: int = ADAPTIVE_THRESHOLD
    max_interval: float = MAX_POLLING_INTERVAL

    def evaluate(self, data_changed: bool, base_interval: float) -> float:
        """Return the interval to use for the next poll cycle."""
        if data_changed:
            self.unchanged_cycles = 0
            return base_interval
        self.unchanged_cycles += 1
        if self.unchanged_cycles >= self.threshold:
            return min(base_interval * 2, self.max_interval)
        return base_interval
