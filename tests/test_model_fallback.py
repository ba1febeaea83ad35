"""Tests for claude_usage_monitor.utils.model_fallback."""

import pytest

from claude_usage_monitor.utils.model_fallback import (
    FallbackAction,
    FetchOutcome,
    ModelFallbackState,
)

CANDIDATES = ["claude-sonnet-4-5-20250929", "claude-haiku-4-5-20251001", "claude-3-5-haiku-20241022"]


@pytest.fixture
def state():
    return ModelFallbackState(CANDIDATES)


def test_first_success(state):
    assert state.begin() == CANDIDATES[0]
    step = state.evaluate(FetchOutcome.SUCCESS)
    assert step.action == FallbackAction.DONE
    assert step.candidate == CANDIDATES[0]


def test_advances_on_unavailable_and_remembers(state):
    state.begin()
    step = state.evaluate(FetchOutcome.MODEL_UNAVAILABLE)
    assert step.action == FallbackAction.TRY_NEXT
    assert step.candidate == CANDIDATES[1]
    assert state.evaluate(FetchOutcome.SUCCESS).candidate == CANDIDATES[1]

    # Next cycle starts at the candidate that worked
    assert state.begin() == CANDIDATES[1]
    assert state.last_good_index == 1


def test_exhausted(state):
    state.begin()
    state.evaluate(FetchOutcome.MODEL_UNAVAILABLE)
    state.evaluate(FetchOutcome.MODEL_UNAVAILABLE)
    step = state.evaluate(FetchOutcome.MODEL_UNAVAILABLE)
    assert step.action == FallbackAction.EXHAUSTED
    assert step.candidate is None


@pytest.mark.parametrize("outcome", [FetchOutcome.AUTH_FAILED, FetchOutcome.NETWORK_ERROR])
def test_other_failures_use_cache(state, outcome):
    state.begin()
    step = state.evaluate(outcome)
    assert step.action == FallbackAction.USE_CACHED
    assert state.begin() == CANDIDATES[0]


def test_requires_candidates():
    with pytest.raises(ValueError):
        ModelFallbackState([])
