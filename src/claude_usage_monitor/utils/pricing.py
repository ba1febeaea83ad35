"""Token formatting and API-equivalent cost calculation utilities."""

from claude_usage_monitor.utils.model_names import display_name

# Per 1M tokens (as of Feb 2026), keyed by lowercased display-name fragment.
# First match wins, so longer versions come before their prefixes.
MODEL_COSTS: dict[str, dict[str, float]] = {
    "opus 4":     {"input": 15.00, "output": 75.00, "cache_read": 1.50, "cache_create": 18.75},
    "sonnet 4":   {"input": 3.00,  "output": 15.00, "cache_read": 0.30, "cache_create": 3.75},
    "haiku 4":    {"input": 0.80,  "output": 4.00,  "cache_read": 0.08, "cache_create": 1.00},
    "sonnet 3.7": {"input": 3.00,  "output": 15.00, "cache_read": 0.30, "cache_create": 3.75},
    "sonnet 3.5": {"input": 3.00,  "output": 15.00, "cache_read": 0.30, "cache_create": 3.75},
    "haiku 3.5":  {"input": 0.80,  "output": 4.00,  "cache_read": 0.08, "cache_create": 1.00},
    "haiku 3":    {"input": 0.25,  "output": 1.25,  "cache_read": 0.03, "cache_create": 0.30},
    "opus 3":     {"input": 15.00, "output": 75.00, "cache_read": 1.50, "cache_create": 18.75},
}


def format_tokens(count: int) -> str:
    """Compact token count: 999, 1.5K, 12K, 3.4M, 42M."""
    if count < 0:
        return "0"
    if count < 1_000:
        return str(count)
    if count < 1_000_000:
        k = count / 1_000
        return f"{k:.1f}K" if k < 10 else f"{k:.0f}K"
    m = count / 1_000_000
    return f"{m:.1f}M" if m < 10 else f"{m:.0f}M"


def format_cost(cost: float) -> str:
    if cost < 0.01:
        return "<$0.01"
    return f"${cost:.2f}"


def _match_model(model: str) -> dict[str, float] | None:
    """Match a model id to its cost entry by family and version.

    "claude-opus-4-5-20251101" → "opus 4.5" → the "opus 4" entry. Ids with
    no known family/version pair have no price.
    """
    if not model:
        return None
    name = display_name(model).lower()
    for key, costs in MODEL_COSTS.items():
        if key in name:
            return costs
    return None


def calculate_cost(
    input_tokens: int,
    output_tokens: int,
    cache_read_tokens: int,
    cache_creation_tokens: int,
    model: str,
) -> float:
    """Calculate cost in USD for the given token counts and model."""
    costs = _match_model(model)
    if not costs:
        return 0.0
    return (
        input_tokens * costs["input"]
        + output_tokens * costs["output"]
        + cache_read_tokens * costs["cache_read"]
        + cache_creation_tokens * costs["cache_create"]
    ) / 1_000_000
