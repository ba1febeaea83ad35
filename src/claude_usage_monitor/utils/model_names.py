"""Human-readable names for model ids."""

import re

_DATE_SUFFIX_RE = re.compile(r"-\d{8}.*$")


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def display_name(model_id: str) -> str:
    """Convert a model id to a display name.

    claude-opus-4-6            → Opus 4.6
    claude-sonnet-4-5-20250929 → Sonnet 4.5
    claude-3-5-sonnet-20241022 → Sonnet 3.5
    """
    if not model_id:
        return "Unknown"

    name = model_id[len("claude-"):] if model_id.startswith("claude-") else model_id
    name = _DATE_SUFFIX_RE.sub("", name)
    if not name:
        return model_id

    parts = [p for p in name.split("-") if p]
    if not parts:
        return model_id

    if parts[0][0].isdigit():
        # Old format: version first, e.g. "3-5-sonnet" or "3-opus"
        family_index = next(
            (i for i, p in enumerate(parts) if not p[0].isdigit()), len(parts)
        )
        version = ".".join(parts[:family_index])
        family = " ".join(_capitalize(p) for p in parts[family_index:])
        if not family:
            return version or model_id
        if not version:
            return family
        return f"{family} {version}"

    family = _capitalize(parts[0])
    version = ".".join(parts[1:])
    return f"{family} {version}" if version else family
