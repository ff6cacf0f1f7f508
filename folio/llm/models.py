"""Friendly model names for the generation provider."""

import logging

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-1-20250805",
}

# Reverse lookup: full model string → friendly name
FRIENDLY_NAMES: dict[str, str] = {v: k for k, v in MODEL_MAP.items()}


def resolve_model(name_or_id: str) -> str:
    """Map a friendly name to its full model ID.

    Anything that is not a friendly name is passed through unchanged, so a
    full model ID from configuration is used verbatim.
    """
    name = name_or_id.strip()
    if not name:
        logger.warning("Empty model name, falling back to sonnet")
        return MODEL_MAP["sonnet"]
    return MODEL_MAP.get(name, name)


def friendly(model_id: str) -> str:
    """Return the friendly name for a model ID, or the ID itself."""
    return FRIENDLY_NAMES.get(model_id, model_id)
