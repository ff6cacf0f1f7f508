"""Async Claude client used as the generation provider."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from folio.config import settings
from folio.llm.models import friendly, resolve_model

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client (single-shot, no retries)."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key, max_retries=0)
    return _client


def _split_messages(
    messages: list[dict[str, str]],
) -> tuple[str, list[dict[str, str]]]:
    """Separate system-role messages from the conversation turns.

    Claude takes the system prompt as a separate parameter, so every
    ``system`` message is joined into one string. Consecutive turns with the
    same role are merged into a single turn. Assistant turns ahead of the
    first user turn are dropped, since the conversation must open with a
    user turn.
    """
    system_parts: list[str] = []
    turns: list[dict[str, str]] = []
    for msg in messages:
        role, content = msg["role"], msg["content"]
        if role == "system":
            system_parts.append(content)
            continue
        if not turns and role == "assistant":
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1] = {"role": role, "content": f"{turns[-1]['content']}\n\n{content}"}
        else:
            turns.append({"role": role, "content": content})
    return "\n\n".join(system_parts), turns


async def generate(
    messages: list[dict[str, str]],
    *,
    max_tokens: int | None = None,
    temperature: float | None = None,
    model: str | None = None,
) -> str | None:
    """Single-shot completion over role-tagged messages.

    Returns the generated text, or None when the model produced none.
    Provider errors propagate to the caller.
    """
    system, turns = _split_messages(messages)
    model_id = resolve_model(model or settings.chat_model)
    kwargs: dict[str, Any] = {
        "model": model_id,
        "max_tokens": max_tokens or settings.generation_max_tokens,
        "temperature": settings.generation_temperature if temperature is None else temperature,
        "messages": turns,
    }
    if system:
        kwargs["system"] = system

    response = await _get_client().messages.create(**kwargs)
    text = "".join(block.text for block in response.content if block.type == "text")
    logger.debug(
        "Generated %d chars with %s (stop_reason=%s)",
        len(text),
        friendly(model_id),
        response.stop_reason,
    )
    return text or None
