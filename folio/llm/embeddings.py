"""Text embeddings via the OpenAI API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from folio.config import settings

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    """Return a lazily-initialised AsyncOpenAI singleton."""
    global _client  # noqa: PLW0603
    if _client is None:
        from openai import AsyncOpenAI

        _client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
    return _client


async def embed(text: str) -> list[float]:
    """Embed a single passage or query.

    Raises whatever the OpenAI client raises, and ``ValueError`` when the
    response carries no vector.
    """
    response = await _get_client().embeddings.create(
        model=settings.embedding_model,
        input=[text],
    )
    if not response.data:
        raise ValueError("Embedding response contained no vectors")
    return list(response.data[0].embedding)
