"""Semantic retrieval of portfolio passages and context formatting."""

from __future__ import annotations

import logging

from folio.config import settings
from folio.llm import embeddings
from folio.models import MetadataValue, SearchMatch
from folio.vector.indexer import Embedder
from folio.vector.store import VectorStore

logger = logging.getLogger(__name__)

NO_CONTEXT = "No relevant information found in the portfolio."
CONTEXT_HEADER = "Relevant information from the portfolio:"

# (label, metadata keys checked in order)
_CONTEXT_FIELDS: list[tuple[str, tuple[str, ...]]] = [
    ("Title", ("title",)),
    ("Organization", ("organization", "company")),
    ("Period", ("period",)),
    ("Technologies", ("technologies",)),
]


def _field_value(metadata: dict[str, MetadataValue], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = metadata.get(key)
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        if value not in (None, ""):
            return str(value)
    return ""


def format_context(matches: list[SearchMatch]) -> str:
    """Render matches as numbered blocks for the system prompt."""
    if not matches:
        return NO_CONTEXT

    blocks = []
    for index, match in enumerate(matches, start=1):
        lines = [f"[{index}] {match.metadata.get('text', '')}"]
        for label, keys in _CONTEXT_FIELDS:
            value = _field_value(match.metadata, keys)
            if value:
                lines.append(f"   {label}: {value}")
        blocks.append("\n".join(lines))

    return CONTEXT_HEADER + "\n\n" + "\n\n".join(blocks)


class Retriever:
    """Finds the passages closest to a user query."""

    def __init__(self, store: VectorStore | None = None, embed: Embedder | None = None) -> None:
        self._store = store or VectorStore.get()
        self._embed = embed or embeddings.embed

    async def retrieve(self, query: str, top_k: int | None = None) -> list[SearchMatch]:
        """Nearest matches in store order, or [] if anything upstream fails."""
        top_k = settings.retrieval_top_k if top_k is None else top_k
        try:
            vector = await self._embed(query)
            matches = await self._store.query(vector, top_k)
        except Exception:
            logger.exception("Retrieval failed, continuing without context")
            return []
        logger.debug("Retrieved %d match(es): %s", len(matches), [m.id for m in matches])
        return matches
