"""Embed portfolio content records and upsert them into the vector store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from folio.config import settings
from folio.llm import embeddings
from folio.models import ContentRecord, IndexResult
from folio.vector.store import VectorStore

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

Embedder = Callable[[str], Awaitable[list[float]]]


class ContentIndexer:
    """Writes content records into the index, one embedding per record."""

    def __init__(
        self,
        store: VectorStore | None = None,
        embed: Embedder | None = None,
        batch_size: int | None = None,
    ) -> None:
        self._store = store or VectorStore.get()
        self._embed = embed or embeddings.embed
        self._batch_size = settings.ingest_batch_size if batch_size is None else batch_size

    async def index(self, record: ContentRecord) -> bool:
        """Embed and upsert one record. Returns False instead of raising."""
        try:
            vector = await self._embed(record.text)
            await self._store.upsert(record.id, vector, record.to_vector_metadata())
        except Exception:
            logger.exception("Failed to index content record %s", record.id)
            return False
        return True

    async def index_batch(self, records: Sequence[ContentRecord]) -> IndexResult:
        """Index records in fixed-size chunks; each chunk runs concurrently.

        Chunks keep the embedding provider under its rate limit. Within a
        chunk every record succeeds or fails on its own.
        """
        result = IndexResult()
        for start in range(0, len(records), self._batch_size):
            chunk = records[start : start + self._batch_size]
            outcomes = await asyncio.gather(
                *(self.index(record) for record in chunk),
                return_exceptions=True,
            )
            for outcome in outcomes:
                if outcome is True:
                    result.succeeded += 1
                else:
                    result.failed += 1

        logger.info(
            "Indexed %d content record(s): %d succeeded, %d failed",
            len(records),
            result.succeeded,
            result.failed,
        )
        return result
