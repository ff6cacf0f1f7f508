"""Chroma-backed vector store for portfolio content.

Embeddings are computed by the caller and passed in explicitly; the
collection never embeds on its own. Chroma metadata values must be scalars,
so the full metadata mapping (which may hold string lists such as
``technologies``) travels as a JSON string next to a scalar ``category``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any

import chromadb

from folio.config import settings
from folio.models import MetadataValue, SearchMatch

logger = logging.getLogger(__name__)

_PAYLOAD_KEY = "payload"


def _encode_metadata(metadata: dict[str, MetadataValue]) -> dict[str, str]:
    return {
        "category": str(metadata.get("category", "")),
        _PAYLOAD_KEY: json.dumps(metadata),
    }


def _decode_metadata(stored: dict[str, Any] | None) -> dict[str, MetadataValue]:
    if not stored:
        return {}
    payload = stored.get(_PAYLOAD_KEY)
    if payload is None:
        return dict(stored)
    return json.loads(payload)


class VectorStore:
    """Nearest-neighbour index over portfolio passages.

    Singleton accessed via ``VectorStore.get()``.  Pass an explicit *client*
    (e.g. ``chromadb.EphemeralClient()``) for test isolation.
    """

    _instance: VectorStore | None = None

    def __init__(self, client: Any = None, collection_name: str | None = None) -> None:
        self._client = client
        self._collection_name = collection_name or settings.chroma_collection
        self._collection: Any = None
        self._init_lock = threading.Lock()

    @classmethod
    def get(cls) -> VectorStore:
        """Return the shared VectorStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    def _make_client(self) -> Any:
        if settings.chroma_host:
            logger.info(
                "Vector store: remote Chroma at %s:%d", settings.chroma_host, settings.chroma_port
            )
            return chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port)
        settings.chroma_path.mkdir(parents=True, exist_ok=True)
        logger.info("Vector store: local Chroma at %s", settings.chroma_path)
        return chromadb.PersistentClient(path=str(settings.chroma_path))

    def _ensure(self) -> Any:
        with self._init_lock:
            if self._collection is None:
                if self._client is None:
                    self._client = self._make_client()
                self._collection = self._client.get_or_create_collection(
                    name=self._collection_name,
                    metadata={"hnsw:space": "cosine"},
                )
            return self._collection

    def _upsert_sync(self, record_id: str, vector: list[float], metadata: dict) -> None:
        self._ensure().upsert(
            ids=[record_id],
            embeddings=[vector],
            metadatas=[_encode_metadata(metadata)],
        )

    def _query_sync(self, vector: list[float], top_k: int) -> dict[str, Any]:
        return self._ensure().query(
            query_embeddings=[vector],
            n_results=top_k,
            include=["metadatas", "distances"],
        )

    # -- Public API ------------------------------------------------------------

    async def upsert(
        self, record_id: str, vector: list[float], metadata: dict[str, MetadataValue]
    ) -> None:
        """Insert or overwrite the vector stored under *record_id*."""
        await asyncio.to_thread(self._upsert_sync, record_id, vector, metadata)

    async def query(self, vector: list[float], top_k: int) -> list[SearchMatch]:
        """Return up to *top_k* nearest matches, most similar first.

        Chroma reports cosine distance; the score is ``1 - distance`` so that
        higher means more relevant.
        """
        res = await asyncio.to_thread(self._query_sync, vector, top_k)

        ids = (res.get("ids") or [[]])[0]
        metas = (res.get("metadatas") or [[]])[0]
        dists = (res.get("distances") or [[]])[0]

        return [
            SearchMatch(id=ids[i], score=1.0 - float(dists[i]), metadata=_decode_metadata(metas[i]))
            for i in range(min(len(ids), len(metas), len(dists)))
        ]
