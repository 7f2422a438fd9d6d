"""Retrieval gate — threshold-filtered semantic search formatted for the model."""

import logging

from knowledge_agent.application.interfaces.document_store import DocumentStore, ScoredDocument
from knowledge_agent.application.interfaces.embedding_provider import EmbeddingProvider

logger = logging.getLogger(__name__)

NO_RESULTS = "No relevant documents found."
RESULT_SEPARATOR = "\n\n---\n\n"


class RetrievalService:
    """Embeds a query, keeps only hits at or above the similarity threshold
    and renders them as a numbered plain-text digest.

    Embedding failures propagate to the caller.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        embedding_provider: EmbeddingProvider,
        similarity_threshold: float = 0.7,
        permanent_only: bool = False,
    ):
        self._store = document_store
        self._embeddings = embedding_provider
        self._threshold = similarity_threshold
        self._permanent_only = permanent_only

    @property
    def similarity_threshold(self) -> float:
        return self._threshold

    async def search_scored(self, query: str, limit: int = 5) -> list[ScoredDocument]:
        query_embedding = await self._embeddings.generate_query_embedding(query)
        hits = await self._store.similarity_search(
            query_embedding,
            k=limit,
            threshold=self._threshold,
            permanent_only=self._permanent_only,
        )
        logger.info(
            "Retrieval for %r: %d hits (k=%d, threshold=%.2f)",
            query[:80],
            len(hits),
            limit,
            self._threshold,
        )
        return hits

    async def search(self, query: str, limit: int = 5) -> str:
        hits = await self.search_scored(query, limit)
        if not hits:
            return NO_RESULTS
        return format_hits(hits)


def format_hits(hits: list[ScoredDocument]) -> str:
    """Render hits as ``[n] (NN.N% match) Title (source)`` blocks."""
    blocks = []
    for index, hit in enumerate(hits, start=1):
        metadata = hit.document.metadata
        title = metadata.title or "Untitled"
        source = metadata.source or "Unknown"
        blocks.append(
            f"[{index}] ({hit.score * 100:.1f}% match) {title} ({source})\n"
            f"{hit.document.content}"
        )
    return RESULT_SEPARATOR.join(blocks)
