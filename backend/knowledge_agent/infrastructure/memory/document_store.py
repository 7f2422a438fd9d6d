"""In-process DocumentStore used for local development and unit tests.

Mirrors the semantics of ``PgDocumentStore``: cosine similarity with the
same threshold / ordering rules, and promotion and sweeping applied as a
single step with respect to each other.
"""

import asyncio
import dataclasses
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone

from knowledge_agent.application.interfaces.document_store import DocumentStore, ScoredDocument
from knowledge_agent.domain.entities.document import (
    Document,
    DocumentMetadata,
    new_permanent_document,
    new_temporary_document,
)

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    if len(a) != len(b):
        raise ValueError(f"Dimension mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store.

    A single ``asyncio.Lock`` plays the role of the database's row-level
    atomicity: each mutation runs to completion before the next one sees
    the data.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._documents)

    async def _insert(self, document: Document) -> Document:
        async with self._lock:
            self._documents[document.id] = document
        return document

    async def insert_temporary(
        self,
        content: str,
        embedding: list[float] | None,
        metadata: DocumentMetadata,
        ttl_hours: float,
    ) -> Document:
        return await self._insert(
            new_temporary_document(content, embedding, metadata, ttl_hours)
        )

    async def insert_permanent(
        self,
        content: str,
        embedding: list[float] | None,
        metadata: DocumentMetadata,
    ) -> Document:
        return await self._insert(new_permanent_document(content, embedding, metadata))

    async def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    async def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        threshold: float = 0.7,
        permanent_only: bool = False,
    ) -> list[ScoredDocument]:
        scored: list[ScoredDocument] = []
        for document in list(self._documents.values()):
            if document.embedding is None:
                continue
            if permanent_only and document.is_temporary:
                continue
            if len(document.embedding) != len(query_embedding):
                logger.warning(
                    "Skipping document %s: %d-dimensional embedding, query has %d",
                    document.id,
                    len(document.embedding),
                    len(query_embedding),
                )
                continue
            score = cosine_similarity(query_embedding, document.embedding)
            if score >= threshold:
                scored.append(ScoredDocument(document=document, score=score))

        scored.sort(key=lambda s: (s.score, s.document.created_at), reverse=True)
        return scored[:k]

    async def find_by_group(self, document_group_id: str) -> list[Document]:
        matches = [
            d for d in self._documents.values()
            if d.metadata.document_group_id == document_group_id
        ]
        matches.sort(key=lambda d: d.metadata.chunk_index or 0)
        return matches

    async def promote(self, ids: Iterable[str]) -> int:
        promoted_at = datetime.now(timezone.utc)
        count = 0
        async with self._lock:
            for document_id in dict.fromkeys(ids):
                document = self._documents.get(document_id)
                if document is None or not document.is_temporary:
                    continue
                self._documents[document_id] = dataclasses.replace(
                    document,
                    is_temporary=False,
                    expires_at=None,
                    promoted_at=promoted_at,
                )
                count += 1
        logger.info("Promoted %d documents", count)
        return count

    async def sweep_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [d.id for d in self._documents.values() if d.is_expired(now)]
            for document_id in expired:
                del self._documents[document_id]
        return len(expired)

    async def delete_by_source(self, source: str) -> int:
        async with self._lock:
            matches = [d.id for d in self._documents.values() if d.metadata.source == source]
            for document_id in matches:
                del self._documents[document_id]
        return len(matches)

    async def set_embedding(self, document_id: str, embedding: list[float]) -> bool:
        async with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                return False
            self._documents[document_id] = dataclasses.replace(
                document, embedding=list(embedding)
            )
        return True

    async def find_unembedded(self, limit: int = 100) -> list[Document]:
        pending = [d for d in self._documents.values() if d.embedding is None]
        pending.sort(key=lambda d: d.created_at)
        return pending[:limit]
