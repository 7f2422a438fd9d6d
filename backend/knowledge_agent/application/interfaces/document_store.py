"""Abstract repository interface (port) for document lifecycle and vector search."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from knowledge_agent.domain.entities.document import Document, DocumentMetadata


@dataclass
class ScoredDocument:
    """A single result from a vector similarity search."""

    document: Document
    score: float  # cosine similarity, -1.0 – 1.0


class DocumentStore(ABC):
    """Port for document persistence, TTL management and similarity search.

    Implementations must not rely on application-level locks: every
    operation is a single atomic insert, update-by-id-set or predicate
    delete against the underlying storage.
    """

    @abstractmethod
    async def insert_temporary(
        self,
        content: str,
        embedding: list[float] | None,
        metadata: DocumentMetadata,
        ttl_hours: float,
    ) -> Document:
        """Store a document that expires ``ttl_hours`` from now.

        Raises:
            ValueError: If ``ttl_hours`` is not positive.
        """
        ...

    @abstractmethod
    async def insert_permanent(
        self,
        content: str,
        embedding: list[float] | None,
        metadata: DocumentMetadata,
    ) -> Document:
        """Store a document directly in the permanent knowledge base."""
        ...

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        ...

    @abstractmethod
    async def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        threshold: float = 0.7,
        permanent_only: bool = False,
    ) -> list[ScoredDocument]:
        """Find embedded documents whose cosine similarity is at least ``threshold``.

        Returns:
            At most ``k`` results ordered by descending score, ties broken
            by most recent ``created_at`` first.
        """
        ...

    @abstractmethod
    async def find_by_group(self, document_group_id: str) -> list[Document]:
        """Return every chunk of one ingested artifact ordered by chunk_index."""
        ...

    @abstractmethod
    async def promote(self, ids: Iterable[str]) -> int:
        """Promote temporary documents to permanent storage.

        Already-permanent and unknown ids are skipped silently.

        Returns:
            Number of documents that were actually promoted.
        """
        ...

    @abstractmethod
    async def sweep_expired(self, now: datetime) -> int:
        """Delete every temporary document with ``expires_at < now``.

        Returns:
            Number of deleted documents.
        """
        ...

    @abstractmethod
    async def delete_by_source(self, source: str) -> int:
        """Delete all documents whose metadata source matches. Returns count."""
        ...

    @abstractmethod
    async def set_embedding(self, document_id: str, embedding: list[float]) -> bool:
        """Assign an embedding to a stored document. False if it no longer exists."""
        ...

    @abstractmethod
    async def find_unembedded(self, limit: int = 100) -> list[Document]:
        """Return documents still waiting for an embedding, oldest first."""
        ...
