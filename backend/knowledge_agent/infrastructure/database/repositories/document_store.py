"""SQLAlchemy implementation of DocumentStore — pgvector-powered lifecycle and search."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import Integer, cast, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowledge_agent.application.interfaces.document_store import DocumentStore, ScoredDocument
from knowledge_agent.domain.entities.document import (
    Document,
    DocumentMetadata,
    new_permanent_document,
    new_temporary_document,
)
from knowledge_agent.infrastructure.database.models.document_models import DocumentModel

logger = logging.getLogger(__name__)


class PgDocumentStore(DocumentStore):
    """Concrete document store backed by PostgreSQL + pgvector.

    Every method runs in its own short-lived transaction. Promotion and the
    expiry sweep are single UPDATE / DELETE statements whose predicates
    exclude each other, so a promotion committed before the sweep's delete
    always survives it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _to_entity(model: DocumentModel) -> Document:
        """Map ORM model → domain entity."""
        embedding = None
        if model.embedding is not None:
            embedding = [float(v) for v in model.embedding]
        return Document(
            id=model.id,
            content=model.content,
            metadata=DocumentMetadata.from_dict(model.metadata_),
            embedding=embedding,
            is_temporary=model.is_temporary,
            expires_at=model.expires_at,
            promoted_at=model.promoted_at,
            created_at=model.created_at,
        )

    @staticmethod
    def _to_model(document: Document) -> DocumentModel:
        """Map domain entity → ORM model."""
        return DocumentModel(
            id=document.id,
            content=document.content,
            embedding=document.embedding,
            metadata_=document.metadata.to_dict(),
            is_temporary=document.is_temporary,
            expires_at=document.expires_at,
            promoted_at=document.promoted_at,
            created_at=document.created_at,
        )

    async def _insert(self, document: Document) -> Document:
        async with self._session_factory() as session:
            session.add(self._to_model(document))
            await session.commit()
        return document

    # ── Writes ───────────────────────────────────────────────────────

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

    async def promote(self, ids: Iterable[str]) -> int:
        """Flip temporary documents to permanent in one UPDATE.

        The ``is_temporary`` guard keeps the original ``promoted_at`` of
        documents that were already permanent.
        """
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return 0

        promoted_at = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            result = await session.execute(
                update(DocumentModel)
                .where(DocumentModel.id.in_(id_list))
                .where(DocumentModel.is_temporary.is_(True))
                .values(is_temporary=False, expires_at=None, promoted_at=promoted_at)
            )
            await session.commit()

        count = result.rowcount
        logger.info("Promoted %d of %d requested documents", count, len(id_list))
        return count

    async def sweep_expired(self, now: datetime) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(DocumentModel)
                .where(DocumentModel.is_temporary.is_(True))
                .where(DocumentModel.expires_at.is_not(None))
                .where(DocumentModel.expires_at < now)
            )
            await session.commit()
        return result.rowcount

    async def delete_by_source(self, source: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(DocumentModel).where(
                    DocumentModel.metadata_["source"].astext == source
                )
            )
            await session.commit()

        count = result.rowcount
        if count > 0:
            logger.info("Deleted %d documents with source %s", count, source)
        return count

    async def set_embedding(self, document_id: str, embedding: list[float]) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                update(DocumentModel)
                .where(DocumentModel.id == document_id)
                .values(embedding=embedding)
            )
            await session.commit()
        return result.rowcount > 0

    # ── Reads ────────────────────────────────────────────────────────

    async def get(self, document_id: str) -> Document | None:
        async with self._session_factory() as session:
            model = await session.get(DocumentModel, document_id)
            return self._to_entity(model) if model else None

    async def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        threshold: float = 0.7,
        permanent_only: bool = False,
    ) -> list[ScoredDocument]:
        """Find documents most similar to the query embedding using cosine similarity.

        pgvector's ``<=>`` operator returns cosine distance; similarity is
        ``1 - distance``. Ordering by ascending distance lets the HNSW index
        serve the query.
        """
        distance = DocumentModel.embedding.cosine_distance(query_embedding)
        similarity = (1 - distance).label("similarity")

        query = (
            select(DocumentModel, similarity)
            .where(DocumentModel.embedding.is_not(None))
            .where((1 - distance) >= threshold)
        )
        if permanent_only:
            query = query.where(DocumentModel.is_temporary.is_(False))

        query = query.order_by(distance.asc(), DocumentModel.created_at.desc()).limit(k)

        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        return [
            ScoredDocument(document=self._to_entity(row[0]), score=float(row.similarity))
            for row in rows
        ]

    async def find_by_group(self, document_group_id: str) -> list[Document]:
        query = (
            select(DocumentModel)
            .where(DocumentModel.metadata_["document_group_id"].astext == document_group_id)
            .order_by(cast(DocumentModel.metadata_["chunk_index"].astext, Integer).asc())
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [self._to_entity(m) for m in result.scalars().all()]

    async def find_unembedded(self, limit: int = 100) -> list[Document]:
        query = (
            select(DocumentModel)
            .where(DocumentModel.embedding.is_(None))
            .order_by(DocumentModel.created_at.asc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [self._to_entity(m) for m in result.scalars().all()]
