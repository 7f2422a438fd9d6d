"""SQLAlchemy ORM model for documents with pgvector embeddings."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB

from pgvector.sqlalchemy import Vector

from knowledge_agent.config import get_settings
from knowledge_agent.infrastructure.database.base import Base

# Fixed at table creation; changing the embedding model needs a migration.
EMBEDDING_DIMENSIONS = get_settings().embedding_dimensions


class DocumentModel(Base):
    """A stored document chunk, temporary (TTL-bound) or permanent.

    The embedding column stores the vector for pgvector similarity search.
    Chunk grouping lives in the JSONB metadata (document_group_id, chunk_index).
    """

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    metadata_ = Column("metadata", JSONB, nullable=False, server_default=text("'{}'::jsonb"))
    is_temporary = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    promoted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_documents_expires_at", expires_at),
        Index("idx_documents_group_id", metadata_["document_group_id"].astext),
        Index("idx_documents_source", metadata_["source"].astext),
        Index("idx_documents_embedding_hnsw", embedding, postgresql_using="hnsw",
              postgresql_ops={"embedding": "vector_cosine_ops"}),
    )
