"""Domain entity for stored documents — text chunks with an optional embedding.

Documents are immutable value records. Construction goes through the
``new_temporary_document`` / ``new_permanent_document`` functions; promotion
and embedding assignment go through the DocumentStore.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any


@dataclass(frozen=True)
class DocumentMetadata:
    """Well-known metadata fields plus free-form extras.

    ``document_group_id`` ties together all chunks produced from one
    ingested artifact; ``chunk_index`` orders them.
    """

    source: str | None = None
    title: str | None = None
    document_group_id: str | None = None
    chunk_index: int | None = None
    total_chunks: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ("source", "title", "document_group_id", "chunk_index", "total_chunks")

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the JSON shape stored alongside the document."""
        data: dict[str, Any] = dict(self.extra)
        for key in self._KNOWN_KEYS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DocumentMetadata":
        data = dict(data or {})
        chunk_index = data.pop("chunk_index", None)
        total_chunks = data.pop("total_chunks", None)
        return cls(
            source=data.pop("source", None),
            title=data.pop("title", None),
            document_group_id=data.pop("document_group_id", None),
            chunk_index=int(chunk_index) if chunk_index is not None else None,
            total_chunks=int(total_chunks) if total_chunks is not None else None,
            extra=data,
        )


@dataclass(frozen=True)
class Document:
    """A chunk of ingested text, optionally embedded for similarity search.

    ``expires_at`` is only ever set while ``is_temporary`` is true. Once a
    document is promoted, ``promoted_at`` is stamped and never cleared.
    """

    id: str
    content: str
    metadata: DocumentMetadata
    embedding: list[float] | None = None
    is_temporary: bool = False
    expires_at: datetime | None = None
    promoted_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def is_expired(self, now: datetime) -> bool:
        """True when the sweep at ``now`` should delete this document."""
        return self.is_temporary and self.expires_at is not None and self.expires_at < now


def new_temporary_document(
    content: str,
    embedding: list[float] | None,
    metadata: DocumentMetadata,
    ttl_hours: float,
    *,
    now: datetime | None = None,
) -> Document:
    """Build a TTL-bound document expiring ``ttl_hours`` after ``now``."""
    if ttl_hours <= 0:
        raise ValueError(f"ttl_hours must be positive, got {ttl_hours}")
    created_at = now or datetime.now(timezone.utc)
    return Document(
        id=str(uuid.uuid4()),
        content=content,
        metadata=metadata,
        embedding=list(embedding) if embedding is not None else None,
        is_temporary=True,
        expires_at=created_at + timedelta(hours=ttl_hours),
        created_at=created_at,
    )


def new_permanent_document(
    content: str,
    embedding: list[float] | None,
    metadata: DocumentMetadata,
    *,
    now: datetime | None = None,
) -> Document:
    """Build a document stored directly in the permanent knowledge base."""
    return Document(
        id=str(uuid.uuid4()),
        content=content,
        metadata=metadata,
        embedding=list(embedding) if embedding is not None else None,
        is_temporary=False,
        expires_at=None,
        created_at=now or datetime.now(timezone.utc),
    )
