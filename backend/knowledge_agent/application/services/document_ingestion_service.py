"""Document ingestion use case — scan, extract, embed and store.

Shared by chat attachments (temporary, TTL-bound) and knowledge-base
uploads (permanent). Nothing is stored unless the scan passes and every
chunk has been embedded.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from knowledge_agent.application.interfaces.content_scanner import ContentScanner
from knowledge_agent.application.interfaces.document_ingestor import DocumentIngestor
from knowledge_agent.application.interfaces.document_store import DocumentStore
from knowledge_agent.application.interfaces.embedding_provider import EmbeddingProvider
from knowledge_agent.domain.entities import (
    DocumentMetadata,
    DocumentUploadResult,
    IngestedDocument,
    ScanResult,
    ScanVerdict,
)
from knowledge_agent.domain.exceptions import DocumentRejectedError, DocumentValidationError
from knowledge_agent.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("DocumentIngestionService")

# Max texts per embeddings request
_MAX_BATCH_SIZE = 50

ATTACHMENT_SOURCE = "chat-attachment"
UPLOAD_SOURCE = "direct-upload"


@dataclass
class NewDocument:
    """Raw text to add to the knowledge base."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class DocumentIngestionService:
    """Application service for every path that puts documents into the store."""

    def __init__(
        self,
        document_store: DocumentStore,
        embedding_provider: EmbeddingProvider,
        ingestor: DocumentIngestor,
        scanner: ContentScanner,
        ttl_hours: float = 24,
        max_upload_bytes: int = 50 * 1024 * 1024,
    ):
        self._store = document_store
        self._embeddings = embedding_provider
        self._ingestor = ingestor
        self._scanner = scanner
        self._ttl_hours = ttl_hours
        self._max_upload_bytes = max_upload_bytes

    @property
    def ttl_hours(self) -> float:
        return self._ttl_hours

    # ── PDF paths ────────────────────────────────────────────────────

    async def ingest_temporary(self, content: bytes, filename: str) -> DocumentUploadResult:
        """Store a chat attachment as temporary chunks expiring after the TTL."""
        plog.separator(f"Attachment: {filename}")
        self._validate_bytes(content)
        await self._scan_file(content, filename)

        with plog.timed_step(PipelineStage.EXTRACT, f"Extracting {filename}"):
            ingested = await self._ingestor.ingest(
                content, title=filename, source=ATTACHMENT_SOURCE
            )

        embeddings = await self._embed([c.content for c in ingested.chunks])

        with plog.timed_step(
            PipelineStage.STORE,
            f"Storing {len(ingested.chunks)} temporary chunks",
            ttl_hours=self._ttl_hours,
        ):
            for chunk, embedding in zip(ingested.chunks, embeddings, strict=True):
                await self._store.insert_temporary(
                    chunk.content, embedding, chunk.metadata, self._ttl_hours
                )

        return self._result(ingested, is_temporary=True)

    async def ingest_permanent_file(
        self, content: bytes, title: str | None = None
    ) -> DocumentUploadResult:
        """Store an uploaded PDF directly in the permanent knowledge base."""
        plog.separator(f"Upload: {title or 'PDF'}")
        self._validate_bytes(content)
        await self._scan_file(content, title or "uploaded file")

        with plog.timed_step(PipelineStage.EXTRACT, "Extracting uploaded PDF"):
            ingested = await self._ingestor.ingest(content, title=title, source=UPLOAD_SOURCE)

        await self._store_permanent(ingested)
        return self._result(ingested, is_temporary=False)

    async def ingest_permanent_url(
        self, url: str, title: str | None = None
    ) -> DocumentUploadResult:
        """Download a PDF and store it in the permanent knowledge base."""
        url = (url or "").strip()
        if not url:
            raise DocumentValidationError("URL is required")
        if not url.startswith(("http://", "https://")):
            raise DocumentValidationError(f"Unsupported URL scheme: {url}")

        plog.separator(f"URL: {url}")
        with plog.timed_step(PipelineStage.SCAN, f"Scanning {url}"):
            verdict = await self._scanner.scan_url(url)
        self._enforce_scan(verdict, "URL")

        with plog.timed_step(PipelineStage.EXTRACT, f"Fetching {url}"):
            ingested = await self._ingestor.ingest_url(url, title=title)

        await self._store_permanent(ingested)
        return self._result(ingested, is_temporary=False)

    # ── Raw text paths ───────────────────────────────────────────────

    async def add_document(self, content: str, metadata: dict[str, Any] | None = None) -> str:
        ids = await self.add_documents([NewDocument(content=content, metadata=metadata or {})])
        return ids[0]

    async def add_documents(self, items: list[NewDocument]) -> list[str]:
        """Embed and store raw text documents permanently, returning their ids."""
        if not items:
            return []
        metadata: list[DocumentMetadata] = []
        for position, item in enumerate(items):
            if not item.content or not item.content.strip():
                raise DocumentValidationError("Document content must not be empty")
            try:
                metadata.append(DocumentMetadata.from_dict(item.metadata))
            except (TypeError, ValueError) as exc:
                raise DocumentValidationError(
                    f"Invalid metadata for document {position}: {exc}"
                ) from exc

        embeddings = await self._embed([item.content for item in items])

        ids: list[str] = []
        for item, meta, embedding in zip(items, metadata, embeddings, strict=True):
            document = await self._store.insert_permanent(item.content, embedding, meta)
            ids.append(document.id)

        logger.info("Added %d documents to the knowledge base", len(ids))
        return ids

    async def embed_pending(self, limit: int = 100) -> int:
        """Embed documents that were stored without an embedding."""
        pending = await self._store.find_unembedded(limit)
        if not pending:
            return 0

        embeddings = await self._embed([d.content for d in pending])

        updated = 0
        for document, embedding in zip(pending, embeddings, strict=True):
            if await self._store.set_embedding(document.id, embedding):
                updated += 1

        logger.info("Backfilled embeddings for %d of %d documents", updated, len(pending))
        return updated

    async def delete_by_source(self, source: str) -> int:
        if not source:
            raise DocumentValidationError("source is required")
        return await self._store.delete_by_source(source)

    # ── Internals ────────────────────────────────────────────────────

    def _validate_bytes(self, content: bytes) -> None:
        if not content:
            raise DocumentValidationError("Uploaded file is empty")
        if len(content) > self._max_upload_bytes:
            raise DocumentValidationError(
                f"File exceeds maximum upload size of {self._max_upload_bytes // (1024 * 1024)} MB"
            )

    async def _scan_file(self, content: bytes, label: str) -> None:
        with plog.timed_step(PipelineStage.SCAN, f"Scanning {label}", size=len(content)):
            verdict = await self._scanner.scan_file(content)
        self._enforce_scan(verdict, "File")

    @staticmethod
    def _enforce_scan(verdict: ScanResult, kind: str) -> None:
        if verdict.verdict is ScanVerdict.INCONCLUSIVE:
            plog.step_warning(
                PipelineStage.SCAN,
                "Scan inconclusive, continuing",
                reason=verdict.error or "unknown",
            )
        if not verdict.is_clean:
            plog.step_error(
                PipelineStage.SCAN,
                f"{kind} rejected: {verdict.positives}/{verdict.total} detections",
            )
            raise DocumentRejectedError(kind, verdict.positives, verdict.total)

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        all_embeddings: list[list[float]] = []
        start = time.monotonic()
        with plog.timed_step(PipelineStage.EMBED, f"Embedding {len(texts)} texts"):
            for batch_start in range(0, len(texts), _MAX_BATCH_SIZE):
                batch = texts[batch_start : batch_start + _MAX_BATCH_SIZE]
                all_embeddings.extend(await self._embeddings.generate_embeddings(batch))
        plog.stats(texts=len(texts), duration_ms=int((time.monotonic() - start) * 1000))
        return all_embeddings

    async def _store_permanent(self, ingested: IngestedDocument) -> None:
        embeddings = await self._embed([c.content for c in ingested.chunks])
        with plog.timed_step(
            PipelineStage.STORE,
            f"Storing {len(ingested.chunks)} permanent chunks",
            group=ingested.document_group_id,
        ):
            for chunk, embedding in zip(ingested.chunks, embeddings, strict=True):
                await self._store.insert_permanent(chunk.content, embedding, chunk.metadata)

    @staticmethod
    def _result(ingested: IngestedDocument, *, is_temporary: bool) -> DocumentUploadResult:
        return DocumentUploadResult(
            document_group_id=ingested.document_group_id,
            chunk_count=len(ingested.chunks),
            title=ingested.title,
            is_temporary=is_temporary,
            page_count=ingested.info.page_count,
            chunks=list(ingested.chunks),
        )
