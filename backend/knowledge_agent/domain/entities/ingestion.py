"""Domain entities produced by document ingestion and content scanning."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from knowledge_agent.domain.entities.document import DocumentMetadata


@dataclass
class DocumentChunk:
    """One contiguous slice of an ingested document, ready to be embedded."""

    content: str
    metadata: DocumentMetadata


@dataclass
class SourceDocumentInfo:
    """Document-level metadata reported by the extractor."""

    page_count: int = 0
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    creator: str | None = None
    producer: str | None = None
    creation_date: datetime | None = None
    modification_date: datetime | None = None


@dataclass
class IngestedDocument:
    """Ordered chunks of one artifact, all sharing a document_group_id."""

    document_group_id: str
    title: str
    chunks: list[DocumentChunk] = field(default_factory=list)
    info: SourceDocumentInfo = field(default_factory=SourceDocumentInfo)


@dataclass
class DocumentUploadResult:
    """Outcome of storing an ingested document."""

    document_group_id: str
    chunk_count: int
    title: str
    is_temporary: bool
    page_count: int = 0
    chunks: list[DocumentChunk] = field(default_factory=list)


class ScanVerdict(str, Enum):
    """Outcome of a content-safety scan.

    INCONCLUSIVE means the scanner was unavailable, timed out or has no
    result yet; ingestion proceeds (fail-open) but the verdict is kept
    distinct from a genuine CLEAN.
    """

    CLEAN = "clean"
    MALICIOUS = "malicious"
    INCONCLUSIVE = "inconclusive"


@dataclass
class ScanResult:
    """Result of scanning a file or URL."""

    subject: str  # sha256 hash or URL
    verdict: ScanVerdict
    positives: int = 0
    total: int = 0
    scan_date: datetime | None = None
    error: str | None = None

    @property
    def is_clean(self) -> bool:
        return self.verdict is not ScanVerdict.MALICIOUS
