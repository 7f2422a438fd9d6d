"""Abstract interface (port) for turning raw documents into grouped text chunks."""

from abc import ABC, abstractmethod

from knowledge_agent.domain.entities.ingestion import IngestedDocument


class DocumentIngestor(ABC):
    """Port for text extraction + chunking — implemented in the infrastructure layer."""

    @abstractmethod
    async def ingest(
        self,
        content: bytes,
        *,
        title: str | None = None,
        source: str | None = None,
    ) -> IngestedDocument:
        """Extract and chunk a document held in memory.

        Every returned chunk carries chunk_index, total_chunks and a shared
        document_group_id.

        Raises:
            DocumentValidationError: If the bytes are not a readable document.
        """
        ...

    @abstractmethod
    async def ingest_url(self, url: str, *, title: str | None = None) -> IngestedDocument:
        """Download and ingest a remote document.

        Raises:
            DocumentFetchError: If the download fails or has the wrong type.
        """
        ...
