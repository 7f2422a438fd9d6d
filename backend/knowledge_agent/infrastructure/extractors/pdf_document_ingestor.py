"""PDF ingestor — implements the DocumentIngestor interface with PyMuPDF.

Extracts the text layer of every page, reads the document info dictionary
and splits the text into overlapping chunks that share one
document_group_id.
"""

import asyncio
import logging
import re
import uuid
from datetime import datetime

import fitz  # PyMuPDF
import httpx

from knowledge_agent.application.interfaces.document_ingestor import DocumentIngestor
from knowledge_agent.application.services.text_splitter import TextSplitter
from knowledge_agent.domain.entities import (
    DocumentChunk,
    DocumentMetadata,
    IngestedDocument,
    SourceDocumentInfo,
)
from knowledge_agent.domain.exceptions import DocumentFetchError, DocumentValidationError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled PDF"
DEFAULT_SOURCE = "uploaded-file"

_PDF_DATE_RE = re.compile(r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?")


def parse_pdf_date(value: str | None) -> datetime | None:
    """Parse a PDF date string (``D:YYYYMMDDHHmmSS...``); None if malformed."""
    if not value:
        return None
    match = _PDF_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second = (
        int(g) if g else default
        for g, default in zip(match.groups(), (0, 1, 1, 0, 0, 0))
    )
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


class PdfDocumentIngestor(DocumentIngestor):
    """Infrastructure adapter — PDF bytes in, grouped text chunks out."""

    def __init__(
        self,
        splitter: TextSplitter,
        fetch_timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._splitter = splitter
        self._fetch_timeout = fetch_timeout
        self._http_client = http_client

    async def ingest(
        self,
        content: bytes,
        *,
        title: str | None = None,
        source: str | None = None,
    ) -> IngestedDocument:
        text, info = await asyncio.to_thread(self._extract, content)

        pieces = self._splitter.split(text)
        if not pieces:
            raise DocumentValidationError("PDF contains no extractable text")

        group_id = str(uuid.uuid4())
        resolved_title = title or info.title or DEFAULT_TITLE
        resolved_source = source or DEFAULT_SOURCE

        chunks = [
            DocumentChunk(
                content=piece,
                metadata=DocumentMetadata(
                    source=resolved_source,
                    title=resolved_title,
                    document_group_id=group_id,
                    chunk_index=index,
                    total_chunks=len(pieces),
                ),
            )
            for index, piece in enumerate(pieces)
        ]

        logger.debug(
            "Processed PDF: %d pages, %d chunks (group=%s)",
            info.page_count,
            len(chunks),
            group_id,
        )
        return IngestedDocument(
            document_group_id=group_id,
            title=resolved_title,
            chunks=chunks,
            info=info,
        )

    async def ingest_url(self, url: str, *, title: str | None = None) -> IngestedDocument:
        content = await self._fetch(url)
        return await self.ingest(content, title=title, source=url)

    async def _fetch(self, url: str) -> bytes:
        client = self._http_client or httpx.AsyncClient(
            timeout=self._fetch_timeout, follow_redirects=True
        )
        should_close = self._http_client is None

        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            raise DocumentFetchError(url, str(exc) or type(exc).__name__) from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            raise DocumentFetchError(url, f"HTTP {response.status_code}")

        content_type = response.headers.get("content-type", "")
        if content_type and "application/pdf" not in content_type:
            raise DocumentFetchError(url, f"Invalid content type: {content_type}")

        return response.content

    @staticmethod
    def _extract(content: bytes) -> tuple[str, SourceDocumentInfo]:
        """Extract page text and document info using PyMuPDF."""
        if not content:
            raise DocumentValidationError("PDF file is empty")

        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as exc:
            raise DocumentValidationError(f"Could not read PDF: {exc}") from exc

        try:
            pages: list[str] = []
            for page_num, page in enumerate(doc):
                text = page.get_text("text")
                if text.strip():
                    pages.append(text)
                else:
                    logger.debug("Page %d appears to be scanned (no text layer)", page_num + 1)

            meta = doc.metadata or {}
            info = SourceDocumentInfo(
                page_count=doc.page_count,
                title=meta.get("title") or None,
                author=meta.get("author") or None,
                subject=meta.get("subject") or None,
                creator=meta.get("creator") or None,
                producer=meta.get("producer") or None,
                creation_date=parse_pdf_date(meta.get("creationDate")),
                modification_date=parse_pdf_date(meta.get("modDate")),
            )
        finally:
            doc.close()

        return "\n\n".join(pages), info
