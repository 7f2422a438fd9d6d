"""Knowledge-base document endpoints — raw text, PDF upload, PDF by URL, maintenance."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from knowledge_agent.application.schemas import (
    CleanupResponse,
    DocumentBatchCreate,
    DocumentBatchCreatedResponse,
    DocumentCreate,
    DocumentCreatedResponse,
    DocumentsDeletedResponse,
    DocumentUploadResponse,
    EmbeddingBackfillResponse,
    PdfUrlUpload,
)
from knowledge_agent.application.services import (
    CleanupScheduler,
    DocumentIngestionService,
    NewDocument,
)
from knowledge_agent.infrastructure.dependencies import (
    get_cleanup_scheduler,
    get_ingestion_service,
)
from knowledge_agent.presentation.api.v1.endpoints.errors import (
    DOMAIN_ERRORS,
    ensure_pdf,
    to_http_exception,
)

router = APIRouter(prefix="/agent/documents", tags=["Documents"])


@router.post("", response_model=DocumentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_document(
    data: DocumentCreate,
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> DocumentCreatedResponse:
    """Embed one text document and store it permanently."""
    try:
        document_id = await service.add_document(data.content, data.metadata_dict())
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DocumentCreatedResponse(id=document_id)


@router.post(
    "/batch",
    response_model=DocumentBatchCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_documents(
    data: DocumentBatchCreate,
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> DocumentBatchCreatedResponse:
    try:
        ids = await service.add_documents(
            [NewDocument(content=d.content, metadata=d.metadata_dict()) for d in data.documents]
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DocumentBatchCreatedResponse(ids=ids, count=len(ids))


@router.post(
    "/pdf",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_pdf(
    file: UploadFile = File(...),
    title: str | None = Form(None),
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> DocumentUploadResponse:
    """Scan, chunk and embed a PDF into the permanent knowledge base."""
    ensure_pdf(file)
    content = await file.read()
    try:
        result = await service.ingest_permanent_file(content, title=title or None)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DocumentUploadResponse.model_validate(result, from_attributes=True)


@router.post(
    "/pdf/url",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_pdf_from_url(
    data: PdfUrlUpload,
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> DocumentUploadResponse:
    """Scan the URL, download the PDF and store it permanently."""
    try:
        result = await service.ingest_permanent_url(str(data.url), title=data.title)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DocumentUploadResponse.model_validate(result, from_attributes=True)


@router.delete("", response_model=DocumentsDeletedResponse)
async def delete_documents_by_source(
    source: str = Query(..., min_length=1),
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> DocumentsDeletedResponse:
    try:
        deleted = await service.delete_by_source(source)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DocumentsDeletedResponse(source=source, deleted=deleted)


@router.post("/embeddings/backfill", response_model=EmbeddingBackfillResponse)
async def backfill_embeddings(
    limit: int = Query(100, ge=1, le=1000),
    service: DocumentIngestionService = Depends(get_ingestion_service),
) -> EmbeddingBackfillResponse:
    """Embed documents that were stored without a vector."""
    try:
        embedded = await service.embed_pending(limit)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return EmbeddingBackfillResponse(embedded=embedded)


@router.post("/cleanup", response_model=CleanupResponse)
async def run_cleanup(
    scheduler: CleanupScheduler = Depends(get_cleanup_scheduler),
) -> CleanupResponse:
    """Delete expired temporary documents now instead of waiting for the next tick."""
    deleted = await scheduler.tick()
    return CleanupResponse(deleted=deleted)
