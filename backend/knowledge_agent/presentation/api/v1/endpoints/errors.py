"""Shared domain-exception → HTTPException mapping for the agent routers."""

from fastapi import HTTPException, UploadFile, status

from knowledge_agent.domain.exceptions import (
    ChatProviderError,
    DocumentFetchError,
    DocumentRejectedError,
    DocumentValidationError,
    EmbeddingProviderError,
)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}

DOMAIN_ERRORS = (
    ChatProviderError,
    EmbeddingProviderError,
    DocumentValidationError,
    DocumentRejectedError,
    DocumentFetchError,
)


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, (ChatProviderError, EmbeddingProviderError)):
        return HTTPException(
            status_code=error.status_code if 400 <= error.status_code < 600 else 502,
            detail=f"[{error.provider}] {error.message}",
        )
    if isinstance(error, (DocumentValidationError, DocumentRejectedError, DocumentFetchError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def ensure_pdf(file: UploadFile) -> None:
    """Reject uploads that are neither declared nor named as PDF."""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    filename = (file.filename or "").lower()
    if content_type in PDF_CONTENT_TYPES or filename.endswith(".pdf"):
        return
    raise HTTPException(
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        detail=f"Only PDF files are supported (got {file.content_type or 'unknown type'})",
    )
