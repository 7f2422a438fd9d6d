"""Pydantic DTOs for knowledge-base document management."""

from typing import Any

from pydantic import BaseModel, Field, HttpUrl


class DocumentMetadataSchema(BaseModel):
    """Metadata accepted with raw text documents; unknown keys are kept."""

    source: str | None = Field(None, examples=["handbook"])
    title: str | None = Field(None, examples=["Employee Handbook"])

    model_config = {"extra": "allow"}


class DocumentCreate(BaseModel):
    """Schema for adding one raw text document."""

    content: str = Field(..., min_length=1, examples=["Refunds are processed within 14 days."])
    metadata: DocumentMetadataSchema = Field(default_factory=DocumentMetadataSchema)

    def metadata_dict(self) -> dict[str, Any]:
        return self.metadata.model_dump(exclude_none=True)


class DocumentBatchCreate(BaseModel):
    documents: list[DocumentCreate] = Field(..., min_length=1, max_length=500)


class DocumentCreatedResponse(BaseModel):
    id: str


class DocumentBatchCreatedResponse(BaseModel):
    ids: list[str]
    count: int


class PdfUrlUpload(BaseModel):
    """Schema for ingesting a PDF from a URL."""

    url: HttpUrl
    title: str | None = Field(None, max_length=255)


class DocumentUploadResponse(BaseModel):
    """Outcome of a PDF ingestion."""

    document_group_id: str
    chunk_count: int
    title: str
    is_temporary: bool
    page_count: int = 0

    model_config = {"from_attributes": True}


class DocumentsDeletedResponse(BaseModel):
    source: str
    deleted: int


class EmbeddingBackfillResponse(BaseModel):
    embedded: int


class CleanupResponse(BaseModel):
    deleted: int
