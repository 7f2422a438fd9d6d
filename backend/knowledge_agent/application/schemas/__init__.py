from .chat import (
    ChatMessageResponse,
    ChatResponseSchema,
    SessionClearedResponse,
    SessionHistoryResponse,
)
from .documents import (
    CleanupResponse,
    DocumentBatchCreate,
    DocumentBatchCreatedResponse,
    DocumentCreate,
    DocumentCreatedResponse,
    DocumentMetadataSchema,
    DocumentsDeletedResponse,
    DocumentUploadResponse,
    EmbeddingBackfillResponse,
    PdfUrlUpload,
)

__all__ = [
    "ChatMessageResponse",
    "ChatResponseSchema",
    "SessionClearedResponse",
    "SessionHistoryResponse",
    "CleanupResponse",
    "DocumentBatchCreate",
    "DocumentBatchCreatedResponse",
    "DocumentCreate",
    "DocumentCreatedResponse",
    "DocumentMetadataSchema",
    "DocumentsDeletedResponse",
    "DocumentUploadResponse",
    "EmbeddingBackfillResponse",
    "PdfUrlUpload",
]
