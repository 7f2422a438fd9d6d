from .chat_history_repository import ChatHistoryRepository
from .chat_provider import ChatProvider
from .content_scanner import ContentScanner
from .document_ingestor import DocumentIngestor
from .document_store import DocumentStore, ScoredDocument
from .embedding_provider import EmbeddingProvider
from .web_search_provider import WebSearchProvider, WebSearchResult

__all__ = [
    "ChatHistoryRepository",
    "ChatProvider",
    "ContentScanner",
    "DocumentIngestor",
    "DocumentStore",
    "ScoredDocument",
    "EmbeddingProvider",
    "WebSearchProvider",
    "WebSearchResult",
]
