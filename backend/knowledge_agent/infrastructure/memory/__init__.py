from .chat_history_repository import InMemoryChatHistoryRepository
from .document_store import InMemoryDocumentStore, cosine_similarity

__all__ = [
    "InMemoryChatHistoryRepository",
    "InMemoryDocumentStore",
    "cosine_similarity",
]
