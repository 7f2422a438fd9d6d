from .document_store import PgDocumentStore
from .chat_history_repository import PgChatHistoryRepository

__all__ = [
    "PgDocumentStore",
    "PgChatHistoryRepository",
]
