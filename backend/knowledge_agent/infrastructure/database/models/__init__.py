from .document_models import DocumentModel
from .chat_history_models import ChatHistoryModel

__all__ = [
    "DocumentModel",
    "ChatHistoryModel",
]
