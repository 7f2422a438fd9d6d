from .base import Base
from .session import engine, async_session_factory
from .models import DocumentModel, ChatHistoryModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "DocumentModel",
    "ChatHistoryModel",
]
