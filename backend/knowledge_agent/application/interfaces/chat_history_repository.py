"""Abstract repository interface (port) for session transcripts."""

from abc import ABC, abstractmethod
from typing import Any

from knowledge_agent.domain.entities.chat_history import ChatMessage, MessageRole


class ChatHistoryRepository(ABC):
    """Port for ordered per-session message storage."""

    @abstractmethod
    async def append(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        """Persist a message with a created_at strictly after the session's last one."""
        ...

    @abstractmethod
    async def get_recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        """Return the newest ``limit`` messages, oldest first."""
        ...

    @abstractmethod
    async def get_all(self, session_id: str) -> list[ChatMessage]:
        """Return the full transcript, oldest first."""
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> int:
        """Delete every message of a session. Returns count of deleted rows."""
        ...
