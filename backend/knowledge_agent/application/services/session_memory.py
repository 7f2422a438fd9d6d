"""Session memory — ordered per-session transcript and its model projection."""

import logging
from typing import Any

from knowledge_agent.application.interfaces.chat_history_repository import ChatHistoryRepository
from knowledge_agent.domain.entities import ChatMessage, LLMMessage, MessageRole

logger = logging.getLogger(__name__)


class SessionMemory:
    """Application service over the ChatHistoryRepository port.

    Messages are append-only. ``recent`` and ``all`` always return
    chronological order (oldest first).
    """

    def __init__(self, repository: ChatHistoryRepository):
        self._repository = repository

    async def append(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        return await self._repository.append(session_id, role, content, metadata)

    async def recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        return await self._repository.get_recent(session_id, limit)

    async def all(self, session_id: str) -> list[ChatMessage]:
        return await self._repository.get_all(session_id)

    async def clear(self, session_id: str) -> int:
        deleted = await self._repository.delete_session(session_id)
        logger.info("Cleared session %s (%d messages)", session_id, deleted)
        return deleted

    @staticmethod
    def to_llm_messages(messages: list[ChatMessage]) -> list[LLMMessage]:
        """Project stored transcript entries onto the model wire format."""
        converted: list[LLMMessage] = []
        for message in messages:
            if message.role is MessageRole.USER:
                converted.append(LLMMessage(role="user", content=message.content))
            elif message.role is MessageRole.ASSISTANT:
                converted.append(LLMMessage(role="assistant", content=message.content))
            elif message.role is MessageRole.SYSTEM:
                converted.append(LLMMessage(role="system", content=message.content))
            else:
                raise ValueError(f"Unhandled message role: {message.role!r}")
        return converted
