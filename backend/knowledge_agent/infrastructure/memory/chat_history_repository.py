"""In-process ChatHistoryRepository for local development and unit tests."""

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

from knowledge_agent.application.interfaces import ChatHistoryRepository
from knowledge_agent.domain.entities import ChatMessage, MessageRole

_MIN_STEP = timedelta(microseconds=1)


class InMemoryChatHistoryRepository(ChatHistoryRepository):
    """Keeps each session as an append-only list ordered by created_at."""

    def __init__(self) -> None:
        self._sessions: dict[str, list[ChatMessage]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def append(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        async with self._lock:
            transcript = self._sessions[session_id]
            created_at = datetime.now(timezone.utc)
            if transcript and created_at <= transcript[-1].created_at:
                created_at = transcript[-1].created_at + _MIN_STEP
            message = ChatMessage(
                session_id=session_id,
                role=role,
                content=content,
                metadata=dict(metadata or {}),
                created_at=created_at,
            )
            transcript.append(message)
        return message

    async def get_recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        return list(self._sessions.get(session_id, [])[-limit:])

    async def get_all(self, session_id: str) -> list[ChatMessage]:
        return list(self._sessions.get(session_id, []))

    async def delete_session(self, session_id: str) -> int:
        async with self._lock:
            removed = self._sessions.pop(session_id, [])
        return len(removed)
