"""Concrete repository for session chat history backed by SQLAlchemy."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowledge_agent.application.interfaces import ChatHistoryRepository
from knowledge_agent.domain.entities import ChatMessage, MessageRole
from knowledge_agent.infrastructure.database.models.chat_history_models import ChatHistoryModel

_MIN_STEP = timedelta(microseconds=1)


class PgChatHistoryRepository(ChatHistoryRepository):
    """Implements the ChatHistoryRepository port using SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _to_entity(self, model: ChatHistoryModel) -> ChatMessage:
        """Map ORM model → domain entity."""
        return ChatMessage(
            id=model.id,
            session_id=model.session_id,
            role=MessageRole(model.role),
            content=model.content,
            metadata=dict(model.metadata_ or {}),
            created_at=model.created_at,
        )

    async def append(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        async with self._session_factory() as session:
            last = await session.scalar(
                select(func.max(ChatHistoryModel.created_at)).where(
                    ChatHistoryModel.session_id == session_id
                )
            )
            created_at = datetime.now(timezone.utc)
            if last is not None and created_at <= last:
                created_at = last + _MIN_STEP

            model = ChatHistoryModel(
                id=str(uuid.uuid4()),
                session_id=session_id,
                role=role.value,
                content=content,
                metadata_=dict(metadata or {}),
                created_at=created_at,
            )
            session.add(model)
            await session.commit()
            return self._to_entity(model)

    async def get_recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        stmt = (
            select(ChatHistoryModel)
            .where(ChatHistoryModel.session_id == session_id)
            .order_by(ChatHistoryModel.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            newest_first = [self._to_entity(row) for row in result.scalars().all()]
        return list(reversed(newest_first))

    async def get_all(self, session_id: str) -> list[ChatMessage]:
        stmt = (
            select(ChatHistoryModel)
            .where(ChatHistoryModel.session_id == session_id)
            .order_by(ChatHistoryModel.created_at.asc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    async def delete_session(self, session_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ChatHistoryModel).where(ChatHistoryModel.session_id == session_id)
            )
            await session.commit()
        return result.rowcount
