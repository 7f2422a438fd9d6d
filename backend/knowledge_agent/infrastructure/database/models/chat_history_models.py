"""SQLAlchemy ORM model for session chat history."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from knowledge_agent.infrastructure.database.base import Base


class ChatHistoryModel(Base):
    """ORM model — maps to the 'chat_history' table."""

    __tablename__ = "chat_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_chat_history_session_created", "session_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ChatHistoryModel(id={self.id}, session_id='{self.session_id}', "
            f"role='{self.role}')>"
        )
