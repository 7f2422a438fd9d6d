"""Pydantic DTOs for agent chat and session history."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ChatResponseSchema(BaseModel):
    """Answer to one chat turn."""

    session_id: str
    response: str
    document_group_id: str | None = None

    model_config = {"from_attributes": True}


class ChatMessageResponse(BaseModel):
    """One stored transcript entry."""

    id: str
    role: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class SessionHistoryResponse(BaseModel):
    session_id: str
    messages: list[ChatMessageResponse]


class SessionClearedResponse(BaseModel):
    session_id: str
    deleted: int
