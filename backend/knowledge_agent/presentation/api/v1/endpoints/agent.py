"""Agent chat endpoints — chat turns (optionally with a PDF) and session history."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from knowledge_agent.application.schemas import (
    ChatMessageResponse,
    ChatResponseSchema,
    SessionClearedResponse,
    SessionHistoryResponse,
)
from knowledge_agent.application.services import AgentService
from knowledge_agent.infrastructure.dependencies import get_agent_service
from knowledge_agent.presentation.api.v1.endpoints.errors import (
    DOMAIN_ERRORS,
    ensure_pdf,
    to_http_exception,
)

router = APIRouter(prefix="/agent", tags=["Agent"])


@router.post("/chat", response_model=ChatResponseSchema)
async def chat(
    session_id: str = Form(..., min_length=1, max_length=255),
    message: str = Form(..., min_length=1),
    file: UploadFile | None = File(None),
    service: AgentService = Depends(get_agent_service),
) -> ChatResponseSchema:
    """Run one chat turn.

    When a PDF is attached it is scanned, stored as a temporary document
    and inlined into the prompt; the response carries its
    ``document_group_id`` so the agent can promote it later.
    """
    if not message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="message must not be blank")

    try:
        if file is not None and file.filename:
            ensure_pdf(file)
            content = await file.read()
            result = await service.chat_with_document(
                session_id, message, content, file.filename
            )
        else:
            result = await service.chat(session_id, message)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)

    return ChatResponseSchema.model_validate(result, from_attributes=True)


@router.get("/sessions/{session_id}/history", response_model=SessionHistoryResponse)
async def get_session_history(
    session_id: str,
    service: AgentService = Depends(get_agent_service),
) -> SessionHistoryResponse:
    """Full transcript of a session, oldest first. Unknown sessions are empty."""
    messages = await service.history(session_id)
    return SessionHistoryResponse(
        session_id=session_id,
        messages=[
            ChatMessageResponse(
                id=m.id,
                role=m.role.value,
                content=m.content,
                metadata=m.metadata,
                created_at=m.created_at,
            )
            for m in messages
        ],
    )


@router.delete("/sessions/{session_id}", response_model=SessionClearedResponse)
async def clear_session(
    session_id: str,
    service: AgentService = Depends(get_agent_service),
) -> SessionClearedResponse:
    deleted = await service.clear_session(session_id)
    return SessionClearedResponse(session_id=session_id, deleted=deleted)
