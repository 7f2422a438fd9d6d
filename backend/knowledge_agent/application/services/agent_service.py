"""Agent use case — one chat turn against session memory and the tool loop."""

import logging
import time

from knowledge_agent.application.services.agent_loop import AgentLoop
from knowledge_agent.application.services.document_ingestion_service import (
    DocumentIngestionService,
)
from knowledge_agent.application.services.session_memory import SessionMemory
from knowledge_agent.domain.entities import (
    AgentTurnResult,
    ChatMessage,
    ChatResponse,
    DocumentUploadResult,
    MessageRole,
)

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n---\n\n"


def build_attachment_message(
    message: str, filename: str, upload: DocumentUploadResult
) -> str:
    """Inline an attached document's chunks ahead of the user's question."""
    total = len(upload.chunks)
    document_context = CHUNK_SEPARATOR.join(
        f"[Chunk {i}/{total}]\n{chunk.content}" for i, chunk in enumerate(upload.chunks, start=1)
    )
    return (
        f'[ATTACHED DOCUMENT: "{filename}" ({upload.page_count} pages, '
        f"documentGroupId: {upload.document_group_id})]\n\n"
        f"Document content:\n{document_context}"
        f"{CHUNK_SEPARATOR}User question: {message}"
    )


class AgentService:
    """Application service — records the turn and runs the AgentLoop.

    The user message is written before the model is called. When the model
    or embedding provider fails, the error propagates and no assistant
    message is written.
    """

    def __init__(
        self,
        memory: SessionMemory,
        agent_loop: AgentLoop,
        ingestion: DocumentIngestionService,
        max_context_messages: int = 20,
    ):
        self._memory = memory
        self._loop = agent_loop
        self._ingestion = ingestion
        self._max_context_messages = max_context_messages

    async def chat(self, session_id: str, message: str) -> ChatResponse:
        return await self._run_turn(session_id, message, message)

    async def chat_with_document(
        self,
        session_id: str,
        message: str,
        content: bytes,
        filename: str,
    ) -> ChatResponse:
        """Ingest an attachment as temporary documents, then answer about it."""
        upload = await self._ingestion.ingest_temporary(content, filename)
        logger.info(
            "Attachment %s stored as group %s (%d chunks, TTL %sh)",
            filename,
            upload.document_group_id,
            upload.chunk_count,
            self._ingestion.ttl_hours,
        )
        enhanced = build_attachment_message(message, filename, upload)
        return await self._run_turn(
            session_id, message, enhanced, document_group_id=upload.document_group_id
        )

    async def history(self, session_id: str) -> list[ChatMessage]:
        return await self._memory.all(session_id)

    async def clear_session(self, session_id: str) -> int:
        return await self._memory.clear(session_id)

    async def _context_window(self, session_id: str, exclude_id: str) -> list[ChatMessage]:
        recent = await self._memory.recent(session_id, self._max_context_messages + 1)
        prior = [m for m in recent if m.id != exclude_id]
        if self._max_context_messages <= 0:
            return []
        return prior[-self._max_context_messages :]

    async def _run_turn(
        self,
        session_id: str,
        message: str,
        user_content: str,
        *,
        document_group_id: str | None = None,
    ) -> ChatResponse:
        start = time.monotonic()

        user_message = await self._memory.append(session_id, MessageRole.USER, message)
        window = await self._context_window(session_id, user_message.id)

        result: AgentTurnResult = await self._loop.run(
            SessionMemory.to_llm_messages(window), user_content
        )

        latency_ms = int((time.monotonic() - start) * 1000)
        metadata = {
            "model": result.model,
            "tokens": result.usage.total_tokens,
            "latency_ms": latency_ms,
            "iterations": result.iterations,
            "tools_called": result.tools_called,
        }
        if result.hit_iteration_limit:
            metadata["hit_iteration_limit"] = True
        if document_group_id:
            metadata["document_group_id"] = document_group_id

        await self._memory.append(session_id, MessageRole.ASSISTANT, result.content, metadata)

        logger.info(
            "Turn complete: session=%s model=%s tokens=%d latency=%dms tools=%s",
            session_id,
            result.model,
            result.usage.total_tokens,
            latency_ms,
            result.tools_called,
        )
        return ChatResponse(
            session_id=session_id,
            response=result.content,
            document_group_id=document_group_id,
        )
