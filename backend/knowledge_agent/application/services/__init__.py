from .agent_loop import SYSTEM_PROMPT, AgentLoop
from .agent_service import AgentService, build_attachment_message
from .cleanup_scheduler import CleanupScheduler
from .document_ingestion_service import DocumentIngestionService, NewDocument
from .retrieval_service import NO_RESULTS, RetrievalService, format_hits
from .session_memory import SessionMemory
from .text_splitter import TextSplitter

__all__ = [
    "SYSTEM_PROMPT",
    "AgentLoop",
    "AgentService",
    "build_attachment_message",
    "CleanupScheduler",
    "DocumentIngestionService",
    "NewDocument",
    "NO_RESULTS",
    "RetrievalService",
    "format_hits",
    "SessionMemory",
    "TextSplitter",
]
