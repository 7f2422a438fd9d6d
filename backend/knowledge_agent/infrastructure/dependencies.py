"""FastAPI dependency injection — wires infrastructure to application layer.

Stores, providers and the cleanup scheduler are process-wide singletons;
use-case services are cheap to build and are assembled per request.
"""

import logging
from functools import lru_cache

from fastapi import Depends

from knowledge_agent.application.interfaces import (
    ChatHistoryRepository,
    ChatProvider,
    ContentScanner,
    DocumentIngestor,
    DocumentStore,
    EmbeddingProvider,
    WebSearchProvider,
)
from knowledge_agent.application.services import (
    AgentLoop,
    AgentService,
    CleanupScheduler,
    DocumentIngestionService,
    RetrievalService,
    SessionMemory,
    TextSplitter,
)
from knowledge_agent.application.services.tools import (
    DocumentRetentionTool,
    DocumentSearchTool,
    ToolRegistry,
    WebSearchTool,
)
from knowledge_agent.config import get_settings
from knowledge_agent.infrastructure.embeddings import OpenAICompatibleEmbeddingProvider
from knowledge_agent.infrastructure.extractors import PdfDocumentIngestor
from knowledge_agent.infrastructure.health import ReadinessChecker
from knowledge_agent.infrastructure.llm import OpenAICompatibleChatClient
from knowledge_agent.infrastructure.memory import (
    InMemoryChatHistoryRepository,
    InMemoryDocumentStore,
)
from knowledge_agent.infrastructure.search import DuckDuckGoSearchProvider
from knowledge_agent.infrastructure.security import VirusTotalScanner

logger = logging.getLogger(__name__)


def _use_memory_backend() -> bool:
    return get_settings().storage_backend.strip().lower() == "memory"


# ── Storage ──────────────────────────────────────────────────────────

@lru_cache
def get_document_store() -> DocumentStore:
    """Document store for the configured backend (postgres or memory)."""
    if _use_memory_backend():
        logger.warning("Using in-memory document store; data is lost on restart")
        return InMemoryDocumentStore()

    from knowledge_agent.infrastructure.database.repositories import PgDocumentStore
    from knowledge_agent.infrastructure.database.session import async_session_factory

    return PgDocumentStore(async_session_factory)


@lru_cache
def get_chat_history_repository() -> ChatHistoryRepository:
    if _use_memory_backend():
        return InMemoryChatHistoryRepository()

    from knowledge_agent.infrastructure.database.repositories import PgChatHistoryRepository
    from knowledge_agent.infrastructure.database.session import async_session_factory

    return PgChatHistoryRepository(async_session_factory)


# ── External collaborators ───────────────────────────────────────────

@lru_cache
def get_embedding_provider() -> EmbeddingProvider:
    settings = get_settings()
    return OpenAICompatibleEmbeddingProvider(
        base_url=settings.embedding_base_url,
        api_key=settings.embedding_api_key,
        model=settings.embedding_model,
        model_dimensions=settings.embedding_dimensions,
        timeout=settings.embedding_timeout_seconds,
    )


@lru_cache
def get_chat_provider() -> ChatProvider:
    settings = get_settings()
    return OpenAICompatibleChatClient(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout_seconds,
    )


@lru_cache
def get_web_search_provider() -> WebSearchProvider:
    settings = get_settings()
    return DuckDuckGoSearchProvider(
        region=settings.web_search_region,
        safesearch=settings.web_search_safesearch,
        timeout=settings.web_search_timeout_seconds,
    )


@lru_cache
def get_content_scanner() -> ContentScanner:
    settings = get_settings()
    return VirusTotalScanner(
        api_key=settings.virustotal_api_key,
        base_url=settings.virustotal_base_url,
        timeout=settings.virustotal_timeout_seconds,
        poll_interval_seconds=settings.virustotal_poll_interval_seconds,
        max_poll_attempts=settings.virustotal_max_poll_attempts,
    )


@lru_cache
def get_document_ingestor() -> DocumentIngestor:
    settings = get_settings()
    splitter = TextSplitter(
        chunk_size=settings.pdf_chunk_size,
        chunk_overlap=settings.pdf_chunk_overlap,
    )
    return PdfDocumentIngestor(splitter, fetch_timeout=settings.pdf_fetch_timeout_seconds)


@lru_cache
def get_cleanup_scheduler() -> CleanupScheduler:
    """The scheduler started by the lifespan; also used by the sweep endpoint."""
    return CleanupScheduler(
        get_document_store(),
        interval_seconds=get_settings().cleanup_interval_seconds,
    )


@lru_cache
def get_readiness_checker() -> ReadinessChecker:
    settings = get_settings()
    session_factory = None
    if not _use_memory_backend():
        from knowledge_agent.infrastructure.database.session import async_session_factory

        session_factory = async_session_factory
    return ReadinessChecker(
        llm_base_url=settings.llm_base_url,
        llm_model=settings.llm_model,
        session_factory=session_factory,
        timeout=settings.health_check_timeout_seconds,
    )


# ── Use-case services ────────────────────────────────────────────────

def get_ingestion_service(
    store: DocumentStore = Depends(get_document_store),
    embeddings: EmbeddingProvider = Depends(get_embedding_provider),
    ingestor: DocumentIngestor = Depends(get_document_ingestor),
    scanner: ContentScanner = Depends(get_content_scanner),
) -> DocumentIngestionService:
    """Provides a DocumentIngestionService wired to the shared store and providers."""
    settings = get_settings()
    return DocumentIngestionService(
        document_store=store,
        embedding_provider=embeddings,
        ingestor=ingestor,
        scanner=scanner,
        ttl_hours=settings.document_ttl_hours,
        max_upload_bytes=settings.max_upload_size_mb * 1024 * 1024,
    )


def build_tool_registry(
    store: DocumentStore,
    embeddings: EmbeddingProvider,
    web_search: WebSearchProvider,
) -> ToolRegistry:
    settings = get_settings()
    retrieval = RetrievalService(
        store,
        embeddings,
        similarity_threshold=settings.agent_similarity_threshold,
        permanent_only=settings.retrieval_permanent_only,
    )
    return ToolRegistry([
        DocumentSearchTool(retrieval, max_limit=settings.agent_search_max_limit),
        WebSearchTool(web_search),
        DocumentRetentionTool(store, ttl_hours=settings.document_ttl_hours),
    ])


def get_agent_service(
    store: DocumentStore = Depends(get_document_store),
    history: ChatHistoryRepository = Depends(get_chat_history_repository),
    chat_provider: ChatProvider = Depends(get_chat_provider),
    embeddings: EmbeddingProvider = Depends(get_embedding_provider),
    web_search: WebSearchProvider = Depends(get_web_search_provider),
    ingestion: DocumentIngestionService = Depends(get_ingestion_service),
) -> AgentService:
    """Provides an AgentService with memory, tools and the model loop wired up."""
    settings = get_settings()
    loop = AgentLoop(
        chat_provider,
        build_tool_registry(store, embeddings, web_search),
        settings.llm_model,
        max_iterations=settings.agent_max_iterations,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
    return AgentService(
        memory=SessionMemory(history),
        agent_loop=loop,
        ingestion=ingestion,
        max_context_messages=settings.agent_max_context_messages,
    )
