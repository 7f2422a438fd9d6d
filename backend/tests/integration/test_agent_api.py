"""API tests for the agent and document endpoints, wired to in-memory backends."""

from dataclasses import dataclass

import fitz
import pytest
from httpx import ASGITransport, AsyncClient

from knowledge_agent.application.interfaces import (
    ChatProvider,
    ContentScanner,
    EmbeddingProvider,
)
from knowledge_agent.application.services import (
    AgentLoop,
    AgentService,
    CleanupScheduler,
    DocumentIngestionService,
    SessionMemory,
    TextSplitter,
)
from knowledge_agent.application.services.tools import DocumentRetentionTool, ToolRegistry
from knowledge_agent.domain.entities import (
    ChatCompletionResult,
    ScanResult,
    ScanVerdict,
    TokenUsage,
)
from knowledge_agent.domain.exceptions import ChatProviderError
from knowledge_agent.infrastructure.dependencies import (
    get_agent_service,
    get_cleanup_scheduler,
    get_ingestion_service,
)
from knowledge_agent.infrastructure.extractors import PdfDocumentIngestor
from knowledge_agent.infrastructure.memory import (
    InMemoryChatHistoryRepository,
    InMemoryDocumentStore,
)
from knowledge_agent.main import app


# ── Fakes ──


class FakeChatProvider(ChatProvider):
    def __init__(self):
        self.error: Exception | None = None

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, messages, model, *, tools=None, temperature=None, max_tokens=None):
        if self.error:
            raise self.error
        return ChatCompletionResult(
            model=model,
            content=f"answer to: {messages[-1].content[-40:]}",
            finish_reason="stop",
            usage=TokenUsage(total_tokens=7),
        )


class FakeEmbeddingProvider(EmbeddingProvider):
    async def generate_embeddings(self, texts):
        return [[1.0, 0.0, 0.0] for _ in texts]

    async def generate_query_embedding(self, query):
        return [1.0, 0.0, 0.0]

    @property
    def dimensions(self) -> int:
        return 3


class FakeScanner(ContentScanner):
    def __init__(self):
        self.verdict = ScanVerdict.CLEAN

    async def scan_file(self, content):
        positives = 4 if self.verdict is ScanVerdict.MALICIOUS else 0
        return ScanResult(subject="sha", verdict=self.verdict, positives=positives, total=70)

    async def scan_url(self, url):
        return ScanResult(subject=url, verdict=self.verdict)


@dataclass
class Backend:
    store: InMemoryDocumentStore
    provider: FakeChatProvider
    scanner: FakeScanner


def _make_pdf(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


# ── Fixtures ──


@pytest.fixture
def backend():
    store = InMemoryDocumentStore()
    history = InMemoryChatHistoryRepository()
    provider = FakeChatProvider()
    scanner = FakeScanner()

    def ingestion() -> DocumentIngestionService:
        return DocumentIngestionService(
            store,
            FakeEmbeddingProvider(),
            PdfDocumentIngestor(TextSplitter(chunk_size=500, chunk_overlap=50)),
            scanner,
            ttl_hours=24,
        )

    def agent() -> AgentService:
        loop = AgentLoop(provider, ToolRegistry([DocumentRetentionTool(store)]), "fake-model")
        return AgentService(SessionMemory(history), loop, ingestion(), max_context_messages=20)

    scheduler = CleanupScheduler(store)

    app.dependency_overrides[get_ingestion_service] = ingestion
    app.dependency_overrides[get_agent_service] = agent
    app.dependency_overrides[get_cleanup_scheduler] = lambda: scheduler
    yield Backend(store=store, provider=provider, scanner=scanner)
    app.dependency_overrides.clear()


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


# ── Chat ──


@pytest.mark.asyncio
async def test_chat_round_trip_and_history(backend):
    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat", data={"session_id": "s1", "message": "Hello"}
        )
        history = await client.get("/api/v1/agent/sessions/s1/history")

    assert response.status_code == 200
    assert response.json() == {
        "session_id": "s1",
        "response": "answer to: Hello",
        "document_group_id": None,
    }
    messages = history.json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[1]["metadata"]["model"] == "fake-model"


@pytest.mark.asyncio
async def test_chat_with_pdf_attachment_returns_group_id(backend):
    pdf = _make_pdf("Warranty covers parts for two years.")

    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat",
            data={"session_id": "s1", "message": "What is covered?"},
            files={"file": ("warranty.pdf", pdf, "application/pdf")},
        )

    assert response.status_code == 200
    group_id = response.json()["document_group_id"]
    assert group_id
    chunks = await backend.store.find_by_group(group_id)
    assert chunks and all(c.is_temporary for c in chunks)


@pytest.mark.asyncio
async def test_chat_rejects_non_pdf_attachment(backend):
    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat",
            data={"session_id": "s1", "message": "Read this"},
            files={"file": ("notes.txt", b"plain text", "text/plain")},
        )

    assert response.status_code == 415


@pytest.mark.asyncio
async def test_chat_rejects_malicious_attachment(backend):
    backend.scanner.verdict = ScanVerdict.MALICIOUS

    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat",
            data={"session_id": "s1", "message": "Open"},
            files={"file": ("bad.pdf", _make_pdf("x"), "application/pdf")},
        )

    assert response.status_code == 400
    assert "4/70" in response.json()["detail"]
    assert len(backend.store) == 0


@pytest.mark.asyncio
async def test_blank_message_is_rejected(backend):
    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat", data={"session_id": "s1", "message": "   "}
        )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_provider_failure_maps_to_gateway_status(backend):
    backend.provider.error = ChatProviderError("fake", 503, "model overloaded")

    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/chat", data={"session_id": "s1", "message": "Hi"}
        )
        history = await client.get("/api/v1/agent/sessions/s1/history")

    assert response.status_code == 503
    assert response.json()["detail"] == "[fake] model overloaded"
    assert [m["role"] for m in history.json()["messages"]] == ["user"]


@pytest.mark.asyncio
async def test_clear_session(backend):
    async with _client() as client:
        await client.post("/api/v1/agent/chat", data={"session_id": "s1", "message": "Hi"})
        cleared = await client.delete("/api/v1/agent/sessions/s1")
        history = await client.get("/api/v1/agent/sessions/s1/history")

    assert cleared.json() == {"session_id": "s1", "deleted": 2}
    assert history.json()["messages"] == []


# ── Documents ──


@pytest.mark.asyncio
async def test_add_and_delete_text_documents(backend):
    async with _client() as client:
        single = await client.post(
            "/api/v1/agent/documents",
            json={"content": "Refunds take 14 days.", "metadata": {"source": "faq", "lang": "en"}},
        )
        stored = await backend.store.get(single.json()["id"])
        batch = await client.post(
            "/api/v1/agent/documents/batch",
            json={"documents": [{"content": "A"}, {"content": "B", "metadata": {"source": "faq"}}]},
        )
        deleted = await client.delete("/api/v1/agent/documents", params={"source": "faq"})

    assert single.status_code == 201
    assert stored.metadata.source == "faq"
    assert stored.metadata.extra == {"lang": "en"}
    assert not stored.is_temporary
    assert batch.status_code == 201
    assert batch.json()["count"] == 2
    assert deleted.json() == {"source": "faq", "deleted": 2}
    assert len(backend.store) == 1


@pytest.mark.asyncio
async def test_empty_document_content_is_rejected(backend):
    async with _client() as client:
        response = await client.post("/api/v1/agent/documents", json={"content": ""})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_non_integer_chunk_index_is_bad_request(backend):
    async with _client() as client:
        single = await client.post(
            "/api/v1/agent/documents",
            json={"content": "hello", "metadata": {"chunk_index": "first"}},
        )
        batch = await client.post(
            "/api/v1/agent/documents/batch",
            json={
                "documents": [
                    {"content": "ok", "metadata": {"total_chunks": 2}},
                    {"content": "bad", "metadata": {"total_chunks": "two"}},
                ]
            },
        )

    assert single.status_code == 400
    assert batch.status_code == 400
    assert len(backend.store) == 0


@pytest.mark.asyncio
async def test_upload_pdf_is_stored_permanently(backend):
    pdf = _make_pdf("Employee handbook: vacation is 25 days.")

    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/documents/pdf",
            files={"file": ("handbook.pdf", pdf, "application/pdf")},
            data={"title": "Handbook"},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Handbook"
    assert body["is_temporary"] is False
    assert body["page_count"] == 1
    chunks = await backend.store.find_by_group(body["document_group_id"])
    assert len(chunks) == body["chunk_count"]
    assert all(not c.is_temporary for c in chunks)


@pytest.mark.asyncio
async def test_upload_unreadable_pdf_is_bad_request(backend):
    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/documents/pdf",
            files={"file": ("broken.pdf", b"not really a pdf", "application/pdf")},
        )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_pdf_url_must_be_http(backend):
    async with _client() as client:
        response = await client.post(
            "/api/v1/agent/documents/pdf/url", json={"url": "not a url"}
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cleanup_endpoint_runs_a_sweep(backend):
    async with _client() as client:
        response = await client.post("/api/v1/agent/documents/cleanup")

    assert response.status_code == 200
    assert response.json() == {"deleted": 0}
