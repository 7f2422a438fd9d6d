"""Tests for the health check endpoints."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from knowledge_agent.infrastructure.dependencies import get_readiness_checker
from knowledge_agent.infrastructure.health import ReadinessChecker
from knowledge_agent.main import app


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _checker(handler, session_factory=None) -> ReadinessChecker:
    return ReadinessChecker(
        llm_base_url="http://vllm:8000/v1",
        llm_model="qwen",
        session_factory=session_factory,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _models(*ids: str) -> dict:
    return {"object": "list", "data": [{"id": i, "object": "model"} for i in ids]}


class BrokenSessionFactory:
    def __call__(self):
        return self

    async def __aenter__(self):
        raise ConnectionRefusedError("database is down")

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def readiness():
    holder: dict[str, ReadinessChecker] = {}
    app.dependency_overrides[get_readiness_checker] = lambda: holder["checker"]
    yield holder
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health_check_returns_200():
    """Health endpoint should return 200 with status, version, and environment."""
    async with _client() as client:
        response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    assert "storage_backend" in data


@pytest.mark.asyncio
async def test_liveness_is_always_ok():
    async with _client() as client:
        response = await client.get("/api/v1/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "timestamp" in response.json()


@pytest.mark.asyncio
async def test_ready_when_model_is_served(readiness):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_models("other", "qwen"))

    readiness["checker"] = _checker(handler)

    async with _client() as client:
        response = await client.get("/api/v1/health/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["details"]["llm"]["status"] == "up"
    assert body["details"]["llm"]["available_models"] == ["other", "qwen"]
    assert body["details"]["database"] == {"status": "up", "backend": "memory"}
    assert str(requests[0].url) == "http://vllm:8000/v1/models"


@pytest.mark.asyncio
async def test_not_ready_when_model_is_missing(readiness):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_models("other"))

    readiness["checker"] = _checker(handler)

    async with _client() as client:
        response = await client.get("/api/v1/health/ready")

    assert response.status_code == 503
    llm = response.json()["details"]["llm"]
    assert llm["status"] == "down"
    assert llm["error"] == "Model qwen not available"


@pytest.mark.asyncio
async def test_not_ready_when_llm_is_unreachable(readiness):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    readiness["checker"] = _checker(handler)

    async with _client() as client:
        response = await client.get("/api/v1/health/ready")

    assert response.status_code == 503
    assert response.json()["details"]["llm"]["status"] == "down"


@pytest.mark.asyncio
async def test_not_ready_when_database_ping_fails(readiness):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_models("qwen"))

    readiness["checker"] = _checker(handler, session_factory=BrokenSessionFactory())

    async with _client() as client:
        response = await client.get("/api/v1/health/ready")

    assert response.status_code == 503
    database = response.json()["details"]["database"]
    assert database["status"] == "down"
    assert "database is down" in database["error"]
    assert response.json()["details"]["llm"]["status"] == "up"
