"""Unit tests for the OpenAICompatibleEmbeddingProvider."""

import json

import httpx
import pytest

from knowledge_agent.domain.exceptions import EmbeddingProviderError
from knowledge_agent.infrastructure.embeddings import OpenAICompatibleEmbeddingProvider


def _provider(handler, model: str = "all-MiniLM-L6-v2") -> OpenAICompatibleEmbeddingProvider:
    return OpenAICompatibleEmbeddingProvider(
        base_url="http://embeddings:8080/v1",
        model=model,
        model_dimensions=3,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _embedding_response(vectors: list[list[float]], reverse: bool = False) -> dict:
    data = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    if reverse:
        data.reverse()
    return {"data": data, "model": "m"}


@pytest.mark.asyncio
async def test_embeddings_are_returned_in_input_order():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=_embedding_response([[1, 0, 0], [0, 1, 0]], reverse=True)
        )

    provider = _provider(handler)

    result = await provider.generate_embeddings(["first", "second"])

    assert result == [[1, 0, 0], [0, 1, 0]]
    assert provider.dimensions == 3


@pytest.mark.asyncio
async def test_empty_input_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _provider(handler).generate_embeddings([]) == []


@pytest.mark.asyncio
async def test_nomic_models_get_task_prefixes():
    seen: list[list[str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        inputs = json.loads(request.content)["input"]
        seen.append(inputs)
        return httpx.Response(200, json=_embedding_response([[1, 0, 0]] * len(inputs)))

    provider = _provider(handler, model="nomic-embed-text-v1.5")

    await provider.generate_embeddings(["doc"])
    await provider.generate_query_embedding("query")

    assert seen == [["search_document: doc"], ["search_query: query"]]


@pytest.mark.asyncio
async def test_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="model not loaded")

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _provider(handler).generate_query_embedding("q")

    assert exc_info.value.status_code == 500
    assert "model not loaded" in exc_info.value.message


@pytest.mark.asyncio
async def test_count_mismatch_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_embedding_response([[1, 0, 0]]))

    with pytest.raises(EmbeddingProviderError, match="Expected 2 embeddings"):
        await _provider(handler).generate_embeddings(["a", "b"])


@pytest.mark.asyncio
async def test_wrong_dimension_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_embedding_response([[1, 0]]))

    with pytest.raises(EmbeddingProviderError, match="2-dimensional embeddings, expected 3"):
        await _provider(handler).generate_embeddings(["a"])


@pytest.mark.asyncio
async def test_unreachable_service_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _provider(handler).generate_embeddings(["a"])

    assert exc_info.value.status_code == 502
