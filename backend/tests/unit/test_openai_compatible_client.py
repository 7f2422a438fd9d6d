"""Unit tests for the OpenAICompatibleChatClient."""

import json

import httpx
import pytest

from knowledge_agent.domain.entities import LLMMessage, ToolCall, ToolCallFunction
from knowledge_agent.domain.exceptions import ChatProviderError
from knowledge_agent.infrastructure.llm import OpenAICompatibleChatClient


# ── Helpers ──


def _mock_completion_response(
    content: str | None = "Hello!",
    model: str = "qwen2.5-7b-instruct",
    tool_calls: list[dict] | None = None,
    finish_reason: str = "stop",
) -> dict:
    """Build a mock /chat/completions JSON response."""
    message: dict = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {
        "id": "chatcmpl-test123",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
        "model": model,
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def _make_mock_transport(
    response_data: dict | None = None,
    status_code: int = 200,
    captured: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Create a mock transport that returns a fixed response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=response_data or {})

    return httpx.MockTransport(handler)


def _client(transport: httpx.MockTransport, api_key: str = "sk-test") -> OpenAICompatibleChatClient:
    return OpenAICompatibleChatClient(
        base_url="http://vllm:8000/v1/",
        api_key=api_key,
        http_client=httpx.AsyncClient(transport=transport),
    )


# ── Tests ──


@pytest.mark.asyncio
async def test_complete_parses_response():
    client = _client(_make_mock_transport(_mock_completion_response()))

    result = await client.complete([LLMMessage(role="user", content="Hi")], "qwen2.5-7b-instruct")

    assert result.content == "Hello!"
    assert result.model == "qwen2.5-7b-instruct"
    assert result.finish_reason == "stop"
    assert result.usage.total_tokens == 15
    assert result.provider == "vllm"
    assert result.tool_calls == []


@pytest.mark.asyncio
async def test_complete_parses_tool_calls_with_null_content():
    response = _mock_completion_response(
        content=None,
        finish_reason="tool_calls",
        tool_calls=[{
            "id": "call_abc",
            "type": "function",
            "function": {"name": "search_documents", "arguments": '{"query": "refunds"}'},
        }],
    )
    client = _client(_make_mock_transport(response))

    result = await client.complete([LLMMessage(role="user", content="Hi")], "m")

    assert result.content == ""
    assert result.finish_reason == "tool_calls"
    [call] = result.tool_calls
    assert call.id == "call_abc"
    assert call.function.name == "search_documents"
    assert json.loads(call.function.arguments) == {"query": "refunds"}


@pytest.mark.asyncio
async def test_request_payload_serializes_tools_and_tool_messages():
    captured: list[httpx.Request] = []
    client = _client(_make_mock_transport(_mock_completion_response(), captured=captured))
    tools = [{"type": "function", "function": {"name": "web_search", "parameters": {}}}]
    messages = [
        LLMMessage(role="system", content="SYS"),
        LLMMessage(role="user", content="news?"),
        LLMMessage(
            role="assistant",
            content="",
            tool_calls=[ToolCall("c1", "function", ToolCallFunction("web_search", '{"query":"x"}'))],
        ),
        LLMMessage(role="tool", content="results", tool_call_id="c1", name="web_search"),
    ]

    await client.complete(messages, "m", tools=tools, temperature=0.2, max_tokens=256)

    [request] = captured
    assert str(request.url) == "http://vllm:8000/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "m"
    assert body["temperature"] == 0.2
    assert body["max_tokens"] == 256
    assert body["tools"] == tools
    assert body["tool_choice"] == "auto"
    assert body["messages"][2] == {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": "c1",
            "type": "function",
            "function": {"name": "web_search", "arguments": '{"query":"x"}'},
        }],
    }
    assert body["messages"][3] == {
        "role": "tool",
        "content": "results",
        "tool_call_id": "c1",
        "name": "web_search",
    }


@pytest.mark.asyncio
async def test_no_tools_and_no_api_key_are_omitted():
    captured: list[httpx.Request] = []
    client = _client(
        _make_mock_transport(_mock_completion_response(), captured=captured), api_key=""
    )

    await client.complete([LLMMessage(role="user", content="Hi")], "m")

    body = json.loads(captured[0].content)
    assert "tools" not in body
    assert "tool_choice" not in body
    assert "temperature" not in body
    assert "Authorization" not in captured[0].headers


@pytest.mark.asyncio
async def test_error_status_raises_provider_error():
    transport = _make_mock_transport({"error": {"message": "model overloaded"}}, status_code=503)
    client = _client(transport)

    with pytest.raises(ChatProviderError) as exc_info:
        await client.complete([LLMMessage(role="user", content="Hi")], "m")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "model overloaded"
    assert exc_info.value.provider == "vllm"


@pytest.mark.asyncio
async def test_error_body_with_200_raises_provider_error():
    transport = _make_mock_transport({"error": {"message": "bad model", "code": 400}})
    client = _client(transport)

    with pytest.raises(ChatProviderError) as exc_info:
        await client.complete([LLMMessage(role="user", content="Hi")], "m")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_empty_choices_raise_provider_error():
    client = _client(_make_mock_transport({"choices": []}))

    with pytest.raises(ChatProviderError, match="No choices"):
        await client.complete([LLMMessage(role="user", content="Hi")], "m")


@pytest.mark.asyncio
async def test_transport_failures_map_to_gateway_errors():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    refused = _client(httpx.MockTransport(refuse))
    timed_out = _client(httpx.MockTransport(slow))

    with pytest.raises(ChatProviderError) as refused_info:
        await refused.complete([LLMMessage(role="user", content="Hi")], "m")
    with pytest.raises(ChatProviderError) as timeout_info:
        await timed_out.complete([LLMMessage(role="user", content="Hi")], "m")

    assert refused_info.value.status_code == 502
    assert timeout_info.value.status_code == 504
