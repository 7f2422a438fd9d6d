"""OpenAI-compatible chat client — implements the ChatProvider interface.

Talks to any server exposing ``/chat/completions`` in the OpenAI format
(vLLM, OpenRouter, OpenAI, ...) using httpx. One ``complete`` call is one
model round-trip; the tool-calling loop itself lives in the AgentLoop.
"""

import logging
from typing import Any

import httpx

from knowledge_agent.application.interfaces.chat_provider import ChatProvider
from knowledge_agent.domain.entities import (
    ChatCompletionResult,
    LLMMessage,
    TokenUsage,
    ToolCall,
    ToolCallFunction,
)
from knowledge_agent.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)


class OpenAICompatibleChatClient(ChatProvider):
    """Infrastructure adapter — connects to an OpenAI-compatible chat endpoint.

    Pass a shared ``http_client`` to reuse its connection pool; otherwise a
    client is created and closed per request.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        provider: str = "vllm",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._provider = provider
        self._timeout = timeout
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return self._provider

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_payload(
        self,
        messages: list[LLMMessage],
        model: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        """Build the request payload for the completions API."""
        payload: dict = {
            "model": model,
            "messages": [self._serialize_message(m) for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        return payload

    @staticmethod
    def _serialize_message(msg: LLMMessage) -> dict:
        """Convert a domain LLMMessage to an API-compatible dict."""
        if msg.role == "tool":
            result: dict = {
                "role": "tool",
                "content": msg.content,
                "tool_call_id": msg.tool_call_id or "",
            }
            if msg.name:
                result["name"] = msg.name
            return result

        if msg.role == "assistant" and msg.tool_calls:
            return {
                "role": "assistant",
                "content": msg.content or None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": tc.type,
                        "function": {
                            "name": tc.function.name,
                            "arguments": tc.function.arguments,
                        },
                    }
                    for tc in msg.tool_calls
                ],
            }

        return {"role": msg.role, "content": msg.content}

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def complete(
        self,
        messages: list[LLMMessage],
        model: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion."""
        payload = self._build_payload(
            messages, model, tools=tools, temperature=temperature, max_tokens=max_tokens
        )
        url = f"{self._base_url}/chat/completions"

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.post(url, headers=self._get_headers(), json=payload)
        except httpx.TimeoutException as exc:
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=504,
                message=f"Request timed out: {exc}",
            ) from exc
        except httpx.HTTPError as exc:
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=502,
                message=f"Request failed: {exc}",
            ) from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            self._raise_provider_error(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=502,
                message="Response body is not valid JSON",
            ) from exc
        return self._parse_completion_response(data)

    def _parse_completion_response(self, data: dict) -> ChatCompletionResult:
        """Parse the completions JSON response into a domain entity."""
        if "error" in data:
            error = data["error"]
            code = error.get("code", 500) if isinstance(error, dict) else 500
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=code if isinstance(code, int) else 500,
                message=error.get("message", "Unknown error") if isinstance(error, dict) else str(error),
            )

        choices = data.get("choices", [])
        if not choices:
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=500,
                message="No choices in response",
            )

        choice = choices[0]
        message = choice.get("message", {})
        usage_data = data.get("usage") or {}

        tool_calls = []
        if message.get("tool_calls"):
            for tc in message["tool_calls"]:
                func_data = tc.get("function", {})
                tool_calls.append(
                    ToolCall(
                        id=tc.get("id", ""),
                        type=tc.get("type", "function"),
                        function=ToolCallFunction(
                            name=func_data.get("name", ""),
                            arguments=func_data.get("arguments") or "{}",
                        ),
                    )
                )

        return ChatCompletionResult(
            model=data.get("model", ""),
            content=message.get("content", "") or "",
            finish_reason=choice.get("finish_reason", "stop") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            ),
            provider=self.provider_name,
            tool_calls=tool_calls,
        )

    def _raise_provider_error(self, response: httpx.Response) -> None:
        """Raise ChatProviderError from a non-200 httpx Response."""
        try:
            data = response.json()
            error = data.get("error", {})
            message = error.get("message", response.text) if isinstance(error, dict) else str(error)
        except ValueError:
            message = response.text

        logger.error("Chat API error %d: %s", response.status_code, message[:500])
        raise ChatProviderError(
            provider=self.provider_name,
            status_code=response.status_code,
            message=message,
        )
