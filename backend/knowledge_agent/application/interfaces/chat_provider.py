"""Abstract chat provider interface — port for AI provider adapters.

Each model backend (vLLM, OpenRouter, OpenAI, etc.) implements this
interface. One call corresponds to one AgentLoop step.
"""

from abc import ABC, abstractmethod
from typing import Any

from knowledge_agent.domain.entities import ChatCompletionResult, LLMMessage


class ChatProvider(ABC):
    """Port — defines what the application layer needs from any chat provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'vllm', 'openrouter')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        model: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion request.

        Args:
            messages: The conversation so far.
            model: The model identifier.
            tools: Tool definitions in OpenAI function-calling format.
            temperature: Sampling temperature (0.0–2.0).
            max_tokens: Maximum tokens in the response.

        Returns:
            A ChatCompletionResult with either final content or tool calls.

        Raises:
            ChatProviderError: If the provider returns an error or is unreachable.
        """
        ...
