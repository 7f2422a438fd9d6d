"""Agent loop — bounded tool-calling conversation with the chat model.

States: COLLECTING → INVOKING → TOOL_DISPATCH → INVOKING … → DONE.
"""

import logging
import time

from knowledge_agent.application.interfaces.chat_provider import ChatProvider
from knowledge_agent.application.services.tools.base import ToolRegistry
from knowledge_agent.domain.entities import (
    AgentState,
    AgentTurnResult,
    ChatCompletionResult,
    LLMMessage,
    TokenUsage,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful AI assistant with access to multiple tools:

1. **search_documents** - Search your permanent knowledge base for stored documents
2. **web_search** - Search the internet via DuckDuckGo for current information
3. **promote_document_to_knowledge** - Save valuable documents permanently

When a user attaches a document to their message:
- The document content is provided in the context below
- Answer their question using the document content
- After answering, evaluate if this document should be kept permanently:
  - KNOWLEDGE (keep): Reference documentation, manuals, guides, policies, educational materials
  - FAVOR (discard): One-time tasks like summarizing a receipt, extracting specific data, temporary files
- Only call promote_document_to_knowledge for true knowledge worth retaining

Always be helpful, accurate, and cite your sources. For web searches, mention that the information comes from the internet."""

ITERATION_LIMIT_FALLBACK = (
    "I'm sorry, I couldn't finish working on that request. "
    "Please try rephrasing or narrowing your question."
)


class AgentLoop:
    """Drives one turn: model call, tool dispatch, repeat until a plain answer.

    Each ``run`` keeps its own conversation, so one instance can serve
    concurrent turns. Provider errors propagate to the caller.
    """

    def __init__(
        self,
        provider: ChatProvider,
        registry: ToolRegistry,
        model: str,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        max_iterations: int = 8,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._provider = provider
        self._registry = registry
        self._model = model
        self._system_prompt = system_prompt
        self._max_iterations = max_iterations
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    def build_messages(self, history: list[LLMMessage], user_content: str) -> list[LLMMessage]:
        return [
            LLMMessage(role="system", content=self._system_prompt),
            *history,
            LLMMessage(role="user", content=user_content),
        ]

    async def run(self, history: list[LLMMessage], user_content: str) -> AgentTurnResult:
        states = [AgentState.COLLECTING]
        conversation = self.build_messages(history, user_content)
        tools = self._registry.schemas()
        total_usage = TokenUsage()
        tools_called: list[str] = []
        result: ChatCompletionResult | None = None

        for iteration in range(1, self._max_iterations + 1):
            states.append(AgentState.INVOKING)

            start = time.monotonic()
            result = await self._provider.complete(
                conversation,
                self._model,
                tools=tools or None,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            total_usage.add(result.usage)
            logger.info(
                "Model step %d: model=%s tokens=%d duration=%dms tool_calls=%d",
                iteration,
                result.model or self._model,
                result.usage.total_tokens,
                int((time.monotonic() - start) * 1000),
                len(result.tool_calls),
            )

            if not result.tool_calls:
                states.append(AgentState.DONE)
                return AgentTurnResult(
                    content=result.content,
                    model=result.model or self._model,
                    usage=total_usage,
                    iterations=iteration,
                    tools_called=tools_called,
                    states=states,
                )

            states.append(AgentState.TOOL_DISPATCH)
            conversation.append(
                LLMMessage(
                    role="assistant",
                    content=result.content or "",
                    tool_calls=result.tool_calls,
                )
            )
            for tc in result.tool_calls:
                tools_called.append(tc.function.name)
                output = await self._registry.dispatch(tc.function.name, tc.function.arguments)
                conversation.append(
                    LLMMessage(
                        role="tool",
                        content=output,
                        tool_call_id=tc.id,
                        name=tc.function.name,
                    )
                )

        logger.warning(
            "Tool-calling loop reached max iterations (%d); tools called: %s",
            self._max_iterations,
            ", ".join(tools_called),
        )
        states.append(AgentState.DONE)
        return AgentTurnResult(
            content=(result.content if result and result.content else ITERATION_LIMIT_FALLBACK),
            model=(result.model if result and result.model else self._model),
            usage=total_usage,
            iterations=self._max_iterations,
            tools_called=tools_called,
            hit_iteration_limit=True,
            states=states,
        )
