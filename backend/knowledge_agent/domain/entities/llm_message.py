"""Domain entities for model conversations — the wire-level message format."""

from dataclasses import dataclass, field


@dataclass
class ToolCallFunction:
    """The function invocation details within a tool call."""

    name: str
    arguments: str  # JSON-encoded arguments string


@dataclass
class ToolCall:
    """A tool call requested by the LLM in its response."""

    id: str
    type: str  # "function"
    function: ToolCallFunction


@dataclass
class LLMMessage:
    """A single message sent to or received from the model.

    For tool responses, set role="tool", provide tool_call_id, and
    set content to the tool's textual result.
    """

    role: str  # "system" | "user" | "assistant" | "tool"
    content: str = ""
    tool_call_id: str | None = None  # Required when role == "tool"
    name: str | None = None  # Tool function name (for role == "tool")
    tool_calls: list[ToolCall] | None = None  # For assistant messages requesting tool calls


@dataclass
class TokenUsage:
    """Token usage statistics from a completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "TokenUsage") -> None:
        self.prompt_tokens += other.prompt_tokens
        self.completion_tokens += other.completion_tokens
        self.total_tokens += other.total_tokens


@dataclass
class ChatCompletionResult:
    """Result from a chat completion call — either final text or tool calls."""

    model: str
    content: str
    finish_reason: str  # "stop" | "length" | "tool_calls"
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
