"""Domain entities describing one agent turn."""

from dataclasses import dataclass, field
from enum import Enum

from knowledge_agent.domain.entities.llm_message import TokenUsage


class AgentState(str, Enum):
    """States of the tool-calling loop."""

    COLLECTING = "collecting"
    INVOKING = "invoking"
    TOOL_DISPATCH = "tool_dispatch"
    DONE = "done"


@dataclass
class AgentTurnResult:
    """Final answer of one AgentLoop run."""

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    iterations: int = 0
    tools_called: list[str] = field(default_factory=list)
    hit_iteration_limit: bool = False
    states: list[AgentState] = field(default_factory=list)


@dataclass
class ChatResponse:
    """Answer returned to the caller of a chat turn."""

    session_id: str
    response: str
    document_group_id: str | None = None
