"""Tool abstraction and registry for the agent's function-calling loop."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from knowledge_agent.domain.exceptions import ChatProviderError, EmbeddingProviderError

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", bound=BaseModel)


class Tool(ABC, Generic[ArgsT]):
    """A named capability the model can invoke.

    Subclasses declare ``name``, ``description`` and a pydantic ``args_model``
    whose JSON schema becomes the function ``parameters``. ``run`` always
    returns text.
    """

    name: str
    description: str
    args_model: type[ArgsT]

    @abstractmethod
    async def run(self, args: ArgsT) -> str:
        ...

    def schema(self) -> dict[str, Any]:
        """OpenAI function-calling definition for this tool."""
        parameters = self.args_model.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ToolRegistry:
    """Looks tools up by name and turns every tool-level failure into text.

    Model and embedding provider errors are not tool failures: they abort
    the turn and are re-raised.
    """

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    async def dispatch(self, name: str, raw_arguments: str | None) -> str:
        tool = self._tools.get(name)
        if tool is None:
            available = ", ".join(self._tools) or "none"
            return f"Unknown tool: {name}. Available tools: {available}"

        try:
            payload = json.loads(raw_arguments) if raw_arguments else {}
        except json.JSONDecodeError as e:
            return f"Invalid arguments for {name}: malformed JSON ({e.msg})"
        if not isinstance(payload, dict):
            return f"Invalid arguments for {name}: expected a JSON object"

        try:
            args = tool.args_model.model_validate(payload)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            return f"Invalid arguments for {name}: {problems}"

        logger.info("Executing tool '%s'", name)
        try:
            return await tool.run(args)
        except (ChatProviderError, EmbeddingProviderError):
            raise
        except Exception as e:
            logger.exception("Tool '%s' failed", name)
            return f"Tool {name} failed: {e}"
