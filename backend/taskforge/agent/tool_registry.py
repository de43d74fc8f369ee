from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Coroutine

from taskforge.agent.state import AgentContext

ToolHandler = Callable[[dict, AgentContext], Coroutine[Any, Any, str]]


class ToolError(Exception):
    """Raised by a tool when it cannot carry out a call."""


@dataclass(frozen=True)
class AgentTool:
    """A named capability the model can invoke.

    ``parameters`` is a JSON-schema style dict. It documents the tool for
    prompts and UIs; the executor does not validate calls against it.
    """

    name: str
    description: str
    parameters: dict
    handler: ToolHandler

    async def execute(self, params: dict, context: AgentContext) -> str:
        return await self.handler(params, context)


class ToolRegistry:
    """Registry for agent tools. Registering an existing name replaces it."""

    def __init__(self, tools: list[AgentTool] | None = None):
        self._tools: dict[str, AgentTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: AgentTool) -> None:
        self._tools[tool.name] = tool

    def get(self, name: str) -> AgentTool | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get_openai_schema(self) -> list[dict]:
        """Return tools in OpenAI function-calling format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.parameters,
                },
            }
            for t in self._tools.values()
        ]

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())
