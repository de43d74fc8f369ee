"""Model provider contract consumed by the executor.

Concrete providers (see ``llm.py``) implement ``ModelProvider``. The executor
only ever calls ``chat``; ``chat_stream`` and ``test_connection`` exist for
interactive callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Literal

StopReason = Literal["end_turn", "max_tokens", "stop_sequence"]


@dataclass
class ChatOptions:
    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    stop_sequences: list[str] | None = None


@dataclass(frozen=True)
class ChatUsage:
    input_tokens: int
    output_tokens: int


@dataclass(frozen=True)
class ChatResponse:
    content: str
    model: str
    usage: ChatUsage | None = None
    stop_reason: StopReason | None = None


@dataclass(frozen=True)
class ChatStreamChunk:
    content: str
    done: bool = False


@dataclass
class ConnectionTestResult:
    success: bool
    models: list[str] = field(default_factory=list)
    error: str | None = None


class ModelProvider(ABC):
    """Abstract chat backend.

    Messages are plain dicts: {"role": "system" | "user" | "assistant",
    "content": str}.
    """

    id: str = ""
    type: str = ""

    @abstractmethod
    async def chat(
        self, messages: list[dict], options: ChatOptions | None = None
    ) -> ChatResponse:
        """Send a non-streaming chat request."""
        ...

    @abstractmethod
    def chat_stream(
        self, messages: list[dict], options: ChatOptions | None = None
    ) -> AsyncIterator[ChatStreamChunk]:
        """Stream a chat response, ending with a done=True empty chunk."""
        ...

    async def test_connection(self) -> ConnectionTestResult:
        return ConnectionTestResult(success=True)
