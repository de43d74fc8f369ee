"""The single event type emitted by the executor.

Per task the order is fixed: one ``started``, any number of ``message`` and
``tool_use`` events, then exactly one ``completed`` or ``error``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)


class AgentEventType(str, enum.Enum):
    STARTED = "started"
    MESSAGE = "message"
    TOOL_USE = "tool_use"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (AgentEventType.COMPLETED, AgentEventType.ERROR)


@dataclass(frozen=True)
class AgentEvent:
    """Events delivered to executor listeners.

    Data payloads by type:
        started: {"context": AgentContext}
        message: {"role": "assistant", "content": str}
        tool_use: {"tool": str, "params": dict, "result": str}
        completed: {"result": AgentResult}
        error: {"error": str}
    """

    type: AgentEventType
    task_id: str
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


EventListener = Callable[[AgentEvent], None]


def dispatch(event: AgentEvent, listeners: list[EventListener]) -> None:
    """Deliver an event to each listener in order.

    A failing listener is logged and skipped; it never stops delivery to the
    others or affects the execution that produced the event.
    """
    for listener in listeners:
        try:
            listener(event)
        except Exception:
            logger.exception(
                "Event listener %r failed on %s event for task %s",
                listener,
                event.type.value,
                event.task_id,
            )
