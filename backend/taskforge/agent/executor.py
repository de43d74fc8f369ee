"""The bounded tool-use loop that drives one agent task.

One ``execute`` call drives one task: it talks to a ModelProvider, runs the
tool each reply asks for, feeds the result back, and stops on a reply
without a tool call, an error, a cancellation, or the iteration cap.

Many executions can run concurrently on one executor. Each owns its message
list and cancellation token; the only shared state is the tool registry and
the running-task map, which is keyed by task id.
"""

from __future__ import annotations

import logging

from taskforge.agent.cancellation import CancellationToken
from taskforge.agent.constants import MAX_ITERATIONS
from taskforge.agent.events import AgentEvent, AgentEventType, EventListener, dispatch
from taskforge.agent.parsing import MalformedToolCall, ToolCall, parse_tool_call
from taskforge.agent.providers import ChatOptions, ModelProvider
from taskforge.agent.state import AgentContext, AgentResult, TokenUsage
from taskforge.agent.tool_registry import AgentTool, ToolRegistry

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


def _error_message(exc: BaseException) -> str:
    return str(exc) or UNKNOWN_ERROR


class AgentExecutor:
    """Runs agent tasks against a model provider with a shared tool set."""

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        max_iterations: int = MAX_ITERATIONS,
        listeners: list[EventListener] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else ToolRegistry()
        self.max_iterations = max_iterations
        self._listeners: list[EventListener] = list(listeners or [])
        self._running: dict[str, CancellationToken] = {}

    @classmethod
    def from_settings(cls, registry: ToolRegistry | None = None) -> AgentExecutor:
        from taskforge.config import settings

        return cls(registry=registry, max_iterations=settings.AGENT_MAX_ITERATIONS)

    # ------------------------------------------------------------------
    # Tools and listeners
    # ------------------------------------------------------------------

    def register_tool(self, tool: AgentTool) -> None:
        self.registry.register(tool)

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Running-task bookkeeping
    # ------------------------------------------------------------------

    def cancel(self, task_id: str) -> bool:
        """Request cancellation. Returns False if the task is not running."""
        token = self._running.get(task_id)
        if token is None:
            return False
        logger.info("Cancellation requested for task %s", task_id)
        token.cancel()
        return True

    def is_running(self, task_id: str) -> bool:
        return task_id in self._running

    def get_running_task_ids(self) -> list[str]:
        return list(self._running.keys())

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def execute(
        self,
        context: AgentContext,
        provider: ModelProvider,
        system_prompt: str,
        on_event: EventListener | None = None,
    ) -> AgentResult:
        """Run one task to completion. Never raises for ordinary errors.

        ``on_event`` receives only this execution's events, after the
        executor-wide listeners.
        """
        task_id = context.task_id

        if task_id in self._running:
            logger.warning("Task %s is already running; refusing to start it again", task_id)
            return AgentResult(success=False, error=f"Task {task_id} is already running")

        token = CancellationToken()
        self._running[task_id] = token

        listeners = list(self._listeners)
        if on_event is not None:
            listeners.append(on_event)

        def emit(event_type: AgentEventType, data: dict) -> None:
            dispatch(AgentEvent(type=event_type, task_id=task_id, data=data), listeners)

        usage = TokenUsage()

        try:
            emit(AgentEventType.STARTED, {"context": context})
            logger.info("Task %s started (model=%s)", task_id, context.model)

            messages: list[dict] = [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": f"Execute the task for project at: {context.project_path}",
                },
            ]
            options = ChatOptions(model=context.model, max_tokens=context.max_tokens)

            last_content = ""
            for iteration in range(1, self.max_iterations + 1):
                token.raise_if_cancelled()

                response = await token.race(provider.chat(messages, options))

                if response.usage is not None:
                    usage = usage + TokenUsage(
                        input=response.usage.input_tokens,
                        output=response.usage.output_tokens,
                    )

                last_content = response.content
                emit(
                    AgentEventType.MESSAGE,
                    {"role": "assistant", "content": response.content},
                )

                parsed = parse_tool_call(response.content)
                if not isinstance(parsed, (ToolCall, MalformedToolCall)):
                    break

                tool = self.registry.get(parsed.name)
                if tool is None:
                    logger.info(
                        "Task %s: model requested unknown tool %r; treating reply as final",
                        task_id,
                        parsed.name,
                    )
                    break

                if parsed.extra_calls:
                    logger.warning(
                        "Task %s: %d additional tool call(s) in one reply ignored",
                        task_id,
                        parsed.extra_calls,
                    )

                if isinstance(parsed, MalformedToolCall):
                    logger.warning(
                        "Task %s: malformed params for %s (%s); using empty params",
                        task_id,
                        parsed.name,
                        parsed.reason,
                    )
                    params: dict = {}
                else:
                    params = parsed.params

                tool_result = await self._run_tool(tool, params, context)

                emit(
                    AgentEventType.TOOL_USE,
                    {"tool": tool.name, "params": params, "result": tool_result},
                )

                messages.append({"role": "assistant", "content": response.content})
                messages.append({"role": "user", "content": f"Tool result: {tool_result}"})

                if iteration == self.max_iterations:
                    logger.warning(
                        "Task %s hit the iteration cap (%d) with a tool call pending",
                        task_id,
                        self.max_iterations,
                    )

            # A cancel that arrived during the last tool still fails the run
            token.raise_if_cancelled()

            result = AgentResult(success=True, output=last_content, tokens_used=usage)
            emit(AgentEventType.COMPLETED, {"result": result})
            logger.info(
                "Task %s completed (tokens in=%d out=%d)",
                task_id,
                usage.input,
                usage.output,
            )
            return result

        except Exception as exc:
            error = _error_message(exc)
            logger.warning("Task %s failed: %s", task_id, error)
            result = AgentResult(success=False, error=error, tokens_used=usage)
            emit(AgentEventType.ERROR, {"error": error})
            return result

        finally:
            self._running.pop(task_id, None)

    async def _run_tool(
        self, tool: AgentTool, params: dict, context: AgentContext
    ) -> str:
        """Execute a tool, turning any failure into an error string."""
        try:
            return str(await tool.execute(params, context))
        except Exception as exc:
            logger.warning(
                "Task %s: tool %s raised %s: %s",
                context.task_id,
                tool.name,
                type(exc).__name__,
                exc,
            )
            return f"Error: {_error_message(exc)}"
