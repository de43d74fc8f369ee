"""Agent execution engine: executor, tools, sandbox, and provider contract."""

from taskforge.agent.cancellation import AgentCancelledError, CancellationToken
from taskforge.agent.events import AgentEvent, AgentEventType, EventListener
from taskforge.agent.executor import AgentExecutor
from taskforge.agent.parsing import (
    MalformedToolCall,
    NoToolCall,
    ToolCall,
    parse_tool_call,
)
from taskforge.agent.providers import (
    ChatOptions,
    ChatResponse,
    ChatStreamChunk,
    ChatUsage,
    ConnectionTestResult,
    ModelProvider,
)
from taskforge.agent.sandbox import SandboxError, validate_path
from taskforge.agent.state import AgentContext, AgentResult, TokenUsage
from taskforge.agent.tool_registry import AgentTool, ToolError, ToolRegistry
from taskforge.agent.tools import (
    BUILTIN_TOOLS,
    build_tool_registry,
    register_builtin_tools,
)

__all__ = [
    "AgentCancelledError",
    "AgentContext",
    "AgentEvent",
    "AgentEventType",
    "AgentExecutor",
    "AgentResult",
    "AgentTool",
    "BUILTIN_TOOLS",
    "CancellationToken",
    "ChatOptions",
    "ChatResponse",
    "ChatStreamChunk",
    "ChatUsage",
    "ConnectionTestResult",
    "EventListener",
    "MalformedToolCall",
    "ModelProvider",
    "NoToolCall",
    "SandboxError",
    "TokenUsage",
    "ToolCall",
    "ToolError",
    "ToolRegistry",
    "build_tool_registry",
    "parse_tool_call",
    "register_builtin_tools",
    "validate_path",
]
