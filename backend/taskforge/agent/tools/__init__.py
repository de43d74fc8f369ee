"""Built-in agent tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskforge.agent.tool_registry import AgentTool, ToolRegistry
from taskforge.agent.tools.command_tools import shell_execute_tool
from taskforge.agent.tools.file_tools import (
    list_directory_tool,
    read_file_tool,
    write_file_tool,
)
from taskforge.agent.tools.git_tools import (
    git_commit_tool,
    git_diff_tool,
    git_status_tool,
)
from taskforge.agent.tools.search_tools import search_code_tool, search_files_tool

if TYPE_CHECKING:
    from taskforge.agent.executor import AgentExecutor

BUILTIN_TOOLS: list[AgentTool] = [
    # Filesystem
    read_file_tool,
    write_file_tool,
    list_directory_tool,
    # Shell
    shell_execute_tool,
    # Git
    git_status_tool,
    git_diff_tool,
    git_commit_tool,
    # Search
    search_files_tool,
    search_code_tool,
]


def register_builtin_tools(target: ToolRegistry | AgentExecutor) -> None:
    """Register every built-in tool with a registry or an executor."""
    register = target.register_tool if hasattr(target, "register_tool") else target.register
    for tool in BUILTIN_TOOLS:
        register(tool)


def build_tool_registry() -> ToolRegistry:
    return ToolRegistry(BUILTIN_TOOLS)


__all__ = [
    "BUILTIN_TOOLS",
    "build_tool_registry",
    "register_builtin_tools",
    "read_file_tool",
    "write_file_tool",
    "list_directory_tool",
    "shell_execute_tool",
    "git_status_tool",
    "git_diff_tool",
    "git_commit_tool",
    "search_files_tool",
    "search_code_tool",
]
