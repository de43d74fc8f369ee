import asyncio
import logging
import os
import signal

from taskforge.agent.constants import SHELL_DEFAULT_TIMEOUT_MS
from taskforge.agent.state import AgentContext
from taskforge.agent.tool_registry import AgentTool, ToolError

logger = logging.getLogger(__name__)


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the shell and everything it spawned."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _parse_timeout(params: dict) -> int:
    timeout = params.get("timeout")
    if timeout is None:
        return SHELL_DEFAULT_TIMEOUT_MS
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ToolError("Timeout must be a positive number of milliseconds")
    return int(timeout)


async def shell_execute(params: dict, context: AgentContext) -> str:
    """Run a shell command in the working directory."""
    command = params.get("command")
    if not command or not isinstance(command, str):
        raise ToolError("Command is required")
    timeout_ms = _parse_timeout(params)

    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=context.working_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )
    except OSError as e:
        return f"Error executing command: {e}"

    try:
        stdout, _ = await asyncio.wait_for(
            proc.communicate(), timeout=timeout_ms / 1000
        )
    except asyncio.TimeoutError:
        _kill_process_group(proc)
        await proc.wait()
        logger.warning(
            "Task %s: command timed out after %dms: %s",
            context.task_id,
            timeout_ms,
            command,
        )
        return f"Command timed out after {timeout_ms}ms"

    output = stdout.decode(errors="replace").strip()

    if proc.returncode != 0:
        if output:
            return f"{output}\n\nExit code: {proc.returncode}"
        return f"Command failed with exit code: {proc.returncode}"

    return output or "Command completed successfully (no output)"


shell_execute_tool = AgentTool(
    name="shell_execute",
    description=(
        "Execute a shell command in the project directory. Returns stdout and "
        "stderr combined. Use timeout parameter to set a custom timeout in "
        "milliseconds."
    ),
    parameters={
        "type": "object",
        "properties": {
            "command": {
                "type": "string",
                "description": "The shell command to execute",
            },
            "timeout": {
                "type": "number",
                "description": f"Timeout in milliseconds (default: {SHELL_DEFAULT_TIMEOUT_MS})",
            },
        },
        "required": ["command"],
    },
    handler=shell_execute,
)
