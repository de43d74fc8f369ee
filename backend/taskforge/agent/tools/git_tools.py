import asyncio
import logging

from taskforge.agent.sandbox import validate_path
from taskforge.agent.state import AgentContext
from taskforge.agent.tool_registry import AgentTool, ToolError

logger = logging.getLogger(__name__)


async def _run_git(args: list[str], cwd: str) -> tuple[int, str]:
    """Run git with stdout and stderr combined. Returns (returncode, output)."""
    proc = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    stdout, _ = await proc.communicate()
    return proc.returncode, stdout.decode(errors="replace").strip()


async def _git_output(args: list[str], cwd: str) -> str:
    try:
        code, output = await _run_git(args, cwd)
    except OSError as e:
        return f"Error executing git: {e}"
    if code != 0 and not output:
        return f"Git command failed with exit code: {code}"
    return output or "No output"


async def git_status(params: dict, context: AgentContext) -> str:
    return await _git_output(["status"], context.working_dir)


async def git_diff(params: dict, context: AgentContext) -> str:
    staged = bool(params.get("staged", False))
    path = params.get("path")

    args = ["diff"]
    if staged:
        args.append("--cached")
    if path:
        if not isinstance(path, str):
            raise ToolError("Path must be a string")
        validate_path(path, context)
        args.extend(["--", path])

    result = await _git_output(args, context.working_dir)
    if result == "No output":
        return "No staged changes" if staged else "No unstaged changes"
    return result


async def git_commit(params: dict, context: AgentContext) -> str:
    """Stage the given files (if any), then commit.

    A commit that git refuses, for example with nothing staged, is reported
    as text rather than raised.
    """
    message = params.get("message")
    if not message or not isinstance(message, str):
        raise ToolError("Commit message is required")

    files = params.get("files") or []
    if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
        raise ToolError("Files must be an array of paths")

    # Validate every path before touching the index
    for f in files:
        validate_path(f, context)

    try:
        if files:
            code, output = await _run_git(["add", "--", *files], context.working_dir)
            if code != 0:
                return f"Failed to stage files: {output}"

        code, output = await _run_git(["commit", "-m", message], context.working_dir)
    except OSError as e:
        return f"Error executing git: {e}"

    if code != 0:
        logger.info("Task %s: git commit failed: %s", context.task_id, output)
        return f"Commit failed: {output or f'exit code {code}'}"
    return output


git_status_tool = AgentTool(
    name="git_status",
    description="Get the current git status showing modified, staged, and untracked files.",
    parameters={
        "type": "object",
        "properties": {},
        "required": [],
    },
    handler=git_status,
)

git_diff_tool = AgentTool(
    name="git_diff",
    description=(
        "Get git diff showing changes. Use staged=true to see staged changes, "
        "or false for unstaged. Optionally filter by path."
    ),
    parameters={
        "type": "object",
        "properties": {
            "staged": {
                "type": "boolean",
                "description": "If true, show staged changes (--cached). If false, show unstaged changes.",
            },
            "path": {
                "type": "string",
                "description": "Optional file path to filter the diff",
            },
        },
        "required": ["staged"],
    },
    handler=git_diff,
)

git_commit_tool = AgentTool(
    name="git_commit",
    description=(
        "Create a git commit. If files are specified, they will be staged "
        "before committing. Otherwise, commits all staged changes."
    ),
    parameters={
        "type": "object",
        "properties": {
            "message": {
                "type": "string",
                "description": "The commit message",
            },
            "files": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional array of file paths to stage and commit",
            },
        },
        "required": ["message"],
    },
    handler=git_commit,
)
