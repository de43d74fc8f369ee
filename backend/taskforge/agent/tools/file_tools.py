import os
from pathlib import Path

from taskforge.agent.constants import MAX_FILE_READ_BYTES
from taskforge.agent.sandbox import validate_path
from taskforge.agent.state import AgentContext
from taskforge.agent.tool_registry import AgentTool, ToolError


def _require_path(params: dict) -> str:
    path = params.get("path")
    if not path or not isinstance(path, str):
        raise ToolError("Path is required")
    return path


async def read_file(params: dict, context: AgentContext) -> str:
    """Read a UTF-8 file from the working directory."""
    relative_path = _require_path(params)
    file_path = Path(validate_path(relative_path, context))

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {relative_path}")
    if not file_path.is_file():
        raise ToolError(f"Not a file: {relative_path}")

    size = file_path.stat().st_size
    if size > MAX_FILE_READ_BYTES:
        raise ToolError(
            f"File too large: {relative_path} is {size} bytes "
            f"(limit {MAX_FILE_READ_BYTES} bytes)"
        )

    return file_path.read_text(encoding="utf-8")


async def write_file(params: dict, context: AgentContext) -> str:
    """Write or create a file, creating parent directories as needed."""
    relative_path = _require_path(params)
    content = params.get("content")
    if content is None:
        raise ToolError("Content is required")
    if not isinstance(content, str):
        raise ToolError("Content must be a string")

    file_path = Path(validate_path(relative_path, context))
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")

    return f"File written: {relative_path}"


def _describe_entry(entry: os.DirEntry) -> tuple[bool, str]:
    if entry.is_symlink():
        return False, f"{entry.name} [link]"
    if entry.is_dir(follow_symlinks=False):
        return True, f"{entry.name}/ [dir]"
    if entry.is_file(follow_symlinks=False):
        return False, f"{entry.name} [file]"
    return False, entry.name


async def list_directory(params: dict, context: AgentContext) -> str:
    """List a directory: directories first, then everything else by name."""
    relative_path = params.get("path") or "."
    dir_path = validate_path(relative_path, context)

    if not os.path.exists(dir_path):
        raise FileNotFoundError(f"Directory not found: {relative_path}")
    if not os.path.isdir(dir_path):
        raise ToolError(f"Not a directory: {relative_path}")

    with os.scandir(dir_path) as it:
        entries = [_describe_entry(e) for e in it]

    if not entries:
        return "Directory is empty"

    entries.sort(key=lambda e: (not e[0], e[1]))
    return "\n".join(line for _, line in entries)


read_file_tool = AgentTool(
    name="read_file",
    description="Read the contents of a file. Returns the file content as a string.",
    parameters={
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Relative path from the project root to the file to read",
            },
        },
        "required": ["path"],
    },
    handler=read_file,
)

write_file_tool = AgentTool(
    name="write_file",
    description=(
        "Write content to a file. Creates the file if it does not exist, or "
        "overwrites it if it does. Creates parent directories as needed."
    ),
    parameters={
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Relative path from the project root to the file to write",
            },
            "content": {
                "type": "string",
                "description": "The content to write to the file",
            },
        },
        "required": ["path", "content"],
    },
    handler=write_file,
)

list_directory_tool = AgentTool(
    name="list_directory",
    description=(
        "List files and directories at the specified path. Returns a formatted "
        "list showing file names and types."
    ),
    parameters={
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Relative path to the directory (default: '.' for project root)",
                "default": ".",
            },
        },
        "required": [],
    },
    handler=list_directory,
)
