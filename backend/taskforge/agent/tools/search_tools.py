import os
import re
from functools import lru_cache
from pathlib import Path

from taskforge.agent.constants import (
    SEARCH_LINE_MAX_CHARS,
    SEARCH_MAX_RESULTS,
    SEARCH_SKIP_DIRS,
)
from taskforge.agent.state import AgentContext
from taskforge.agent.tool_registry import AgentTool, ToolError


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a glob into a regex.

    ``**`` matches anything including ``/``, ``*`` anything but ``/``, ``?``
    a single character. Patterns without ``/`` only anchor at the end so they
    match on the file name.
    """
    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append(".")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1

    regex = "".join(parts) + "$"
    if "/" in pattern:
        regex = "^" + regex
    return re.compile(regex, re.IGNORECASE)


def match_glob(path: str, pattern: str) -> bool:
    return _glob_to_regex(pattern).search(path) is not None


def _matches(rel_path: str, pattern: str) -> bool:
    if "/" not in pattern and "**" not in pattern:
        return match_glob(rel_path.rsplit("/", 1)[-1], pattern)
    return match_glob(rel_path, pattern)


def walk_files(root: str) -> list[str]:
    """All regular files under root as POSIX relative paths.

    Skips generated and vendor directories. Symlinks are neither followed
    nor reported, so the walk never leaves the root.
    """
    files = []
    for current, dirs, filenames in os.walk(root):
        dirs[:] = sorted(
            d
            for d in dirs
            if d not in SEARCH_SKIP_DIRS
            and not os.path.islink(os.path.join(current, d))
        )
        for filename in filenames:
            full_path = os.path.join(current, filename)
            if os.path.islink(full_path) or not os.path.isfile(full_path):
                continue
            files.append(Path(os.path.relpath(full_path, root)).as_posix())
    return files


async def search_files(params: dict, context: AgentContext) -> str:
    """Find files whose path matches a glob pattern."""
    pattern = params.get("pattern")
    if not pattern or not isinstance(pattern, str):
        raise ToolError("Pattern is required")

    matching = sorted(
        f for f in walk_files(context.working_dir) if _matches(f, pattern)
    )
    if not matching:
        return "No files found matching pattern"
    return "\n".join(matching)


def _read_text(path: str) -> str | None:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError):
        return None
    if "\x00" in content:
        return None
    return content


async def search_code(params: dict, context: AgentContext) -> str:
    """Grep file contents for a literal string."""
    query = params.get("query")
    if not query or not isinstance(query, str):
        raise ToolError("Query is required")
    file_pattern = params.get("filePattern") or params.get("file_pattern")

    files = walk_files(context.working_dir)
    if file_pattern:
        files = [f for f in files if _matches(f, file_pattern)]

    results: list[str] = []
    for rel_path in sorted(files):
        content = _read_text(os.path.join(context.working_dir, rel_path))
        if content is None:
            continue

        for line_num, line in enumerate(content.splitlines(), 1):
            if query not in line:
                continue
            if len(results) >= SEARCH_MAX_RESULTS:
                results.append(
                    f"\n... (truncated, {SEARCH_MAX_RESULTS}+ results found)"
                )
                return "\n".join(results)

            text = line.strip()
            if len(text) > SEARCH_LINE_MAX_CHARS:
                text = text[:SEARCH_LINE_MAX_CHARS] + "..."
            results.append(f"{rel_path}:{line_num}: {text}")

    if not results:
        return "No matches found"
    return "\n".join(results)


search_files_tool = AgentTool(
    name="search_files",
    description=(
        "Search for files by name pattern using glob syntax. Supports *, **, "
        "and ? wildcards. Returns matching file paths."
    ),
    parameters={
        "type": "object",
        "properties": {
            "pattern": {
                "type": "string",
                "description": 'Glob pattern to match files (e.g., "*.py", "**/test_*.py", "src/**/*.ts")',
            },
        },
        "required": ["pattern"],
    },
    handler=search_files,
)

search_code_tool = AgentTool(
    name="search_code",
    description=(
        "Search for text content within files. Returns matching lines with "
        "file paths and line numbers. Optionally filter by file pattern."
    ),
    parameters={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The text to search for (case-sensitive)",
            },
            "filePattern": {
                "type": "string",
                "description": 'Optional glob pattern to filter files (e.g., "*.py", "*.js")',
            },
        },
        "required": ["query"],
    },
    handler=search_code,
)
