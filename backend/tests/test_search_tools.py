"""Tests for search_files, search_code and glob matching."""

import os

import pytest

from taskforge.agent.tool_registry import ToolError
from taskforge.agent.tools.search_tools import (
    match_glob,
    search_code,
    search_files,
    walk_files,
)


@pytest.fixture
def project(workspace):
    (workspace / "src" / "utils").mkdir(parents=True)
    (workspace / "src" / "main.py").write_text("import os\n\ndef main():\n    return 42\n")
    (workspace / "src" / "utils" / "helpers.py").write_text("def helper():\n    return 'ok'\n")
    (workspace / "src" / "app.ts").write_text("export const main = () => 42;\n")
    (workspace / "README.md").write_text("# Readme\nmain entry point\n")
    (workspace / "node_modules" / "pkg").mkdir(parents=True)
    (workspace / "node_modules" / "pkg" / "index.py").write_text("def main(): pass\n")
    (workspace / ".git").mkdir()
    (workspace / ".git" / "config.py").write_text("main = 1\n")
    return workspace


# ── Glob matching ───────────────────────────────────────────────


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("main.py", "*.py", True),
        ("main.ts", "*.py", False),
        ("src/main.py", "src/*.py", True),
        ("src/utils/helpers.py", "src/*.py", False),
        ("src/utils/helpers.py", "src/**/*.py", True),
        ("src/utils/helpers.py", "**/*.py", True),
        ("a.py", "?.py", True),
        ("a.pyc", "?.py", False),
        ("MAIN.PY", "*.py", True),
        ("file.txt", "file.tx", False),
        ("other/src/a.py", "src/*.py", False),
    ],
)
def test_match_glob(path, pattern, expected):
    assert match_glob(path, pattern) is expected


def test_walk_files_skips_vendor_dirs(project):
    files = walk_files(str(project))
    assert "src/main.py" in files
    assert not any(f.startswith("node_modules/") for f in files)
    assert not any(f.startswith(".git/") for f in files)


def test_walk_files_skips_symlinks(project, outside):
    os.symlink(outside, project / "linked")
    os.symlink(outside / "secret.txt", project / "secret.txt")
    files = walk_files(str(project))
    assert "secret.txt" not in files
    assert not any(f.startswith("linked/") for f in files)


# ── search_files ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_files_by_extension(project, context):
    result = await search_files({"pattern": "*.py"}, context)
    assert result.splitlines() == ["src/main.py", "src/utils/helpers.py"]


@pytest.mark.asyncio
async def test_search_files_with_directory_pattern(project, context):
    result = await search_files({"pattern": "src/**/*.py"}, context)
    assert result.splitlines() == ["src/utils/helpers.py"]


@pytest.mark.asyncio
async def test_search_files_single_level(project, context):
    result = await search_files({"pattern": "src/*.ts"}, context)
    assert result == "src/app.ts"


@pytest.mark.asyncio
async def test_search_files_no_results(project, context):
    result = await search_files({"pattern": "*.rs"}, context)
    assert result == "No files found matching pattern"


@pytest.mark.asyncio
async def test_search_files_requires_pattern(context):
    with pytest.raises(ToolError, match="Pattern is required"):
        await search_files({}, context)


# ── search_code ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_code_finds_lines(project, context):
    result = await search_code({"query": "return 42"}, context)
    assert result == "src/main.py:4: return 42"


@pytest.mark.asyncio
async def test_search_code_across_files(project, context):
    result = await search_code({"query": "main"}, context)
    lines = result.splitlines()
    assert "README.md:2: main entry point" in lines
    assert "src/main.py:3: def main():" in lines
    assert "src/app.ts:1: export const main = () => 42;" in lines
    assert not any("node_modules" in line for line in lines)


@pytest.mark.asyncio
async def test_search_code_file_pattern(project, context):
    result = await search_code({"query": "main", "filePattern": "*.py"}, context)
    assert result.splitlines() == ["src/main.py:3: def main():"]


@pytest.mark.asyncio
async def test_search_code_snake_case_file_pattern(project, context):
    result = await search_code({"query": "main", "file_pattern": "*.ts"}, context)
    assert result.splitlines() == ["src/app.ts:1: export const main = () => 42;"]


@pytest.mark.asyncio
async def test_search_code_is_case_sensitive(project, context):
    assert await search_code({"query": "MAIN"}, context) == "No matches found"


@pytest.mark.asyncio
async def test_search_code_skips_binary_files(workspace, context):
    (workspace / "blob.bin").write_bytes(b"needle\x00\xff\xfe")
    (workspace / "text.txt").write_text("needle\n")
    result = await search_code({"query": "needle"}, context)
    assert result == "text.txt:1: needle"


@pytest.mark.asyncio
async def test_search_code_truncates_long_lines(workspace, context):
    (workspace / "long.txt").write_text("needle" + "x" * 200 + "\n")
    result = await search_code({"query": "needle"}, context)
    text = result.split(": ", 1)[1]
    assert text.endswith("...")
    assert len(text) == 103


@pytest.mark.asyncio
async def test_search_code_caps_results(workspace, context):
    (workspace / "many.txt").write_text("".join(f"hit {i}\n" for i in range(150)))

    result = await search_code({"query": "hit"}, context)

    lines = result.splitlines()
    assert lines[0] == "many.txt:1: hit 0"
    assert lines[99] == "many.txt:100: hit 99"
    assert lines[-1] == "... (truncated, 100+ results found)"
    assert sum(1 for line in lines if line.startswith("many.txt:")) == 100


@pytest.mark.asyncio
async def test_search_code_exactly_at_cap_is_not_truncated(workspace, context):
    (workspace / "many.txt").write_text("".join(f"hit {i}\n" for i in range(100)))
    result = await search_code({"query": "hit"}, context)
    assert "truncated" not in result
    assert len(result.splitlines()) == 100


@pytest.mark.asyncio
async def test_search_code_no_matches(project, context):
    assert await search_code({"query": "zzz-not-here"}, context) == "No matches found"


@pytest.mark.asyncio
async def test_search_code_requires_query(context):
    with pytest.raises(ToolError, match="Query is required"):
        await search_code({}, context)
