"""Tests for git_status, git_diff and git_commit against a real repository."""

import pytest

from conftest import git, requires_git
from taskforge.agent.sandbox import SandboxError
from taskforge.agent.tool_registry import ToolError
from taskforge.agent.tools.git_tools import git_commit, git_diff, git_status

pytestmark = requires_git


@pytest.mark.asyncio
async def test_status_clean(git_repo, context):
    result = await git_status({}, context)
    assert "nothing to commit" in result


@pytest.mark.asyncio
async def test_status_shows_untracked(git_repo, context):
    (git_repo / "new.py").write_text("print('hi')\n")
    result = await git_status({}, context)
    assert "new.py" in result


@pytest.mark.asyncio
async def test_status_outside_repository(context):
    result = await git_status({}, context)
    assert "not a git repository" in result.lower()


@pytest.mark.asyncio
async def test_diff_unstaged(git_repo, context):
    (git_repo / "README.md").write_text("# Project\nmore\n")
    result = await git_diff({"staged": False}, context)
    assert "+more" in result


@pytest.mark.asyncio
async def test_diff_no_unstaged_changes(git_repo, context):
    assert await git_diff({"staged": False}, context) == "No unstaged changes"


@pytest.mark.asyncio
async def test_diff_staged(git_repo, context):
    (git_repo / "README.md").write_text("# Project\nstaged line\n")
    git(git_repo, "add", "README.md")

    assert "+staged line" in await git_diff({"staged": True}, context)
    assert await git_diff({"staged": False}, context) == "No unstaged changes"


@pytest.mark.asyncio
async def test_diff_no_staged_changes(git_repo, context):
    assert await git_diff({"staged": True}, context) == "No staged changes"


@pytest.mark.asyncio
async def test_diff_path_filter(git_repo, context):
    (git_repo / "other.txt").write_text("one\n")
    git(git_repo, "add", "other.txt")
    git(git_repo, "commit", "-q", "-m", "add other")
    (git_repo / "README.md").write_text("# Project\nreadme change\n")
    (git_repo / "other.txt").write_text("one\ntwo\n")

    result = await git_diff({"staged": False, "path": "other.txt"}, context)

    assert "+two" in result
    assert "readme change" not in result


@pytest.mark.asyncio
async def test_diff_rejects_path_outside(git_repo, context):
    with pytest.raises(SandboxError, match="Access denied"):
        await git_diff({"staged": False, "path": "../other"}, context)


@pytest.mark.asyncio
async def test_commit_with_files(git_repo, context):
    (git_repo / "feature.py").write_text("x = 1\n")

    result = await git_commit(
        {"message": "Add feature", "files": ["feature.py"]}, context
    )

    assert "Add feature" in result
    assert git(git_repo, "log", "-1", "--format=%s").strip() == "Add feature"
    assert "feature.py" in git(git_repo, "show", "--name-only", "--format=", "HEAD")


@pytest.mark.asyncio
async def test_commit_previously_staged(git_repo, context):
    (git_repo / "README.md").write_text("# Project\nupdated\n")
    git(git_repo, "add", "README.md")

    await git_commit({"message": "Update readme"}, context)

    assert git(git_repo, "log", "-1", "--format=%s").strip() == "Update readme"


@pytest.mark.asyncio
async def test_commit_with_nothing_staged(git_repo, context):
    result = await git_commit({"message": "Empty"}, context)
    assert result.startswith("Commit failed")
    assert git(git_repo, "log", "-1", "--format=%s").strip() == "Initial commit"


@pytest.mark.asyncio
async def test_commit_requires_message(git_repo, context):
    with pytest.raises(ToolError, match="Commit message is required"):
        await git_commit({"files": ["README.md"]}, context)


@pytest.mark.asyncio
async def test_commit_rejects_outside_file_before_staging(git_repo, context):
    (git_repo / "inside.txt").write_text("in\n")

    with pytest.raises(SandboxError, match="Access denied"):
        await git_commit(
            {"message": "Sneaky", "files": ["inside.txt", "../escape.txt"]}, context
        )

    assert git(git_repo, "diff", "--cached", "--name-only").strip() == ""
    assert git(git_repo, "log", "-1", "--format=%s").strip() == "Initial commit"


@pytest.mark.asyncio
async def test_commit_rejects_non_list_files(git_repo, context):
    with pytest.raises(ToolError, match="Files must be an array"):
        await git_commit({"message": "Bad", "files": "README.md"}, context)
