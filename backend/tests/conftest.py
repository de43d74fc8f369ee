"""Shared fixtures: sandbox directories, contexts, git repos, fake providers."""

from __future__ import annotations

import asyncio
import shutil
import subprocess
from pathlib import Path

import pytest

from taskforge.agent.providers import (
    ChatOptions,
    ChatResponse,
    ChatStreamChunk,
    ChatUsage,
    ModelProvider,
)
from taskforge.agent.state import AgentContext


# ── Filesystem ──────────────────────────────────────────────────


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """The sandbox root for a test execution."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def outside(tmp_path: Path) -> Path:
    """A directory next to the sandbox that tools must never reach."""
    d = tmp_path / "outside"
    d.mkdir()
    (d / "secret.txt").write_text("top secret")
    return d


def make_context(working_dir: Path | str, task_id: str = "task-1", **kwargs) -> AgentContext:
    return AgentContext(
        task_id=task_id,
        project_id=kwargs.pop("project_id", "project-1"),
        project_path=kwargs.pop("project_path", str(working_dir)),
        working_dir=str(working_dir),
        model=kwargs.pop("model", "test-model"),
        **kwargs,
    )


@pytest.fixture
def context(workspace: Path) -> AgentContext:
    return make_context(workspace)


# ── Git ─────────────────────────────────────────────────────────

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


def git(repo: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout


@pytest.fixture
def git_repo(workspace: Path) -> Path:
    git(workspace, "init", "-q")
    git(workspace, "config", "user.email", "dev@example.com")
    git(workspace, "config", "user.name", "Test Dev")
    git(workspace, "config", "commit.gpgsign", "false")
    (workspace / "README.md").write_text("# Project\n")
    git(workspace, "add", "README.md")
    git(workspace, "commit", "-q", "-m", "Initial commit")
    return workspace


# ── Providers ───────────────────────────────────────────────────


def reply(content: str, input_tokens: int = 0, output_tokens: int = 0) -> ChatResponse:
    usage = None
    if input_tokens or output_tokens:
        usage = ChatUsage(input_tokens=input_tokens, output_tokens=output_tokens)
    return ChatResponse(content=content, model="test-model", usage=usage)


class ScriptedProvider(ModelProvider):
    """Returns canned replies in order, repeating the last one when exhausted.

    A script entry may be a string, a ChatResponse, or an exception to raise.
    """

    id = "scripted"
    type = "test"

    def __init__(self, script: list) -> None:
        self.script = list(script)
        self.calls: list[tuple[list[dict], ChatOptions | None]] = []

    async def chat(self, messages, options=None):
        self.calls.append(([dict(m) for m in messages], options))
        index = min(len(self.calls) - 1, len(self.script) - 1)
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return reply(item)
        return item

    async def chat_stream(self, messages, options=None):
        response = await self.chat(messages, options)
        yield ChatStreamChunk(content=response.content)
        yield ChatStreamChunk(content="", done=True)


class BlockingProvider(ScriptedProvider):
    """Blocks every chat call until ``release`` is set."""

    def __init__(self, script: list | None = None) -> None:
        super().__init__(script or ["Done."])
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def chat(self, messages, options=None):
        self.entered.set()
        await self.release.wait()
        return await super().chat(messages, options)
