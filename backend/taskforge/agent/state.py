from __future__ import annotations

from dataclasses import dataclass


# ── Execution context ───────────────────────────────────────────


@dataclass(frozen=True)
class AgentContext:
    """Everything one execution needs to know about its task.

    ``working_dir`` is the sandbox root: every filesystem and git tool is
    confined to it. It is usually the project path, but may be an isolated
    git worktree.
    """

    task_id: str
    project_id: str
    project_path: str
    working_dir: str
    model: str
    max_tokens: int | None = None


# ── Results ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input=self.input + other.input,
            output=self.output + other.output,
        )


@dataclass(frozen=True)
class AgentResult:
    success: bool
    output: str | None = None
    error: str | None = None
    tokens_used: TokenUsage | None = None
