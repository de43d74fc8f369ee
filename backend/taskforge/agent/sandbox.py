"""Path sandbox shared by every filesystem-touching tool.

``validate_path`` confines a user-supplied path to the execution's
``working_dir``. It compares real (symlink-free) paths, so a symlink inside
the root that points outside it is rejected, including symlinked
intermediate directories and dangling links.

The checks run against a ``FilesystemOracle`` so the escape logic can be
exercised without touching a real disk.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol

from taskforge.agent.state import AgentContext

logger = logging.getLogger(__name__)


class SandboxError(PermissionError):
    """Raised when a path resolves outside the sandbox root."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class FilesystemOracle(Protocol):
    def realpath(self, path: str) -> str:
        """Return the symlink-free path. Raise FileNotFoundError if missing."""
        ...

    def is_symlink(self, path: str) -> bool: ...

    def readlink(self, path: str) -> str: ...


class LocalFilesystem:
    """FilesystemOracle backed by the real filesystem."""

    def realpath(self, path: str) -> str:
        return os.path.realpath(path, strict=True)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def readlink(self, path: str) -> str:
        return os.readlink(path)


LOCAL_FS = LocalFilesystem()


def is_within(path: str, root: str) -> bool:
    """True if ``path`` equals ``root`` or is nested under it."""
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def _deny(relative_path: str, reason: str) -> SandboxError:
    logger.warning("Sandbox rejected path %r: %s", relative_path, reason)
    return SandboxError(
        f"Access denied: path outside working directory ({relative_path})",
        path=relative_path,
    )


def _check_missing(
    candidate: str,
    real_root: str,
    relative_path: str,
    fs: FilesystemOracle,
    seen: set[str],
) -> None:
    """Validate a candidate path that does not resolve to anything."""
    if candidate in seen:
        raise _deny(relative_path, "symlink loop")
    seen.add(candidate)

    parent = os.path.dirname(candidate)
    if parent == candidate:
        raise _deny(relative_path, "no existing ancestor")
    try:
        real_parent = fs.realpath(parent)
    except FileNotFoundError:
        # The parent may itself be missing or a dangling symlink
        _check_missing(parent, real_root, relative_path, fs, seen)
        return
    if not is_within(real_parent, real_root):
        raise _deny(relative_path, f"ancestor {real_parent} escapes root")

    link = os.path.join(real_parent, os.path.basename(candidate))
    if not fs.is_symlink(link):
        return

    # A relative link target is resolved from the directory the link really
    # lives in, and left unnormalized so ".." follows symlinks like the OS does
    target = os.path.join(real_parent, fs.readlink(link))
    try:
        real_target = fs.realpath(target)
    except FileNotFoundError:
        _check_missing(target, real_root, relative_path, fs, seen)
        return
    if not is_within(real_target, real_root):
        raise _deny(relative_path, f"symlink target {target} escapes root")


def validate_path(
    relative_path: str,
    context: AgentContext,
    fs: FilesystemOracle | None = None,
) -> str:
    """Resolve ``relative_path`` inside the sandbox and return it absolute.

    Raises SandboxError if the path, or anything it resolves through,
    lands outside ``context.working_dir``. Paths that do not exist yet are
    accepted when their nearest existing ancestor is inside the root.
    """
    fs = fs or LOCAL_FS

    root = os.path.abspath(context.working_dir)
    candidate = os.path.normpath(os.path.join(root, relative_path))
    real_root = fs.realpath(root)

    if candidate == root:
        return candidate

    try:
        real_candidate = fs.realpath(candidate)
    except FileNotFoundError:
        _check_missing(candidate, real_root, relative_path, fs, set())
        return candidate

    if not is_within(real_candidate, real_root):
        raise _deny(relative_path, f"resolves to {real_candidate}")
    return candidate
