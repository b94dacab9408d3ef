"""
tools/git.py — Git Status Tool

Summarises `git status` for the current working directory. Runs git as a
subprocess; no gitpython dependency.

Registered tools:
  - git_status → branch name plus staged/modified/added/deleted/untracked counts
"""

from __future__ import annotations

import asyncio
from typing import Optional

from gilfoyle.exceptions import ToolError, ToolTimeoutError
from gilfoyle.tools.tool_registry import ToolRegistry

_GIT_TIMEOUT = 20


async def _git(*args: str, cwd: Optional[str] = None) -> tuple[int, str, str]:
    try:
        proc = await asyncio.create_subprocess_exec(
            "git", *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        raise ToolError("Error getting git status: Git not available") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=_GIT_TIMEOUT)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.communicate()
        raise ToolTimeoutError(f"git {' '.join(args)} timed out after {_GIT_TIMEOUT}s")

    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def summarize_porcelain(porcelain: str, branch: str) -> str:
    """Turn `git status --porcelain=v1` output into a short summary."""
    branch = branch.strip() or "unknown"
    if not porcelain.strip():
        return f"Git status:\nBranch: {branch}\nWorking tree clean - no changes to commit."

    lines = porcelain.strip("\n").split("\n")
    modified = sum(1 for l in lines if l.startswith((" M", "M ")))
    added = sum(1 for l in lines if l.startswith("A "))
    deleted = sum(1 for l in lines if l.startswith((" D", "D ")))
    untracked = sum(1 for l in lines if l.startswith("??"))
    staged = sum(1 for l in lines if not l.startswith((" ", "??")))

    summary = f"Git status:\nBranch: {branch}\n"
    for label, count in (
        ("Staged changes", staged),
        ("Modified files", modified),
        ("Added files", added),
        ("Deleted files", deleted),
        ("Untracked files", untracked),
    ):
        if count > 0:
            summary += f"{label}: {count}\n"
    return summary


async def git_status_summary(cwd: Optional[str] = None) -> str:
    code, _, stderr = await _git("rev-parse", "--git-dir", cwd=cwd)
    if code != 0:
        if "not a git repository" in stderr:
            raise ToolError("Error: Not in a git repository.")
        raise ToolError(f"Error getting git status: {stderr.strip()}")

    code, porcelain, stderr = await _git("status", "--porcelain=v1", cwd=cwd)
    if code != 0:
        raise ToolError(f"Error getting git status: {stderr.strip()}")
    _, branch, _ = await _git("branch", "--show-current", cwd=cwd)
    return summarize_porcelain(porcelain, branch)


def register(registry: ToolRegistry) -> None:
    @registry.register(
        name="git_status",
        description="Check git repository status",
        label="git status",
        category="git",
    )
    async def git_status() -> str:
        return await git_status_summary()
