"""Git helpers.

All commands capture their output; a failure raises
:class:`~create_monorepo.errors.ExternalCommandError` and it is up to the
caller to decide whether that is fatal.
"""

from __future__ import annotations

from pathlib import Path

from .errors import ExternalCommandError
from .utils import run_command


async def _git(args: list[str], cwd: str | Path | None = None) -> str:
    cmd = ["git", *args]
    try:
        returncode, stdout, stderr = await run_command(cmd, cwd=cwd)
    except OSError as exc:
        raise ExternalCommandError(" ".join(cmd)) from exc
    if returncode != 0:
        raise ExternalCommandError(" ".join(cmd), returncode, stderr)
    return stdout


async def init_git(project_root: str | Path) -> None:
    """Initialise a repository and record every generated file in one commit."""
    await _git(["init"], cwd=project_root)
    await _git(["add", "."], cwd=project_root)
    await _git(["commit", "-m", "Initial commit"], cwd=project_root)


async def check_git_installed() -> bool:
    try:
        await _git(["--version"])
    except ExternalCommandError:
        return False
    return True


async def is_git_repository(path: str | Path) -> bool:
    try:
        await _git(["rev-parse", "--is-inside-work-tree"], cwd=path)
    except ExternalCommandError:
        return False
    return True


async def check_git_clean(path: str | Path) -> bool:
    """Return ``True`` if ``git status --porcelain`` reports nothing.

    Anything that prevents the check (not a repository, git missing) counts
    as not clean.
    """
    try:
        status = await _git(["status", "--porcelain"], cwd=path)
    except ExternalCommandError:
        return False
    return status.strip() == ""
