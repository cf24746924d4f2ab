"""Git subprocess helpers for local diff retrieval."""

from __future__ import annotations

import logging
from pathlib import Path
from subprocess import CalledProcessError, run

logger = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when git command execution fails."""


def get_working_tree_diff(repo: Path) -> str:
    """Return working tree diff for a repository."""
    return _run_git(repo, ["diff", "--no-color"])


def get_diff_between(repo: Path, base: str, head: str) -> str:
    """Return diff between two revisions."""
    return _run_git(repo, ["diff", "--no-color", f"{base}..{head}"])


def _run_git(repo: Path, args: list[str]) -> str:
    logger.debug("running git %s in %s", " ".join(args), repo)
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except FileNotFoundError as exc:
        raise GitError(f"git executable or repository not found: {exc}") from exc

    return completed.stdout
