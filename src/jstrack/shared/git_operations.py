# src/jstrack/shared/git_operations.py
"""
Git command helpers for the knowledge data repository.
Thin wrappers around the git CLI.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import subprocess
import logging

logger = logging.getLogger(__name__)


def run_sync(cmd: list[str], cwd: str | Path | None = None) -> str:
    """Run command synchronously with error handling."""
    cwd_str = str(cwd) if cwd else None

    try:
        p = subprocess.run(
            cmd,
            cwd=cwd_str,
            capture_output=True,
            text=True,
            check=False  # We'll handle errors manually
        )
    except OSError as e:
        logger.error(f"Failed to run command {' '.join(cmd)}: {e}")
        raise RuntimeError(f"Could not start {cmd[0]}: {e}") from e

    if p.returncode != 0:
        error_msg = (
            f"Command failed: {' '.join(cmd)}\n"
            f"Exit code: {p.returncode}\n"
            f"STDOUT:\n{p.stdout}\n"
            f"STDERR:\n{p.stderr}"
        )
        logger.debug(error_msg)
        raise RuntimeError(error_msg)

    return p.stdout.strip()


def _is_probably_sha(ref: str) -> bool:
    """Check if a string looks like a git SHA."""
    r = (ref or "").strip()

    # SHA can be 7-40 characters
    if len(r) < 7 or len(r) > 40:
        return False

    return all(c in "0123456789abcdefABCDEF" for c in r)


class GitRepository:
    """A local git working copy driven through the git CLI."""

    def __init__(self, repo_path: str | Path):
        self.path = Path(repo_path).resolve()

    def is_repo(self) -> bool:
        return (self.path / ".git").exists()

    def clone(self, repo_url: str) -> str:
        """
        Clone repo_url into this repository's path.

        Returns:
            The checked-out HEAD commit hash
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Cloning {repo_url} to {self.path}")
        run_sync(["git", "clone", repo_url, str(self.path)])

        return self.head()

    def pull(self) -> str:
        logger.info(f"Pulling latest changes in {self.path}")
        return run_sync(["git", "pull"], cwd=self.path)

    def init(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        run_sync(["git", "init"], cwd=self.path)

    def add(self, *paths: str) -> None:
        run_sync(["git", "add", *(paths or (".",))], cwd=self.path)

    def commit(self, message: str) -> str:
        run_sync(["git", "commit", "-m", message], cwd=self.path)
        return self.head()

    def push(self) -> None:
        run_sync(["git", "push"], cwd=self.path)

    def status(self) -> str:
        """Porcelain status output (empty when the tree is clean)."""
        return run_sync(["git", "status", "--porcelain"], cwd=self.path)

    def head(self) -> str:
        return run_sync(["git", "rev-parse", "HEAD"], cwd=self.path)

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        try:
            return run_sync(["git", "remote", "get-url", remote], cwd=self.path) or None
        except RuntimeError:
            return None
