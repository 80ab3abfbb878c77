# src/jstrack/integrations/git.py
"""
Git integration for jstrack.

Keeps the side-car data directory in sync with its remote and works out
which project the user is currently in.
"""
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from jstrack.shared.git_operations import GitRepository

logger = logging.getLogger(__name__)

_REPO_NAME_RE = re.compile(r"[/:]([^/:]+?)(?:\.git)?/?$")


@dataclass
class SyncResult:
    """What happened when pushing a save to the data repository."""
    committed: bool = False
    pushed: bool = False
    message: Optional[str] = None
    error: Optional[str] = None


class DataRepoSync:
    """Clone/pull before load, commit/push after save."""

    def __init__(self, data_dir: Union[str, Path], remote_url: Optional[str] = None):
        self.repo = GitRepository(data_dir)
        self.remote_url = remote_url

    @property
    def path(self) -> Path:
        return self.repo.path

    def ensure_repo(self) -> bool:
        """Clone if the data directory is missing, pull if it is a checkout."""
        try:
            if not self.path.exists():
                if not self.remote_url:
                    logger.warning("No knowledge repository configured, skipping clone")
                    return False
                logger.info(f"Cloning knowledge base from {self.remote_url}")
                self.repo.clone(self.remote_url)
                return True

            if self.repo.is_repo():
                self.repo.pull()
                return True

            logger.debug(f"{self.path} is not a git checkout, skipping pull")
            return False

        except RuntimeError as e:
            logger.warning(f"Knowledge base sync failed: {e}")
            return False

    def commit_and_push(self, filename: str, message: str) -> SyncResult:
        """Commit `filename` if it changed and push; push failure is not fatal."""
        result = SyncResult(message=message)

        try:
            if not self.repo.is_repo():
                logger.info(f"Initializing git repository in {self.path}")
                self.repo.init()
                self.repo.add(".")
                self.repo.commit("feat: initial knowledge base")

            self.repo.add(filename)
            if filename not in self.repo.status():
                logger.debug("No changes to commit")
                return result

            self.repo.commit(message)
            result.committed = True
            logger.info(f"Committed: {message}")
        except RuntimeError as e:
            logger.warning(f"Git operations skipped: {e}")
            result.error = str(e)
            return result

        try:
            self.repo.push()
            result.pushed = True
        except RuntimeError as e:
            logger.warning(f"Could not push to remote: {e}")
            result.error = str(e)

        return result


def repo_name_from_url(remote_url: str) -> Optional[str]:
    """'git@github.com:me/app.git' -> 'app'."""
    match = _REPO_NAME_RE.search(remote_url.strip())
    return match.group(1) if match else None


def get_current_project_name(cwd: Optional[Union[str, Path]] = None) -> str:
    """Project for the working directory: git remote, then package.json, then folder name."""
    cwd = Path(cwd or Path.cwd())

    remote = GitRepository(cwd).remote_url()
    if remote:
        name = repo_name_from_url(remote)
        if name:
            return name

    package_json = cwd / "package.json"
    if package_json.exists():
        try:
            with open(package_json, 'r', encoding='utf-8') as f:
                name = json.load(f).get('name')
            if name:
                return name
        except (OSError, ValueError, AttributeError) as e:
            logger.debug(f"Could not read {package_json}: {e}")

    return cwd.resolve().name
