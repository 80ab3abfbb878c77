# src/jstrack/api/client.py
"""
GitHub REST client used to validate projects and commits before applying.

Validation is advisory: when GitHub cannot be reached or rate-limits us the
result is marked skip_check and the caller proceeds as if the lookup passed.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

GITHUB_WEB_URL = "https://github.com"


def resolve_repo_slug(project: str, default_user: Optional[str] = None) -> Tuple[Optional[str], str]:
    """'owner/repo' -> ('owner', 'repo'); 'repo' -> (default_user, 'repo')."""
    if "/" in project:
        owner, repo = project.split("/", 1)
        return owner, repo
    return default_user, project


def commit_url(project: str, commit: str, default_user: Optional[str] = None) -> Optional[str]:
    """Web URL of a commit, or None when the owner is unknown."""
    owner, repo = resolve_repo_slug(project, default_user)
    if not owner:
        return None
    return f"{GITHUB_WEB_URL}/{owner}/{repo}/commit/{commit}"


@dataclass
class ProjectValidation:
    exists: bool
    skip_check: bool = False
    full_name: Optional[str] = None


@dataclass
class CommitValidation:
    exists: bool
    skip_check: bool = False
    message: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    error: Optional[str] = None


class GitHubClient:
    def __init__(self, settings, client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.github_base_url.rstrip('/')
        self.user = settings.github_user
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "jstrack",
        }
        if settings.github_token:
            self.headers["Authorization"] = f"Bearer {settings.github_token}"
        self.client = client or httpx.AsyncClient(timeout=settings.github_timeout)

    async def _get(self, path: str) -> httpx.Response:
        """GET an API path, mapping transport and throttling failures to errors."""
        try:
            response = await self.client.get(f"{self.base_url}{path}", headers=self.headers)
        except httpx.TimeoutException:
            raise APIError("Request timeout")
        except httpx.RequestError as e:
            raise APIError(f"Request failed: {str(e)}")

        if response.status_code == 429 or (
                response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0"
        ):
            raise RateLimitError("GitHub rate limit exceeded")
        return response

    async def validate_project_exists(self, project: str) -> ProjectValidation:
        """Check that the repository exists (under the default user or as owner/repo)."""
        owner, repo = resolve_repo_slug(project, self.user)
        try:
            response = await self._get(f"/repos/{owner}/{repo}")

            if response.status_code == 200:
                return ProjectValidation(exists=True, full_name=f"{owner}/{repo}")

            if response.status_code == 404:
                return ProjectValidation(exists=False)

            logger.warning(f"Unexpected GitHub status {response.status_code} for {project}")
            return ProjectValidation(exists=False)

        except GitHubError as e:
            logger.warning(f"Could not check project {project} on GitHub: {e}")
            return ProjectValidation(exists=True, skip_check=True)

    async def validate_commit_exists(self, project: str, commit: str) -> CommitValidation:
        """Check that `commit` exists in the project's repository."""
        owner, repo = resolve_repo_slug(project, self.user)
        try:
            response = await self._get(f"/repos/{owner}/{repo}/commits/{commit}")

            if response.status_code == 200:
                data: Dict[str, Any] = response.json()
                details = data.get("commit", {})
                author = details.get("author") or {}
                return CommitValidation(
                    exists=True,
                    message=details.get("message"),
                    author=author.get("name"),
                    date=author.get("date")
                )

            if response.status_code in (404, 422):
                return CommitValidation(exists=False, error="Commit not found")

            return CommitValidation(exists=False, error=f"Error checking commit: HTTP {response.status_code}")

        except (GitHubError, ValueError) as e:
            logger.warning(f"Could not check commit {commit} on GitHub: {e}")
            return CommitValidation(exists=True, skip_check=True)

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


# Error classes
class GitHubError(Exception):
    """Base exception for GitHub API errors."""
    pass

class RateLimitError(GitHubError):
    """Raised when rate limit is exceeded."""
    pass

class APIError(GitHubError):
    """Raised for transport and general API errors."""
    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)
