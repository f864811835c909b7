"""GitHub REST API client."""

from __future__ import annotations

import base64
import logging
import os
import subprocess
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    pass


class GitHubAuthError(GitHubClientError):
    """Authentication failed."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Resource not found."""

    pass


class GitHubForbiddenError(GitHubClientError):
    """Permission denied."""

    pass


class GitHubRateLimitError(GitHubClientError):
    """Rate limit exceeded."""

    pass


class GitHubClient:
    """Async GitHub REST API client.

    Provides a thin wrapper around the REST endpoints the bot needs:
    - Issue/PR comments, assignees and reviewer requests
    - Issue body reads/writes (for hidden metadata)
    - Repository file contents (for per-repo configuration)
    - Token authentication (from env var or gh CLI)
    - Enterprise support via custom base_url
    """

    def __init__(self, token: str, base_url: str = "api.github.com"):
        """Initialize the GitHub client.

        Args:
            token: GitHub token (personal access token or installation token)
            base_url: API base URL (default: api.github.com, use custom for Enterprise)
        """
        self.token = token
        self.base_url = base_url
        self._api_url = f"https://{base_url}"
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=30.0,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @classmethod
    def from_environment(cls, base_url: str = "api.github.com") -> GitHubClient:
        """Create a client from environment variables or gh CLI.

        Tries in order:
        1. GITHUB_TOKEN environment variable
        2. gh auth token (if gh CLI is installed and authenticated)

        Raises:
            GitHubAuthError: If no token is available
        """
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            logger.debug("Using token from GITHUB_TOKEN environment variable")
            return cls(token, base_url)

        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                check=True,
            )
            token = result.stdout.strip()
            if token:
                logger.debug("Using token from gh CLI")
                return cls(token, base_url)
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("gh CLI not available or not authenticated")

        logger.error("No GitHub token found")
        raise GitHubAuthError(
            "No GitHub token found. Either:\n"
            "  - Set GITHUB_TOKEN environment variable\n"
            "  - Run 'gh auth login' to authenticate with GitHub CLI"
        )

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a REST request and return the decoded JSON body.

        Returns:
            Parsed JSON, or None for empty (204) responses

        Raises:
            GitHubAuthError: Authentication failed
            GitHubNotFoundError: Resource not found
            GitHubForbiddenError: Permission denied
            GitHubRateLimitError: Rate limit exceeded
            GitHubClientError: Other errors
        """
        url = f"{self._api_url}/{path.lstrip('/')}"
        label = f"{method} /{path.lstrip('/')}"
        logger.debug("GitHub %s: params=%s", label, params)

        start_time = time.monotonic()
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("GitHub %s failed after %.0fms: %s", label, elapsed_ms, e)
            raise GitHubClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if response.status_code == 401:
            logger.error("GitHub %s: 401 Unauthorized (%.0fms)", label, elapsed_ms)
            raise GitHubAuthError("Authentication failed. Check your GITHUB_TOKEN.")
        if response.status_code == 403:
            if "rate limit" in response.text.lower():
                logger.error("GitHub %s: 403 Rate Limited (%.0fms)", label, elapsed_ms)
                raise GitHubRateLimitError("GitHub API rate limit exceeded. Try again later.")
            logger.error("GitHub %s: 403 Forbidden (%.0fms)", label, elapsed_ms)
            raise GitHubForbiddenError(
                "Permission denied. Check that your token has the required permissions:\n"
                "  - issues: write (comments, assignees, metadata)\n"
                "  - pull_requests: write (reviewer requests)\n"
                "  - contents: read (configuration)"
            )
        if response.status_code == 404:
            logger.error("GitHub %s: 404 Not Found (%.0fms)", label, elapsed_ms)
            raise GitHubNotFoundError(f"Resource not found: {path}")

        if response.status_code >= 400:
            logger.error("GitHub %s: HTTP %d (%.0fms)", label, response.status_code, elapsed_ms)
            raise GitHubClientError(f"HTTP {response.status_code}: {response.text}")

        logger.info("GitHub %s: %d (%.0fms)", label, response.status_code, elapsed_ms)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("GitHub %s: Invalid JSON response (%.0fms)", label, elapsed_ms)
            raise GitHubClientError(f"Invalid JSON response: {e}") from e

    # --- Issues and pull requests ---

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get an issue or pull request (issues API view)."""
        return await self.request("GET", f"repos/{owner}/{repo}/issues/{number}")

    async def update_issue(
        self, owner: str, repo: str, number: int, **fields: Any
    ) -> dict[str, Any]:
        """Patch fields (e.g. body) of an issue or pull request."""
        return await self.request("PATCH", f"repos/{owner}/{repo}/issues/{number}", json=fields)

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        """Create a comment on an issue or pull request."""
        return await self.request(
            "POST", f"repos/{owner}/{repo}/issues/{number}/comments", json={"body": body}
        )

    async def add_assignees(
        self, owner: str, repo: str, number: int, logins: list[str]
    ) -> dict[str, Any]:
        """Add assignees to an issue or pull request."""
        return await self.request(
            "POST", f"repos/{owner}/{repo}/issues/{number}/assignees", json={"assignees": logins}
        )

    async def request_reviewers(
        self, owner: str, repo: str, number: int, logins: list[str]
    ) -> dict[str, Any]:
        """Request reviews from the given users on a pull request."""
        return await self.request(
            "POST",
            f"repos/{owner}/{repo}/pulls/{number}/requested_reviewers",
            json={"reviewers": logins},
        )

    async def get_requested_reviewers(self, owner: str, repo: str, number: int) -> list[str]:
        """Get the logins of users currently requested to review a pull request."""
        data = await self.request("GET", f"repos/{owner}/{repo}/pulls/{number}/requested_reviewers")
        return [u["login"] for u in (data or {}).get("users", []) if u.get("login")]

    # --- Repository contents ---

    async def get_file_contents(self, owner: str, repo: str, path: str) -> str | None:
        """Get a file's decoded text from the default branch, None if missing."""
        try:
            data = await self.request("GET", f"repos/{owner}/{repo}/contents/{path}")
        except GitHubNotFoundError:
            return None
        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8")
        return content
