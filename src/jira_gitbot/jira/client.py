"""Jira REST API client."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..models.jira import IssueDetail, JiraUser, RemoteLink
from ..models.jira_config import JiraConfig

logger = logging.getLogger(__name__)


class JiraClientError(Exception):
    """Non-2xx response or transport failure from Jira."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"{status_code}: {body}")


class JiraNotFoundError(JiraClientError):
    """Resource not found (404)."""

    pass


class AmbiguousUserError(Exception):
    """A user search matched zero or several Jira users."""

    def __init__(self, query: str, matches: int) -> None:
        self.query = query
        self.matches = matches
        super().__init__(f"Expected exactly one Jira user for '{query}', found {matches}")


class JiraClient:
    """Async Jira REST API client.

    Routes are relative to ``{protocol}://{host}/rest/api/{apiVersion}/``;
    absolute URLs under the same host (such as the ``self`` handle of a remote
    link) are used as-is. Basic auth and JSON headers are applied to every
    request.
    """

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        api_version: str = "latest",
    ) -> None:
        """Initialize the Jira client.

        Args:
            url: Base URL of the Jira instance (e.g. https://jira.example.com)
            username: Service account username
            password: Service account password or API token
            api_version: REST API version segment
        """
        self.url = url.rstrip("/")
        self.username = username
        self.api_version = api_version
        self._api_url = f"{self.url}/rest/api/{api_version}"
        self._client = httpx.AsyncClient(
            auth=(username, password),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=30.0,
        )

    @classmethod
    def from_config(cls, config: JiraConfig, username: str, password: str) -> JiraClient:
        """Create a client for a repository's Jira configuration."""
        return cls(config.url, username, password, config.api_version)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> JiraClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def resolve_url(self, route: str) -> str:
        """Turn a route or absolute URL into a request URL."""
        if route.startswith(self.url):
            return route
        return f"{self._api_url}/{route.lstrip('/')}"

    async def fetch(
        self,
        route: str,
        method: str = "GET",
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the parsed JSON body.

        Returns:
            Parsed JSON, or None for 204 responses

        Raises:
            JiraNotFoundError: 404 response
            JiraClientError: Any other non-2xx response or transport failure
        """
        url = self.resolve_url(route)
        logger.debug("Jira %s %s: params=%s", method, url, params)

        start_time = time.monotonic()
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("Jira %s %s failed after %.0fms: %s", method, url, elapsed_ms, e)
            raise JiraClientError(0, str(e)) from e

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if response.status_code == 404:
            logger.debug("Jira %s %s: 404 Not Found (%.0fms)", method, url, elapsed_ms)
            raise JiraNotFoundError(404, response.text)
        if not response.is_success:
            logger.error(
                "Jira %s %s: HTTP %d (%.0fms)", method, url, response.status_code, elapsed_ms
            )
            raise JiraClientError(response.status_code, response.text)

        logger.info("Jira %s %s: %d (%.0fms)", method, url, response.status_code, elapsed_ms)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise JiraClientError(response.status_code, f"Invalid JSON response: {e}") from e

    # --- Links for humans ---

    def browse_url(self, issue_key: str) -> str:
        return f"{self.url}/browse/{issue_key}"

    def issue_link_md(self, issue_key: str) -> str:
        """Markdown link to an issue, for GitHub comments."""
        return f"[{issue_key}]({self.browse_url(issue_key)})"

    # --- Issues ---

    async def get_issue(self, issue_key: str, reviewer_field: str = "") -> IssueDetail:
        """Fetch an issue snapshot.

        Raises:
            JiraNotFoundError: The issue does not exist or is not visible
        """
        data = await self.fetch(f"issue/{issue_key}")
        return IssueDetail.from_api(data or {}, reviewer_field)

    async def update_fields(self, issue_key: str, fields: dict[str, Any]) -> None:
        await self.fetch(f"issue/{issue_key}", method="PUT", json={"fields": fields})

    async def assign_issue(self, issue_key: str, user: JiraUser) -> None:
        await self.fetch(f"issue/{issue_key}/assignee", method="PUT", json=user.to_payload())

    # --- Remote links ---

    async def get_remote_links(self, issue_key: str) -> list[RemoteLink]:
        data = await self.fetch(f"issue/{issue_key}/remotelink")
        return [RemoteLink.from_api(link) for link in data or [] if isinstance(link, dict)]

    async def create_remote_link(self, issue_key: str, url: str, title: str) -> Any:
        return await self.fetch(
            f"issue/{issue_key}/remotelink",
            method="POST",
            json={"object": {"url": url, "title": title}},
        )

    async def delete_remote_link(self, link: RemoteLink) -> None:
        await self.fetch(link.self_url, method="DELETE")

    # --- Comments ---

    async def add_comment(self, issue_key: str, body: str) -> Any:
        return await self.fetch(f"issue/{issue_key}/comment", method="POST", json={"body": body})

    async def update_comment(self, issue_key: str, comment_id: str, body: str) -> Any:
        return await self.fetch(
            f"issue/{issue_key}/comment/{comment_id}", method="PUT", json={"body": body}
        )

    # --- Users ---

    async def find_user(self, username: str) -> JiraUser:
        """Exact username lookup.

        Raises:
            JiraClientError: No such user (or lookup failure)
        """
        data = await self.fetch("user", params={"username": username})
        return JiraUser.from_api(data or {})

    async def search_users(self, query: str) -> list[JiraUser]:
        data = await self.fetch("user/search", params={"query": query, "username": query})
        return [JiraUser.from_api(u) for u in data or [] if isinstance(u, dict)]

    async def resolve_user(self, identity: str) -> JiraUser:
        """Resolve an identity by exact lookup, falling back to a search.

        Raises:
            AmbiguousUserError: The search matched zero or several users
            JiraClientError: The search itself failed
        """
        try:
            return await self.find_user(identity)
        except JiraClientError:
            logger.warning("No exact match for Jira user '%s', trying search", identity)

        users = await self.search_users(identity)
        if len(users) != 1:
            logger.debug("Search for '%s' matched %d users", identity, len(users))
            raise AmbiguousUserError(identity, len(users))
        return users[0]
