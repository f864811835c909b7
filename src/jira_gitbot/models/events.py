"""Webhook payload models.

Only the parts of GitHub's ``pull_request`` and ``issues`` payloads that the
sync engine reads are modelled; everything else is ignored.
"""

from typing import Any

from pydantic import BaseModel, Field


class GitHubUser(BaseModel):
    """A GitHub account reference."""

    login: str


class Repository(BaseModel):
    """Repository the event was delivered for."""

    name: str
    full_name: str

    @property
    def owner(self) -> str:
        """Repository owner login."""
        return self.full_name.split("/", 1)[0]


class PullRequest(BaseModel):
    """Pull request state as carried by the event."""

    number: int
    title: str = ""
    body: str | None = None
    html_url: str
    user: GitHubUser
    assignee: GitHubUser | None = None
    assignees: list[GitHubUser] = Field(default_factory=list)
    requested_reviewers: list[GitHubUser] = Field(default_factory=list)

    @property
    def author(self) -> str:
        """Login of the PR author."""
        return self.user.login

    @property
    def primary_assignee(self) -> str | None:
        """Login of the primary assignee, falling back to the first assignee."""
        if self.assignee is not None:
            return self.assignee.login
        if self.assignees:
            return self.assignees[0].login
        return None

    @property
    def reviewer_logins(self) -> list[str]:
        """Logins of requested reviewers (users only, teams are not modelled)."""
        return [r.login for r in self.requested_reviewers]


class Installation(BaseModel):
    """GitHub App installation reference."""

    id: int


class PullRequestEvent(BaseModel):
    """A ``pull_request`` webhook event."""

    action: str
    pull_request: PullRequest
    repository: Repository
    changes: dict[str, Any] = Field(default_factory=dict)
    assignee: GitHubUser | None = None
    installation: Installation | None = None

    @property
    def title_changed(self) -> bool:
        return "title" in self.changes

    @property
    def body_changed(self) -> bool:
        return "body" in self.changes

    @property
    def previous_body(self) -> str:
        """Body before an ``edited`` event, empty when unknown."""
        return (self.changes.get("body") or {}).get("from") or ""


class Issue(BaseModel):
    number: int
    title: str = ""
    html_url: str = ""


class IssueEvent(BaseModel):
    """An ``issues`` webhook event."""

    action: str
    issue: Issue
    repository: Repository
