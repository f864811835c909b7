"""Snapshots of Jira REST resources used by the sync engine."""

from dataclasses import dataclass, field
from typing import Any


def user_identity(data: dict[str, Any] | None) -> str | None:
    """Return the identity used for user mapping (username, else account id)."""
    if not data:
        return None
    return data.get("name") or data.get("accountId") or None


@dataclass
class JiraUser:
    """A Jira user as returned by the user lookup endpoints."""

    name: str | None = None
    account_id: str | None = None
    display_name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "JiraUser":
        return cls(
            name=data.get("name"),
            account_id=data.get("accountId"),
            display_name=data.get("displayName") or data.get("name") or "",
        )

    @property
    def identity(self) -> str | None:
        return self.name or self.account_id

    def to_payload(self) -> dict[str, str]:
        """Body for the assignee endpoint (server uses name, cloud uses accountId)."""
        payload: dict[str, str] = {}
        if self.name:
            payload["name"] = self.name
        if self.account_id:
            payload["accountId"] = self.account_id
        return payload


@dataclass
class RemoteLink:
    """A remote link on a Jira issue."""

    url: str
    title: str = ""
    self_url: str = ""  # REST handle, used for deletion

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteLink":
        obj = data.get("object") or {}
        return cls(
            url=obj.get("url") or "",
            title=obj.get("title") or "",
            self_url=data.get("self") or "",
        )


@dataclass
class IssueComment:
    """A comment on a Jira issue."""

    id: str
    body: str
    author: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "IssueComment":
        return cls(
            id=str(data.get("id", "")),
            body=data.get("body") or "",
            author=data.get("author") or {},
        )

    def is_authored_by(self, username: str) -> bool:
        """Whether the comment author matches the given username or email."""
        if not username:
            return False
        return username in (
            self.author.get("name"),
            self.author.get("emailAddress"),
            self.author.get("accountId"),
        )


@dataclass
class IssueDetail:
    """Read-only snapshot of an issue, fetched fresh for every event."""

    key: str
    id: str = ""
    assignee: str | None = None  # identity used for user mapping
    reviewers: list[dict[str, Any]] = field(default_factory=list)  # raw field entries
    comments: list[IssueComment] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any], reviewer_field: str = "") -> "IssueDetail":
        fields = data.get("fields") or {}
        assignee = fields.get("assignee")
        raw_reviewers = fields.get(reviewer_field) if reviewer_field else None
        comments = (fields.get("comment") or {}).get("comments") or []
        return cls(
            key=data.get("key", ""),
            id=str(data.get("id", "")),
            assignee=user_identity(assignee),
            reviewers=[r for r in raw_reviewers or [] if isinstance(r, dict)],
            comments=[IssueComment.from_api(c) for c in comments],
        )

    @property
    def reviewer_identities(self) -> list[str]:
        """Identities of the reviewers in the reviewer field."""
        identities = []
        for entry in self.reviewers:
            identity = user_identity(entry)
            if identity:
                identities.append(identity)
        return identities
