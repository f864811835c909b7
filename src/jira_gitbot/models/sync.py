"""Result models for PR <-> Jira reconciliation."""

from dataclasses import dataclass, field
from enum import Enum

from .jira import IssueDetail


class LinkStatus(str, Enum):
    """Outcome of title reconciliation for one event."""

    UNCHANGED = "unchanged"  # Detected key equals cached key, nothing to do
    LINKED = "linked"  # New remote link created
    ALREADY_LINKED = "already_linked"  # Remote link for this PR already existed
    LINK_FAILED = "link_failed"  # Issue found but link mutation failed
    NOT_FOUND = "not_found"  # Detected key could not be resolved in Jira
    NO_ISSUE = "no_issue"  # Title carries no issue key


@dataclass
class TitleReconciliation:
    """Result of reconciling a PR title against the cached association."""

    issue_key: str
    description: str
    status: LinkStatus
    detail: IssueDetail | None = None  # Set when the issue was fetched successfully

    @property
    def can_sync_details(self) -> bool:
        """Whether detail sync should run after this reconciliation."""
        return bool(self.issue_key) and self.detail is not None


@dataclass
class SyncResult:
    """Result of handling one webhook event."""

    event: str
    handled: bool = True  # False when ignored or the repo is not configured
    issue_key: str = ""
    link_status: LinkStatus | None = None
    comments: list[str] = field(default_factory=list)  # Comments posted on GitHub
    errors: list[str] = field(default_factory=list)  # Contained failures

    @property
    def has_errors(self) -> bool:
        """Whether any sync action failed."""
        return len(self.errors) > 0

    @property
    def comment_count(self) -> int:
        return len(self.comments)
