"""Data models."""

from .events import (
    GitHubUser,
    Installation,
    Issue,
    IssueEvent,
    PullRequest,
    PullRequestEvent,
    Repository,
)
from .jira import IssueComment, IssueDetail, JiraUser, RemoteLink
from .jira_config import JiraConfig, JiraFieldsConfig, RepoConfig
from .sync import LinkStatus, SyncResult, TitleReconciliation

__all__ = [
    "GitHubUser",
    "Installation",
    "Issue",
    "IssueComment",
    "IssueDetail",
    "IssueEvent",
    "JiraConfig",
    "JiraFieldsConfig",
    "JiraUser",
    "LinkStatus",
    "PullRequest",
    "PullRequestEvent",
    "RemoteLink",
    "RepoConfig",
    "Repository",
    "SyncResult",
    "TitleReconciliation",
]
