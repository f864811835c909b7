"""Jira REST API access."""

from .client import AmbiguousUserError, JiraClient, JiraClientError, JiraNotFoundError

__all__ = [
    "AmbiguousUserError",
    "JiraClient",
    "JiraClientError",
    "JiraNotFoundError",
]
