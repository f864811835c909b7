"""Shared fixtures and payload builders."""

from typing import Any

import pytest

from jira_gitbot.models import JiraConfig

PR_URL = "https://github.com/acme/widgets/pull/1"


def user(login: str) -> dict[str, Any]:
    return {"login": login}


def pr_payload(
    action: str = "opened",
    title: str = "TEST-7: fix bug",
    body: str | None = "Description",
    number: int = 1,
    author: str = "octocat",
    assignee: str | None = None,
    reviewers: tuple[str, ...] = (),
    changes: dict[str, Any] | None = None,
    installation_id: int | None = 42,
) -> dict[str, Any]:
    """Build a minimal ``pull_request`` webhook payload."""
    payload: dict[str, Any] = {
        "action": action,
        "pull_request": {
            "number": number,
            "title": title,
            "body": body,
            "html_url": f"https://github.com/acme/widgets/pull/{number}",
            "user": user(author),
            "assignee": user(assignee) if assignee else None,
            "assignees": [user(assignee)] if assignee else [],
            "requested_reviewers": [user(r) for r in reviewers],
        },
        "repository": {"name": "widgets", "full_name": "acme/widgets"},
        "changes": changes or {},
    }
    if installation_id is not None:
        payload["installation"] = {"id": installation_id}
    return payload


def issue_payload(action: str = "opened", number: int = 9) -> dict[str, Any]:
    """Build a minimal ``issues`` webhook payload."""
    return {
        "action": action,
        "issue": {
            "number": number,
            "title": "Something broke",
            "html_url": f"https://github.com/acme/widgets/issues/{number}",
        },
        "repository": {"name": "widgets", "full_name": "acme/widgets"},
    }


@pytest.fixture
def jira_config() -> JiraConfig:
    """A fully configured repository."""
    return JiraConfig(
        host="jira.example.com",
        projectKey="TEST",
        userMap={"octocat": "ocat", "janedoe": "jdoe", "rev-a": "ra", "rev-b": "rb"},
        fields={"reviewers": "customfield_100"},
    )
