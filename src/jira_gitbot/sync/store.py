"""Association store: the one remembered Jira key per pull request."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)

ISSUE_KEY = "jira-issue"


@dataclass(frozen=True)
class PullRequestRef:
    """Identifies a pull request within a repository."""

    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


class AssociationStore(Protocol):
    """Interface for association storage.

    ``get`` returns an empty string when nothing has been stored; an empty
    string is also a valid stored value meaning "linked to nothing".
    """

    async def get(self, ref: PullRequestRef) -> str:
        """Read the cached issue key for a pull request."""
        ...

    async def set(self, ref: PullRequestRef, issue_key: str) -> None:
        """Overwrite the cached issue key for a pull request."""
        ...


class InMemoryAssociationStore:
    """Dict-backed store, for tests and single-process use."""

    def __init__(self, initial: dict[PullRequestRef, str] | None = None) -> None:
        self.data: dict[PullRequestRef, str] = dict(initial or {})

    async def get(self, ref: PullRequestRef) -> str:
        return self.data.get(ref, "")

    async def set(self, ref: PullRequestRef, issue_key: str) -> None:
        self.data[ref] = issue_key


METADATA_MARKER = "probot"


def _metadata_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(rf"\n\n<!-- {re.escape(marker)} = (.*) -->")


def read_metadata(body: str | None, marker: str = METADATA_MARKER) -> dict[str, Any]:
    """Parse the hidden metadata block out of an issue body."""
    match = _metadata_pattern(marker).search(body or "")
    if not match:
        return {}
    try:
        data = json.loads(match.group(1))
    except ValueError:
        logger.warning("Ignoring unreadable metadata block")
        return {}
    return data if isinstance(data, dict) else {}


def strip_metadata(body: str | None, marker: str = METADATA_MARKER) -> str:
    """Remove the hidden metadata block from an issue body."""
    return _metadata_pattern(marker).sub("", body or "")


def write_metadata(body: str | None, data: dict[str, Any], marker: str = METADATA_MARKER) -> str:
    """Return ``body`` with its metadata block replaced by ``data``."""
    return f"{strip_metadata(body, marker)}\n\n<!-- {marker} = {json.dumps(data)} -->"


class GitHubMetadataStore:
    """Store the association inside the pull request body.

    The value lives in an HTML comment appended to the body (invisible when
    rendered), namespaced so that several apps can share the block. The
    layout matches the one used by probot-metadata.
    """

    def __init__(
        self,
        github: GitHubClient,
        namespace: str,
        marker: str = METADATA_MARKER,
    ) -> None:
        self._github = github
        self.namespace = namespace
        self.marker = marker

    async def get(self, ref: PullRequestRef) -> str:
        issue = await self._github.get_issue(ref.owner, ref.repo, ref.number)
        data = read_metadata(issue.get("body"), self.marker)
        value = (data.get(self.namespace) or {}).get(ISSUE_KEY)
        return value if isinstance(value, str) else ""

    async def set(self, ref: PullRequestRef, issue_key: str) -> None:
        issue = await self._github.get_issue(ref.owner, ref.repo, ref.number)
        body = issue.get("body")
        data = read_metadata(body, self.marker)
        data.setdefault(self.namespace, {})[ISSUE_KEY] = issue_key
        await self._github.update_issue(
            ref.owner, ref.repo, ref.number, body=write_metadata(body, data, self.marker)
        )
        logger.debug("Stored %s=%r on %s", ISSUE_KEY, issue_key, ref)
