"""Pull request <-> Jira reconciliation."""

from .engine import SYNC_COMMENT_PREFIX, JiraSyncEngine, build_sync_comment
from .markdown import markdown_to_jira
from .store import (
    AssociationStore,
    GitHubMetadataStore,
    InMemoryAssociationStore,
    PullRequestRef,
)
from .title_parser import ParsedTitle, parse_title
from .user_mapper import UserMapper

__all__ = [
    "SYNC_COMMENT_PREFIX",
    "AssociationStore",
    "GitHubMetadataStore",
    "InMemoryAssociationStore",
    "JiraSyncEngine",
    "ParsedTitle",
    "PullRequestRef",
    "UserMapper",
    "build_sync_comment",
    "markdown_to_jira",
    "parse_title",
]
