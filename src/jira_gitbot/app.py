"""Event dispatch: route GitHub webhook events to the sync engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .jira.client import JiraClient
from .logging import log_event
from .models import IssueEvent, PullRequestEvent, SyncResult
from .services.config_service import ConfigService
from .sync.engine import JiraSyncEngine
from .sync.store import AssociationStore, GitHubMetadataStore

if TYPE_CHECKING:
    from .config import Settings
    from .github.client import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "jira-gitbot"

# pull_request action -> engine handler name
PULL_REQUEST_HANDLERS: dict[str, str] = {
    "opened": "handle_pull_request_change",
    "edited": "handle_pull_request_change",
    "assigned": "handle_assigned",
    "review_requested": "handle_reviewers_changed",
    "review_request_removed": "handle_reviewers_changed",
}

ISSUE_HANDLERS: dict[str, str] = {
    "opened": "handle_issue_opened",
}

HANDLERS: dict[str, dict[str, str]] = {
    "pull_request": PULL_REQUEST_HANDLERS,
    "issues": ISSUE_HANDLERS,
}


def is_supported(event_name: str, action: str | None) -> bool:
    """Whether an event/action pair has a handler."""
    return (action or "") in HANDLERS.get(event_name, {})


def metadata_namespace(payload: dict[str, Any]) -> str:
    """Namespace for hidden PR metadata (the app installation id when known)."""
    installation = payload.get("installation") or {}
    if installation.get("id") is not None:
        return str(installation["id"])
    return DEFAULT_NAMESPACE


async def handle_event(
    event_name: str,
    payload: dict[str, Any],
    settings: Settings,
    github: GitHubClient,
    config_service: ConfigService | None = None,
    store: AssociationStore | None = None,
) -> SyncResult:
    """Handle one delivered webhook event.

    Args:
        event_name: GitHub event name (X-GitHub-Event header)
        payload: Decoded event payload
        settings: Process settings (Jira credentials, config path)
        github: Authenticated GitHub client
        config_service: Preloaded configuration; fetched from the repo if None
        store: Association store; hidden PR metadata if None

    Returns:
        SyncResult describing what was done
    """
    action = payload.get("action")
    log_event(event_name, action, payload, settings.payload_dump_dir)
    label = f"{event_name}.{action}"

    if not is_supported(event_name, action):
        logger.debug("Ignoring unsupported event %s", label)
        return SyncResult(event=label, handled=False)

    repository = payload.get("repository") or {}
    full_name = repository.get("full_name", "")
    owner, _, repo = full_name.partition("/")

    if config_service is None:
        config_service = ConfigService()
        await config_service.load_from_repository(github, owner, repo, settings.config_path)
    jira_config = config_service.get_jira_config()

    if not jira_config.host:
        logger.warning("No Jira host defined for %s", repository.get("name", full_name))
        return SyncResult(event=label, handled=False)
    if not jira_config.project_key:
        logger.warning("No Jira projectKey defined for %s", repository.get("name", full_name))
        return SyncResult(event=label, handled=False)
    if not settings.jira_user:
        logger.warning("JIRA_USER is not set; Jira requests will not be authenticated")

    if store is None:
        store = GitHubMetadataStore(github, metadata_namespace(payload))

    async with JiraClient.from_config(jira_config, settings.jira_user, settings.jira_pass) as jira:
        engine = JiraSyncEngine(jira_config, jira, github, store)
        handler = getattr(engine, HANDLERS[event_name][action])
        if event_name == "issues":
            event: IssueEvent | PullRequestEvent = IssueEvent.model_validate(payload)
        else:
            event = PullRequestEvent.model_validate(payload)
        result = await handler(event)

    logger.info(
        "%s handled=%s issue=%s comments=%d errors=%d",
        label,
        result.handled,
        result.issue_key or "<none>",
        result.comment_count,
        len(result.errors),
    )
    return result
