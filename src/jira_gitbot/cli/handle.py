"""Handle command: process one delivered webhook event."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..app import handle_event
from ..config import Settings
from ..github.client import GitHubAuthError, GitHubClient, GitHubClientError
from ..models import SyncResult
from ..services.config_service import ConfigService
from .output import error, info, success

logger = logging.getLogger(__name__)


def run_handle(
    settings: Settings,
    event_name: str,
    payload_path: Path,
    config_path: Path | None = None,
) -> int:
    """Handle a single event payload.

    Args:
        settings: Process settings
        event_name: GitHub event name (e.g. "pull_request")
        payload_path: Path to the JSON event payload
        config_path: Local jira.yml; fetched from the repository when None

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    payload = _load_payload(payload_path)
    if payload is None:
        return 1

    config_service = None
    if config_path is not None:
        config_service = ConfigService(config_path)
        config_service.get_config()
        if config_service.has_config_error:
            error(config_service.config_error or "Invalid configuration")
            return 1

    try:
        if settings.github_token:
            github = GitHubClient(settings.github_token, settings.github_api_url)
        else:
            github = GitHubClient.from_environment(settings.github_api_url)
    except GitHubAuthError as e:
        error(f"GitHub authentication failed: {e}")
        return 1

    try:
        result = asyncio.run(_handle(event_name, payload, settings, github, config_service))
    except GitHubClientError as e:
        error(f"GitHub client error: {e}")
        return 1
    except ValidationError as e:
        error(f"Invalid {event_name} payload: {e}")
        return 1

    _report(result)
    return 0 if not result.has_errors else 1


async def _handle(
    event_name: str,
    payload: dict[str, Any],
    settings: Settings,
    github: GitHubClient,
    config_service: ConfigService | None,
) -> SyncResult:
    async with github:
        return await handle_event(event_name, payload, settings, github, config_service)


def _load_payload(path: Path) -> dict[str, Any] | None:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        error(f"Failed to read payload {path}: {e}")
        return None
    if not isinstance(data, dict):
        error(f"Payload {path} must be a JSON object")
        return None
    return data


def _report(result: SyncResult) -> None:
    """Print a short summary of what the event did."""
    if not result.handled:
        info(f"{result.event}: nothing to do")
        return
    summary = f"{result.event}: issue {result.issue_key or '<none>'}"
    if result.link_status is not None:
        summary += f" ({result.link_status.value})"
    success(summary)
    for comment in result.comments:
        info(f"Commented: {comment.splitlines()[0] if comment else ''}")
    for err in result.errors:
        error(err)
