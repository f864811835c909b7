"""Configuration service for loading .github/jira.yml."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

from ..models.jira_config import JiraConfig, RepoConfig

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and caching a repository's Jira configuration.

    Configuration can come from a local file or from text fetched out of the
    repository itself. Any problem loading it falls back to the unconfigured
    default and records the error, so a broken file never fails an event.
    """

    CONFIG_FILE = ".github/jira.yml"

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the config service.

        Args:
            config_path: Optional local path to a jira.yml file
        """
        self.config_path = config_path
        self._config: RepoConfig | None = None
        self._config_error: str | None = None

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        """Get the config error message if any."""
        return self._config_error

    def get_config(self) -> RepoConfig:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_file()
        return self._config

    def get_jira_config(self) -> JiraConfig:
        """Convenience method to get the jira section."""
        return self.get_config().jira

    def load_text(self, text: str | None, source: str = CONFIG_FILE) -> RepoConfig:
        """Parse configuration from YAML text and cache it."""
        self._config_error = None
        self._config = self._parse(text, source)
        return self._config

    async def load_from_repository(
        self,
        github: GitHubClient,
        owner: str,
        repo: str,
        path: str = CONFIG_FILE,
    ) -> RepoConfig:
        """Fetch the configuration file from the repository and cache it."""
        text = await github.get_file_contents(owner, repo, path)
        if text is None:
            logger.debug("No %s found in %s/%s, using defaults", path, owner, repo)
            self._config_error = None
            self._config = RepoConfig.default()
            return self._config
        return self.load_text(text, f"{owner}/{repo}:{path}")

    def _load_file(self) -> RepoConfig:
        """Load configuration from the local file or return default."""
        self._config_error = None

        if self.config_path is None or not self.config_path.exists():
            logger.debug("No %s found, using defaults", self.config_path or self.CONFIG_FILE)
            return RepoConfig.default()

        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            self._config_error = f"Error reading {self.config_path}: {e}"
            logger.warning(self._config_error)
            return RepoConfig.default()

        return self._parse(text, str(self.config_path))

    def _parse(self, text: str | None, source: str) -> RepoConfig:
        try:
            data = yaml.safe_load(text or "")
        except yaml.YAMLError as e:
            self._config_error = f"Invalid YAML in {source}: {e}"
            logger.warning(self._config_error)
            return RepoConfig.default()

        if data is None:
            logger.debug("%s is empty, using defaults", source)
            return RepoConfig.default()

        if not isinstance(data, dict):
            self._config_error = f"{source} must contain a mapping"
            logger.warning(self._config_error)
            return RepoConfig.default()

        try:
            config = RepoConfig(**data)
        except ValidationError as e:
            self._config_error = f"Error loading {source}: {e}"
            logger.warning(self._config_error)
            return RepoConfig.default()

        logger.info(
            "Loaded %s (project=%s, host=%s)",
            source,
            config.jira.project_key or "<none>",
            config.jira.host or "<none>",
        )
        return config
