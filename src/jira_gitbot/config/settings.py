"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings.

    Credentials are read from the environment (``JIRA_USER``, ``JIRA_PASS``,
    ``GITHUB_TOKEN``) so they never have to appear on the command line.
    """

    jira_user: str = Field(
        default="",
        description="Jira service account username (also the sync comment author)",
    )

    jira_pass: str = Field(
        default="",
        description="Jira service account password or API token",
    )

    github_token: str | None = Field(
        default=None,
        description="GitHub token; falls back to the gh CLI when unset",
    )

    github_api_url: str = Field(
        default="api.github.com",
        description="GitHub API host (use a custom host for Enterprise)",
    )

    config_path: str = Field(
        default=".github/jira.yml",
        description="Repository path of the Jira configuration file",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    payload_dump_dir: Path | None = Field(
        default=None,
        description="Directory for last_payload.json when logging at DEBUG",
    )

    model_config = {
        "env_prefix": "",
    }
