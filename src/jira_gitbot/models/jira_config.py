"""Configuration models for .github/jira.yml."""

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class JiraFieldsConfig(BaseModel):
    """Custom field ids on the Jira side."""

    reviewers: str = Field(default="", description="Custom field id holding the reviewer list")


class JiraConfig(BaseModel):
    """Per-repository Jira settings.

    Every field is present and defaulted. An empty ``host`` or ``project_key``
    means the repository is not linked to Jira, which is a valid state rather
    than an error.
    """

    model_config = ConfigDict(populate_by_name=True)

    host: str = ""
    protocol: str = "https"
    project_key: str = Field(default="", alias="projectKey")
    api_version: str = Field(default="latest", alias="apiVersion")
    user_map: dict[str, str] = Field(default_factory=dict, alias="userMap")
    fields: JiraFieldsConfig = Field(default_factory=JiraFieldsConfig)

    @field_validator("host", "project_key", mode="before")
    @classmethod
    def coerce_empty(cls, v: object) -> object:
        """Treat an explicit YAML null like a missing value."""
        return "" if v is None else v

    @field_validator("protocol", "api_version", mode="before")
    @classmethod
    def use_default_when_empty(cls, v: object, info: ValidationInfo) -> object:
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        """Validate protocol is http or https."""
        if v not in ("http", "https"):
            raise ValueError(f"Invalid protocol '{v}'. Must be one of: http, https")
        return v

    @field_validator("user_map", mode="before")
    @classmethod
    def coerce_user_map(cls, v: object) -> object:
        """Allow an empty ``userMap:`` key in YAML."""
        return {} if v is None else v

    @property
    def is_configured(self) -> bool:
        """Whether both host and project key are set."""
        return bool(self.host and self.project_key)

    @property
    def url(self) -> str:
        """Base URL of the Jira instance."""
        return f"{self.protocol}://{self.host}"

    @property
    def reviewer_field(self) -> str:
        """Reviewer custom field id, empty when reviewer sync is disabled."""
        return self.fields.reviewers


class RepoConfig(BaseModel):
    """Root configuration from .github/jira.yml."""

    jira: JiraConfig = Field(default_factory=JiraConfig)

    @field_validator("jira", mode="before")
    @classmethod
    def coerce_jira(cls, v: object) -> object:
        """Allow an empty ``jira:`` section."""
        return {} if v is None else v

    @classmethod
    def default(cls) -> "RepoConfig":
        """Return the unconfigured default."""
        return cls()
