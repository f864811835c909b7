"""Keep GitHub pull requests in sync with linked Jira issues."""

__version__ = "0.1.0"
