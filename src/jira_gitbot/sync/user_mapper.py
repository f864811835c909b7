"""Map GitHub logins to Jira identities and back."""

from collections.abc import Mapping


class UserMapper:
    """Bidirectional lookup over the configured ``userMap`` table.

    The forward direction assumes identical usernames when a login is not
    mapped. The reverse direction never does: an arbitrary Jira identity must
    not be treated as a GitHub login unless the table says so.
    """

    def __init__(self, user_map: Mapping[str, str] | None = None) -> None:
        self._user_map: dict[str, str] = dict(user_map or {})

    def to_jira_user(self, login: str) -> str:
        """Jira identity for a login, or the login itself when unmapped."""
        return self._user_map.get(login) or login

    def mapped_jira_user(self, login: str) -> str | None:
        """Jira identity for a login, or None when unmapped."""
        return self._user_map.get(login) or None

    def to_github_user(self, identity: str | None) -> str | None:
        """First login mapped to ``identity``, or None."""
        if not identity:
            return None
        for login, mapped in self._user_map.items():
            if mapped == identity:
                return login
        return None
