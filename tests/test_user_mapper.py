"""Tests for UserMapper."""

from jira_gitbot.sync.user_mapper import UserMapper


class TestUserMapper:
    """Tests for login <-> identity mapping."""

    def test_mapped_login(self):
        """Mapped logins return their Jira identity."""
        mapper = UserMapper({"octocat": "jdoe"})
        assert mapper.to_jira_user("octocat") == "jdoe"

    def test_unmapped_login_falls_back(self):
        """Unmapped logins are assumed to be identical in Jira."""
        mapper = UserMapper({"octocat": "jdoe"})
        assert mapper.to_jira_user("hubot") == "hubot"

    def test_strict_lookup(self):
        """The strict lookup has no fallback."""
        mapper = UserMapper({"octocat": "jdoe"})
        assert mapper.mapped_jira_user("octocat") == "jdoe"
        assert mapper.mapped_jira_user("hubot") is None

    def test_reverse_lookup(self):
        """Jira identities map back to their login."""
        mapper = UserMapper({"octocat": "jdoe", "hubot": "bot"})
        assert mapper.to_github_user("bot") == "hubot"

    def test_reverse_lookup_has_no_fallback(self):
        """An unmapped Jira identity is never used as a login."""
        mapper = UserMapper({"octocat": "jdoe"})
        assert mapper.to_github_user("someone") is None
        assert mapper.to_github_user(None) is None
        assert mapper.to_github_user("") is None

    def test_empty_map(self):
        """Without a map logins pass through and strict lookups miss."""
        mapper = UserMapper()
        assert mapper.to_jira_user("octocat") == "octocat"
        assert mapper.mapped_jira_user("octocat") is None
