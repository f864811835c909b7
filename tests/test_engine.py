"""Tests for the reconciliation engine."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import PR_URL, issue_payload, pr_payload

from jira_gitbot.github.client import GitHubClientError
from jira_gitbot.jira.client import AmbiguousUserError, JiraClientError, JiraNotFoundError
from jira_gitbot.models import (
    IssueComment,
    IssueDetail,
    IssueEvent,
    JiraConfig,
    JiraUser,
    LinkStatus,
    PullRequestEvent,
    RemoteLink,
    SyncResult,
)
from jira_gitbot.sync.engine import JiraSyncEngine, build_sync_comment, remote_link_title
from jira_gitbot.sync.store import InMemoryAssociationStore, PullRequestRef, write_metadata

REF = PullRequestRef("acme", "widgets", 1)
BROWSE = "https://jira.example.com/browse"


def link_md(key: str) -> str:
    return f"[{key}]({BROWSE}/{key})"


def pr_event(**kwargs) -> PullRequestEvent:
    return PullRequestEvent.model_validate(pr_payload(**kwargs))


def posted(github: AsyncMock) -> list[str]:
    """Bodies of all PR comments posted through the GitHub mock."""
    return [call.args[3] for call in github.create_comment.await_args_list]


@pytest.fixture
def jira():
    """Jira client mock; every issue exists and has no links or comments."""
    jira = AsyncMock()
    jira.username = "gitbot"
    jira.issue_link_md = MagicMock(side_effect=link_md)
    jira.get_remote_links.return_value = []
    jira.get_issue.side_effect = lambda key, field="": IssueDetail(key=key)
    return jira


@pytest.fixture
def github():
    return AsyncMock()


@pytest.fixture
def store():
    return InMemoryAssociationStore()


@pytest.fixture
def engine(jira_config, jira, github, store):
    return JiraSyncEngine(jira_config, jira, github, store)


class TestBuildSyncComment:
    """Tests for the mirrored description comment."""

    def test_header_and_body(self):
        """The comment links the PR and carries the converted body."""
        pr = pr_event(body="**Hi**").pull_request
        assert build_sync_comment(pr, "fix bug") == (
            f"Linked to GitHub PR [#1 - fix bug|{PR_URL}]\n----\n*Hi*\n"
        )

    def test_html_comment_lines_dropped(self):
        """Template hints and hidden metadata are not mirrored."""
        body = write_metadata("<!-- template hint -->\nReal text", {"42": {"jira-issue": "T-1"}})
        pr = pr_event(body=body).pull_request
        comment = build_sync_comment(pr, "x")
        assert "<!--" not in comment
        assert comment.endswith("----\nReal text\n\n")

    def test_null_body(self):
        """A PR without a body gives an empty section."""
        pr = pr_event(body=None).pull_request
        assert build_sync_comment(pr, "x").endswith("----\n\n")

    def test_remote_link_title(self):
        """The link title names the PR number and description."""
        assert remote_link_title(pr_event().pull_request, "fix bug") == "GitHub PR #1 - fix bug"


class TestOpened:
    """Tests for newly opened pull requests."""

    @pytest.mark.asyncio
    async def test_links_new_issue(self, engine, jira, github, store):
        """A key in a new PR's title links the issue and is remembered."""
        result = await engine.handle_pull_request_change(pr_event())

        jira.create_remote_link.assert_awaited_once_with(
            "TEST-7", PR_URL, "GitHub PR #1 - fix bug"
        )
        assert posted(github) == [f"Successfully linked this PR to Jira: {link_md('TEST-7')}"]
        assert store.data[REF] == "TEST-7"
        assert result.issue_key == "TEST-7"
        assert result.link_status is LinkStatus.LINKED
        assert not result.has_errors

    @pytest.mark.asyncio
    async def test_creates_sync_comment(self, engine, jira):
        """The PR description is mirrored as a Jira comment."""
        await engine.handle_pull_request_change(pr_event())

        jira.add_comment.assert_awaited_once_with(
            "TEST-7", f"Linked to GitHub PR [#1 - fix bug|{PR_URL}]\n----\nDescription\n"
        )

    @pytest.mark.asyncio
    async def test_already_linked_is_silent(self, engine, jira, github, store):
        """An existing link for this PR is not recreated or announced."""
        jira.get_remote_links.return_value = [RemoteLink(url=PR_URL, self_url="s1")]

        result = await engine.handle_pull_request_change(pr_event())

        jira.create_remote_link.assert_not_awaited()
        assert posted(github) == []
        assert result.link_status is LinkStatus.ALREADY_LINKED
        assert store.data[REF] == "TEST-7"
        jira.add_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_issue_not_found(self, engine, jira, github, store):
        """An unknown key is reported on the PR and nothing is linked."""
        jira.get_issue.side_effect = JiraNotFoundError(404)

        result = await engine.handle_pull_request_change(pr_event())

        assert posted(github) == ["The specified issue `TEST-7` could not be found in Jira."]
        assert store.data[REF] == "TEST-7"
        assert result.link_status is LinkStatus.NOT_FOUND
        jira.create_remote_link.assert_not_awaited()
        jira.add_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_title_without_key(self, engine, jira, github, store):
        """A new PR without a key gets the naming warning."""
        result = await engine.handle_pull_request_change(pr_event(title="fix bug"))

        assert posted(github) == [
            "Warning: no Jira issue is associated with this PR. "
            "Prefix the PR title with `TEST-0:`."
        ]
        assert store.data[REF] == ""
        assert result.link_status is LinkStatus.NO_ISSUE
        jira.get_issue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_link_failure_reported(self, engine, jira, github):
        """A failed link creation is reported on the PR."""
        jira.create_remote_link.side_effect = JiraClientError(500, "boom")

        result = await engine.handle_pull_request_change(pr_event())

        assert posted(github) == [
            f"Warning: failed to link this PR to {link_md('TEST-7')}, please update manually."
        ]
        assert result.link_status is LinkStatus.LINK_FAILED
        assert result.has_errors
        # Detail sync still runs against the existing issue
        jira.add_comment.assert_awaited_once()


class TestUnconfigured:
    """Tests for repositories without Jira configuration."""

    @pytest.mark.asyncio
    async def test_every_handler_is_a_no_op(self, jira, github, store):
        """Without projectKey no handler touches Jira, GitHub or the store."""
        engine = JiraSyncEngine(JiraConfig(host="jira.example.com"), jira, github, store)

        results = [
            await engine.handle_pull_request_change(pr_event()),
            await engine.handle_assigned(pr_event(action="assigned", assignee="janedoe")),
            await engine.handle_reviewers_changed(pr_event(action="review_requested")),
            await engine.handle_issue_opened(IssueEvent.model_validate(issue_payload())),
        ]

        assert all(not r.handled for r in results)
        assert jira.mock_calls == []
        assert github.mock_calls == []
        assert store.data == {}


class TestEdited:
    """Tests for edited pull requests."""

    @pytest.mark.asyncio
    async def test_title_change_moves_link(self, engine, jira, github, store):
        """Only this PR's links on the old issue are removed before linking the new one."""
        store.data[REF] = "TEST-1"
        old_links = [
            RemoteLink(url=PR_URL, self_url="s1"),
            RemoteLink(url="https://github.com/acme/widgets/pull/99", self_url="s2"),
            RemoteLink(url=PR_URL, self_url="s3"),
        ]
        jira.get_remote_links.side_effect = lambda key: old_links if key == "TEST-1" else []

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="TEST-2: new", changes={"title": {"from": "x"}})
        )

        deleted = sorted(call.args[0].self_url for call in jira.delete_remote_link.await_args_list)
        assert deleted == ["s1", "s3"]
        jira.create_remote_link.assert_awaited_once_with("TEST-2", PR_URL, "GitHub PR #1 - new")
        assert store.data[REF] == "TEST-2"
        assert result.link_status is LinkStatus.LINKED

    @pytest.mark.asyncio
    async def test_delete_failure_does_not_block_link(self, engine, jira, store):
        """A failed link removal still lets the new issue be linked."""
        store.data[REF] = "TEST-1"
        jira.get_remote_links.side_effect = lambda key: (
            [RemoteLink(url=PR_URL, self_url="s1")] if key == "TEST-1" else []
        )
        jira.delete_remote_link.side_effect = JiraClientError(500)

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="TEST-2: new", changes={"title": {"from": "x"}})
        )

        jira.create_remote_link.assert_awaited_once()
        assert result.link_status is LinkStatus.LINKED
        assert store.data[REF] == "TEST-2"

    @pytest.mark.asyncio
    async def test_link_listing_failure_on_old_issue(self, engine, jira, store):
        """Failing to list the old issue's links skips removal only."""
        store.data[REF] = "TEST-1"

        def links(key):
            if key == "TEST-1":
                raise JiraClientError(503)
            return []

        jira.get_remote_links.side_effect = links

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="TEST-2: new", changes={"title": {"from": "x"}})
        )

        jira.delete_remote_link.assert_not_awaited()
        assert result.link_status is LinkStatus.LINKED

    @pytest.mark.asyncio
    async def test_key_removed_from_title(self, engine, jira, github, store):
        """Dropping the key unlinks the old issue and warns."""
        store.data[REF] = "TEST-1"
        jira.get_remote_links.return_value = [RemoteLink(url=PR_URL, self_url="s1")]

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="fix bug", changes={"title": {"from": "TEST-1: x"}})
        )

        jira.delete_remote_link.assert_awaited_once()
        assert store.data[REF] == ""
        assert result.link_status is LinkStatus.NO_ISSUE
        assert len(posted(github)) == 1

    @pytest.mark.asyncio
    async def test_revert_after_not_found_relinks(self, engine, jira, store):
        """A key cached after a failed lookup does not block relinking."""
        store.data[REF] = "TEST-99"

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="TEST-1: back", changes={"title": {"from": "x"}})
        )

        jira.create_remote_link.assert_awaited_once_with("TEST-1", PR_URL, "GitHub PR #1 - back")
        assert result.link_status is LinkStatus.LINKED

    @pytest.mark.asyncio
    async def test_irrelevant_edit_ignored(self, engine, jira, github):
        """Edits to fields other than title and body are ignored."""
        result = await engine.handle_pull_request_change(
            pr_event(action="edited", changes={"base": {"ref": {"from": "main"}}})
        )

        assert not result.handled
        assert jira.mock_calls == []
        assert github.mock_calls == []

    @pytest.mark.asyncio
    async def test_metadata_only_edit_ignored(self, engine, jira, github):
        """A body edit that only rewrote the hidden metadata is ignored."""
        body = write_metadata("Description", {"42": {"jira-issue": "TEST-7"}})

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", body=body, changes={"body": {"from": "Description"}})
        )

        assert not result.handled
        assert jira.mock_calls == []
        assert github.mock_calls == []

    @pytest.mark.asyncio
    async def test_body_edit_updates_own_comment(self, engine, jira, github, store):
        """A body edit updates the bot's comment, not another author's."""
        store.data[REF] = "TEST-7"
        jira.get_issue.side_effect = None
        jira.get_issue.return_value = IssueDetail(
            key="TEST-7",
            comments=[
                IssueComment("c0", "Linked to GitHub PR [#1 - fix bug|x]", {"name": "someone"}),
                IssueComment("c1", "Linked to GitHub PR [#1 - fix bug|x]", {"name": "gitbot"}),
            ],
        )

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", body="New text", changes={"body": {"from": "Old"}})
        )

        assert result.link_status is LinkStatus.UNCHANGED
        jira.get_remote_links.assert_not_awaited()
        jira.update_comment.assert_awaited_once()
        issue_key, comment_id, body = jira.update_comment.await_args.args
        assert (issue_key, comment_id) == ("TEST-7", "c1")
        assert body.endswith("----\nNew text\n")
        jira.add_comment.assert_not_awaited()
        assert posted(github) == []

    @pytest.mark.asyncio
    async def test_foreign_comment_not_reused(self, engine, jira, store):
        """A matching comment by someone else leads to a new comment."""
        store.data[REF] = "TEST-7"
        jira.get_issue.side_effect = None
        jira.get_issue.return_value = IssueDetail(
            key="TEST-7",
            comments=[IssueComment("c0", "Linked to GitHub PR #1", {"name": "someone"})],
        )

        await engine.handle_pull_request_change(
            pr_event(action="edited", body="New text", changes={"body": {"from": "Old"}})
        )

        jira.update_comment.assert_not_awaited()
        jira.add_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_replayed_edit_links_once(self, engine, jira, store):
        """Redelivering the same edit does not link twice."""
        store.data[REF] = "TEST-1"
        event = pr_event(action="edited", title="TEST-2: new", changes={"title": {"from": "x"}})

        await engine.handle_pull_request_change(event)
        second = await engine.handle_pull_request_change(event)

        jira.create_remote_link.assert_awaited_once()
        assert second.link_status is LinkStatus.UNCHANGED

    @pytest.mark.asyncio
    async def test_store_read_failure(self, jira_config, jira, github):
        """When the association cannot be read nothing is changed."""
        store = AsyncMock()
        store.get.side_effect = GitHubClientError("boom")
        engine = JiraSyncEngine(jira_config, jira, github, store)

        result = await engine.handle_pull_request_change(
            pr_event(action="edited", title="TEST-2: new", changes={"title": {"from": "x"}})
        )

        assert result.has_errors
        assert jira.mock_calls == []
        store.set.assert_not_awaited()


class TestReconcileTitle:
    """Tests for the unchanged short-circuit."""

    @pytest.mark.asyncio
    async def test_unchanged_key_makes_no_calls(self, engine, jira, github, store):
        """An unchanged key makes no external calls."""
        result = SyncResult(event="pull_request.edited")

        rec = await engine.reconcile_title(REF, pr_event().pull_request, "TEST-7", result)

        assert rec.status is LinkStatus.UNCHANGED
        assert rec.issue_key == "TEST-7"
        assert rec.detail is None
        assert jira.mock_calls == []
        assert github.mock_calls == []
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_still_no_key_makes_no_calls(self, engine, jira, github):
        """A title that still has no key makes no external calls."""
        result = SyncResult(event="pull_request.edited")

        rec = await engine.reconcile_title(REF, pr_event(title="fix").pull_request, "", result)

        assert rec.status is LinkStatus.UNCHANGED
        assert jira.mock_calls == []
        assert github.mock_calls == []


class TestAssigneeSync:
    """Tests for assignee sync during detail sync and on assignment."""

    @pytest.mark.asyncio
    async def test_jira_assignee_copied_to_pr(self, engine, jira, github):
        """The Jira assignee is assigned on an unassigned PR."""
        jira.get_issue.side_effect = lambda key, field="": IssueDetail(key=key, assignee="jdoe")

        await engine.handle_pull_request_change(pr_event())

        github.add_assignees.assert_awaited_once_with("acme", "widgets", 1, ["janedoe"])

    @pytest.mark.asyncio
    async def test_unmapped_jira_assignee_ignored(self, engine, jira, github):
        """A Jira assignee with no GitHub login is skipped."""
        jira.get_issue.side_effect = lambda key, field="": IssueDetail(key=key, assignee="nobody")

        await engine.handle_pull_request_change(pr_event())

        github.add_assignees.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pr_assignee_pushed_to_jira(self, engine, jira, github):
        """The PR assignee is assigned on an unassigned issue and announced."""
        user = JiraUser(name="jdoe", display_name="Jane Doe")
        jira.resolve_user.return_value = user

        await engine.handle_pull_request_change(pr_event(assignee="janedoe"))

        jira.resolve_user.assert_awaited_once_with("jdoe")
        jira.assign_issue.assert_awaited_once_with("TEST-7", user)
        assert f"Jira ticket {link_md('TEST-7')} has been assigned to Jane Doe" in posted(github)

    @pytest.mark.asyncio
    async def test_both_assigned_left_alone(self, engine, jira, github):
        """When both sides have an assignee nothing changes."""
        jira.get_issue.side_effect = lambda key, field="": IssueDetail(key=key, assignee="ra")

        await engine.handle_pull_request_change(pr_event(assignee="janedoe"))

        jira.resolve_user.assert_not_awaited()
        github.add_assignees.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_assigned_event(self, engine, jira, github, store):
        """Assignment events set the Jira assignee."""
        store.data[REF] = "TEST-7"
        jira.resolve_user.return_value = JiraUser(name="jdoe", display_name="Jane Doe")

        result = await engine.handle_assigned(pr_event(action="assigned", assignee="janedoe"))

        jira.assign_issue.assert_awaited_once()
        assert result.issue_key == "TEST-7"
        assert result.comment_count == 1

    @pytest.mark.asyncio
    async def test_unmapped_login_used_as_is(self, engine, jira, store):
        """Logins missing from userMap are looked up directly."""
        store.data[REF] = "TEST-7"
        jira.resolve_user.return_value = JiraUser(name="hubot")

        await engine.handle_assigned(pr_event(action="assigned", assignee="hubot"))

        jira.resolve_user.assert_awaited_once_with("hubot")

    @pytest.mark.asyncio
    async def test_ambiguous_user(self, engine, jira, github, store):
        """An ambiguous lookup posts one manual update request."""
        store.data[REF] = "TEST-7"
        jira.resolve_user.side_effect = AmbiguousUserError("jdoe", 2)

        await engine.handle_assigned(pr_event(action="assigned", assignee="janedoe"))

        jira.assign_issue.assert_not_awaited()
        assert posted(github) == [
            f"Could not update assignee for {link_md('TEST-7')}, user mapping required for "
            "`janedoe`. Please update manually."
        ]

    @pytest.mark.asyncio
    async def test_assign_failure(self, engine, jira, github, store):
        """A failed assignment is reported on the PR."""
        store.data[REF] = "TEST-7"
        jira.resolve_user.return_value = JiraUser(name="jdoe")
        jira.assign_issue.side_effect = JiraClientError(400, "bad")

        result = await engine.handle_assigned(pr_event(action="assigned", assignee="janedoe"))

        assert posted(github) == [
            f"Warning: failed to update assignee for {link_md('TEST-7')}, please update manually."
        ]
        assert result.has_errors

    @pytest.mark.asyncio
    async def test_assigned_without_association(self, engine, jira):
        """Without a linked issue assignment events do nothing."""
        await engine.handle_assigned(pr_event(action="assigned", assignee="janedoe"))

        jira.resolve_user.assert_not_awaited()


class TestReviewerSync:
    """Tests for additive reviewer sync."""

    @pytest.mark.asyncio
    async def test_union_in_both_directions(self, engine, jira, github):
        """Jira reviewers missing from the PR are requested."""
        detail = IssueDetail(key="TEST-7", reviewers=[{"name": "ra"}, {"name": "rb"}])
        pr = pr_event(reviewers=("rev-b", "rev-c")).pull_request
        result = SyncResult(event="x")

        await engine.sync_reviewers(REF, pr, detail, result)

        github.request_reviewers.assert_awaited_once_with("acme", "widgets", 1, ["rev-a"])
        jira.update_fields.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pr_reviewers_added_to_jira(self, engine, jira, github):
        """PR reviewers missing from Jira are added to the field."""
        detail = IssueDetail(key="TEST-7", reviewers=[{"name": "ra"}])
        pr = pr_event(reviewers=("rev-a", "rev-b")).pull_request

        await engine.sync_reviewers(REF, pr, detail, SyncResult(event="x"))

        jira.update_fields.assert_awaited_once_with(
            "TEST-7", {"customfield_100": [{"name": "ra"}, {"name": "rb"}]}
        )
        github.request_reviewers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_never_requested(self, engine, github):
        """The PR author is never requested as a reviewer."""
        detail = IssueDetail(key="TEST-7", reviewers=[{"name": "ocat"}])

        await engine.sync_reviewers(REF, pr_event().pull_request, detail, SyncResult(event="x"))

        github.request_reviewers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_without_field(self, jira, github, store):
        """Reviewer sync is off when no reviewer field is configured."""
        engine = JiraSyncEngine(
            JiraConfig(host="jira.example.com", projectKey="TEST", userMap={"rev-a": "ra"}),
            jira,
            github,
            store,
        )
        detail = IssueDetail(key="TEST-7", reviewers=[{"name": "ra"}])

        await engine.sync_reviewers(
            REF, pr_event(reviewers=("x",)).pull_request, detail, SyncResult(event="x")
        )

        github.request_reviewers.assert_not_awaited()
        jira.update_fields.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_github_failure_does_not_block_jira(self, engine, jira, github):
        """A failed reviewer request still updates Jira."""
        github.request_reviewers.side_effect = GitHubClientError("nope")
        detail = IssueDetail(key="TEST-7", reviewers=[{"name": "ra"}])
        result = SyncResult(event="x")

        pr = pr_event(reviewers=("rev-b",)).pull_request
        await engine.sync_reviewers(REF, pr, detail, result)

        jira.update_fields.assert_awaited_once_with(
            "TEST-7", {"customfield_100": [{"name": "ra"}, {"name": "rb"}]}
        )
        assert len(result.errors) == 1


class TestReviewersChanged:
    """Tests for reviewer request events."""

    @pytest.mark.asyncio
    async def test_replaces_jira_field(self, engine, jira, github, store):
        """The Jira field is replaced with the mapped current reviewers."""
        store.data[REF] = "TEST-7"
        github.get_requested_reviewers.return_value = ["rev-a", "stranger"]

        result = await engine.handle_reviewers_changed(pr_event(action="review_requested"))

        github.get_requested_reviewers.assert_awaited_once_with("acme", "widgets", 1)
        jira.update_fields.assert_awaited_once_with(
            "TEST-7", {"customfield_100": [{"name": "ra"}]}
        )
        assert result.handled

    @pytest.mark.asyncio
    async def test_removal_clears_field(self, engine, jira, github, store):
        """Removing the last reviewer empties the field."""
        store.data[REF] = "TEST-7"
        github.get_requested_reviewers.return_value = []

        await engine.handle_reviewers_changed(pr_event(action="review_request_removed"))

        jira.update_fields.assert_awaited_once_with("TEST-7", {"customfield_100": []})

    @pytest.mark.asyncio
    async def test_failure_reported(self, engine, jira, github, store):
        """A failed reviewer update is reported on the PR."""
        store.data[REF] = "TEST-7"
        github.get_requested_reviewers.return_value = ["rev-a"]
        jira.update_fields.side_effect = JiraClientError(500)

        result = await engine.handle_reviewers_changed(pr_event(action="review_requested"))

        assert posted(github) == [
            f"Warning: failed to update reviewers for {link_md('TEST-7')}, please update manually."
        ]
        assert result.has_errors

    @pytest.mark.asyncio
    async def test_without_association(self, engine, jira, github):
        """Without a linked issue reviewer events do nothing."""
        await engine.handle_reviewers_changed(pr_event(action="review_requested"))

        github.get_requested_reviewers.assert_not_awaited()
        jira.update_fields.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_field(self, jira, github, store):
        """Without a reviewer field reviewer events are unhandled."""
        store.data[REF] = "TEST-7"
        engine = JiraSyncEngine(
            JiraConfig(host="jira.example.com", projectKey="TEST"), jira, github, store
        )

        result = await engine.handle_reviewers_changed(pr_event(action="review_requested"))

        assert not result.handled
        assert github.mock_calls == []


class TestIssueOpened:
    """Tests for newly opened GitHub issues."""

    @pytest.mark.asyncio
    async def test_points_to_jira(self, engine, github):
        """New issues are redirected to Jira."""
        event = IssueEvent.model_validate(issue_payload(number=9))

        result = await engine.handle_issue_opened(event)

        github.create_comment.assert_awaited_once_with(
            "acme", "widgets", 9, "Please create issues in [Jira](https://jira.example.com)."
        )
        assert result.comment_count == 1


class TestFailureContainment:
    """Tests that one failing action never stops the others."""

    @pytest.mark.asyncio
    async def test_comment_sync_failure_then_assignee(self, engine, jira, github):
        """A failed comment sync still lets assignee sync run."""
        jira.add_comment.side_effect = JiraClientError(500)
        jira.get_issue.side_effect = lambda key, field="": IssueDetail(key=key, assignee="jdoe")

        result = await engine.handle_pull_request_change(pr_event())

        assert (
            f"Warning: failed to sync the PR description to {link_md('TEST-7')}, "
            "please update manually." in posted(github)
        )
        github.add_assignees.assert_awaited_once()
        assert result.has_errors

    @pytest.mark.asyncio
    async def test_github_comment_failure(self, engine, github, store):
        """A failed PR comment does not stop the association write."""
        github.create_comment.side_effect = GitHubClientError("down")

        result = await engine.handle_pull_request_change(pr_event())

        assert result.comments == []
        assert result.has_errors
        assert store.data[REF] == "TEST-7"

    @pytest.mark.asyncio
    async def test_store_write_failure(self, jira_config, jira, github):
        """A failed association write is recorded after linking."""
        store = AsyncMock()
        store.set.side_effect = GitHubClientError("conflict")
        engine = JiraSyncEngine(jira_config, jira, github, store)

        result = await engine.handle_pull_request_change(pr_event())

        jira.create_remote_link.assert_awaited_once()
        assert result.link_status is LinkStatus.LINKED
        assert any("write association" in e for e in result.errors)
