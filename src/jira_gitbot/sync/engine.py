"""Reconciliation engine keeping a pull request and its Jira issue in sync.

This module provides the JiraSyncEngine class which handles:
- Linking a PR to the Jira issue named in its title (remote links)
- Unlinking the previously associated issue when the title changes
- Mirroring the PR description into a single Jira comment
- Syncing the assignee between the PR and the issue
- Syncing reviewers between the PR and a Jira custom field

Every action catches collaborator failures at its own boundary. A failure is
logged and, where a human has to fix something, reported once as a PR
comment; it never stops sibling actions from running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..github.client import GitHubClientError
from ..jira.client import AmbiguousUserError, JiraClientError
from ..models import (
    IssueDetail,
    IssueEvent,
    LinkStatus,
    PullRequest,
    PullRequestEvent,
    RemoteLink,
    SyncResult,
    TitleReconciliation,
)
from .markdown import markdown_to_jira
from .store import PullRequestRef, strip_metadata
from .title_parser import parse_title
from .user_mapper import UserMapper

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..jira.client import JiraClient
    from ..models.jira_config import JiraConfig
    from .store import AssociationStore

logger = logging.getLogger(__name__)


SYNC_COMMENT_PREFIX = "Linked to GitHub PR"


def build_sync_comment(pr: PullRequest, description: str) -> str:
    """Build the Jira comment mirroring a PR description.

    Lines opening an HTML comment (PR templates, hidden metadata) are dropped
    before the markdown is converted.
    """
    lines = [line for line in (pr.body or "").splitlines() if not line.startswith("<!--")]
    header = f"{SYNC_COMMENT_PREFIX} [#{pr.number} - {description}|{pr.html_url}]\n----\n"
    return header + markdown_to_jira("\n".join(lines))


def remote_link_title(pr: PullRequest, description: str) -> str:
    return f"GitHub PR #{pr.number} - {description}"


class JiraSyncEngine:
    """Engine converging a pull request and its linked Jira issue.

    Handles the workflow of:
    1. Reading the cached association for the PR
    2. Parsing the issue key out of the PR title
    3. Moving the remote link from the old issue to the new one
    4. Persisting the new association
    5. Syncing description, assignee and reviewers to the linked issue
    6. Reporting every outcome that needs attention as a PR comment

    Repositories without a Jira host or project key are ignored.
    """

    def __init__(
        self,
        config: JiraConfig,
        jira: JiraClient,
        github: GitHubClient,
        store: AssociationStore,
        user_mapper: UserMapper | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            config: Repository Jira configuration
            jira: Jira client for the configured instance
            github: Authenticated GitHub client
            store: Association store for cached issue keys
            user_mapper: Login mapping (built from config.user_map by default)
        """
        self.config = config
        self._jira = jira
        self._github = github
        self._store = store
        self._users = user_mapper or UserMapper(config.user_map)

    # --- Public API: event handlers ---

    async def handle_pull_request_change(self, event: PullRequestEvent) -> SyncResult:
        """Handle ``pull_request.opened`` and ``pull_request.edited``."""
        result = SyncResult(event=f"pull_request.{event.action}")
        if not self.config.is_configured:
            result.handled = False
            return result

        if event.action == "edited" and not self._is_relevant_edit(event):
            logger.debug("Title and body unchanged by edit, ignoring.")
            result.handled = False
            return result

        pr = event.pull_request
        ref = self._ref(event)

        # A newly opened PR has no prior association, not an empty one
        cached: str | None = None
        if event.action != "opened":
            cached = await self._read_association(ref, result)
            if cached is None:
                return result

        reconciliation = await self.reconcile_title(ref, pr, cached, result)
        result.issue_key = reconciliation.issue_key
        result.link_status = reconciliation.status

        if reconciliation.status is LinkStatus.UNCHANGED and reconciliation.issue_key:
            reconciliation.detail = await self._fetch_detail(reconciliation.issue_key)

        if reconciliation.can_sync_details:
            await self.sync_details(ref, pr, reconciliation, result)

        return result

    async def handle_assigned(self, event: PullRequestEvent) -> SyncResult:
        """Handle ``pull_request.assigned``: push the new assignee to Jira."""
        result = SyncResult(event=f"pull_request.{event.action}")
        if not self.config.is_configured:
            result.handled = False
            return result

        login = event.assignee.login if event.assignee else event.pull_request.primary_assignee
        if not login:
            logger.warning("Unexpected, assignee is empty")
            result.handled = False
            return result

        ref = self._ref(event)
        issue_key = await self._read_association(ref, result)
        if not issue_key:
            logger.warning("Cannot update assignee, no issue associated with %s", ref)
            return result

        result.issue_key = issue_key
        await self.set_assignee(ref, issue_key, login, result)
        return result

    async def handle_reviewers_changed(self, event: PullRequestEvent) -> SyncResult:
        """Handle reviewer request changes: replace the Jira reviewer field.

        The full current set of requested reviewers is re-read from GitHub and
        written as-is; logins without a user mapping are dropped.
        """
        result = SyncResult(event=f"pull_request.{event.action}")
        if not self.config.is_configured:
            result.handled = False
            return result

        field_id = self.config.reviewer_field
        if not field_id:
            logger.warning("Jira reviewers field not configured, skipping")
            result.handled = False
            return result

        ref = self._ref(event)
        issue_key = await self._read_association(ref, result)
        if not issue_key:
            logger.warning("Cannot update reviewers, no issue associated with %s", ref)
            return result
        result.issue_key = issue_key

        try:
            logins = await self._github.get_requested_reviewers(ref.owner, ref.repo, ref.number)
        except GitHubClientError as e:
            logger.error("Failed to read requested reviewers for %s: %s", ref, e)
            result.errors.append(f"read reviewers: {e}")
            return result

        names = []
        for login in logins:
            mapped = self._users.mapped_jira_user(login)
            if mapped:
                names.append(mapped)

        try:
            await self._jira.update_fields(issue_key, {field_id: [{"name": n} for n in names]})
            logger.info("Set Jira reviewers of %s to %s", issue_key, names)
        except JiraClientError as e:
            logger.error("Failed to set Jira reviewers: %s", e)
            result.errors.append(f"set reviewers: {e}")
            await self._comment(
                ref,
                f"Warning: failed to update reviewers for {self._jira.issue_link_md(issue_key)}, "
                "please update manually.",
                result,
            )
        return result

    async def handle_issue_opened(self, event: IssueEvent) -> SyncResult:
        """Handle ``issues.opened``: point the author at Jira."""
        result = SyncResult(event=f"issues.{event.action}")
        if not self.config.is_configured:
            result.handled = False
            return result

        ref = PullRequestRef(event.repository.owner, event.repository.name, event.issue.number)
        await self._comment(ref, f"Please create issues in [Jira]({self.config.url}).", result)
        return result

    # --- Title reconciliation ---

    async def reconcile_title(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        cached: str | None,
        result: SyncResult,
    ) -> TitleReconciliation:
        """Converge remote links and the cached association with the PR title.

        Args:
            ref: Pull request reference
            pr: Current pull request state
            cached: Previously cached issue key ("" when unlinked, None when the
                PR has no prior association at all)
            result: Collects posted comments and contained errors

        Returns:
            TitleReconciliation; ``detail`` is set when the detected issue was
            fetched during this call
        """
        parsed = parse_title(pr.title, self.config.project_key)
        detected = parsed.issue_key

        if detected == cached:
            logger.debug("Issue unchanged: %s", cached or "<empty>")
            return TitleReconciliation(detected, parsed.description, LinkStatus.UNCHANGED)

        if cached:
            logger.debug("Removing existing issue: %s", cached)
            await self._remove_links(cached, pr.html_url)

        if not detected:
            await self._comment(
                ref,
                "Warning: no Jira issue is associated with this PR. "
                f"Prefix the PR title with `{self.config.project_key}-0:`.",
                result,
            )
            await self._write_association(ref, "", result)
            return TitleReconciliation("", "", LinkStatus.NO_ISSUE)

        logger.debug("Adding new issue: %s", detected)
        detail = await self._fetch_detail(detected)
        if detail is None:
            await self._comment(
                ref, f"The specified issue `{detected}` could not be found in Jira.", result
            )
            # The old key's links are already gone, so the cache must move on too
            await self._write_association(ref, detected, result)
            return TitleReconciliation(detected, parsed.description, LinkStatus.NOT_FOUND)

        status = await self._ensure_link(ref, pr, detected, parsed.description, result)
        await self._write_association(ref, detected, result)
        return TitleReconciliation(detected, parsed.description, status, detail)

    async def _remove_links(self, issue_key: str, pr_url: str) -> None:
        """Delete every link on ``issue_key`` pointing at ``pr_url`` (best effort)."""
        try:
            links = await self._jira.get_remote_links(issue_key)
        except JiraClientError as e:
            logger.info("Removing existing link from Jira issue %s failed: %s", issue_key, e)
            return
        links = [link for link in links if link.url == pr_url]

        outcomes = await asyncio.gather(
            *(self._delete_link(link) for link in links), return_exceptions=True
        )
        for link, outcome in zip(links, outcomes):
            if isinstance(outcome, Exception):
                logger.info("Deleting link %s failed: %s", link.self_url, outcome)

    async def _delete_link(self, link: RemoteLink) -> None:
        logger.info("Deleting link %s", link.self_url)
        await self._jira.delete_remote_link(link)

    async def _ensure_link(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        issue_key: str,
        description: str,
        result: SyncResult,
    ) -> LinkStatus:
        """Create the remote link for this PR unless one already exists."""
        try:
            links = await self._jira.get_remote_links(issue_key)
            if any(link.url == pr.html_url for link in links):
                logger.info("Jira issue %s already has link to PR #%d", issue_key, pr.number)
                return LinkStatus.ALREADY_LINKED
            await self._jira.create_remote_link(
                issue_key, pr.html_url, remote_link_title(pr, description)
            )
        except JiraClientError as e:
            logger.error("Failed to link %s to %s: %s", ref, issue_key, e)
            result.errors.append(f"link: {e}")
            await self._comment(
                ref,
                f"Warning: failed to link this PR to {self._jira.issue_link_md(issue_key)}, "
                "please update manually.",
                result,
            )
            return LinkStatus.LINK_FAILED

        link_md = self._jira.issue_link_md(issue_key)
        await self._comment(ref, f"Successfully linked this PR to Jira: {link_md}", result)
        return LinkStatus.LINKED

    # --- Detail sync ---

    async def sync_details(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        reconciliation: TitleReconciliation,
        result: SyncResult,
    ) -> None:
        """Sync description, assignee and reviewers to the linked issue."""
        detail = reconciliation.detail
        if detail is None:
            return
        await self.upsert_sync_comment(ref, pr, detail, reconciliation.description, result)
        await self.sync_assignee(ref, pr, detail, result)
        await self.sync_reviewers(ref, pr, detail, result)

    async def upsert_sync_comment(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        detail: IssueDetail,
        description: str,
        result: SyncResult,
    ) -> None:
        """Create or update the single Jira comment mirroring the PR body."""
        body = build_sync_comment(pr, description)
        existing = next(
            (
                c
                for c in detail.comments
                if c.is_authored_by(self._jira.username) and c.body.startswith(SYNC_COMMENT_PREFIX)
            ),
            None,
        )
        try:
            if existing is not None:
                await self._jira.update_comment(detail.key, existing.id, body)
                logger.info("Updated sync comment %s on %s", existing.id, detail.key)
            else:
                await self._jira.add_comment(detail.key, body)
                logger.info("Created sync comment on %s", detail.key)
        except JiraClientError as e:
            logger.error("Failed to sync PR description to %s: %s", detail.key, e)
            result.errors.append(f"sync comment: {e}")
            await self._comment(
                ref,
                f"Warning: failed to sync the PR description to "
                f"{self._jira.issue_link_md(detail.key)}, please update manually.",
                result,
            )

    async def sync_assignee(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        detail: IssueDetail,
        result: SyncResult,
    ) -> None:
        """Fill in whichever side is missing an assignee."""
        pr_assignee = pr.primary_assignee

        if not pr_assignee and detail.assignee:
            login = self._users.to_github_user(detail.assignee)
            if not login:
                logger.info("No GitHub user mapped for Jira assignee '%s'", detail.assignee)
                return
            try:
                await self._github.add_assignees(ref.owner, ref.repo, ref.number, [login])
                logger.info("Assigned %s to %s from %s", login, ref, detail.key)
            except GitHubClientError as e:
                logger.error("Failed to assign %s to %s: %s", login, ref, e)
                result.errors.append(f"add assignee: {e}")

        elif pr_assignee and not detail.assignee:
            await self.set_assignee(ref, detail.key, pr_assignee, result)

    async def sync_reviewers(
        self,
        ref: PullRequestRef,
        pr: PullRequest,
        detail: IssueDetail,
        result: SyncResult,
    ) -> None:
        """Additive reviewer union in both directions; nothing is removed."""
        field_id = self.config.reviewer_field
        if not field_id:
            return

        requested = set(pr.reviewer_logins)
        to_add_to_pr: list[str] = []
        for identity in detail.reviewer_identities:
            login = self._users.to_github_user(identity)
            if not login or login == pr.author:
                continue
            if login not in requested and login not in to_add_to_pr:
                to_add_to_pr.append(login)

        present = set(detail.reviewer_identities)
        to_add_to_jira: list[str] = []
        for login in pr.reviewer_logins:
            identity = self._users.mapped_jira_user(login)
            if identity and identity not in present and identity not in to_add_to_jira:
                to_add_to_jira.append(identity)

        if to_add_to_pr:
            try:
                await self._github.request_reviewers(ref.owner, ref.repo, ref.number, to_add_to_pr)
                logger.info("Requested reviewers %s on %s", to_add_to_pr, ref)
            except GitHubClientError as e:
                logger.error("Failed to request reviewers on %s: %s", ref, e)
                result.errors.append(f"request reviewers: {e}")

        if to_add_to_jira:
            value = list(detail.reviewers) + [{"name": name} for name in to_add_to_jira]
            try:
                await self._jira.update_fields(detail.key, {field_id: value})
                logger.info("Added Jira reviewers %s on %s", to_add_to_jira, detail.key)
            except JiraClientError as e:
                logger.error("Failed to add Jira reviewers on %s: %s", detail.key, e)
                result.errors.append(f"add jira reviewers: {e}")

    async def set_assignee(
        self,
        ref: PullRequestRef,
        issue_key: str,
        login: str,
        result: SyncResult,
    ) -> None:
        """Assign the Jira issue to the user matching a GitHub login.

        The mapped identity is looked up exactly, then searched. Anything but
        a single match aborts with a request to update the issue manually.
        """
        identity = self._users.to_jira_user(login)
        link = self._jira.issue_link_md(issue_key)

        try:
            user = await self._jira.resolve_user(identity)
        except (AmbiguousUserError, JiraClientError) as e:
            logger.warning("Could not resolve Jira user for '%s': %s", login, e)
            await self._comment(
                ref,
                f"Could not update assignee for {link}, user mapping required for `{login}`. "
                "Please update manually.",
                result,
            )
            return

        try:
            await self._jira.assign_issue(issue_key, user)
        except JiraClientError as e:
            logger.error("Failed to call Jira issue assign: %s", e)
            result.errors.append(f"assign: {e}")
            await self._comment(
                ref,
                f"Warning: failed to update assignee for {link}, please update manually.",
                result,
            )
            return

        await self._comment(
            ref, f"Jira ticket {link} has been assigned to {user.display_name}", result
        )

    # --- Helpers ---

    @staticmethod
    def _ref(event: PullRequestEvent) -> PullRequestRef:
        return PullRequestRef(
            event.repository.owner, event.repository.name, event.pull_request.number
        )

    @staticmethod
    def _is_relevant_edit(event: PullRequestEvent) -> bool:
        """An edit matters when the title or the visible body changed."""
        if event.title_changed:
            return True
        if not event.body_changed:
            return False
        return strip_metadata(event.previous_body) != strip_metadata(event.pull_request.body)

    async def _fetch_detail(self, issue_key: str) -> IssueDetail | None:
        try:
            return await self._jira.get_issue(issue_key, self.config.reviewer_field)
        except JiraClientError as e:
            logger.debug("Jira issue key '%s' not found: %s", issue_key, e)
            return None

    async def _read_association(self, ref: PullRequestRef, result: SyncResult) -> str | None:
        """Read the cached key; None (not "") means the read failed."""
        try:
            return await self._store.get(ref)
        except GitHubClientError as e:
            logger.error("Failed to read cached issue for %s: %s", ref, e)
            result.errors.append(f"read association: {e}")
            return None

    async def _write_association(
        self, ref: PullRequestRef, issue_key: str, result: SyncResult
    ) -> None:
        try:
            await self._store.set(ref, issue_key)
        except GitHubClientError as e:
            logger.error("Failed to cache issue %r for %s: %s", issue_key, ref, e)
            result.errors.append(f"write association: {e}")

    async def _comment(self, ref: PullRequestRef, body: str, result: SyncResult) -> None:
        """Post a status comment on the PR; failures are logged only."""
        try:
            await self._github.create_comment(ref.owner, ref.repo, ref.number, body)
        except GitHubClientError as e:
            logger.error("Failed to comment on %s: %s", ref, e)
            result.errors.append(f"comment: {e}")
            return
        result.comments.append(body)
