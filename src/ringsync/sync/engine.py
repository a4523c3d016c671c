"""GitHub Issues sync engine.

One run is a single linear pass:

    init -> labels_ensured -> issues_listed -> push (optional) -> pull (optional) -> done

The engine works on a snapshot of the caller's tasks and one listing of the
repository's issues taken at the start of the run. It never mutates tasks;
push outcomes and pulled task snapshots are returned in a SyncResult for the
caller to persist. All requests are sequential with a flat delay between
items, and nothing is retried within a run.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING

from ..config.settings import Settings
from ..github.client import GitHubAuthError, GitHubClientError, RequestCancelledError
from ..models import (
    ConflictType,
    ErrorOperation,
    IssueState,
    PulledTask,
    PullOperation,
    PushOperation,
    RemoteIssue,
    SyncConflict,
    SyncDirection,
    SyncedTask,
    SyncError,
    SyncResult,
    SyncStatus,
    Task,
)
from ..utils.datetime import now_utc
from .codec import IssueFields, decode_issue, encode_issue
from .conflicts import detect_conflict
from .labels import LabelReconciler, required_labels
from .matcher import IssueMatcher, resolve_owner

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)

# Label prefixes the engine owns; other labels on an issue are left alone
MANAGED_LABEL_PREFIXES = ("priority:", "status:", "effort:", "category:")


class SyncPhase(str, Enum):
    """Where a run currently is."""

    INIT = "init"
    LABELS_ENSURED = "labels_ensured"
    ISSUES_LISTED = "issues_listed"
    PUSH = "push"
    PULL = "pull"
    DONE = "done"


class Pacer:
    """Flat spacing between consecutive items of one loop.

    The first call returns immediately; every later call waits `delay`
    seconds. A set cancel event interrupts the wait.
    """

    def __init__(self, delay: float, cancel_event: threading.Event | None = None):
        self._delay = delay
        self._cancel_event = cancel_event
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def wait(self) -> None:
        """Sleep before every item after the first.

        Raises:
            RequestCancelledError: The cancel event is set
        """
        if self._count > 0 and self._delay > 0:
            if self._cancel_event is not None:
                self._cancel_event.wait(self._delay)
            else:
                time.sleep(self._delay)
        self._count += 1
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise RequestCancelledError("Sync cancelled")


class GitHubSyncEngine:
    """Reconciles a task list with the issues of one repository.

    Callers must not run two syncs against the same repository at once: the
    engine holds no locks and its issue snapshot goes stale under concurrent
    writers.
    """

    def __init__(
        self,
        client: GitHubClient,
        settings: Settings | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            client: Authenticated GitHub client
            settings: Pacing, page size and marker label
            cancel_event: Event that aborts the run when set (see cancel())
        """
        self._client = client
        self._settings = settings or Settings()
        self._cancel_event = cancel_event or threading.Event()
        self._labels = LabelReconciler(
            client,
            page_size=self._settings.page_size,
            marker_label=self._settings.marker_label,
        )
        self.phase = SyncPhase.INIT

    @property
    def marker_label(self) -> str:
        return self._settings.marker_label

    def cancel(self) -> None:
        """Abort the current run before its next item or request."""
        self._cancel_event.set()

    # --- Public API ---

    def run(
        self,
        repo: str,
        tasks: Sequence[Task],
        direction: SyncDirection | str = SyncDirection.PUSH,
    ) -> SyncResult:
        """Run one sync.

        Args:
            repo: Repository in "owner/name" form
            tasks: Local tasks; their order is the push order
            direction: "push", "pull" or "both"

        Returns:
            SyncResult for this run. A cancelled run returns what it had
            accumulated with cancelled=True; an unexpected failure outside the
            per-item loops returns a fatal result with a single error.

        Raises:
            GitHubAuthError: The token was rejected at any point
        """
        direction = SyncDirection(direction)
        self.phase = SyncPhase.INIT
        result = SyncResult()

        logger.info("Starting %s sync for %s with %d tasks", direction.value, repo, len(tasks))

        try:
            self._ensure_labels(repo, tasks, result)
            self.phase = SyncPhase.LABELS_ENSURED

            issues = self._list_issues(repo, result)
            self.phase = SyncPhase.ISSUES_LISTED

            reconciled: set[int] = set()
            if direction.pushes:
                self.phase = SyncPhase.PUSH
                matcher = IssueMatcher(issues, self.marker_label)
                reconciled = self._push_phase(repo, tasks, matcher, result)

            if direction.pulls:
                self.phase = SyncPhase.PULL
                self._pull_phase(tasks, issues, reconciled, result)

        except GitHubAuthError as e:
            logger.error("Sync aborted during %s: authentication failed: %s", self.phase.value, e)
            raise
        except RequestCancelledError:
            logger.warning("Sync cancelled during %s phase", self.phase.value)
            result.cancelled = True
            return result
        except Exception as e:
            logger.exception("Sync failed during %s phase", self.phase.value)
            return SyncResult.fatal_result(str(e) or "Sync failed")

        self.phase = SyncPhase.DONE
        summary = result.summary
        logger.info(
            "Complete: %d pushed, %d pulled, %d conflicts, %d unchanged, %d errors",
            summary.pushed,
            summary.pulled,
            summary.conflicts,
            summary.unchanged,
            summary.errors,
        )
        return result

    # --- Setup ---

    def _ensure_labels(self, repo: str, tasks: Sequence[Task], result: SyncResult) -> None:
        labels = required_labels(tasks, self.marker_label)
        label_result = self._labels.ensure(repo, labels)
        result.errors.extend(label_result.errors)

    def _list_issues(self, repo: str, result: SyncResult) -> list[RemoteIssue]:
        """Snapshot of marker-labeled issues; empty (with an error) on failure."""
        try:
            issues = self._client.list_issues(
                repo,
                self.marker_label,
                state="all",
                per_page=self._settings.page_size,
            )
        except GitHubAuthError:
            raise
        except GitHubClientError as e:
            logger.warning("Failed to fetch existing issues for %s: %s", repo, e)
            result.errors.append(
                SyncError(
                    operation=ErrorOperation.PULL,
                    message=f"Failed to fetch existing issues: {e}",
                )
            )
            return []

        logger.info("Fetched %d existing issues from %s", len(issues), repo)
        return issues

    # --- Push ---

    def _push_phase(
        self,
        repo: str,
        tasks: Sequence[Task],
        matcher: IssueMatcher,
        result: SyncResult,
    ) -> set[int]:
        """Push every task in order.

        Returns:
            Issue numbers the push phase reconciled, so the pull phase of the
            same run leaves them alone
        """
        pacer = Pacer(self._settings.api_delay, self._cancel_event)
        reconciled: set[int] = set()

        for task in tasks:
            pacer.wait()
            try:
                pairing = matcher.match(task)
                existing = pairing.issue if pairing else None

                if existing is not None:
                    conflict_type = detect_conflict(task, existing)
                    if conflict_type is not None:
                        self._record_conflict(result, task, existing, conflict_type)
                        continue

                synced = self._push_task(repo, task, existing)
                result.tasks.append(synced)
                reconciled.add(synced.issue_number)
                logger.info(
                    "%s issue #%d for task %s",
                    synced.operation.value.capitalize(),
                    synced.issue_number,
                    task.id,
                )

            except (GitHubAuthError, RequestCancelledError):
                raise
            except Exception as e:
                logger.error("Failed to push task %s: %s", task.id, e)
                result.errors.append(
                    SyncError(
                        operation=ErrorOperation.PUSH,
                        message=str(e),
                        task_id=task.id,
                    )
                )

        return reconciled

    def _push_task(self, repo: str, task: Task, existing: RemoteIssue | None) -> SyncedTask:
        """Create or update the issue for one task."""
        desired = encode_issue(task, self.marker_label)

        if existing is None:
            issue = self._client.create_issue(repo, desired.title, desired.body, desired.labels)
            # Create does not accept a state, so a finished task needs a second call
            if desired.state == IssueState.CLOSED:
                issue = self._client.update_issue(repo, issue.number, state=IssueState.CLOSED.value)
            return SyncedTask(
                task.id, issue.number, issue.html_url, PushOperation.CREATED, now_utc()
            )

        if not self._needs_update(existing, desired):
            return SyncedTask(
                task.id, existing.number, existing.html_url, PushOperation.UNCHANGED, now_utc()
            )

        updated = self._client.update_issue(
            repo,
            existing.number,
            title=desired.title,
            body=desired.body,
            labels=self._merge_labels(existing.labels, desired.labels),
            state=desired.state.value,
        )

        if existing.state == IssueState.OPEN and desired.state == IssueState.CLOSED:
            operation = PushOperation.CLOSED
        elif existing.state == IssueState.CLOSED and desired.state == IssueState.OPEN:
            operation = PushOperation.REOPENED
        else:
            operation = PushOperation.UPDATED

        return SyncedTask(
            task.id, updated.number, updated.html_url or existing.html_url, operation, now_utc()
        )

    def _managed_labels(self, labels: Sequence[str]) -> set[str]:
        marker = self.marker_label.lower()
        return {
            label.lower()
            for label in labels
            if label.lower() == marker or label.lower().startswith(MANAGED_LABEL_PREFIXES)
        }

    def _needs_update(self, existing: RemoteIssue, desired: IssueFields) -> bool:
        """Whether the observed issue differs from the desired state."""
        existing_body = (existing.body or "").replace("\r\n", "\n").strip()
        return (
            existing.title != desired.title
            or existing_body != desired.body.strip()
            or existing.state != desired.state
            or self._managed_labels(existing.labels) != {label.lower() for label in desired.labels}
        )

    def _merge_labels(self, current: Sequence[str], desired: Sequence[str]) -> list[str]:
        """Desired labels plus any labels on the issue the engine doesn't own."""
        managed = self._managed_labels(current)
        return list(desired) + [label for label in current if label.lower() not in managed]

    # --- Pull ---

    def _pull_phase(
        self,
        tasks: Sequence[Task],
        issues: Sequence[RemoteIssue],
        reconciled: set[int],
        result: SyncResult,
    ) -> None:
        """Turn remote changes into task snapshots."""
        pacer = Pacer(self._settings.api_delay, self._cancel_event)
        skip_issues = reconciled | {c.issue_number for c in result.conflicts}
        conflicted = result.conflicted_task_ids
        claimed_tasks: set[str] = set()

        for issue in issues:
            if not issue.has_label(self.marker_label) or issue.number in skip_issues:
                continue

            pacer.wait()
            try:
                self._pull_issue(issue, tasks, conflicted, claimed_tasks, result)
            except (GitHubAuthError, RequestCancelledError):
                raise
            except Exception as e:
                logger.error("Failed to pull issue #%d: %s", issue.number, e)
                result.errors.append(
                    SyncError(
                        operation=ErrorOperation.PULL,
                        message=str(e),
                        issue_number=issue.number,
                    )
                )

    def _pull_issue(
        self,
        issue: RemoteIssue,
        tasks: Sequence[Task],
        conflicted: set[str],
        claimed_tasks: set[str],
        result: SyncResult,
    ) -> None:
        owner = resolve_owner(issue, tasks)

        if owner is None:
            # Closed issues without a local task were cleaned up elsewhere; don't resurrect them
            if issue.is_closed:
                logger.info("Skipping closed orphan issue #%d (no local task)", issue.number)
                return
            new_task = decode_issue(issue)
            result.pulled.append(PulledTask(new_task, issue.number, PullOperation.NEW))
            logger.info("Pulled new issue #%d -> task %s", issue.number, new_task.id)
            return

        if owner.id in conflicted:
            return
        if owner.id in claimed_tasks:
            logger.warning(
                "Issue #%d duplicates another issue for task %s, skipping", issue.number, owner.id
            )
            return
        claimed_tasks.add(owner.id)

        if issue.is_closed and not owner.is_terminal:
            conflict_type = detect_conflict(owner, issue)
            if conflict_type is not None:
                self._record_conflict(result, owner, issue, conflict_type)
                return
            result.pulled.append(
                PulledTask(decode_issue(issue, owner), issue.number, PullOperation.CLOSED)
            )
            logger.info("Issue #%d was closed, marking task %s as done", issue.number, owner.id)
            return

        if owner.last_synced_at is not None and issue.updated_at <= owner.last_synced_at:
            return

        conflict_type = detect_conflict(owner, issue)
        if conflict_type is not None:
            self._record_conflict(result, owner, issue, conflict_type)
            return

        result.pulled.append(
            PulledTask(decode_issue(issue, owner), issue.number, PullOperation.UPDATED)
        )
        logger.info("Issue #%d updated on GitHub, pulling changes", issue.number)

    # --- Conflicts ---

    def _record_conflict(
        self,
        result: SyncResult,
        task: Task,
        issue: RemoteIssue,
        conflict_type: ConflictType,
    ) -> None:
        remote = decode_issue(issue, task).model_copy(update={"sync_status": SyncStatus.CONFLICT})
        result.conflicts.append(
            SyncConflict(
                task_id=task.id,
                issue_number=issue.number,
                local_version=task,
                remote_version=remote,
                conflict_type=conflict_type,
            )
        )
        logger.warning(
            "Conflict detected during %s for task %s (issue #%d)",
            self.phase.value,
            task.id,
            issue.number,
        )
