"""Pair local tasks with the GitHub issues that represent them.

Matching strategies are tried in a fixed order and the first hit wins:

1. reference: the task already records an issue number that is in the snapshot
2. marker: an issue body embeds the task's id
3. title: an issue with exactly the task's title carries the marker label

The title fallback keeps a push idempotent when a task lost its local
reference after a partial run. Two tasks with identical titles can be paired
with the wrong issue through it; that risk is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..models import RemoteIssue, Task
from .codec import MARKER_LABEL, extract_task_id

logger = logging.getLogger(__name__)

MatchStrategy = Callable[[Task, Sequence[RemoteIssue], str], RemoteIssue | None]


def match_by_reference(
    task: Task, issues: Sequence[RemoteIssue], marker_label: str
) -> RemoteIssue | None:
    """Issue whose number the task already records."""
    if task.github_issue_number is None:
        return None
    for issue in issues:
        if issue.number == task.github_issue_number:
            return issue
    return None


def match_by_marker(
    task: Task, issues: Sequence[RemoteIssue], marker_label: str
) -> RemoteIssue | None:
    """First issue whose embedded marker names the task."""
    for issue in issues:
        if extract_task_id(issue.body) == task.id:
            return issue
    return None


def match_by_title(
    task: Task, issues: Sequence[RemoteIssue], marker_label: str
) -> RemoteIssue | None:
    """First marker-labeled issue with exactly the task's title."""
    for issue in issues:
        if issue.title == task.title and issue.has_label(marker_label):
            return issue
    return None


DEFAULT_STRATEGIES: tuple[tuple[str, MatchStrategy], ...] = (
    ("reference", match_by_reference),
    ("marker", match_by_marker),
    ("title", match_by_title),
)


@dataclass(frozen=True)
class Pairing:
    """A task and the issue that represents it for one run."""

    task: Task
    issue: RemoteIssue
    strategy: str  # Name of the strategy that found it


class IssueMatcher:
    """Matches tasks against one fixed snapshot of issues.

    Each issue is handed out at most once, so matching stays one-to-one
    within a run.
    """

    def __init__(
        self,
        issues: Iterable[RemoteIssue],
        marker_label: str = MARKER_LABEL,
        strategies: Sequence[tuple[str, MatchStrategy]] = DEFAULT_STRATEGIES,
    ):
        self._issues = tuple(issues)
        self._marker_label = marker_label
        self._strategies = tuple(strategies)
        self._claimed: set[int] = set()

    @property
    def issues(self) -> tuple[RemoteIssue, ...]:
        return self._issues

    def is_claimed(self, issue_number: int) -> bool:
        return issue_number in self._claimed

    def match(self, task: Task) -> Pairing | None:
        """Find and claim the issue for a task, or None if it has none."""
        candidates = [issue for issue in self._issues if issue.number not in self._claimed]
        for name, strategy in self._strategies:
            issue = strategy(task, candidates, self._marker_label)
            if issue is not None:
                self._claimed.add(issue.number)
                logger.debug("Task %s matched issue #%d by %s", task.id, issue.number, name)
                return Pairing(task=task, issue=issue, strategy=name)
        return None


def resolve_owner(issue: RemoteIssue, tasks: Sequence[Task]) -> Task | None:
    """Local task that owns an issue: by embedded id, then by issue number."""
    task_id = extract_task_id(issue.body)
    if task_id:
        for task in tasks:
            if task.id == task_id:
                return task
    for task in tasks:
        if task.github_issue_number == issue.number:
            return task
    return None
