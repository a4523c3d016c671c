"""Read-only health report for a synced repository.

Looks for the states a sync run cannot fix on its own: duplicate issues for
one task (left behind by interrupted runs) and closed orphan issues. Nothing
here writes to GitHub.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..config.settings import Settings
from ..github.client import GitHubAuthError, GitHubClientError
from ..models import RemoteIssue, Task
from ..utils.datetime import now_utc
from .codec import extract_task_id
from .matcher import resolve_owner

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)


class CheckStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class HealthCheck:
    """Outcome of one check."""

    name: str
    status: CheckStatus
    message: str
    count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value, "message": self.message}
        if self.count is not None:
            data["count"] = self.count
        return data


@dataclass
class DuplicateGroup:
    """Several issues embedding the same task id; the oldest is the keeper."""

    task_id: str
    keep: RemoteIssue
    duplicates: list[RemoteIssue]

    @property
    def title(self) -> str:
        return self.keep.title


@dataclass
class HealthReport:
    """All checks for one repository."""

    repo: str
    checks: list[HealthCheck] = field(default_factory=list)
    duplicate_groups: list[DuplicateGroup] = field(default_factory=list)
    orphans: list[RemoteIssue] = field(default_factory=list)

    @property
    def errors(self) -> int:
        return sum(1 for c in self.checks if c.status == CheckStatus.ERROR)

    @property
    def warnings(self) -> int:
        return sum(1 for c in self.checks if c.status == CheckStatus.WARNING)

    @property
    def healthy(self) -> bool:
        return self.errors == 0 and self.warnings == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.errors == 0,
            "timestamp": now_utc().isoformat(),
            "repo": self.repo,
            "checks": {c.name: c.to_dict() for c in self.checks},
            "duplicateGroups": [
                {
                    "taskId": g.task_id,
                    "title": g.title,
                    "keepIssue": g.keep.number,
                    "duplicates": [i.number for i in g.duplicates],
                }
                for g in self.duplicate_groups
            ],
            "orphans": [i.number for i in self.orphans],
            "summary": {
                "healthy": self.healthy,
                "warnings": self.warnings,
                "errors": self.errors,
            },
        }


def find_duplicate_groups(issues: Sequence[RemoteIssue]) -> list[DuplicateGroup]:
    """Group issues by embedded task id and keep groups with more than one issue.

    Within a group the oldest issue (by creation time) is the keeper.
    """
    by_task_id: dict[str, list[RemoteIssue]] = {}
    for issue in issues:
        task_id = extract_task_id(issue.body)
        if task_id:
            by_task_id.setdefault(task_id, []).append(issue)

    groups = []
    for task_id, group in by_task_id.items():
        if len(group) < 2:
            continue
        ordered = sorted(group, key=lambda i: (i.created_at, i.number))
        groups.append(DuplicateGroup(task_id=task_id, keep=ordered[0], duplicates=ordered[1:]))
    return groups


def find_orphans(
    issues: Sequence[RemoteIssue],
    tasks: Sequence[Task],
    marker_label: str = "ringmaster",
) -> list[RemoteIssue]:
    """Closed, marker-labeled issues that no local task owns."""
    return [
        issue
        for issue in issues
        if issue.is_closed
        and issue.has_label(marker_label)
        and resolve_owner(issue, tasks) is None
    ]


def run_health_check(
    client: GitHubClient,
    repo: str,
    tasks: Sequence[Task] | None = None,
    settings: Settings | None = None,
) -> HealthReport:
    """Check authentication, repository access, duplicates and orphans.

    The orphan check needs the local task list and is skipped when `tasks`
    is None. An empty list makes every closed managed issue an orphan.
    """
    settings = settings or Settings()
    report = HealthReport(repo=repo)

    try:
        client.get_repository(repo)
    except GitHubAuthError as e:
        report.checks.append(HealthCheck("authentication", CheckStatus.ERROR, str(e)))
        return report
    except GitHubClientError as e:
        report.checks.append(HealthCheck("authentication", CheckStatus.OK, "Token accepted"))
        report.checks.append(HealthCheck("repoAccess", CheckStatus.ERROR, str(e)))
        return report

    report.checks.append(HealthCheck("authentication", CheckStatus.OK, "Token accepted"))
    report.checks.append(HealthCheck("repoAccess", CheckStatus.OK, f"Repository {repo} accessible"))

    try:
        issues = client.list_issues(
            repo, settings.marker_label, state="all", per_page=settings.page_size
        )
    except GitHubClientError as e:
        report.checks.append(HealthCheck("issueCount", CheckStatus.ERROR, str(e)))
        return report

    if len(issues) >= settings.page_size:
        report.checks.append(
            HealthCheck(
                "issueCount",
                CheckStatus.WARNING,
                f"{len(issues)} issues fills a whole page; sync only sees the first page",
                len(issues),
            )
        )
    else:
        report.checks.append(
            HealthCheck("issueCount", CheckStatus.OK, f"{len(issues)} managed issues", len(issues))
        )

    report.duplicate_groups = find_duplicate_groups(issues)
    extra = sum(len(g.duplicates) for g in report.duplicate_groups)
    if report.duplicate_groups:
        report.checks.append(
            HealthCheck(
                "duplicateCheck",
                CheckStatus.WARNING,
                f"{len(report.duplicate_groups)} tasks have {extra} duplicate issues",
                len(report.duplicate_groups),
            )
        )
    else:
        report.checks.append(HealthCheck("duplicateCheck", CheckStatus.OK, "No duplicates", 0))

    if tasks is not None:
        report.orphans = find_orphans(issues, tasks, settings.marker_label)
        status = CheckStatus.WARNING if report.orphans else CheckStatus.OK
        report.checks.append(
            HealthCheck(
                "orphanCheck",
                status,
                f"{len(report.orphans)} closed issues without a local task",
                len(report.orphans),
            )
        )

    logger.info(
        "Health check for %s: %d warnings, %d errors", repo, report.warnings, report.errors
    )
    return report
