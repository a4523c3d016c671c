"""Health command: read-only checks against a repository."""

import logging
from pathlib import Path

from ..config.credentials import resolve_credentials
from ..config.settings import Settings
from ..github.client import GitHubClient
from ..models import Task
from ..sync.health import CheckStatus, HealthReport, run_health_check
from .output import error, header, info, success, warning
from .tasks_file import TasksFileError, load_tasks

logger = logging.getLogger(__name__)


def run_health(settings: Settings, repo: str, tasks_path: Path | None = None) -> int:
    """Report duplicates, orphans and access problems for a repository.

    Returns:
        Exit code (0 when no check errored, 1 otherwise)
    """
    tasks: list[Task] | None = None
    if tasks_path is not None:
        try:
            tasks = load_tasks(tasks_path)
        except TasksFileError as e:
            error(str(e))
            return 1

    credentials = resolve_credentials(settings.config_file)
    if credentials is None:
        error("GitHub token not configured")
        info(f"Set GITHUB_TOKEN or add github.token to {settings.config_file}")
        return 1

    header(f"Checking {repo}...")
    with GitHubClient(
        credentials.token,
        api_url=settings.api_url,
        api_version=settings.api_version,
        timeout=settings.timeout,
    ) as client:
        report = run_health_check(client, repo, tasks, settings)

    _display_report(report)
    return 0 if report.errors == 0 else 1


def _display_report(report: HealthReport) -> None:
    print()
    for check in report.checks:
        line = f"{check.name}: {check.message}"
        if check.status == CheckStatus.OK:
            success(line)
        elif check.status == CheckStatus.WARNING:
            warning(line)
        else:
            error(line)

    for group in report.duplicate_groups:
        numbers = ", ".join(f"#{i.number}" for i in group.duplicates)
        info(f"{group.task_id}: keep #{group.keep.number}, duplicates {numbers}")
    for issue in report.orphans:
        info(f"Orphan #{issue.number}: {issue.title}")
