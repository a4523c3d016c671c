"""Sync command for reconciling a tasks file with GitHub Issues."""

import json
import logging
from pathlib import Path

from ..config.credentials import resolve_credentials
from ..config.settings import Settings
from ..github.client import GitHubAuthError, GitHubClient
from ..models import SyncDirection, SyncResult
from ..sync.engine import GitHubSyncEngine
from .output import error, header, info, success, warning
from .tasks_file import TasksFileError, load_tasks

logger = logging.getLogger(__name__)


def run_sync(
    settings: Settings,
    repo: str,
    tasks_path: Path,
    direction: str = SyncDirection.PUSH.value,
    output: Path | None = None,
) -> int:
    """Sync tasks from a file with a repository's issues.

    Args:
        settings: Application settings
        repo: Repository in "owner/name" form
        tasks_path: YAML or JSON file with the tasks
        direction: "push", "pull" or "both"
        output: Write the JSON result here when given

    Returns:
        Exit code (0 for success, non-zero for error)
    """
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

    header(f"Syncing {len(tasks)} task(s) with {repo} ({direction})...")
    with GitHubClient(
        credentials.token,
        api_url=settings.api_url,
        api_version=settings.api_version,
        timeout=settings.timeout,
    ) as client:
        engine = GitHubSyncEngine(client, settings)
        try:
            result = engine.run(repo, tasks, direction)
        except GitHubAuthError as e:
            error(f"GitHub authentication failed: {e}")
            return 1

    _display_result(result)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")
        info(f"Wrote result to {output}")

    return 0 if result.success else 1


def _display_result(result: SyncResult) -> None:
    summary = result.summary
    print()
    print("Sync Summary:")
    print(f"  Pushed: {summary.pushed}")
    print(f"  Pulled: {summary.pulled}")
    print(f"  Unchanged: {summary.unchanged}")
    print(f"  Conflicts: {summary.conflicts}")
    print(f"  Errors: {summary.errors}")
    print()

    for synced in result.tasks:
        if synced.operation.value != "unchanged":
            success(f"{synced.task_id}: {synced.operation.value} #{synced.issue_number}")
    for pulled in result.pulled:
        success(f"#{pulled.issue_number}: {pulled.operation.value} -> {pulled.task.id}")
    for conflict in result.conflicts:
        warning(f"{conflict.task_id}: conflict with #{conflict.issue_number}")
    for err in result.errors:
        error(f"[{err.operation.value}] {err.message}")

    if result.cancelled:
        warning("Sync was cancelled before it finished")
    elif result.success:
        success("Sync complete")
