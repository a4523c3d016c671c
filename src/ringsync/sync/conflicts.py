"""Classify what changed on each side of a task/issue pairing."""

from enum import Enum

from ..models import ConflictType, RemoteIssue, Task


class ChangeDirection(str, Enum):
    """Which side changed since the last sync."""

    FIRST_SYNC = "first_sync"  # Never synced; whichever direction runs wins
    NONE = "none"
    LOCAL = "local"  # Safe to push
    REMOTE = "remote"  # Safe to pull
    CONFLICT = "conflict"


def classify_change(task: Task, issue: RemoteIssue) -> ChangeDirection:
    """Compare both modification times against the task's last sync.

    Local modification time is the later of last_local_modified_at and
    updated_at; remote modification time is the issue's updated_at.
    """
    last_synced = task.last_synced_at
    if last_synced is None:
        return ChangeDirection.FIRST_SYNC

    local_modified = task.local_modified_at
    local_changed = local_modified is not None and local_modified > last_synced
    remote_changed = issue.updated_at > last_synced

    if local_changed and remote_changed:
        return ChangeDirection.CONFLICT
    if local_changed:
        return ChangeDirection.LOCAL
    if remote_changed:
        return ChangeDirection.REMOTE
    return ChangeDirection.NONE


def detect_conflict(task: Task, issue: RemoteIssue) -> ConflictType | None:
    """Conflict type for a pairing, or None if it can be reconciled.

    Only both-modified is detected; deletions are never classified.
    """
    if classify_change(task, issue) == ChangeDirection.CONFLICT:
        return ConflictType.BOTH_MODIFIED
    return None
