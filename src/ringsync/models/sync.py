"""Result models for a GitHub Issues sync run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .task import Task


class SyncDirection(str, Enum):
    """Which phases a sync run executes."""

    PUSH = "push"
    PULL = "pull"
    BOTH = "both"

    @property
    def pushes(self) -> bool:
        return self in (SyncDirection.PUSH, SyncDirection.BOTH)

    @property
    def pulls(self) -> bool:
        return self in (SyncDirection.PULL, SyncDirection.BOTH)


class PushOperation(str, Enum):
    """What happened to an issue when a task was pushed."""

    CREATED = "created"
    UPDATED = "updated"
    CLOSED = "closed"
    REOPENED = "reopened"
    UNCHANGED = "unchanged"


class PullOperation(str, Enum):
    """What a pulled issue means for the local backlog."""

    NEW = "new"
    UPDATED = "updated"
    CLOSED = "closed"


class ConflictType(str, Enum):
    """Kind of sync conflict.

    Only BOTH_MODIFIED is produced; the deletion variants are part of the
    result schema for callers but nothing detects them yet.
    """

    BOTH_MODIFIED = "both-modified"
    LOCAL_DELETED = "local-deleted"
    REMOTE_DELETED = "remote-deleted"


class ErrorOperation(str, Enum):
    """Stage of the run an error belongs to."""

    PUSH = "push"
    PULL = "pull"
    LABEL = "label"


@dataclass
class SyncedTask:
    """Outcome of pushing one task."""

    task_id: str
    issue_number: int
    issue_url: str
    operation: PushOperation
    synced_at: datetime | None = None  # Set when the issue now matches the task

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "taskId": self.task_id,
            "issueNumber": self.issue_number,
            "issueUrl": self.issue_url,
            "operation": self.operation.value,
        }
        if self.synced_at is not None:
            data["syncedAt"] = self.synced_at.isoformat()
        return data


@dataclass
class PulledTask:
    """Outcome of pulling one issue: the task snapshot the caller should store."""

    task: Task
    issue_number: int
    operation: PullOperation

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task.to_payload(),
            "issueNumber": self.issue_number,
            "operation": self.operation.value,
        }


@dataclass
class SyncConflict:
    """A pairing where both sides changed since the last sync."""

    task_id: str
    issue_number: int
    local_version: Task
    remote_version: Task
    conflict_type: ConflictType

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "issueNumber": self.issue_number,
            "localVersion": self.local_version.to_payload(),
            "remoteVersion": self.remote_version.to_payload(),
            "conflictType": self.conflict_type.value,
        }


@dataclass
class SyncError:
    """A recorded, non-raising failure."""

    operation: ErrorOperation
    message: str
    retryable: bool = True
    task_id: str | None = None
    issue_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "operation": self.operation.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.task_id is not None:
            data["taskId"] = self.task_id
        if self.issue_number is not None:
            data["issueNumber"] = self.issue_number
        return data


@dataclass
class SyncSummary:
    """Counters for one run."""

    pushed: int = 0
    pulled: int = 0
    unchanged: int = 0
    conflicts: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "pushed": self.pushed,
            "pulled": self.pulled,
            "unchanged": self.unchanged,
            "conflicts": self.conflicts,
            "errors": self.errors,
        }


@dataclass
class SyncResult:
    """Result of one sync run. Built fresh per run, never merged."""

    tasks: list[SyncedTask] = field(default_factory=list)  # Push outcomes
    pulled: list[PulledTask] = field(default_factory=list)  # Pull outcomes
    conflicts: list[SyncConflict] = field(default_factory=list)
    errors: list[SyncError] = field(default_factory=list)
    cancelled: bool = False
    fatal: bool = False

    @property
    def summary(self) -> SyncSummary:
        """Counters derived from the outcome lists."""
        unchanged = sum(1 for t in self.tasks if t.operation == PushOperation.UNCHANGED)
        return SyncSummary(
            pushed=len(self.tasks) - unchanged,
            pulled=len(self.pulled),
            unchanged=unchanged,
            conflicts=len(self.conflicts),
            errors=len(self.errors),
        )

    @property
    def has_errors(self) -> bool:
        """Whether any errors occurred."""
        return len(self.errors) > 0

    @property
    def success(self) -> bool:
        """True iff the run finished without errors."""
        return not self.has_errors and not self.cancelled and not self.fatal

    @property
    def conflicted_task_ids(self) -> set[str]:
        return {c.task_id for c in self.conflicts}

    @classmethod
    def fatal_result(
        cls,
        message: str,
        operation: ErrorOperation = ErrorOperation.PUSH,
    ) -> "SyncResult":
        """Result for a run aborted by an unexpected exception."""
        return cls(
            errors=[SyncError(operation=operation, message=message, retryable=False)],
            fatal=True,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the response body."""
        data: dict[str, Any] = {
            "success": self.success,
            "summary": self.summary.to_dict(),
            "tasks": [t.to_dict() for t in self.tasks],
            "pulled": [p.to_dict() for p in self.pulled],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.cancelled:
            data["cancelled"] = True
        if self.fatal:
            data["error"] = self.errors[0].message if self.errors else "Sync failed"
        return data
