"""Data models."""

from .issue import IssueState, RemoteIssue
from .sync import (
    ConflictType,
    ErrorOperation,
    PulledTask,
    PullOperation,
    PushOperation,
    SyncConflict,
    SyncDirection,
    SyncedTask,
    SyncError,
    SyncResult,
    SyncSummary,
)
from .task import (
    INITIAL_STATUS,
    TERMINAL_STATUS,
    Effort,
    Priority,
    Status,
    SyncStatus,
    Task,
    Value,
)

__all__ = [
    "INITIAL_STATUS",
    "TERMINAL_STATUS",
    "ConflictType",
    "Effort",
    "ErrorOperation",
    "IssueState",
    "Priority",
    "PullOperation",
    "PulledTask",
    "PushOperation",
    "RemoteIssue",
    "Status",
    "SyncConflict",
    "SyncDirection",
    "SyncError",
    "SyncResult",
    "SyncStatus",
    "SyncSummary",
    "SyncedTask",
    "Task",
    "Value",
]
