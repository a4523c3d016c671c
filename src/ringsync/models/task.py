"""Task domain model."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.datetime import ensure_utc, latest


class Priority(str, Enum):
    """Task priority, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    SOMEDAY = "someday"


class Status(str, Enum):
    """Workflow status, in workflow order."""

    BACKLOG = "backlog"  # Initial state
    UP_NEXT = "up_next"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    READY_TO_SHIP = "ready_to_ship"  # Terminal state, maps to a closed issue


class Effort(str, Enum):
    """Estimated effort."""

    TRIVIAL = "trivial"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Value(str, Enum):
    """Estimated business value."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SyncStatus(str, Enum):
    """Status of a task's sync state with GitHub."""

    UNSYNCED = "unsynced"  # Never pushed or pulled
    SYNCED = "synced"  # In sync with remote as of last_synced_at
    CONFLICT = "conflict"  # Both local and remote changed


INITIAL_STATUS = Status.BACKLOG
TERMINAL_STATUS = Status.READY_TO_SHIP


class Task(BaseModel):
    """A single backlog item.

    Field names are snake_case in Python and camelCase on the wire
    (``lastSyncedAt``, ``githubIssueNumber``, ...), so the JSON a caller
    sends validates directly with ``Task.model_validate``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Identity and content
    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = INITIAL_STATUS
    effort: Effort | None = None
    value: Value | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    acceptance_criteria: list[str] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Sync metadata
    github_issue_number: int | None = None
    github_issue_url: str | None = None
    last_synced_at: datetime | None = None
    last_local_modified_at: datetime | None = None
    last_remote_modified_at: datetime | None = None
    sync_status: SyncStatus = SyncStatus.UNSYNCED

    @field_validator(
        "created_at",
        "updated_at",
        "last_synced_at",
        "last_local_modified_at",
        "last_remote_modified_at",
    )
    @classmethod
    def validate_timezone(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so they compare with GitHub's."""
        return ensure_utc(v) if v is not None else None

    @property
    def is_terminal(self) -> bool:
        """Whether the task has reached the end of the workflow."""
        return self.status == TERMINAL_STATUS

    @property
    def local_modified_at(self) -> datetime | None:
        """Latest known local modification time."""
        return latest(self.last_local_modified_at, self.updated_at)

    def to_payload(self) -> dict:
        """Convert to a camelCase JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
