"""GitHub issue model, as returned by the REST API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..utils.datetime import ensure_utc


class IssueState(str, Enum):
    """Open/closed state of a GitHub issue."""

    OPEN = "open"
    CLOSED = "closed"


class RemoteIssue(BaseModel):
    """A GitHub issue.

    Only the fields the sync engine reads are modelled; everything else in the
    REST payload is ignored.
    """

    number: int
    title: str
    body: str | None = None
    state: IssueState = IssueState.OPEN
    labels: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    html_url: str = ""

    @field_validator("labels", mode="before")
    @classmethod
    def flatten_labels(cls, v: Any) -> Any:
        """Accept REST label objects ({"name": ...}) as well as plain names."""
        if not isinstance(v, list):
            return v
        return [item.get("name", "") if isinstance(item, dict) else item for item in v]

    @field_validator("created_at", "updated_at")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return ensure_utc(v)

    @property
    def is_closed(self) -> bool:
        """Whether the issue is closed."""
        return self.state == IssueState.CLOSED

    def has_label(self, name: str) -> bool:
        """Case-insensitive label membership check."""
        wanted = name.lower()
        return any(label.lower() == wanted for label in self.labels)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteIssue":
        """Build from a REST API issue payload."""
        return cls.model_validate(data)
