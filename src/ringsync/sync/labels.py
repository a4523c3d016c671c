"""Ensure the label taxonomy exists on the repository before issues use it."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..github.client import GitHubAuthError, GitHubClientError, GitHubValidationError
from ..models import ErrorOperation, SyncError, Task
from .codec import MARKER_LABEL, encode_labels

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelDef:
    """Color and description for a label the engine owns."""

    color: str
    description: str


LABEL_SCHEMA: dict[str, LabelDef] = {
    MARKER_LABEL: LabelDef("7057FF", "Managed by Ringmaster"),
    # Priority
    "priority:critical": LabelDef("B60205", "Critical priority"),
    "priority:high": LabelDef("D93F0B", "High priority"),
    "priority:medium": LabelDef("FBCA04", "Medium priority"),
    "priority:low": LabelDef("0E8A16", "Low priority"),
    "priority:someday": LabelDef("C5DEF5", "Someday/maybe"),
    # Status (kanban columns)
    "status:backlog": LabelDef("EDEDED", "In backlog"),
    "status:up-next": LabelDef("C2E0C6", "Up next"),
    "status:in-progress": LabelDef("0052CC", "In progress"),
    "status:review": LabelDef("5319E7", "In review"),
    "status:ready-to-ship": LabelDef("0E8A16", "Ready to ship"),
    # Effort
    "effort:trivial": LabelDef("BFDADC", "Trivial effort"),
    "effort:low": LabelDef("C2E0C6", "Low effort"),
    "effort:medium": LabelDef("FEF2C0", "Medium effort"),
    "effort:high": LabelDef("F9D0C4", "High effort"),
    "effort:very-high": LabelDef("E99695", "Very high effort"),
}

DEFAULT_LABEL = LabelDef("EDEDED", "Auto-created by Ringmaster")


def label_definition(name: str, marker_label: str = MARKER_LABEL) -> LabelDef:
    """Known definition for a schema label, default for anything else."""
    if name == marker_label:
        return LABEL_SCHEMA[MARKER_LABEL]
    return LABEL_SCHEMA.get(name, DEFAULT_LABEL)


def required_labels(tasks: Iterable[Task], marker_label: str = MARKER_LABEL) -> list[str]:
    """Union of the marker label and every label the tasks would carry."""
    labels = [marker_label]
    seen = {marker_label}
    for task in tasks:
        for label in encode_labels(task, marker_label):
            if label not in seen:
                seen.add(label)
                labels.append(label)
    return labels


class LabelOutcome(str, Enum):
    """Result of trying to create one label."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"  # 422: created concurrently or case variant
    FAILED = "failed"


@dataclass
class LabelCreateResult:
    """Typed outcome of one create-label call."""

    name: str
    outcome: LabelOutcome
    error: GitHubClientError | None = None


@dataclass
class LabelSyncResult:
    """Labels created during reconciliation plus non-fatal errors."""

    created: list[str] = field(default_factory=list)
    errors: list[SyncError] = field(default_factory=list)


class LabelReconciler:
    """Creates missing labels. Never fails a run, except on auth errors."""

    def __init__(
        self,
        client: GitHubClient,
        page_size: int = 100,
        marker_label: str = MARKER_LABEL,
    ):
        self._client = client
        self._page_size = page_size
        self._marker_label = marker_label

    def create_label(self, repo: str, name: str) -> LabelCreateResult:
        """Create one label, treating "already exists" as success.

        Raises:
            GitHubAuthError: Token rejected
        """
        definition = label_definition(name, self._marker_label)
        try:
            self._client.create_label(repo, name, definition.color, definition.description)
        except GitHubAuthError:
            raise
        except GitHubValidationError as e:
            logger.debug("Label %s already exists (%s)", name, e.status_code)
            return LabelCreateResult(name, LabelOutcome.ALREADY_EXISTS)
        except GitHubClientError as e:
            return LabelCreateResult(name, LabelOutcome.FAILED, e)
        return LabelCreateResult(name, LabelOutcome.CREATED)

    def ensure(self, repo: str, required: Iterable[str]) -> LabelSyncResult:
        """Create every required label missing from the repository.

        Args:
            repo: Repository in "owner/name" form
            required: Label names that must exist

        Returns:
            LabelSyncResult with created labels and recorded errors

        Raises:
            GitHubAuthError: Token rejected
        """
        result = LabelSyncResult()

        try:
            existing = self._client.list_labels(repo, per_page=self._page_size)
        except GitHubAuthError:
            raise
        except GitHubClientError as e:
            logger.warning("Failed to fetch labels for %s: %s", repo, e)
            result.errors.append(
                SyncError(
                    operation=ErrorOperation.LABEL,
                    message=f"Failed to fetch labels: {e}",
                )
            )
            return result

        existing_names = {label.get("name", "").lower() for label in existing}

        for name in required:
            if name.lower() in existing_names:
                continue

            created = self.create_label(repo, name)
            if created.outcome == LabelOutcome.FAILED:
                logger.warning("Failed to create label %s: %s", name, created.error)
                result.errors.append(
                    SyncError(
                        operation=ErrorOperation.LABEL,
                        message=f"Failed to create label {name}: {created.error}",
                    )
                )
                continue

            existing_names.add(name.lower())
            if created.outcome == LabelOutcome.CREATED:
                result.created.append(name)

        if result.created:
            logger.info("Created %d labels: %s", len(result.created), result.created)
        return result
