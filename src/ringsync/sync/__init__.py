"""GitHub Issues sync package."""

from .codec import (
    MARKER_LABEL,
    IssueFields,
    decode_issue,
    decode_issues,
    encode_issue,
    encode_issue_body,
    encode_labels,
    extract_task_id,
    parse_issue_body,
)
from .conflicts import ChangeDirection, classify_change, detect_conflict
from .engine import GitHubSyncEngine, Pacer, SyncPhase
from .health import HealthReport, find_duplicate_groups, find_orphans, run_health_check
from .labels import LABEL_SCHEMA, LabelOutcome, LabelReconciler, LabelSyncResult, required_labels
from .matcher import DEFAULT_STRATEGIES, IssueMatcher, Pairing, resolve_owner

__all__ = [
    "DEFAULT_STRATEGIES",
    "LABEL_SCHEMA",
    "MARKER_LABEL",
    "ChangeDirection",
    "GitHubSyncEngine",
    "HealthReport",
    "IssueFields",
    "IssueMatcher",
    "LabelOutcome",
    "LabelReconciler",
    "LabelSyncResult",
    "Pacer",
    "Pairing",
    "SyncPhase",
    "classify_change",
    "decode_issue",
    "decode_issues",
    "detect_conflict",
    "encode_issue",
    "encode_issue_body",
    "encode_labels",
    "extract_task_id",
    "find_duplicate_groups",
    "find_orphans",
    "parse_issue_body",
    "required_labels",
    "resolve_owner",
    "run_health_check",
]
