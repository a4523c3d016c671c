"""Conversion between tasks and GitHub issue fields.

Issue bodies written by the engine have this layout, with empty sections
left out entirely:

    <!-- ringmaster-task-id:TASK_ID -->

    Description in markdown.

    ## Acceptance Criteria

    - [ ] First criterion
    - [ ] Second criterion

    ## Notes

    Free-form notes.

    ---
    *Priority: high*
    *Effort: medium*
    *Value: low*

Priority, status, effort and category travel as labels; the footer is for
humans reading the issue, except for value, which has no label.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeVar

from ..models import (
    INITIAL_STATUS,
    TERMINAL_STATUS,
    Effort,
    IssueState,
    Priority,
    RemoteIssue,
    Status,
    SyncStatus,
    Task,
    Value,
)
from ..utils.datetime import latest, now_utc

MARKER_LABEL = "ringmaster"
MARKER_PATTERN = re.compile(r"<!-- ringmaster-task-id:(\S+) -->")
SYNTHETIC_ID_PREFIX = "gh-"

CRITERIA_HEADING = "Acceptance Criteria"
NOTES_HEADING = "Notes"
FOOTER_SEPARATOR = "---"

# "- [ ] item" / "- [x] item"; checkbox state is ignored on the way back
CHECKLIST_ITEM = re.compile(r"^[-*] \[[ xX]\] ?(.*)$")
# "*Priority: high*"
FOOTER_FIELD = re.compile(r"^\*(\w+):\s*(.*?)\*$")

E = TypeVar("E", bound=Enum)


class Section(Enum):
    """Named regions of an issue body."""

    DESCRIPTION = "description"
    CRITERIA = "criteria"
    NOTES = "notes"
    OTHER = "other"  # Any heading we don't own
    FOOTER = "footer"


@dataclass
class IssueFields:
    """The remote state a task should have."""

    title: str
    body: str
    labels: list[str]
    state: IssueState


@dataclass
class ParsedBody:
    """An issue body split into its named sections."""

    task_id: str | None = None
    description: str = ""
    acceptance_criteria: list[str] = field(default_factory=list)
    notes: str | None = None
    footer: dict[str, str] = field(default_factory=dict)


def marker_line(task_id: str) -> str:
    """The hidden HTML comment linking an issue to a task."""
    return f"<!-- ringmaster-task-id:{task_id} -->"


def extract_task_id(body: str | None) -> str | None:
    """Return the task id embedded in an issue body, if any."""
    if not body:
        return None
    match = MARKER_PATTERN.search(body)
    return match.group(1) if match else None


def synthetic_task_id(issue_number: int) -> str:
    """Task id for an issue that never carried a marker."""
    return f"{SYNTHETIC_ID_PREFIX}{issue_number}"


def _label_value(value: str) -> str:
    return value.replace("_", "-")


def _single_line(text: str) -> str:
    """Join a multi-line value so it fits on one checklist line."""
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


def issue_state_for(task: Task) -> IssueState:
    """Closed once the task reaches the terminal status, open otherwise."""
    return IssueState.CLOSED if task.status == TERMINAL_STATUS else IssueState.OPEN


def encode_issue_body(task: Task) -> str:
    """Render a task as an issue body. The marker is always the first line."""
    lines = [marker_line(task.id), ""]

    description = task.description.strip()
    if description:
        lines.extend([description, ""])

    criteria = [_single_line(c) for c in task.acceptance_criteria if c.strip()]
    if criteria:
        lines.extend([f"## {CRITERIA_HEADING}", ""])
        lines.extend(f"- [ ] {criterion}" for criterion in criteria)
        lines.append("")

    notes = (task.notes or "").strip()
    if notes:
        lines.extend([f"## {NOTES_HEADING}", "", notes, ""])

    lines.append(FOOTER_SEPARATOR)
    lines.append(f"*Priority: {task.priority.value}*")
    if task.effort:
        lines.append(f"*Effort: {task.effort.value}*")
    if task.value:
        lines.append(f"*Value: {task.value.value}*")

    return "\n".join(lines)


def encode_labels(task: Task, marker_label: str = MARKER_LABEL) -> list[str]:
    """Labels a task's issue should carry, in a stable order."""
    labels = [marker_label, f"priority:{task.priority.value}"]
    if task.status != INITIAL_STATUS:
        labels.append(f"status:{_label_value(task.status.value)}")
    if task.effort:
        labels.append(f"effort:{_label_value(task.effort.value)}")
    if task.category:
        labels.append(f"category:{task.category}")
    return labels


def encode_issue(task: Task, marker_label: str = MARKER_LABEL) -> IssueFields:
    """Everything a push writes for a task."""
    return IssueFields(
        title=task.title,
        body=encode_issue_body(task),
        labels=encode_labels(task, marker_label),
        state=issue_state_for(task),
    )


def _classify_heading(line: str) -> Section | None:
    """Return the section a "## " heading opens, or None if not a heading."""
    if not line.startswith("## "):
        return None
    name = line[3:].strip().lower()
    if name == CRITERIA_HEADING.lower():
        return Section.CRITERIA
    if name == NOTES_HEADING.lower():
        return Section.NOTES
    return Section.OTHER


def _footer_start(lines: list[str]) -> int | None:
    """Index of the "---" line that opens the footer, if the body has one.

    Only the last "---" counts, and only when every non-blank line after it
    is a footer field; a horizontal rule inside notes or the description is
    ordinary content.
    """
    for index in range(len(lines) - 1, -1, -1):
        if lines[index].strip() != FOOTER_SEPARATOR:
            continue
        trailing = [line.strip() for line in lines[index + 1 :] if line.strip()]
        if all(FOOTER_FIELD.match(line) for line in trailing):
            return index
        return None
    return None


def parse_issue_body(body: str | None) -> ParsedBody:
    """Split an issue body into marker, description, criteria, notes and footer.

    The description is everything before the first "## " heading (or the
    footer). Text under headings other than ours is dropped.
    """
    parsed = ParsedBody()
    buckets: dict[Section, list[str]] = {section: [] for section in Section}
    current = Section.DESCRIPTION

    lines = [raw_line.rstrip() for raw_line in (body or "").splitlines()]
    footer_start = _footer_start(lines)

    for index, line in enumerate(lines):
        if parsed.task_id is None:
            match = MARKER_PATTERN.search(line)
            if match:
                parsed.task_id = match.group(1)
                line = (line[: match.start()] + line[match.end() :]).rstrip()
                if not line.strip():
                    continue

        stripped = line.strip()
        heading = _classify_heading(stripped)
        if heading is not None:
            current = heading
            continue
        if index == footer_start:
            current = Section.FOOTER
            continue

        buckets[current].append(line)

    parsed.description = "\n".join(buckets[Section.DESCRIPTION]).strip()

    for line in buckets[Section.CRITERIA]:
        match = CHECKLIST_ITEM.match(line.strip())
        if match and match.group(1).strip():
            parsed.acceptance_criteria.append(match.group(1).strip())

    notes = "\n".join(buckets[Section.NOTES]).strip()
    parsed.notes = notes or None

    for line in buckets[Section.FOOTER]:
        match = FOOTER_FIELD.match(line.strip())
        if match:
            parsed.footer[match.group(1).lower()] = match.group(2).strip()

    return parsed


def _parse_enum(enum_cls: type[E], raw: str | None) -> E | None:
    if raw is None:
        return None
    try:
        return enum_cls(raw.strip().lower().replace("-", "_"))
    except ValueError:
        return None


def decode_issue(
    issue: RemoteIssue,
    existing_task: Task | None = None,
    now: datetime | None = None,
) -> Task:
    """Build the task snapshot an issue represents.

    Args:
        issue: The remote issue
        existing_task: The local task already paired with this issue, if any
        now: Decode time (defaults to the current UTC time)

    Returns:
        A new Task; the existing task is not modified
    """
    parsed = parse_issue_body(issue.body)
    task_id = parsed.task_id or (existing_task.id if existing_task else None)
    if task_id is None:
        task_id = synthetic_task_id(issue.number)

    priority = Priority.MEDIUM
    status = INITIAL_STATUS
    effort: Effort | None = None
    category: str | None = None

    for label in issue.labels:
        prefix, sep, raw = label.partition(":")
        if not sep:
            continue
        prefix = prefix.strip().lower()
        if prefix == "priority":
            priority = _parse_enum(Priority, raw) or priority
        elif prefix == "status":
            status = _parse_enum(Status, raw) or status
        elif prefix == "effort":
            effort = _parse_enum(Effort, raw) or effort
        elif prefix == "category":
            category = raw or category

    if issue.is_closed and status != TERMINAL_STATUS:
        status = TERMINAL_STATUS

    tags = list(existing_task.tags) if existing_task else []
    if category and category not in tags:
        tags.append(category)

    decoded_at = now or now_utc()
    last_synced = decoded_at
    if existing_task is not None:
        last_synced = latest(decoded_at, existing_task.last_synced_at) or decoded_at

    return Task(
        id=task_id,
        title=issue.title,
        description=parsed.description,
        priority=priority,
        status=status,
        effort=effort,
        value=_parse_enum(Value, parsed.footer.get("value")),
        category=category,
        tags=tags,
        acceptance_criteria=parsed.acceptance_criteria,
        notes=parsed.notes,
        created_at=existing_task.created_at if existing_task else issue.created_at,
        updated_at=issue.updated_at,
        github_issue_number=issue.number,
        github_issue_url=issue.html_url or None,
        last_synced_at=last_synced,
        last_local_modified_at=existing_task.last_local_modified_at if existing_task else None,
        last_remote_modified_at=issue.updated_at,
        sync_status=SyncStatus.SYNCED,
    )


def decode_issues(
    issues: list[RemoteIssue],
    existing_tasks: list[Task] | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """Decode a batch of issues, pairing each with its local task when known.

    A local task is found by the issue's embedded task id first, then by the
    task's recorded issue number.
    """
    by_id = {task.id: task for task in existing_tasks or []}
    by_number = {
        task.github_issue_number: task
        for task in existing_tasks or []
        if task.github_issue_number is not None
    }

    decoded = []
    for issue in issues:
        task_id = extract_task_id(issue.body)
        existing = by_id.get(task_id) if task_id else None
        if existing is None:
            existing = by_number.get(issue.number)
        decoded.append(decode_issue(issue, existing, now))
    return decoded
