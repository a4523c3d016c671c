"""Shared fixtures: an in-memory GitHub and builders for tasks and issues."""

from datetime import UTC, datetime, timedelta

import pytest

from ringsync.config.settings import Settings
from ringsync.github.client import GitHubNotFoundError
from ringsync.models import IssueState, RemoteIssue, Task

T0 = datetime(2025, 1, 1, tzinfo=UTC)
T1 = datetime(2025, 1, 2, tzinfo=UTC)
T2 = datetime(2025, 1, 3, tzinfo=UTC)
T3 = datetime(2025, 1, 4, tzinfo=UTC)


class FakeGitHubClient:
    """Stands in for GitHubClient, keeping issues and labels in memory.

    `fail_on` maps a method name to the exception it should raise;
    `fail_titles` makes create_issue fail for specific titles.
    """

    def __init__(self, issues=None, labels=None):
        self.issues: dict[int, RemoteIssue] = {i.number: i for i in issues or []}
        self.labels: list[str] = list(labels or [])
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}
        self.fail_titles: dict[str, Exception] = {}
        self.on_create = None
        self.clock = datetime(2025, 6, 1, tzinfo=UTC)
        self.closed = False

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name in self.fail_on:
            raise self.fail_on[name]

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    def _tick(self) -> datetime:
        self.clock += timedelta(seconds=1)
        return self.clock

    def get_repository(self, repo):
        self._record("get_repository", repo)
        return {"full_name": repo}

    def list_labels(self, repo, per_page=100):
        self._record("list_labels", repo, per_page=per_page)
        return [{"name": name} for name in self.labels]

    def create_label(self, repo, name, color, description):
        self._record("create_label", repo, name, color, description)
        self.labels.append(name)
        return {"name": name, "color": color}

    def list_issues(self, repo, label, state="all", per_page=100):
        self._record("list_issues", repo, label, state=state, per_page=per_page)
        issues = [i for i in self.issues.values() if i.has_label(label)]
        return issues[:per_page]

    def create_issue(self, repo, title, body, labels):
        self._record("create_issue", repo, title, body, labels)
        if title in self.fail_titles:
            raise self.fail_titles[title]
        number = max(self.issues, default=0) + 1
        now = self._tick()
        issue = RemoteIssue(
            number=number,
            title=title,
            body=body,
            labels=list(labels),
            created_at=now,
            updated_at=now,
            html_url=f"https://github.com/{repo}/issues/{number}",
        )
        self.issues[number] = issue
        if self.on_create is not None:
            self.on_create(issue)
        return issue

    def update_issue(self, repo, number, **fields):
        self._record("update_issue", repo, number, **fields)
        if number not in self.issues:
            raise GitHubNotFoundError("Not Found", 404)
        if "state" in fields:
            fields["state"] = IssueState(fields["state"])
        fields["updated_at"] = self._tick()
        updated = self.issues[number].model_copy(update=fields)
        self.issues[number] = updated
        return updated

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@pytest.fixture
def fake_client():
    return FakeGitHubClient()


@pytest.fixture
def settings(tmp_path):
    """Settings with no pacing and no real config file."""
    return Settings(api_delay=0, config_file=tmp_path / "config.json")


@pytest.fixture
def make_task():
    def _make(task_id="task-1", title="Write docs", **fields) -> Task:
        return Task(id=task_id, title=title, **fields)

    return _make


@pytest.fixture
def make_issue():
    def _make(number=1, title="Write docs", body=None, **fields) -> RemoteIssue:
        fields.setdefault("labels", ["ringmaster", "priority:medium"])
        fields.setdefault("created_at", T0)
        fields.setdefault("updated_at", T0)
        fields.setdefault("html_url", f"https://github.com/owner/repo/issues/{number}")
        return RemoteIssue(number=number, title=title, body=body, **fields)

    return _make
