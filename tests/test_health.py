"""Tests for the repository health report."""

from conftest import T0, T1, T2, FakeGitHubClient

from ringsync.github.client import GitHubAuthError, GitHubNotFoundError
from ringsync.models import IssueState
from ringsync.sync.health import (
    CheckStatus,
    find_duplicate_groups,
    find_orphans,
    run_health_check,
)

MARKER = "<!-- ringmaster-task-id:{} -->"


class TestFindDuplicateGroups:
    """Tests for find_duplicate_groups."""

    def test_oldest_is_kept(self, make_issue):
        issues = [
            make_issue(number=3, body=MARKER.format("a"), created_at=T2),
            make_issue(number=1, body=MARKER.format("a"), created_at=T0),
            make_issue(number=2, body=MARKER.format("a"), created_at=T1),
            make_issue(number=4, body=MARKER.format("b")),
            make_issue(number=5),
        ]
        groups = find_duplicate_groups(issues)

        assert len(groups) == 1
        assert groups[0].task_id == "a"
        assert groups[0].keep.number == 1
        assert [i.number for i in groups[0].duplicates] == [2, 3]

    def test_no_duplicates(self, make_issue):
        assert find_duplicate_groups([make_issue(number=1, body=MARKER.format("a"))]) == []


class TestFindOrphans:
    """Tests for find_orphans."""

    def test_closed_without_task(self, make_task, make_issue):
        tasks = [make_task("a")]
        issues = [
            make_issue(number=1, body=MARKER.format("a"), state=IssueState.CLOSED),
            make_issue(number=2, body=MARKER.format("gone"), state=IssueState.CLOSED),
            make_issue(number=3, body=MARKER.format("new")),
        ]
        assert [i.number for i in find_orphans(issues, tasks)] == [2]


class TestRunHealthCheck:
    """Tests for run_health_check."""

    def test_healthy(self, settings, make_issue):
        client = FakeGitHubClient([make_issue(number=1, body=MARKER.format("a"))])
        report = run_health_check(client, "owner/repo", settings=settings)

        assert report.healthy
        names = [c.name for c in report.checks]
        assert names == ["authentication", "repoAccess", "issueCount", "duplicateCheck"]
        assert report.to_dict()["summary"] == {"healthy": True, "warnings": 0, "errors": 0}

    def test_read_only(self, settings, make_task, make_issue):
        issues = [
            make_issue(number=1, body=MARKER.format("a")),
            make_issue(number=2, body=MARKER.format("a"), created_at=T1),
        ]
        client = FakeGitHubClient(issues)
        run_health_check(client, "owner/repo", [make_task("b")], settings)

        assert {c[0] for c in client.calls} == {"get_repository", "list_issues"}

    def test_duplicates_and_orphans_warn(self, settings, make_task, make_issue):
        issues = [
            make_issue(number=1, body=MARKER.format("a")),
            make_issue(number=2, body=MARKER.format("a"), created_at=T1),
            make_issue(number=3, body=MARKER.format("gone"), state=IssueState.CLOSED),
        ]
        report = run_health_check(
            FakeGitHubClient(issues), "owner/repo", [make_task("a")], settings
        )

        assert report.warnings == 2
        assert report.errors == 0
        body = report.to_dict()
        assert body["success"] is True
        assert body["duplicateGroups"][0]["keepIssue"] == 1
        assert body["duplicateGroups"][0]["duplicates"] == [2]
        assert body["orphans"] == [3]

    def test_empty_task_list_still_checks_orphans(self, settings, make_issue):
        """With no local tasks every closed managed issue is an orphan."""
        issues = [
            make_issue(number=1, body=MARKER.format("a"), state=IssueState.CLOSED),
            make_issue(number=2, body=MARKER.format("b")),
        ]
        report = run_health_check(FakeGitHubClient(issues), "owner/repo", [], settings)

        assert [i.number for i in report.orphans] == [1]
        assert report.checks[-1].name == "orphanCheck"
        assert report.checks[-1].status == CheckStatus.WARNING


    def test_auth_failure(self, settings):
        client = FakeGitHubClient()
        client.fail_on["get_repository"] = GitHubAuthError("Bad credentials", 401)
        report = run_health_check(client, "owner/repo", settings=settings)

        assert report.errors == 1
        assert report.checks[0].status == CheckStatus.ERROR
        assert client.calls_to("list_issues") == []

    def test_missing_repo(self, settings):
        client = FakeGitHubClient()
        client.fail_on["get_repository"] = GitHubNotFoundError("Not Found", 404)
        report = run_health_check(client, "owner/repo", settings=settings)

        assert [c.status for c in report.checks] == [CheckStatus.OK, CheckStatus.ERROR]
        assert report.to_dict()["success"] is False
