"""Tests for pairing tasks with issues."""

from ringsync.sync.matcher import IssueMatcher, resolve_owner


class TestIssueMatcher:
    """Tests for IssueMatcher.match."""

    def test_no_match(self, make_task, make_issue):
        matcher = IssueMatcher([make_issue(number=1, title="Other")])
        assert matcher.match(make_task()) is None

    def test_reference_beats_marker_and_title(self, make_task, make_issue):
        task = make_task(task_id="t-1", title="Same", github_issue_number=3)
        issues = [
            make_issue(number=1, title="Same"),
            make_issue(number=2, title="x", body="<!-- ringmaster-task-id:t-1 -->"),
            make_issue(number=3, title="y"),
        ]
        pairing = IssueMatcher(issues).match(task)
        assert pairing.issue.number == 3
        assert pairing.strategy == "reference"

    def test_marker_beats_title(self, make_task, make_issue):
        task = make_task(task_id="t-1", title="Same")
        issues = [
            make_issue(number=1, title="Same"),
            make_issue(number=2, title="Renamed", body="<!-- ringmaster-task-id:t-1 -->"),
        ]
        pairing = IssueMatcher(issues).match(task)
        assert pairing.issue.number == 2
        assert pairing.strategy == "marker"

    def test_stale_reference_falls_through(self, make_task, make_issue):
        """A recorded number missing from the snapshot is ignored."""
        task = make_task(task_id="t-1", github_issue_number=99)
        issues = [make_issue(number=2, body="<!-- ringmaster-task-id:t-1 -->")]
        assert IssueMatcher(issues).match(task).issue.number == 2

    def test_title_requires_marker_label(self, make_task, make_issue):
        task = make_task(title="Write docs")
        unlabeled = make_issue(number=1, title="Write docs", labels=["bug"])
        assert IssueMatcher([unlabeled]).match(task) is None

        labeled = make_issue(number=2, title="Write docs")
        pairing = IssueMatcher([unlabeled, labeled]).match(task)
        assert pairing.issue.number == 2
        assert pairing.strategy == "title"

    def test_title_match_is_exact(self, make_task, make_issue):
        issue = make_issue(number=1, title="write docs")
        assert IssueMatcher([issue]).match(make_task(title="Write docs")) is None

    def test_issue_claimed_once(self, make_task, make_issue):
        """Two tasks with the same title cannot share one issue."""
        matcher = IssueMatcher([make_issue(number=1, title="Dup")])
        first = matcher.match(make_task("a", title="Dup"))
        second = matcher.match(make_task("b", title="Dup"))

        assert first.issue.number == 1
        assert second is None
        assert matcher.is_claimed(1)

    def test_custom_strategies(self, make_task, make_issue):
        def by_first(task, issues, marker_label):
            return issues[0] if issues else None

        matcher = IssueMatcher([make_issue(number=5, title="z")], strategies=[("any", by_first)])
        assert matcher.match(make_task()).strategy == "any"


class TestResolveOwner:
    """Tests for resolve_owner."""

    def test_by_marker(self, make_task, make_issue):
        tasks = [make_task("a"), make_task("b", github_issue_number=1)]
        issue = make_issue(number=1, body="<!-- ringmaster-task-id:a -->")
        assert resolve_owner(issue, tasks).id == "a"

    def test_by_number(self, make_task, make_issue):
        tasks = [make_task("a"), make_task("b", github_issue_number=1)]
        assert resolve_owner(make_issue(number=1), tasks).id == "b"

    def test_unknown_marker_falls_back_to_number(self, make_task, make_issue):
        tasks = [make_task("b", github_issue_number=1)]
        issue = make_issue(number=1, body="<!-- ringmaster-task-id:gone -->")
        assert resolve_owner(issue, tasks).id == "b"

    def test_none(self, make_task, make_issue):
        assert resolve_owner(make_issue(number=1), [make_task("a")]) is None
