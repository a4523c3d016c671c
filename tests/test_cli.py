"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from conftest import FakeGitHubClient

from ringsync.__main__ import parse_args
from ringsync.cli.health import run_health
from ringsync.cli.sync import run_sync
from ringsync.cli.tasks_file import TasksFileError, load_tasks
from ringsync.github.client import GitHubAuthError


@pytest.fixture
def tasks_yaml(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text(
        "tasks:\n"
        "  - id: t-1\n"
        "    title: Write docs\n"
        "    priority: high\n"
        "    acceptanceCriteria:\n"
        "      - Has examples\n"
    )
    return path


class TestParseArgs:
    """Tests for argument parsing."""

    def test_sync_command(self):
        args = parse_args(["-vv", "sync", "--repo", "o/r", "--tasks", "t.yaml"])
        assert args.command == "sync"
        assert args.verbose == 2
        assert args.direction == "push"
        assert args.output is None

    def test_direction_choices(self):
        with pytest.raises(SystemExit):
            parse_args(["sync", "--repo", "o/r", "--tasks", "t.yaml", "--direction", "up"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestLoadTasks:
    """Tests for load_tasks."""

    def test_mapping_with_tasks_key(self, tasks_yaml):
        tasks = load_tasks(tasks_yaml)
        assert len(tasks) == 1
        assert tasks[0].priority.value == "high"
        assert tasks[0].acceptance_criteria == ["Has examples"]

    def test_json_list(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([{"id": "a", "title": "A"}, {"id": "b", "title": "B"}]))
        assert [t.id for t in load_tasks(path)] == ["a", "b"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("")
        assert load_tasks(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(TasksFileError, match="not found"):
            load_tasks(tmp_path / "nope.yaml")

    def test_invalid_task(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("- title: no id\n")
        with pytest.raises(TasksFileError, match="Invalid tasks"):
            load_tasks(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text("just a string\n")
        with pytest.raises(TasksFileError):
            load_tasks(path)


class TestRunSync:
    """Tests for run_sync."""

    def test_no_token(self, settings, tasks_yaml, capsys):
        with patch.dict("os.environ", {}, clear=True):
            exit_code = run_sync(settings, "o/r", tasks_yaml)
        assert exit_code == 1
        assert "token not configured" in capsys.readouterr().err

    def test_push_and_write_output(self, settings, tasks_yaml, tmp_path, capsys):
        fake = FakeGitHubClient()
        output = tmp_path / "out" / "result.json"
        with (
            patch.dict("os.environ", {"GITHUB_TOKEN": "tok"}),
            patch("ringsync.cli.sync.GitHubClient", return_value=fake),
        ):
            exit_code = run_sync(settings, "o/r", tasks_yaml, "push", output)

        assert exit_code == 0
        assert "Pushed: 1" in capsys.readouterr().out
        data = json.loads(output.read_text())
        assert data["success"] is True
        assert data["tasks"][0]["operation"] == "created"
        assert fake.closed

    def test_auth_failure(self, settings, tasks_yaml, capsys):
        fake = FakeGitHubClient()
        fake.fail_on["list_labels"] = GitHubAuthError("Bad credentials", 401)
        with (
            patch.dict("os.environ", {"GITHUB_TOKEN": "tok"}),
            patch("ringsync.cli.sync.GitHubClient", return_value=fake),
        ):
            exit_code = run_sync(settings, "o/r", tasks_yaml)

        assert exit_code == 1
        assert "authentication failed" in capsys.readouterr().err


class TestRunHealth:
    """Tests for run_health."""

    def test_reports_checks(self, settings, capsys):
        with (
            patch.dict("os.environ", {"GITHUB_TOKEN": "tok"}),
            patch("ringsync.cli.health.GitHubClient", return_value=FakeGitHubClient()),
        ):
            exit_code = run_health(settings, "o/r")

        assert exit_code == 0
        assert "repoAccess" in capsys.readouterr().out
