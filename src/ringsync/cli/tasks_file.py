"""Loading task lists from YAML or JSON files."""

from pathlib import Path

import yaml
from pydantic import TypeAdapter

from ..models import Task

_TASKS = TypeAdapter(list[Task])


class TasksFileError(Exception):
    """The tasks file is missing or malformed."""

    pass


def load_tasks(path: Path) -> list[Task]:
    """Read tasks from a file holding a list, or a mapping with a "tasks" key.

    JSON files load too, since JSON is valid YAML.

    Raises:
        TasksFileError: File missing, unparsable or failing validation
    """
    if not path.exists():
        raise TasksFileError(f"Tasks file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise TasksFileError(f"Could not parse {path}: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("tasks", [])
    if not isinstance(data, list):
        raise TasksFileError(f"{path} must contain a list of tasks")

    try:
        return _TASKS.validate_python(data)
    except ValueError as e:
        raise TasksFileError(f"Invalid tasks in {path}: {e}") from e
