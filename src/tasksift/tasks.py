"""Task snapshot sources: the protocol and a JSON file loader."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Protocol

from tasksift.models import TaskRecord


class TaskSource(Protocol):
    """Protocol implemented by task index providers."""

    def snapshot(self) -> Sequence[TaskRecord]:
        """Return a read-only task snapshot for one query."""


class JsonTaskSource:
    """Task source backed by an already-parsed JSON export."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def snapshot(self) -> list[TaskRecord]:
        return load_tasks_json(self._path)


def load_tasks_json(path: Path) -> list[TaskRecord]:
    """Read task records from a JSON array (or ``{"tasks": [...]}``) file."""

    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid task JSON at {path}") from error
    if isinstance(payload, dict):
        payload = payload.get("tasks")
    if not isinstance(payload, list):
        raise TypeError(f"Expected JSON array of tasks in {path}")
    return [_task_from_dict(item, index) for index, item in enumerate(payload)]


def _task_from_dict(item: object, index: int) -> TaskRecord:  # noqa: C901
    if not isinstance(item, dict):
        raise TypeError(f"tasks[{index}] must be an object")
    text = item.get("text")
    if not isinstance(text, str) or not text.strip():
        raise ValueError(f"tasks[{index}].text must be a non-empty string")
    task_id = item.get("id", item.get("task_id", str(index + 1)))
    if not isinstance(task_id, str | int):
        raise TypeError(f"tasks[{index}].id must be a string or integer")
    status = item.get("status", "open")
    if not isinstance(status, str):
        raise TypeError(f"tasks[{index}].status must be a string")
    priority = item.get("priority")
    if priority is not None and (
        not isinstance(priority, int) or isinstance(priority, bool) or not 1 <= priority <= 4
    ):
        raise ValueError(f"tasks[{index}].priority must be 1-4 or null")
    folder = item.get("folder", "")
    if not isinstance(folder, str):
        raise TypeError(f"tasks[{index}].folder must be a string")
    tags = item.get("tags", [])
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise TypeError(f"tasks[{index}].tags must be an array of strings")
    return TaskRecord(
        task_id=str(task_id),
        text=text.strip(),
        status=status,
        priority=priority,
        due_date=_optional_date(item, ("dueDate", "due_date"), index),
        folder=folder,
        tags=tuple(tags),
        created_date=_optional_date(item, ("createdDate", "created_date"), index),
        completed_date=_optional_date(item, ("completedDate", "completed_date"), index),
    )


def _optional_date(item: dict, names: tuple[str, ...], index: int) -> date | None:
    for name in names:
        raw = item.get(name)
        if raw is None:
            continue
        if not isinstance(raw, str):
            raise TypeError(f"tasks[{index}].{name} must be an ISO date string")
        try:
            return date.fromisoformat(raw[:10])
        except ValueError as error:
            raise ValueError(f"tasks[{index}].{name} is not an ISO date: {raw!r}") from error
    return None
