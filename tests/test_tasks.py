from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import allure
import pytest

from tasksift.tasks import JsonTaskSource, load_tasks_json

pytestmark = [
    allure.epic("Task Snapshot"),
    allure.feature("JSON Loader"),
]


def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), "utf-8")
    return path


def test_load_tasks_from_array(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        [
            {
                "id": 7,
                "text": "  Fix login bug ",
                "status": "inProgress",
                "priority": 1,
                "dueDate": "2026-03-18T09:00:00",
                "createdDate": "2026-03-01",
                "folder": "Work/Backend",
                "tags": ["#work/api"],
            },
            {"text": "修复错误", "due_date": "2026-04-01", "completed_date": "2026-04-02"},
        ],
    )

    first, second = load_tasks_json(path)

    assert first.task_id == "7"
    assert first.text == "Fix login bug"
    assert first.status == "inProgress"
    assert first.priority == 1
    assert first.due_date == date(2026, 3, 18)
    assert first.created_date == date(2026, 3, 1)
    assert first.tags == ("#work/api",)
    assert second.task_id == "2"
    assert second.status == "open"
    assert second.due_date == date(2026, 4, 1)
    assert second.completed_date == date(2026, 4, 2)


def test_load_tasks_from_wrapped_object(tmp_path: Path) -> None:
    path = _write(tmp_path, {"tasks": [{"id": "a", "text": "Write docs"}]})

    tasks = JsonTaskSource(path).snapshot()

    assert [task.task_id for task in tasks] == ["a"]


@pytest.mark.parametrize(
    ("payload", "error", "message"),
    [
        ({"items": []}, TypeError, "Expected JSON array"),
        (["not an object"], TypeError, r"tasks\[0\] must be an object"),
        ([{"text": " "}], ValueError, "text must be a non-empty string"),
        ([{"text": "x", "priority": 5}], ValueError, "priority must be 1-4"),
        ([{"text": "x", "priority": True}], ValueError, "priority must be 1-4"),
        ([{"text": "x", "tags": "work"}], TypeError, "tags must be an array"),
        ([{"text": "x", "dueDate": "next friday"}], ValueError, "is not an ISO date"),
        ([{"text": "x", "dueDate": 20260318}], TypeError, "must be an ISO date string"),
    ],
)
def test_load_tasks_rejects_invalid_records(
    tmp_path: Path,
    payload: object,
    error: type[Exception],
    message: str,
) -> None:
    path = _write(tmp_path, payload)

    with pytest.raises(error, match=message):
        load_tasks_json(path)


def test_load_tasks_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("{not json", "utf-8")

    with pytest.raises(ValueError, match="Invalid task JSON"):
        load_tasks_json(path)
