from __future__ import annotations

import allure

from tasksift.assistant.references import reconcile_references, strip_reasoning
from tasksift.models import TaskRecord

pytestmark = [
    allure.epic("Task Analysis"),
    allure.feature("Citation Reconciliation"),
]


def _tasks(count: int) -> list[TaskRecord]:
    return [TaskRecord(task_id=f"id-{index}", text=f"Task {index}") for index in range(1, count + 1)]


def test_citations_are_numbered_by_first_mention() -> None:
    tasks = _tasks(50)
    response = "Start with [TASK_42], then [TASK_15]. Revisit [TASK_42] before [TASK_3]."

    result = reconcile_references(response, tasks, max_recommendations=5)

    assert result.text == (
        "Start with **Task 1**, then **Task 2**. Revisit **Task 1** before **Task 3**."
    )
    assert [reference.display_number for reference in result.references] == [1, 2, 3]
    assert [reference.citation_id for reference in result.references] == ["42", "15", "3"]
    assert [task.task_id for task in result.recommended] == ["id-42", "id-15", "id-3"]
    assert not result.used_fallback


def test_unknown_citation_stays_verbatim() -> None:
    tasks = _tasks(3)

    result = reconcile_references("Try [TASK_99] or [TASK_2].", tasks, max_recommendations=5)

    assert result.text == "Try [TASK_99] or **Task 1**."
    assert result.unresolved == ["99"]
    assert [task.task_id for task in result.recommended] == ["id-2"]
    assert not result.used_fallback


def test_fallback_to_top_tasks_when_no_citation_resolves() -> None:
    tasks = _tasks(4)

    result = reconcile_references(
        "Focus on [TASK_abc] and [TASK_0].",
        tasks,
        max_recommendations=2,
    )

    assert result.used_fallback
    assert result.references == []
    assert result.unresolved == ["abc", "0"]
    assert [task.task_id for task in result.recommended] == ["id-1", "id-2"]


def test_response_without_citations_recommends_top_tasks_without_fallback_flag() -> None:
    result = reconcile_references("Take a break.", _tasks(3), max_recommendations=5)

    assert result.text == "Take a break."
    assert len(result.recommended) == 3
    assert not result.used_fallback


def test_reasoning_blocks_are_stripped_before_citations() -> None:
    tasks = _tasks(3)
    response = "<think>compare [TASK_1] with [TASK_3]</think>\nDo [TASK_2] first."

    result = reconcile_references(response, tasks, max_recommendations=5)

    assert result.text == "Do **Task 1** first."
    assert [task.task_id for task in result.recommended] == ["id-2"]


def test_strip_reasoning_handles_multiple_tags() -> None:
    text = "<Thinking>a</Thinking>answer<reasoning>\nb\n</reasoning> done"

    assert strip_reasoning(text) == "answer done"
