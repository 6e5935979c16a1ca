"""Shared test fixtures."""

from __future__ import annotations

import os
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

from tasksift.config import Settings
from tasksift.models import TaskRecord

TODAY = date(2026, 3, 18)

ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{sys.executable} -m tasksift.assistant.echo_agent --prompt-file {{prompt_file}}"
)

_SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def make_task(task_id: str, text: str, **fields) -> TaskRecord:
    return TaskRecord(task_id=task_id, text=text, **fields)


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def bug_tasks() -> list[TaskRecord]:
    """Ten tasks where exactly two are P1 and mention fixing a bug."""

    return [
        make_task("t1", "Fix bug in login flow", priority=1),
        make_task("t2", "Fix crash bug on startup", priority=1),
        make_task("t3", "Fix bug in search results", priority=2),
        make_task("t4", "Write release notes", priority=1),
        make_task("t5", "Plan sprint review", priority=1),
        make_task("t6", "Fix typo in docs", priority=3),
        make_task("t7", "Update dependencies"),
        make_task("t8", "Bug triage meeting", priority=2),
        make_task("t9", "Call the accountant", priority=4),
        make_task("t10", "Review pull requests", priority=1),
    ]


@pytest.fixture()
def dated_tasks() -> list[TaskRecord]:
    """Three overdue tasks, two due today and five without a due date."""

    return [
        make_task("o1", "Submit expense report", due_date=TODAY - timedelta(days=8)),
        make_task("o2", "Renew domain", due_date=TODAY - timedelta(days=3)),
        make_task("o3", "Reply to landlord", due_date=TODAY - timedelta(days=1)),
        make_task("d1", "Team standup notes", due_date=TODAY),
        make_task("d2", "Book dentist", due_date=TODAY),
        make_task("n1", "Read chapter four"),
        make_task("n2", "Clean garage"),
        make_task("n3", "Try new recipe"),
        make_task("n4", "Organize photos"),
        make_task("n5", "Learn chess openings"),
    ]


@pytest.fixture()
def echo_agent_env(monkeypatch) -> str:
    """Make the echo agent importable in subprocesses and return its command template."""

    existing = os.environ.get("PYTHONPATH", "")
    path = str(_SRC_DIR) if not existing else f"{_SRC_DIR}{os.pathsep}{existing}"
    monkeypatch.setenv("PYTHONPATH", path)
    return ECHO_AGENT_COMMAND_TEMPLATE
