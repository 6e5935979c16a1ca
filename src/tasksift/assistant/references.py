"""Rewrite assistant task citations into stable display numbers."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from tasksift.models import TaskRecord

logger = logging.getLogger(__name__)

_CITATION_RE = re.compile(r"\[TASK_([A-Za-z0-9_-]+)\]")
_REASONING_RE = re.compile(
    r"<(think|thinking|reasoning|thought)>.*?</\1>",
    re.DOTALL | re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class TaskReference:
    """One cited task and the number it is displayed under."""

    display_number: int
    citation_id: str
    task: TaskRecord


@dataclass(slots=True)
class ReconciledResponse:
    """Assistant text with citations rewritten plus the recommended tasks."""

    text: str
    references: list[TaskReference] = field(default_factory=list)
    recommended: list[TaskRecord] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    used_fallback: bool = False


def strip_reasoning(text: str) -> str:
    """Remove model reasoning blocks such as ``<think>...</think>``."""

    return _REASONING_RE.sub("", text).strip()


def reconcile_references(
    response: str,
    tasks: Sequence[TaskRecord],
    *,
    max_recommendations: int,
) -> ReconciledResponse:
    """Number cited tasks by first mention and rewrite ``[TASK_<id>]`` tokens.

    ``<id>`` is the 1-based position of the task in ``tasks``. Repeated
    citations reuse the first number; unknown ids are left untouched. When no
    citation resolves, the top ``max_recommendations`` tasks are recommended
    instead.
    """

    numbers: dict[str, int] = {}
    references: list[TaskReference] = []
    unresolved: list[str] = []
    attempts = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal attempts
        attempts += 1
        citation_id = match.group(1)
        number = numbers.get(citation_id)
        if number is None:
            task = _resolve(citation_id, tasks)
            if task is None:
                if citation_id not in unresolved:
                    unresolved.append(citation_id)
                    logger.warning(
                        "Assistant cited unknown task id %s (%s tasks provided)",
                        citation_id,
                        len(tasks),
                    )
                return match.group(0)
            number = len(references) + 1
            numbers[citation_id] = number
            references.append(
                TaskReference(display_number=number, citation_id=citation_id, task=task),
            )
        return f"**Task {number}**"

    text = _CITATION_RE.sub(_replace, strip_reasoning(response))

    if references:
        return ReconciledResponse(
            text=text,
            references=references,
            recommended=[reference.task for reference in references],
            unresolved=unresolved,
        )

    if attempts:
        logger.warning("No assistant citation resolved; recommending top-ranked tasks")
    return ReconciledResponse(
        text=text,
        recommended=list(tasks[: max(0, max_recommendations)]),
        unresolved=unresolved,
        used_fallback=attempts > 0,
    )


def _resolve(citation_id: str, tasks: Sequence[TaskRecord]) -> TaskRecord | None:
    if not citation_id.isdigit():
        return None
    position = int(citation_id)
    if 1 <= position <= len(tasks):
        return tasks[position - 1]
    return None
