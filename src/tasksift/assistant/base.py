"""Collaborator interfaces for external language-model assistants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from tasksift.assistant.failure_classifier import AnalysisFailure
from tasksift.models import AssistantParse, QueryIntent, TaskRecord


class AssistantRunError(RuntimeError):
    """Assistant call failed; ``failure`` carries the classified cause."""

    def __init__(self, failure: AnalysisFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure


@dataclass(slots=True)
class IntentRequest:
    """Inputs for one intent-parsing call."""

    query: str
    core_keywords: list[str]
    languages: tuple[str, ...]
    expansions_per_keyword: int
    status_keys: tuple[str, ...] = ()


@dataclass(slots=True)
class AnalysisRequest:
    """Ranked tasks handed to the analysis assistant.

    The citation id of each task is its 1-based position in ``tasks``.
    """

    query: str
    intent: QueryIntent
    tasks: list[TaskRecord] = field(default_factory=list)


class IntentAssistant(Protocol):
    """Protocol implemented by intent-parsing collaborators."""

    def parse(self, request: IntentRequest) -> AssistantParse:
        """Return a partial intent; raise ``AssistantRunError`` on failure."""


class AnalysisAssistant(Protocol):
    """Protocol implemented by recommendation collaborators."""

    def analyze(self, request: AnalysisRequest) -> str:
        """Return free text citing tasks as ``[TASK_<id>]``."""
