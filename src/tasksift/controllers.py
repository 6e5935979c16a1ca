"""Controllers for query CLI commands."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path

from tasksift.assistant.cli_assistant import CliAssistant
from tasksift.config import Settings
from tasksift.models import DueDateRange, QueryIntent, ScoredTask
from tasksift.pipeline import AnalysisError, QueryPipeline
from tasksift.tasks import JsonTaskSource, TaskSource


@dataclass(slots=True)
class SearchCommand:
    """CLI inputs for the search command."""

    tasks_path: Path
    query: str
    mode: str
    today: date | None
    limit: int
    assistant_command: str | None


@dataclass(slots=True)
class ParseCommand:
    """CLI inputs for the parse command."""

    query: str
    assistant_command: str | None


@dataclass(slots=True)
class AnalyzeCommand:
    """CLI inputs for the analyze command."""

    tasks_path: Path
    query: str
    today: date | None
    assistant_command: str | None


@dataclass(slots=True)
class AnalyzeResult:
    """Printable analysis outcome."""

    success: bool
    lines: list[str]


class QueryCliController:
    """Coordinates query command execution."""

    def search(self, command: SearchCommand) -> list[str]:
        settings = _settings(command.assistant_command)
        pipeline = _pipeline(settings)
        source: TaskSource = JsonTaskSource(command.tasks_path)
        tasks = source.snapshot()
        result = pipeline.search(
            command.query,
            tasks,
            today=command.today or date.today(),
            mode=command.mode,
        )

        lines = [
            *render_intent_lines(result.intent),
            "Ranking: "
            f"sort={','.join(criterion.value for criterion in result.sort_sequence)} "
            f"matched={result.matched_count} kept={len(result.tasks)} "
            f"threshold={result.threshold:.2f} max={result.max_score:.2f}",
        ]
        for position, item in enumerate(result.tasks[: command.limit], start=1):
            lines.append(render_task_line(position, item))
        if not result.tasks:
            lines.append("No matching tasks.")
        return lines

    def parse(self, command: ParseCommand) -> list[str]:
        settings = _settings(command.assistant_command)
        pipeline = _pipeline(settings)
        return render_intent_lines(pipeline.resolve_intent(command.query))

    def analyze(self, command: AnalyzeCommand) -> AnalyzeResult:
        settings = _settings(command.assistant_command)
        if not settings.assistant.command_template:
            raise ValueError(
                "Analysis needs an assistant command. "
                "Set TASKSIFT_ASSISTANT_COMMAND or pass --assistant-command.",
            )
        pipeline = _pipeline(settings)
        source: TaskSource = JsonTaskSource(command.tasks_path)
        tasks = source.snapshot()
        try:
            result = pipeline.analyze(command.query, tasks, today=command.today or date.today())
        except AnalysisError as error:
            failure = error.failure
            return AnalyzeResult(
                success=False,
                lines=[
                    f"Analysis failed ({failure.kind.value}, model={failure.model}): "
                    f"{failure.message}",
                    f"Solution: {failure.solution}",
                ],
            )

        response = result.response
        lines = [response.text or "No matching tasks to analyze."]
        if response.recommended:
            lines.append("Top tasks:" if not response.references else "Cited tasks:")
            for number, task in enumerate(response.recommended, start=1):
                lines.append(f"  Task {number}: {task.text} [{task.task_id}]")
        if response.unresolved:
            lines.append(f"Unresolved citations: {', '.join(response.unresolved)}")
        return AnalyzeResult(success=True, lines=lines)


def render_intent_lines(intent: QueryIntent) -> list[str]:
    due = intent.due_date
    if isinstance(due, DueDateRange):
        due = due.describe()
    return [
        "Intent: "
        f"vague={str(intent.vague).lower()} source={intent.source.value} "
        f"confidence={intent.confidence:.2f}",
        f"  keywords: {', '.join(intent.keywords) or '-'}",
        f"  core keywords: {', '.join(intent.core_keywords) or '-'}",
        f"  priority: {_format_priority(intent.priority)}",
        f"  due: {due or '-'}",
        f"  status: {', '.join(intent.status) or '-'}",
        f"  folder: {intent.folder or '-'}",
        f"  tags: {', '.join(intent.tags) or '-'}",
    ]


def render_task_line(position: int, item: ScoredTask) -> str:
    task = item.task
    details = [f"status={task.status}"]
    if task.priority is not None:
        details.append(f"P{task.priority}")
    if task.due_date is not None:
        details.append(f"due={task.due_date.isoformat()}")
    if task.folder:
        details.append(f"folder={task.folder}")
    return f"{position}. {task.text} ({' '.join(details)}) score={item.total:.2f}"


def _format_priority(priority: object) -> str:
    if priority is None:
        return "-"
    if isinstance(priority, tuple):
        return ",".join(f"P{level}" for level in priority)
    if isinstance(priority, int):
        return f"P{priority}"
    return str(priority)


def _settings(assistant_command: str | None) -> Settings:
    settings = Settings.from_env()
    if assistant_command:
        settings = replace(
            settings,
            assistant=replace(settings.assistant, command_template=assistant_command),
        )
    settings.validate()
    return settings


def _pipeline(settings: Settings) -> QueryPipeline:
    if not settings.assistant.command_template:
        return QueryPipeline(settings)
    assistant = CliAssistant(settings.assistant)
    return QueryPipeline(settings, intent_assistant=assistant, analysis_assistant=assistant)
