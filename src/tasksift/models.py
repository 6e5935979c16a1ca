"""Domain models shared by query resolution, ranking and assistant adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class SortCriterion(str, Enum):
    """Task ordering keys; ``auto`` resolves per query."""

    AUTO = "auto"
    RELEVANCE = "relevance"
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    STATUS = "status"
    CREATED = "created"
    ALPHABETICAL = "alphabetical"


class DueOperator(str, Enum):
    """Comparison operator of a due-date range."""

    LT = "<"
    LE = "<="
    EQ = "="
    GE = ">="
    GT = ">"
    BETWEEN = "between"


class IntentSource(str, Enum):
    """Where the reconciled intent fields came from."""

    DETERMINISTIC = "deterministic"
    ASSISTANT = "assistant"
    MERGED = "merged"


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """Read-only task snapshot supplied by the host task index."""

    task_id: str
    text: str
    status: str = "open"
    priority: int | None = None
    due_date: date | None = None
    folder: str = ""
    tags: tuple[str, ...] = ()
    created_date: date | None = None
    completed_date: date | None = None


@dataclass(frozen=True, slots=True)
class DueDateRange:
    """Due-date comparison against a keyword anchor or ISO date.

    ``end`` is only used by ``between`` ranges.
    """

    operator: DueOperator
    anchor: str
    end: str | None = None

    def describe(self) -> str:
        if self.operator is DueOperator.BETWEEN:
            return f"{self.anchor}..{self.end}"
        return f"{self.operator.value}{self.anchor}"


PriorityFilter = int | tuple[int, ...] | str
DueDateFilter = str | DueDateRange


@dataclass(frozen=True, slots=True)
class QueryIntent:
    """Structured interpretation of one user query.

    ``keywords`` is the operative set used for filtering and scoring,
    ``core_keywords`` the pre-expansion terms used for relevance ratios.
    """

    keywords: tuple[str, ...] = ()
    core_keywords: tuple[str, ...] = ()
    priority: PriorityFilter | None = None
    due_date: DueDateFilter | None = None
    status: tuple[str, ...] = ()
    folder: str | None = None
    tags: tuple[str, ...] = ()
    vague: bool = False
    corrections: tuple[str, ...] = ()
    confidence: float = 1.0
    source: IntentSource = IntentSource.DETERMINISTIC

    @property
    def has_keywords(self) -> bool:
        return bool(self.keywords)

    @property
    def has_properties(self) -> bool:
        return (
            self.priority is not None
            or self.due_date is not None
            or bool(self.status)
            or self.folder is not None
            or bool(self.tags)
        )


@dataclass(slots=True)
class ScoredTask:
    """Task with its component scores for one query."""

    task: TaskRecord
    relevance: float = 0.0
    due_date_score: float = 0.0
    priority_score: float = 0.0
    status_score: float = 0.0
    total: float = 0.0


@dataclass(slots=True)
class AssistantParse:
    """Partial intent returned by the external intent assistant.

    Absent fields stay ``None`` or empty; ``expansions`` maps a core keyword
    to its semantic variations across the configured languages.
    """

    keywords: list[str] = field(default_factory=list)
    expansions: dict[str, list[str]] = field(default_factory=dict)
    priority: PriorityFilter | None = None
    due_date: DueDateFilter | None = None
    status: list[str] = field(default_factory=list)
    folder: str | None = None
    tags: list[str] = field(default_factory=list)
    is_vague: bool | None = None
    confidence: float | None = None
    corrected_terms: list[str] = field(default_factory=list)
