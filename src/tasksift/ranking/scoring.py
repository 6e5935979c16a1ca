"""Multi-component task scoring with query-dependent activation gates."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from tasksift.config import Settings
from tasksift.models import QueryIntent, ScoredTask, SortCriterion, TaskRecord
from tasksift.ranking.filters import status_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScoreGates:
    """Which score components contribute for one query."""

    relevance: bool
    due_date: bool
    priority: bool
    status: bool

    @classmethod
    def for_query(cls, intent: QueryIntent, sort_sequence: Sequence[SortCriterion]) -> ScoreGates:
        return cls(
            relevance=intent.has_keywords,
            due_date=intent.due_date is not None or SortCriterion.DUE_DATE in sort_sequence,
            priority=intent.priority is not None or SortCriterion.PRIORITY in sort_sequence,
            status=bool(intent.status) or SortCriterion.STATUS in sort_sequence,
        )


class ScoringEngine:
    """Compute weighted component scores and the maximum achievable score."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def score(
        self,
        tasks: Iterable[TaskRecord],
        intent: QueryIntent,
        sort_sequence: Sequence[SortCriterion],
        *,
        today: date,
    ) -> list[ScoredTask]:
        gates = ScoreGates.for_query(intent, sort_sequence)
        scoring = self._settings.scoring
        logger.debug(
            "Score gates relevance=%s due=%s priority=%s status=%s",
            gates.relevance,
            gates.due_date,
            gates.priority,
            gates.status,
        )

        scored: list[ScoredTask] = []
        for task in tasks:
            item = ScoredTask(task=task)
            if gates.relevance:
                item.relevance = self.relevance_score(task, intent)
            if gates.due_date:
                item.due_date_score = self.due_date_score(task.due_date, today)
            if gates.priority:
                item.priority_score = self.priority_score(task.priority)
            if gates.status:
                item.status_score = self.status_score(task.status)
            item.total = (
                item.relevance * scoring.relevance_coefficient
                + item.due_date_score * scoring.due_date_coefficient
                + item.priority_score * scoring.priority_coefficient
                + item.status_score * scoring.status_coefficient
            )
            scored.append(item)
        return scored

    def max_score(self, intent: QueryIntent, sort_sequence: Sequence[SortCriterion]) -> float:
        """Highest total any task could reach under the same gates as ``score``."""

        gates = ScoreGates.for_query(intent, sort_sequence)
        scoring = self._settings.scoring
        total = 0.0
        if gates.relevance:
            total += (
                scoring.relevance_core_weight + scoring.relevance_all_weight
            ) * scoring.relevance_coefficient
        if gates.due_date:
            total += (
                max(
                    scoring.due_overdue,
                    scoring.due_within_week,
                    scoring.due_within_month,
                    scoring.due_later,
                    scoring.due_none,
                )
                * scoring.due_date_coefficient
            )
        if gates.priority:
            total += (
                max([*scoring.priority_scores.values(), scoring.priority_none])
                * scoring.priority_coefficient
            )
        if gates.status:
            categories = self._settings.status.categories.values()
            total += max((category.score for category in categories), default=0.0) * (
                scoring.status_coefficient
            )
        return total

    def relevance_score(self, task: TaskRecord, intent: QueryIntent) -> float:
        """Core-keyword coverage plus all-keyword matches relative to the core count."""

        scoring = self._settings.scoring
        core = intent.core_keywords or intent.keywords
        if not core:
            return 0.0
        text = task.text.casefold()
        core_matched = sum(1 for keyword in core if keyword.casefold() in text)
        all_matched = sum(1 for keyword in intent.keywords if keyword.casefold() in text)
        core_ratio = core_matched / len(core)
        all_ratio = min(all_matched / len(core), 1.0)
        return core_ratio * scoring.relevance_core_weight + all_ratio * scoring.relevance_all_weight

    def due_date_score(self, due: date | None, today: date) -> float:
        scoring = self._settings.scoring
        if due is None:
            return scoring.due_none
        days_until = (due - today).days
        if days_until < 0:
            return scoring.due_overdue
        if days_until <= 7:
            return scoring.due_within_week
        if days_until <= 30:
            return scoring.due_within_month
        return scoring.due_later

    def priority_score(self, priority: int | None) -> float:
        scoring = self._settings.scoring
        if priority is None:
            return scoring.priority_none
        return scoring.priority_scores.get(priority, scoring.priority_none)

    def status_score(self, status: str) -> float:
        key = status_key(status, self._settings.status)
        return self._settings.status.category_for(key).score
