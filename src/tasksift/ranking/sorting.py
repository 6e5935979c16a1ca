"""Multi-criteria ordering of scored tasks."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from functools import cmp_to_key

from tasksift.config import StatusSettings
from tasksift.models import QueryIntent, ScoredTask, SortCriterion
from tasksift.ranking.filters import status_key

logger = logging.getLogger(__name__)

_Comparator = Callable[[ScoredTask, ScoredTask], int]


def resolve_sort_sequence(
    sequence: Sequence[SortCriterion],
    intent: QueryIntent,
) -> tuple[SortCriterion, ...]:
    """Replace ``auto`` placeholders, then drop repeats keeping first occurrences."""

    auto = SortCriterion.RELEVANCE if intent.has_keywords else SortCriterion.DUE_DATE
    resolved = [auto if criterion is SortCriterion.AUTO else criterion for criterion in sequence]
    return tuple(dict.fromkeys(resolved))


def sort_scored_tasks(
    scored: Sequence[ScoredTask],
    sequence: Sequence[SortCriterion],
    *,
    status_settings: StatusSettings,
) -> list[ScoredTask]:
    """Stable lexicographic sort over the resolved criteria; no criteria keeps input order."""

    if not sequence:
        return list(scored)
    comparators = [_comparator(criterion, status_settings) for criterion in sequence]

    def _compare(left: ScoredTask, right: ScoredTask) -> int:
        for comparator in comparators:
            result = comparator(left, right)
            if result != 0:
                return result
        return 0

    return sorted(scored, key=cmp_to_key(_compare))


def _comparator(criterion: SortCriterion, status_settings: StatusSettings) -> _Comparator:
    if criterion is SortCriterion.RELEVANCE:
        return lambda left, right: _cmp(right.relevance, left.relevance)
    if criterion is SortCriterion.DUE_DATE:
        return lambda left, right: _cmp_missing_last(left.task.due_date, right.task.due_date)
    if criterion is SortCriterion.PRIORITY:
        return lambda left, right: _cmp_missing_last(left.task.priority, right.task.priority)
    if criterion is SortCriterion.STATUS:
        order = {key: index for index, key in enumerate(status_settings.categories)}

        def _status_rank(item: ScoredTask) -> int:
            return order.get(status_key(item.task.status, status_settings), len(order))

        return lambda left, right: _cmp(_status_rank(left), _status_rank(right))
    if criterion is SortCriterion.CREATED:
        return _compare_created
    if criterion is SortCriterion.ALPHABETICAL:
        return lambda left, right: _cmp(left.task.text.casefold(), right.task.text.casefold())
    logger.warning("Unresolved sort criterion %r ignored", criterion)
    return lambda _left, _right: 0


def _cmp(left, right) -> int:
    return (left > right) - (left < right)


def _cmp_missing_last(left, right) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    return _cmp(left, right)


def _compare_created(left: ScoredTask, right: ScoredTask) -> int:
    left_created, right_created = left.task.created_date, right.task.created_date
    if left_created is None or right_created is None:
        return _cmp_missing_last(left_created, right_created)
    return _cmp(right_created, left_created)
