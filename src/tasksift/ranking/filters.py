"""Compound filtering of task records by query intent."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from tasksift.config import StatusSettings
from tasksift.models import PriorityFilter, QueryIntent, TaskRecord
from tasksift.query.properties import resolve_status_value
from tasksift.ranking.dates import matches_due

logger = logging.getLogger(__name__)


def filter_tasks(
    tasks: Iterable[TaskRecord],
    intent: QueryIntent,
    *,
    status_settings: StatusSettings,
    today: date,
) -> list[TaskRecord]:
    """Keep tasks that satisfy every populated intent field, preserving input order."""

    wanted_tags = tuple(
        normalize_tag(tag, status_settings.tag_marker) for tag in intent.tags if tag.strip()
    )
    folder = intent.folder.lower() if intent.folder else None
    keywords = tuple(keyword.casefold() for keyword in intent.keywords)

    kept: list[TaskRecord] = []
    total = 0
    for task in tasks:
        total += 1
        if intent.priority is not None and not _matches_priority(task.priority, intent.priority):
            continue
        if intent.due_date is not None and not matches_due(task.due_date, intent.due_date, today):
            continue
        if intent.status and status_key(task.status, status_settings) not in intent.status:
            continue
        if folder is not None and folder not in task.folder.lower():
            continue
        if wanted_tags and not _matches_tags(task.tags, wanted_tags, status_settings.tag_marker):
            continue
        if keywords:
            text = task.text.casefold()
            if not any(keyword in text for keyword in keywords):
                continue
        kept.append(task)
    logger.debug("Filtered %s of %s tasks", len(kept), total)
    return kept


def status_key(status: str, status_settings: StatusSettings) -> str:
    """Return the task's category key from a key, name, alias or checkbox symbol.

    Unrecognized statuses fall into ``other``.
    """

    categories = status_settings.categories
    if status in categories:
        return status
    for key, category in categories.items():
        if status in category.symbols:
            return key
    return resolve_status_value(status, categories) or "other"


def normalize_tag(tag: str, marker: str = "#") -> str:
    return tag.strip().removeprefix(marker).lower()


def _matches_priority(priority: int | None, wanted: PriorityFilter) -> bool:
    if wanted == "any":
        return priority is not None
    if wanted == "none":
        return priority is None
    if isinstance(wanted, tuple):
        return priority in wanted
    return priority == wanted


def _matches_tags(tags: tuple[str, ...], wanted: tuple[str, ...], marker: str) -> bool:
    normalized = [normalize_tag(tag, marker) for tag in tags]
    for expected in wanted:
        for tag in normalized:
            if tag == expected or tag.startswith(f"{expected}/"):
                return True
    return False
