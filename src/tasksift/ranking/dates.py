"""Due-date anchor resolution relative to an injected ``today``."""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, timedelta

from tasksift.models import DueDateFilter, DueDateRange, DueOperator

logger = logging.getLogger(__name__)

_RELATIVE_RE = re.compile(r"^\+(\d+)([dw])$")


def period_bounds(anchor: str, today: date) -> tuple[date, date] | None:
    """Return the inclusive date span an anchor denotes, or None for open-ended keywords."""

    if anchor == "today":
        return today, today
    if anchor == "tomorrow":
        day = today + timedelta(days=1)
        return day, day
    if anchor == "yesterday":
        day = today - timedelta(days=1)
        return day, day
    if anchor in {"this-week", "next-week"}:
        start = today - timedelta(days=today.weekday())
        if anchor == "next-week":
            start += timedelta(days=7)
        return start, start + timedelta(days=6)
    if anchor in {"this-month", "next-month"}:
        year, month = today.year, today.month
        if anchor == "next-month":
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)

    relative = _RELATIVE_RE.match(anchor)
    if relative is not None:
        amount = int(relative.group(1))
        days = amount * 7 if relative.group(2) == "w" else amount
        return today, today + timedelta(days=days)
    try:
        day = date.fromisoformat(anchor)
    except ValueError:
        return None
    return day, day


def matches_due(due: date | None, value: DueDateFilter, today: date) -> bool:
    """Check a task due date against a keyword, ISO date or range filter."""

    if isinstance(value, DueDateRange):
        return _matches_range(due, value, today)
    if value == "any":
        return due is not None
    if value == "none":
        return due is None
    if due is None:
        return False
    if value == "overdue":
        return due < today
    if value == "future":
        return due > today
    bounds = period_bounds(value, today)
    if bounds is None:
        logger.warning("Unknown due-date filter %r", value)
        return False
    start, end = bounds
    return start <= due <= end


def _matches_range(due: date | None, value: DueDateRange, today: date) -> bool:
    if due is None:
        return False
    bounds = period_bounds(value.anchor, today)
    if bounds is None:
        logger.warning("Unsupported due-date range anchor %r", value.anchor)
        return False
    start, end = bounds

    if value.operator is DueOperator.BETWEEN:
        end_bounds = period_bounds(value.end or value.anchor, today)
        if end_bounds is None:
            logger.warning("Unsupported due-date range end %r", value.end)
            return False
        return start <= due <= end_bounds[1]

    result: bool
    if value.operator is DueOperator.LT:
        result = due < start
    elif value.operator is DueOperator.LE:
        result = due <= end
    elif value.operator is DueOperator.GE:
        result = due >= start
    elif value.operator is DueOperator.GT:
        result = due > end
    else:
        result = start <= due <= end
    return result
