"""Deterministic extraction of task property filters from query text."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache

from tasksift.config import StatusCategory
from tasksift.models import DueDateFilter, DueDateRange, DueOperator, PriorityFilter
from tasksift.query.lexicon import VAGUE_INDICATORS, is_cjk

logger = logging.getLogger(__name__)

DUE_KEYWORDS: frozenset[str] = frozenset(
    {
        "any",
        "none",
        "today",
        "tomorrow",
        "yesterday",
        "overdue",
        "future",
        "this-week",
        "next-week",
        "this-month",
        "next-month",
    },
)
# Due keywords with no date span; they cannot anchor a range.
SPANLESS_DUE_KEYWORDS: frozenset[str] = frozenset({"any", "none", "overdue", "future"})
_DUE_ALIASES: dict[str, str] = {
    "week": "this-week",
    "thisweek": "this-week",
    "this_week": "this-week",
    "nextweek": "next-week",
    "next_week": "next-week",
    "month": "this-month",
    "thismonth": "this-month",
    "this_month": "this-month",
    "nextmonth": "next-month",
    "next_month": "next-month",
    "all": "any",
    "no": "none",
}

PRIORITY_TERMS: dict[int, tuple[str, ...]] = {
    1: (
        "urgent",
        "urgently",
        "asap",
        "critical",
        "highest priority",
        "high priority",
        "top priority",
        "紧急",
        "高优先级",
        "最高优先级",
        "dringend",
        "urgente",
    ),
    2: ("medium priority", "normal priority", "中优先级", "中等优先级"),
    3: ("low priority", "低优先级"),
    4: ("lowest priority", "最低优先级"),
}
DUE_TERMS: dict[str, tuple[str, ...]] = {
    "today": ("today", "due today", "今天", "今日", "heute", "aujourd'hui", "hoy"),
    "tomorrow": ("tomorrow", "due tomorrow", "明天", "demain", "mañana"),
    "yesterday": ("yesterday", "昨天"),
    "overdue": ("overdue", "past due", "逾期", "已过期", "过期"),
    "future": ("upcoming", "future", "未来"),
    "this-week": ("this week", "本周", "这周"),
    "next-week": ("next week", "下周"),
    "this-month": ("this month", "本月", "这个月"),
    "next-month": ("next month", "下个月", "下月"),
    "none": ("no due date", "without due date", "no deadline", "没有截止日期"),
}
GENERIC_DUE_TERMS: tuple[str, ...] = (
    "due date",
    "due",
    "deadline",
    "deadlines",
    "scheduled",
    "有截止日期",
    "截止",
    "到期",
)

_DATE_VALUE = (
    r"\d{4}-\d{2}-\d{2}|today|tomorrow|yesterday|this-week|next-week|this-month|next-month"
    r"|\+\d+[dw]"
)
_RELATIVE_RE = re.compile(r"^\+(\d+)([dw])$")
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_FOLDER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'(?<!\w)folder:(?:"([^"]+)"|(\S+))', re.IGNORECASE),
    re.compile(r'(?<!\w)in\s+folder\s+(?:"([^"]+)"|(\S+))', re.IGNORECASE),
    re.compile(r"文件夹[:：]\s*(?:\"([^\"]+)\"|(\S+))"),
)
_TAG_WORD_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?<!\w)(?:tagged|with\s+tag)\s+#?([^\s,;]+)", re.IGNORECASE),
    re.compile(r"标签[:：]\s*#?([^\s,;]+)"),
)
_PRIORITY_FIELD_RE = re.compile(r"(?<!\w)(?:p|priority):([\w,]+)", re.IGNORECASE)
_PRIORITY_SHORT_RE = re.compile(r"(?<!\w)p([1-4])(?!\w)", re.IGNORECASE)
_STATUS_FIELD_RE = re.compile(r"(?<!\w)(?:s|status):(\S+)", re.IGNORECASE)
_DUE_BOUND_RE = re.compile(
    rf"(?<!\w)(?:due\s+)?(before|after)[:\s]\s*({_DATE_VALUE})(?![\w-])",
    re.IGNORECASE,
)
_DUE_BETWEEN_RE = re.compile(
    rf"(?<!\w)(?:due\s+)?(?:from|between)\s+({_DATE_VALUE})"
    rf"\s+(?:to|and)\s+({_DATE_VALUE})(?![\w-])",
    re.IGNORECASE,
)
_DUE_FIELD_RE = re.compile(r"(?<!\w)(?:d|due):(\S+)", re.IGNORECASE)
_DUE_WITHIN_RE = re.compile(
    r"(?<!\w)(?:due\s+)?(?:in|within)\s+(\d+)\s+(days?|weeks?)(?!\w)",
    re.IGNORECASE,
)
_ISO_DATE_RE = re.compile(r"(?<![\w-])(\d{4}-\d{2}-\d{2})(?![\w-])")
_TRAILING_PUNCTUATION = ".,;:!?。，；！？"


@dataclass(slots=True)
class ExtractedProperties:
    """Property filters found in a query plus the text left for keywords."""

    priority: PriorityFilter | None = None
    due_date: DueDateFilter | None = None
    status: tuple[str, ...] = ()
    folder: str | None = None
    tags: tuple[str, ...] = ()
    matched_terms: tuple[str, ...] = ()
    residual_text: str = ""
    used_syntax: bool = False

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
class _Collected:
    priorities: list[int] = field(default_factory=list)
    priority_keyword: str | None = None
    due_date: DueDateFilter | None = None
    status: list[str] = field(default_factory=list)
    folder: str | None = None
    tags: list[str] = field(default_factory=list)
    matched_terms: list[str] = field(default_factory=list)
    used_syntax: bool = False


def extract_properties(
    text: str,
    *,
    categories: Mapping[str, StatusCategory],
    tag_marker: str = "#",
) -> ExtractedProperties:
    """Scan ``text`` for property syntax and natural-language property terms.

    Recognized tokens are stripped from ``residual_text``. Unresolvable values
    are logged and dropped; the function never raises for user input.
    """

    collected = _Collected()
    remaining = text

    remaining = _extract_folder(remaining, collected)
    remaining = _extract_tags(remaining, collected, tag_marker=tag_marker)
    remaining = _extract_priority_syntax(remaining, collected)
    remaining = _extract_status_syntax(remaining, collected, categories)
    remaining = _extract_due_syntax(remaining, collected)
    remaining = _extract_terms(remaining, collected, categories)

    priority: PriorityFilter | None = collected.priority_keyword
    if priority is None and collected.priorities:
        unique = tuple(dict.fromkeys(collected.priorities))
        priority = unique[0] if len(unique) == 1 else unique

    return ExtractedProperties(
        priority=priority,
        due_date=collected.due_date,
        status=tuple(dict.fromkeys(collected.status)),
        folder=collected.folder,
        tags=tuple(dict.fromkeys(collected.tags)),
        matched_terms=tuple(dict.fromkeys(collected.matched_terms)),
        residual_text=" ".join(remaining.split()),
        used_syntax=collected.used_syntax,
    )


def normalize_due_value(raw: str) -> str | None:
    """Map a due-date value to a known keyword, ISO date or ``+N[dw]`` window."""

    value = raw.strip().lower().strip(_TRAILING_PUNCTUATION)
    value = _DUE_ALIASES.get(value, value)
    if value in DUE_KEYWORDS:
        return value
    if _RELATIVE_RE.match(value):
        return value
    if _ISO_RE.match(value):
        try:
            date.fromisoformat(value)
        except ValueError:
            return None
        return value
    return None


def resolve_status_value(value: str, categories: Mapping[str, StatusCategory]) -> str | None:
    """Resolve a user status value to a category key via key, name, alias or symbol."""

    raw = value.strip()
    if not raw:
        return None
    for key, category in categories.items():
        if raw in category.symbols and len(raw) == 1:
            return key
    wanted = _compact(raw)
    for key, category in categories.items():
        names = (key, category.display_name, *category.aliases)
        if any(_compact(name) == wanted for name in names):
            return key
    return None


def property_terms(categories: Mapping[str, StatusCategory]) -> frozenset[str]:
    """All natural-language words that trigger a property filter."""

    terms: set[str] = set(GENERIC_DUE_TERMS)
    for values in PRIORITY_TERMS.values():
        terms.update(values)
    for values in DUE_TERMS.values():
        terms.update(values)
    for category in categories.values():
        terms.update(category.aliases)
    return frozenset(term.lower() for term in terms)


def _extract_folder(text: str, collected: _Collected) -> str:
    def _on_folder(match: re.Match[str]) -> None:
        value = (match.group(1) or match.group(2) or "").strip()
        value = value.rstrip(_TRAILING_PUNCTUATION)
        collected.used_syntax = True
        if not value:
            return
        if collected.folder is None:
            collected.folder = value
        else:
            logger.debug("Ignoring extra folder filter %r", value)

    for pattern in _FOLDER_PATTERNS:
        text = _strip(pattern, text, _on_folder)
    return text


def _extract_tags(text: str, collected: _Collected, *, tag_marker: str) -> str:
    marker = re.escape(tag_marker)
    hashtag = re.compile(rf"(?<![\w{marker}]){marker}([^\s{marker},;]+)")

    def _on_tag(match: re.Match[str]) -> None:
        value = match.group(1).rstrip(_TRAILING_PUNCTUATION)
        collected.used_syntax = True
        if value:
            collected.tags.append(value)

    for pattern in (*_TAG_WORD_PATTERNS, hashtag):
        text = _strip(pattern, text, _on_tag)
    return text


def _extract_priority_syntax(text: str, collected: _Collected) -> str:
    def _on_field(match: re.Match[str]) -> None:
        collected.used_syntax = True
        for part in match.group(1).split(","):
            value = part.strip().lower()
            if not value:
                continue
            if value in {"all", "any"}:
                collected.priority_keyword = "any"
            elif value == "none":
                collected.priority_keyword = "none"
            elif value in {"1", "2", "3", "4"}:
                collected.priorities.append(int(value))
            else:
                logger.warning("Ignoring unknown priority value %r", value)

    def _on_short(match: re.Match[str]) -> None:
        collected.used_syntax = True
        collected.priorities.append(int(match.group(1)))

    text = _strip(_PRIORITY_FIELD_RE, text, _on_field)
    return _strip(_PRIORITY_SHORT_RE, text, _on_short)


def _extract_status_syntax(
    text: str,
    collected: _Collected,
    categories: Mapping[str, StatusCategory],
) -> str:
    def _on_status(match: re.Match[str]) -> None:
        collected.used_syntax = True
        for part in match.group(1).split(","):
            value = part.strip().rstrip(_TRAILING_PUNCTUATION)
            if not value:
                continue
            key = resolve_status_value(value, categories)
            if key is None:
                logger.warning("Ignoring unknown status value %r", value)
                continue
            collected.status.append(key)

    return _strip(_STATUS_FIELD_RE, text, _on_status)


def _extract_due_syntax(text: str, collected: _Collected) -> str:
    def _set_due(value: DueDateFilter) -> None:
        collected.used_syntax = True
        if collected.due_date is None:
            collected.due_date = value
        else:
            logger.debug("Ignoring extra due-date filter %r", value)

    def _on_between(match: re.Match[str]) -> None:
        start = normalize_due_value(match.group(1))
        end = normalize_due_value(match.group(2))
        if start is None or end is None:
            logger.warning("Ignoring invalid due-date range %r", match.group(0))
            collected.used_syntax = True
            return
        _set_due(DueDateRange(operator=DueOperator.BETWEEN, anchor=start, end=end))

    def _on_bound(match: re.Match[str]) -> None:
        anchor = normalize_due_value(match.group(2))
        if anchor is None:
            logger.warning("Ignoring invalid due-date bound %r", match.group(0))
            collected.used_syntax = True
            return
        operator = DueOperator.LT if match.group(1).lower() == "before" else DueOperator.GT
        _set_due(DueDateRange(operator=operator, anchor=anchor))

    def _on_field(match: re.Match[str]) -> None:
        parts = [part for part in match.group(1).split(",") if part.strip()]
        if len(parts) > 1:
            logger.warning("Using first due-date value of %r", match.group(1))
        value = normalize_due_value(parts[0]) if parts else None
        if value is None:
            logger.warning("Ignoring unknown due-date value %r", match.group(1))
            collected.used_syntax = True
            return
        _set_due(value)

    def _on_within(match: re.Match[str]) -> None:
        unit = "w" if match.group(2).lower().startswith("week") else "d"
        _set_due(f"+{int(match.group(1))}{unit}")

    def _on_iso(match: re.Match[str]) -> None:
        value = normalize_due_value(match.group(1))
        if value is None:
            logger.warning("Ignoring invalid date %r", match.group(1))
            collected.used_syntax = True
            return
        _set_due(value)

    text = _strip(_DUE_BETWEEN_RE, text, _on_between)
    text = _strip(_DUE_BOUND_RE, text, _on_bound)
    text = _strip(_DUE_FIELD_RE, text, _on_field)
    text = _strip(_DUE_WITHIN_RE, text, _on_within)
    return _strip(_ISO_DATE_RE, text, _on_iso)


def _extract_terms(
    text: str,
    collected: _Collected,
    categories: Mapping[str, StatusCategory],
) -> str:
    entries: list[tuple[str, str, object]] = []
    for level, terms in PRIORITY_TERMS.items():
        entries.extend((term, "priority", level) for term in terms)
    for keyword, terms in DUE_TERMS.items():
        entries.extend((term, "due", keyword) for term in terms)
    for key, category in categories.items():
        # Aliases that double as vague words ("done") only resolve in s: syntax.
        entries.extend(
            (alias, "status", key)
            for alias in category.aliases
            if (len(alias) > 1 or is_cjk(alias)) and alias.lower() not in VAGUE_INDICATORS
        )
    entries.sort(key=lambda entry: len(entry[0]), reverse=True)

    for term, kind, value in entries:
        pattern = _term_pattern(term)
        if not pattern.search(text):
            continue
        text = pattern.sub(" ", text)
        collected.matched_terms.append(term.lower())
        if kind == "priority" and isinstance(value, int):
            if collected.priority_keyword is None and value not in collected.priorities:
                collected.priorities.append(value)
        elif kind == "due" and isinstance(value, str):
            if collected.due_date is None:
                collected.due_date = value
        elif kind == "status" and isinstance(value, str):
            collected.status.append(value)

    for term in sorted(GENERIC_DUE_TERMS, key=len, reverse=True):
        pattern = _term_pattern(term)
        if not pattern.search(text):
            continue
        text = pattern.sub(" ", text)
        collected.matched_terms.append(term)
        if collected.due_date is None:
            collected.due_date = "any"
    return text


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> re.Pattern[str]:
    body = r"\s+".join(re.escape(part) for part in term.split())
    if is_cjk(term):
        return re.compile(body)
    return re.compile(rf"(?<![\w-]){body}(?![\w-])", re.IGNORECASE)


def _strip(
    pattern: re.Pattern[str],
    text: str,
    handler: Callable[[re.Match[str]], None],
) -> str:
    def _replace(match: re.Match[str]) -> str:
        handler(match)
        return " "

    return pattern.sub(_replace, text)


def _compact(value: str) -> str:
    return re.sub(r"[\s_\-]+", "", value.lower())
