"""Merge deterministic extraction with an optional assistant parse."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TypeVar

from tasksift.config import Settings, StatusCategory
from tasksift.models import (
    AssistantParse,
    DueDateFilter,
    DueDateRange,
    DueOperator,
    IntentSource,
    QueryIntent,
)
from tasksift.query.keywords import KeywordSet
from tasksift.query.lexicon import Lexicon, is_cjk
from tasksift.query.properties import (
    SPANLESS_DUE_KEYWORDS,
    ExtractedProperties,
    normalize_due_value,
    property_terms,
    resolve_status_value,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

TIME_CONTEXT_ANCHORS: frozenset[str] = frozenset(
    {"today", "tomorrow", "this-week", "next-week", "this-month", "next-month"},
)


def is_vague_query(
    *,
    extracted: ExtractedProperties,
    tokens: Sequence[str],
    assistant: AssistantParse | None,
    lexicon: Lexicon,
) -> bool:
    """Decide whether the query is open-ended rather than a specific lookup.

    A query is vague when the assistant flags it or when the vague-indicator
    ratio of the extracted tokens exceeds the configured threshold. A query
    made only of natural-language property words ("today") is vague too.
    """

    if assistant is not None and assistant.is_vague:
        return True
    if lexicon.vague_ratio(tokens) > lexicon.vague_threshold:
        return True
    counted = [token for token in tokens if len(token) > 1 or is_cjk(token)]
    return not counted and bool(extracted.matched_terms) and not extracted.used_syntax


def widen_time_context(value: DueDateFilter | None) -> DueDateFilter | None:
    """Turn a point-in-time due keyword into an inclusive ``<=`` range."""

    if not isinstance(value, str):
        return value
    if value in TIME_CONTEXT_ANCHORS or value.startswith("+"):
        return DueDateRange(operator=DueOperator.LE, anchor=value)
    return value


def reconcile_intent(  # noqa: PLR0913
    *,
    extracted: ExtractedProperties,
    tokens: Sequence[str],
    keywords: KeywordSet,
    assistant: AssistantParse | None,
    settings: Settings,
    lexicon: Lexicon,
) -> QueryIntent:
    """Build the final intent.

    Specific queries keep deterministic values and only fill gaps from the
    assistant. Vague queries take the assistant's interpretation and fall
    back to deterministic values for absent fields.
    """

    categories = settings.status.categories
    vague = is_vague_query(
        extracted=extracted,
        tokens=tokens,
        assistant=assistant,
        lexicon=lexicon,
    )

    assistant_status: tuple[str, ...] = ()
    assistant_due: DueDateFilter | None = None
    if assistant is not None:
        assistant_status = _resolve_statuses(assistant.status, categories)
        assistant_due = _normalize_assistant_due(assistant.due_date)

    if assistant is None:
        priority = extracted.priority
        due_date = extracted.due_date
        status = extracted.status
        folder = extracted.folder
        tags = extracted.tags
    elif vague:
        priority = _prefer(assistant.priority, extracted.priority)
        due_date = _prefer(assistant_due, extracted.due_date)
        status = assistant_status or extracted.status
        folder = assistant.folder or extracted.folder
        tags = tuple(assistant.tags) or extracted.tags
    else:
        priority = _prefer(extracted.priority, assistant.priority)
        due_date = _prefer(extracted.due_date, assistant_due)
        status = extracted.status or assistant_status
        folder = extracted.folder or assistant.folder
        tags = extracted.tags or tuple(assistant.tags)

    if vague:
        due_date = widen_time_context(due_date)

    excluded = _excluded_keywords(extracted=extracted, categories=categories)
    core = _clean_keywords(keywords.core_keywords, excluded, lexicon=lexicon, vague=vague)
    operative = _clean_keywords(keywords.keywords, excluded, lexicon=lexicon, vague=vague)

    if assistant is None:
        source = IntentSource.DETERMINISTIC
        confidence = 1.0
    else:
        source = IntentSource.ASSISTANT if vague else IntentSource.MERGED
        confidence = assistant.confidence if assistant.confidence is not None else 1.0

    intent = QueryIntent(
        keywords=operative,
        core_keywords=core,
        priority=priority,
        due_date=due_date,
        status=tuple(dict.fromkeys(status)),
        folder=folder,
        tags=tuple(dict.fromkeys(tags)),
        vague=vague,
        corrections=tuple(assistant.corrected_terms) if assistant is not None else (),
        confidence=max(0.0, min(1.0, confidence)),
        source=source,
    )
    logger.debug(
        "Reconciled intent vague=%s source=%s keywords=%s priority=%s due=%s status=%s",
        intent.vague,
        intent.source.value,
        intent.keywords,
        intent.priority,
        intent.due_date,
        intent.status,
    )
    return intent


def _prefer(first: _T | None, second: _T | None) -> _T | None:
    return first if first is not None else second


def _resolve_statuses(
    values: Sequence[str],
    categories: Mapping[str, StatusCategory],
) -> tuple[str, ...]:
    resolved: list[str] = []
    for value in values:
        key = resolve_status_value(value, categories)
        if key is None:
            logger.warning("Ignoring assistant status value %r", value)
            continue
        resolved.append(key)
    return tuple(dict.fromkeys(resolved))


def _normalize_assistant_due(value: DueDateFilter | None) -> DueDateFilter | None:
    if value is None:
        return None
    if isinstance(value, DueDateRange):
        return _normalize_assistant_range(value)
    normalized = normalize_due_value(value)
    if normalized is None:
        logger.warning("Ignoring assistant due-date value %r", value)
    return normalized


def _normalize_assistant_range(value: DueDateRange) -> DueDateFilter | None:
    if value.operator is DueOperator.BETWEEN:
        if {value.anchor, value.end or value.anchor} & SPANLESS_DUE_KEYWORDS:
            logger.warning("Ignoring assistant due-date range %r", value)
            return None
        return value
    if value.anchor not in SPANLESS_DUE_KEYWORDS:
        return value
    logger.info("Using bare assistant due-date keyword %r from range", value.anchor)
    return value.anchor


def _excluded_keywords(
    *,
    extracted: ExtractedProperties,
    categories: Mapping[str, StatusCategory],
) -> frozenset[str]:
    excluded = set(property_terms(categories))
    for term in extracted.matched_terms:
        excluded.update(term.split())
    return frozenset(excluded)


def _clean_keywords(
    keywords: Sequence[str],
    excluded: frozenset[str],
    *,
    lexicon: Lexicon,
    vague: bool,
) -> tuple[str, ...]:
    cleaned: list[str] = []
    for keyword in keywords:
        lowered = keyword.lower()
        if lowered in excluded or lexicon.is_stop_word(lowered):
            continue
        if vague and lexicon.is_vague_indicator(lowered):
            continue
        cleaned.append(lowered)
    return tuple(dict.fromkeys(cleaned))
