from __future__ import annotations

import allure

from tasksift.config import LexiconSettings, Settings
from tasksift.models import AssistantParse, DueDateRange, DueOperator, IntentSource, QueryIntent
from tasksift.query.keywords import KeywordSet, extract_core_keywords
from tasksift.query.lexicon import Lexicon
from tasksift.query.properties import extract_properties
from tasksift.query.reconcile import is_vague_query, reconcile_intent, widen_time_context

pytestmark = [
    allure.epic("Query Understanding"),
    allure.feature("Intent Reconciliation"),
]


def _resolve(
    query: str,
    assistant: AssistantParse | None = None,
    settings: Settings | None = None,
) -> QueryIntent:
    settings = settings or Settings()
    lexicon = Lexicon.from_settings(settings.lexicon)
    extracted = extract_properties(query, categories=settings.status.categories)
    tokens, core = extract_core_keywords(extracted.residual_text, lexicon)
    return reconcile_intent(
        extracted=extracted,
        tokens=tokens,
        keywords=KeywordSet(core_keywords=tuple(core), keywords=tuple(core)),
        assistant=assistant,
        settings=settings,
        lexicon=lexicon,
    )


def test_deterministic_only_intent() -> None:
    intent = _resolve("p:1 fix bug")

    assert intent.priority == 1
    assert intent.keywords == ("fix", "bug")
    assert not intent.vague
    assert intent.source is IntentSource.DETERMINISTIC
    assert intent.confidence == 1.0


def test_specific_query_keeps_deterministic_values_over_assistant() -> None:
    assistant = AssistantParse(keywords=["fix", "bug"], priority=2, is_vague=False, confidence=0.8)

    intent = _resolve("p:1 fix bug", assistant)

    assert intent.priority == 1
    assert intent.keywords == ("fix", "bug")
    assert intent.source is IntentSource.MERGED
    assert intent.confidence == 0.8


def test_specific_query_fills_gaps_from_assistant() -> None:
    assistant = AssistantParse(
        status=["in progress"],
        due_date="tomorrow",
        folder="Work",
        tags=["api"],
        is_vague=False,
    )

    intent = _resolve("fix login bug", assistant)

    assert intent.status == ("inProgress",)
    assert intent.due_date == "tomorrow"
    assert intent.folder == "Work"
    assert intent.tags == ("api",)


def test_vague_query_prefers_assistant_and_widens_time_context() -> None:
    assistant = AssistantParse(
        keywords=[],
        due_date="today",
        is_vague=True,
        confidence=0.6,
        corrected_terms=["wrok -> work"],
    )

    intent = _resolve("what should I work on today", assistant)

    assert intent.vague
    assert intent.keywords == ()
    assert intent.due_date == DueDateRange(operator=DueOperator.LE, anchor="today")
    assert intent.source is IntentSource.ASSISTANT
    assert intent.corrections == ("wrok -> work",)


def test_vague_query_falls_back_to_deterministic_due_date() -> None:
    intent = _resolve("what should I work on today", AssistantParse(is_vague=True))

    assert intent.vague
    assert intent.due_date == DueDateRange(operator=DueOperator.LE, anchor="today")


def test_done_in_vague_question_is_not_a_status_filter() -> None:
    intent = _resolve("what needs to be done today", AssistantParse(is_vague=True))

    assert intent.vague
    assert intent.status == ()
    assert intent.keywords == ()
    assert intent.due_date == DueDateRange(operator=DueOperator.LE, anchor="today")


def test_specific_query_keeps_priority_when_assistant_has_none() -> None:
    intent = _resolve("p:1 fix bug", AssistantParse(keywords=["fix", "bug"]))

    assert intent.priority == 1
    assert intent.source is IntentSource.MERGED


def test_assistant_range_on_spanless_keyword_becomes_bare_keyword() -> None:
    assistant = AssistantParse(
        due_date=DueDateRange(operator=DueOperator.LE, anchor="overdue"),
        is_vague=True,
    )

    intent = _resolve("what should I do", assistant)

    assert intent.due_date == "overdue"


def test_assistant_between_range_on_spanless_keyword_is_dropped() -> None:
    assistant = AssistantParse(
        due_date=DueDateRange(operator=DueOperator.BETWEEN, anchor="today", end="future"),
        is_vague=True,
    )

    intent = _resolve("what is due tomorrow", assistant)

    assert intent.due_date == DueDateRange(operator=DueOperator.LE, anchor="tomorrow")


def test_property_only_natural_query_is_vague_without_assistant() -> None:
    intent = _resolve("today")

    assert intent.vague
    assert intent.due_date == DueDateRange(operator=DueOperator.LE, anchor="today")


def test_explicit_syntax_is_not_widened() -> None:
    intent = _resolve("d:today")

    assert not intent.vague
    assert intent.due_date == "today"


def test_unresolvable_assistant_values_are_ignored() -> None:
    assistant = AssistantParse(status=["bogus"], due_date="someday", is_vague=False)

    intent = _resolve("fix login bug", assistant)

    assert intent.status == ()
    assert intent.due_date is None


def test_property_trigger_words_are_removed_from_keywords() -> None:
    settings = Settings()
    lexicon = Lexicon.from_settings(settings.lexicon)
    extracted = extract_properties("urgent report", categories=settings.status.categories)

    intent = reconcile_intent(
        extracted=extracted,
        tokens=["report"],
        keywords=KeywordSet(
            core_keywords=("urgent", "report"),
            keywords=("urgent", "report", "due", "the"),
        ),
        assistant=None,
        settings=settings,
        lexicon=lexicon,
    )

    assert intent.priority == 1
    assert intent.core_keywords == ("report",)
    assert intent.keywords == ("report",)


def test_vague_threshold_is_configurable() -> None:
    settings = Settings()
    strict = Lexicon.from_settings(LexiconSettings(vague_threshold=0.9))
    default = Lexicon.from_settings(settings.lexicon)
    extracted = extract_properties("what should I work on", categories=settings.status.categories)
    tokens = ["what", "should", "i", "work", "on"]

    assert is_vague_query(extracted=extracted, tokens=tokens, assistant=None, lexicon=default)
    assert not is_vague_query(extracted=extracted, tokens=tokens, assistant=None, lexicon=strict)


def test_widen_time_context() -> None:
    assert widen_time_context("this-week") == DueDateRange(
        operator=DueOperator.LE,
        anchor="this-week",
    )
    assert widen_time_context("+3d") == DueDateRange(operator=DueOperator.LE, anchor="+3d")
    assert widen_time_context("overdue") == "overdue"
    assert widen_time_context("2026-04-01") == "2026-04-01"
    assert widen_time_context(None) is None
