from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import allure
import pytest

from tasksift.config import ADAPTIVE_THRESHOLD, QualitySettings, Settings
from tasksift.models import (
    DueDateRange,
    DueOperator,
    QueryIntent,
    ScoredTask,
    SortCriterion,
    TaskRecord,
)
from tasksift.ranking.dates import matches_due, period_bounds
from tasksift.ranking.filters import filter_tasks, status_key
from tasksift.ranking.quality import adaptive_fraction, apply_quality_filter, threshold_fraction
from tasksift.ranking.scoring import ScoreGates, ScoringEngine
from tasksift.ranking.sorting import resolve_sort_sequence, sort_scored_tasks

pytestmark = [
    allure.epic("Ranking"),
    allure.feature("Filter, Score, Cut & Sort"),
]

TODAY = date(2026, 3, 18)
SEARCH_SEQUENCE = (SortCriterion.RELEVANCE, SortCriterion.DUE_DATE, SortCriterion.PRIORITY)


def make_task(task_id: str, text: str, **fields) -> TaskRecord:
    return TaskRecord(task_id=task_id, text=text, **fields)


def _scored(task_id: str, total: float = 0.0, relevance: float = 0.0, **fields) -> ScoredTask:
    return ScoredTask(task=make_task(task_id, task_id, **fields), relevance=relevance, total=total)


def test_period_bounds_use_monday_weeks_and_calendar_months() -> None:
    assert period_bounds("today", TODAY) == (TODAY, TODAY)
    assert period_bounds("this-week", TODAY) == (date(2026, 3, 16), date(2026, 3, 22))
    assert period_bounds("next-week", TODAY) == (date(2026, 3, 23), date(2026, 3, 29))
    assert period_bounds("next-month", TODAY) == (date(2026, 4, 1), date(2026, 4, 30))
    assert period_bounds("next-month", date(2026, 12, 5)) == (date(2027, 1, 1), date(2027, 1, 31))
    assert period_bounds("+3d", TODAY) == (TODAY, date(2026, 3, 21))
    assert period_bounds("2026-05-01", TODAY) == (date(2026, 5, 1), date(2026, 5, 1))
    assert period_bounds("overdue", TODAY) is None


def test_matches_due_keywords() -> None:
    yesterday = TODAY - timedelta(days=1)

    assert matches_due(yesterday, "overdue", TODAY)
    assert not matches_due(TODAY, "overdue", TODAY)
    assert matches_due(TODAY + timedelta(days=40), "future", TODAY)
    assert matches_due(TODAY, "any", TODAY)
    assert not matches_due(None, "any", TODAY)
    assert matches_due(None, "none", TODAY)
    assert matches_due(date(2026, 3, 22), "this-week", TODAY)
    assert not matches_due(None, "today", TODAY)
    assert not matches_due(TODAY, "someday", TODAY)


def test_matches_due_ranges() -> None:
    le_today = DueDateRange(operator=DueOperator.LE, anchor="today")
    lt_week = DueDateRange(operator=DueOperator.LT, anchor="this-week")
    gt_week = DueDateRange(operator=DueOperator.GT, anchor="this-week")
    between = DueDateRange(operator=DueOperator.BETWEEN, anchor="today", end="next-week")

    assert matches_due(TODAY - timedelta(days=30), le_today, TODAY)
    assert matches_due(TODAY, le_today, TODAY)
    assert not matches_due(TODAY + timedelta(days=1), le_today, TODAY)
    assert not matches_due(None, le_today, TODAY)
    assert matches_due(date(2026, 3, 15), lt_week, TODAY)
    assert not matches_due(date(2026, 3, 16), lt_week, TODAY)
    assert matches_due(date(2026, 3, 23), gt_week, TODAY)
    assert matches_due(date(2026, 3, 29), between, TODAY)
    assert not matches_due(date(2026, 3, 30), between, TODAY)


def test_filter_tasks_applies_every_populated_field() -> None:
    tasks = [
        make_task("a", "Fix login bug", priority=1, folder="Work/Backend", tags=("#work/api",)),
        make_task("b", "Fix login bug", priority=2, folder="Work/Backend", tags=("#work",)),
        make_task("c", "Fix login bug", priority=1, folder="Home", tags=("#work",)),
        make_task("d", "Fix login bug", priority=1, folder="work", tags=("#workshop",)),
        make_task("e", "Write docs", priority=1, folder="Work", tags=("#work",)),
    ]
    intent = QueryIntent(keywords=("bug",), priority=1, folder="work", tags=("#Work",))

    kept = filter_tasks(tasks, intent, status_settings=Settings().status, today=TODAY)

    assert [task.task_id for task in kept] == ["a"]


def test_filter_tasks_priority_and_status_forms() -> None:
    tasks = [
        make_task("p1", "one", priority=1),
        make_task("p3", "three", priority=3),
        make_task("none", "unset"),
        make_task("odd", "odd", status="someday"),
        make_task("done", "done", status="completed", priority=2),
    ]
    status_settings = Settings().status

    def _ids(intent: QueryIntent) -> list[str]:
        kept = filter_tasks(tasks, intent, status_settings=status_settings, today=TODAY)
        return [task.task_id for task in kept]

    assert _ids(QueryIntent(priority=(1, 3))) == ["p1", "p3"]
    assert _ids(QueryIntent(priority="any")) == ["p1", "p3", "done"]
    assert _ids(QueryIntent(priority="none")) == ["none", "odd"]
    assert _ids(QueryIntent(status=("other",))) == ["odd"]
    assert _ids(QueryIntent(status=("completed",))) == ["done"]
    assert _ids(QueryIntent()) == ["p1", "p3", "none", "odd", "done"]
    assert status_key("someday", status_settings) == "other"


def test_checkbox_symbols_resolve_to_status_categories() -> None:
    status_settings = Settings().status
    tasks = [
        make_task("x", "checked", status="x"),
        make_task("slash", "started", status="/"),
        make_task("blank", "unchecked", status=" "),
    ]

    kept = filter_tasks(
        tasks,
        QueryIntent(status=("completed",)),
        status_settings=status_settings,
        today=TODAY,
    )

    assert [task.task_id for task in kept] == ["x"]
    assert status_key("/", status_settings) == "inProgress"
    assert status_key(" ", status_settings) == "open"
    assert status_key("Done", status_settings) == "completed"


def test_score_gates_follow_query_and_sort_sequence() -> None:
    property_only = QueryIntent(priority=1)

    gates = ScoreGates.for_query(property_only, (SortCriterion.RELEVANCE,))

    assert gates == ScoreGates(relevance=False, due_date=False, priority=True, status=False)

    with_status = ScoreGates.for_query(QueryIntent(keywords=("x",)), (SortCriterion.STATUS,))
    assert with_status.relevance
    assert with_status.status


def test_relevance_combines_core_coverage_and_all_keyword_matches(settings) -> None:
    engine = ScoringEngine(settings)
    intent = QueryIntent(core_keywords=("fix", "bug"), keywords=("fix", "bug", "defect"))

    full = engine.relevance_score(make_task("a", "Fix the bug"), intent)
    half = engine.relevance_score(make_task("b", "Fix typo"), intent)
    expansion_only = engine.relevance_score(make_task("c", "Defect report"), intent)

    assert full == pytest.approx(1.2)
    assert half == pytest.approx(0.6)
    assert expansion_only == pytest.approx(0.5)


def test_keywordless_query_scores_zero_relevance(settings) -> None:
    engine = ScoringEngine(settings)
    intent = QueryIntent(priority=1)

    [item] = engine.score(
        [make_task("a", "Anything", priority=1)],
        intent,
        SEARCH_SEQUENCE,
        today=TODAY,
    )

    assert item.relevance == 0.0
    assert item.total == pytest.approx(0.1 * 4.0 + 1.0)


def test_due_date_score_buckets(settings) -> None:
    engine = ScoringEngine(settings)

    assert engine.due_date_score(TODAY - timedelta(days=1), TODAY) == 1.5
    assert engine.due_date_score(TODAY, TODAY) == 1.0
    assert engine.due_date_score(TODAY + timedelta(days=7), TODAY) == 1.0
    assert engine.due_date_score(TODAY + timedelta(days=8), TODAY) == 0.5
    assert engine.due_date_score(TODAY + timedelta(days=31), TODAY) == 0.2
    assert engine.due_date_score(None, TODAY) == 0.1


def test_priority_and_status_scores(settings) -> None:
    engine = ScoringEngine(settings)

    assert engine.priority_score(1) == 1.0
    assert engine.priority_score(4) == 0.2
    assert engine.priority_score(None) == 0.1
    assert engine.status_score("inProgress") == 0.75
    assert engine.status_score("someday") == 0.5


def test_max_score_matches_active_components(settings) -> None:
    engine = ScoringEngine(settings)
    keywords = QueryIntent(core_keywords=("fix",), keywords=("fix",))

    assert engine.max_score(keywords, SEARCH_SEQUENCE) == pytest.approx(31.0)
    assert engine.max_score(QueryIntent(), ()) == 0.0
    assert engine.max_score(QueryIntent(status=("open",)), ()) == pytest.approx(1.0)


def test_adaptive_fraction_by_core_keyword_count() -> None:
    assert [adaptive_fraction(count) for count in (0, 1, 2, 3, 4, 5, 9)] == [
        0.1,
        0.2,
        0.2,
        0.3,
        0.3,
        0.4,
        0.4,
    ]


def test_threshold_fraction_clamps_explicit_values() -> None:
    intent = QueryIntent(core_keywords=("a1", "b2", "c3"))

    assert threshold_fraction(QualitySettings(threshold=ADAPTIVE_THRESHOLD), intent) == 0.3
    assert threshold_fraction(QualitySettings(threshold=1.5), intent) == 1.0
    assert threshold_fraction(QualitySettings(threshold=-0.5), intent) == 0.0
    assert threshold_fraction(QualitySettings(threshold=0.25), intent) == 0.25


def test_quality_filter_cuts_below_threshold() -> None:
    scored = [_scored("keep", total=10.0), _scored("edge", total=5.0), _scored("drop", total=4.9)]

    outcome = apply_quality_filter(
        scored,
        max_score=10.0,
        intent=QueryIntent(),
        settings=QualitySettings(threshold=0.5),
    )

    assert [item.task.task_id for item in outcome.kept] == ["keep", "edge"]
    assert outcome.threshold == pytest.approx(5.0)


def test_min_relevance_applies_only_with_keywords() -> None:
    scored = [_scored("low", total=9.0, relevance=0.1), _scored("high", total=9.0, relevance=1.0)]
    settings = QualitySettings(threshold=0.0, min_relevance=0.5)

    with_keywords = apply_quality_filter(
        scored,
        max_score=10.0,
        intent=QueryIntent(keywords=("x",), core_keywords=("x",)),
        settings=settings,
    )
    without_keywords = apply_quality_filter(
        scored,
        max_score=10.0,
        intent=QueryIntent(),
        settings=settings,
    )

    assert [item.task.task_id for item in with_keywords.kept] == ["high"]
    assert len(without_keywords.kept) == 2


def test_resolve_sort_sequence_replaces_auto_and_deduplicates() -> None:
    sequence = (SortCriterion.AUTO, SortCriterion.RELEVANCE, SortCriterion.DUE_DATE)

    assert resolve_sort_sequence(sequence, QueryIntent(keywords=("x",))) == (
        SortCriterion.RELEVANCE,
        SortCriterion.DUE_DATE,
    )
    assert resolve_sort_sequence(sequence, QueryIntent()) == (
        SortCriterion.DUE_DATE,
        SortCriterion.RELEVANCE,
    )


def test_sort_puts_missing_values_last_and_is_stable() -> None:
    status = Settings().status
    scored = [
        _scored("none-a", priority=None),
        _scored("p2", priority=2),
        _scored("none-b", priority=None),
        _scored("p1", priority=1),
    ]

    ordered = sort_scored_tasks(scored, (SortCriterion.PRIORITY,), status_settings=status)

    assert [item.task.task_id for item in ordered] == ["p1", "p2", "none-a", "none-b"]
    assert sort_scored_tasks(scored, (), status_settings=status) == scored


def test_sort_breaks_ties_with_later_criteria() -> None:
    status = Settings().status
    scored = [
        _scored("late", relevance=1.0, due_date=TODAY + timedelta(days=5)),
        _scored("low", relevance=0.5, due_date=TODAY),
        _scored("soon", relevance=1.0, due_date=TODAY),
    ]

    ordered = sort_scored_tasks(scored, SEARCH_SEQUENCE, status_settings=status)

    assert [item.task.task_id for item in ordered] == ["soon", "late", "low"]


def test_sort_by_status_created_and_text() -> None:
    settings = Settings()
    status = settings.status
    by_status = [
        _scored("x", status="completed"),
        _scored("y", status="someday"),
        _scored("z", status="open"),
        _scored("w", status="inProgress"),
    ]
    by_created = [
        _scored("old", created_date=date(2026, 1, 1)),
        _scored("unknown"),
        _scored("new", created_date=date(2026, 3, 1)),
    ]
    by_text = [
        ScoredTask(task=make_task("1", "banana")),
        ScoredTask(task=make_task("2", "Apple")),
    ]

    statuses = sort_scored_tasks(by_status, (SortCriterion.STATUS,), status_settings=status)
    created = sort_scored_tasks(by_created, (SortCriterion.CREATED,), status_settings=status)
    texts = sort_scored_tasks(by_text, (SortCriterion.ALPHABETICAL,), status_settings=status)

    assert [item.task.task_id for item in statuses] == ["z", "x", "w", "y"]
    assert [item.task.task_id for item in created] == ["new", "old", "unknown"]
    assert [item.task.text for item in texts] == ["Apple", "banana"]

    reordered = replace(
        status,
        categories={key: status.categories[key] for key in reversed(list(status.categories))},
    )
    reversed_order = sort_scored_tasks(
        by_status,
        (SortCriterion.STATUS,),
        status_settings=reordered,
    )
    assert [item.task.task_id for item in reversed_order] == ["y", "w", "x", "z"]
