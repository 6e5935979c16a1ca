"""Query pipeline: intent resolution, ranking and optional assistant analysis."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from tasksift.assistant.base import (
    AnalysisAssistant,
    AnalysisRequest,
    AssistantRunError,
    IntentAssistant,
    IntentRequest,
)
from tasksift.assistant.failure_classifier import AnalysisFailure
from tasksift.assistant.references import ReconciledResponse, reconcile_references
from tasksift.config import Settings
from tasksift.models import AssistantParse, QueryIntent, ScoredTask, SortCriterion, TaskRecord
from tasksift.query.keywords import (
    KeywordSet,
    deduplicate_overlaps,
    expand_keywords,
    extract_core_keywords,
    filter_stop_words,
)
from tasksift.query.lexicon import Lexicon
from tasksift.query.properties import ExtractedProperties, extract_properties
from tasksift.query.reconcile import is_vague_query, reconcile_intent
from tasksift.ranking.filters import filter_tasks
from tasksift.ranking.quality import apply_quality_filter
from tasksift.ranking.scoring import ScoringEngine
from tasksift.ranking.sorting import resolve_sort_sequence, sort_scored_tasks

logger = logging.getLogger(__name__)


class QueryCancelledError(RuntimeError):
    """Raised when the caller cancelled the query; partial results are discarded."""


class AnalysisError(RuntimeError):
    """Analysis assistant failed; the query has no recommendation."""

    def __init__(self, failure: AnalysisFailure) -> None:
        super().__init__(failure.describe())
        self.failure = failure


@dataclass(slots=True)
class SearchResult:
    """Ranked tasks for one query and the values that shaped the ranking."""

    intent: QueryIntent
    sort_sequence: tuple[SortCriterion, ...]
    tasks: list[ScoredTask] = field(default_factory=list)
    matched_count: int = 0
    max_score: float = 0.0
    threshold: float = 0.0


@dataclass(slots=True)
class AnalysisResult:
    """Search result plus the assistant recommendation built on it."""

    search: SearchResult
    response: ReconciledResponse
    analyzed_tasks: list[TaskRecord] = field(default_factory=list)


class QueryPipeline:
    """Run task queries end to end with optional assistant collaborators."""

    def __init__(
        self,
        settings: Settings,
        *,
        intent_assistant: IntentAssistant | None = None,
        analysis_assistant: AnalysisAssistant | None = None,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> None:
        self._settings = settings
        self._intent_assistant = intent_assistant
        self._analysis_assistant = analysis_assistant
        self._cancel_requested = cancel_requested
        self._lexicon = Lexicon.from_settings(settings.lexicon)
        self._scoring = ScoringEngine(settings)

    def resolve_intent(self, query: str) -> QueryIntent:
        """Extract properties and keywords, consult the intent assistant, reconcile."""

        settings = self._settings
        extracted = extract_properties(
            query,
            categories=settings.status.categories,
            tag_marker=settings.status.tag_marker,
        )
        tokens, core = extract_core_keywords(extracted.residual_text, self._lexicon)

        parse = self._parse_with_assistant(query, core)
        self._raise_if_cancelled()

        core = self._choose_core_keywords(extracted, tokens, core, parse)
        if parse is not None and settings.expansion.enabled:
            keyword_set = expand_keywords(
                core,
                parse.expansions,
                settings=settings.expansion,
                lexicon=self._lexicon,
            )
        else:
            keyword_set = KeywordSet(core_keywords=tuple(core), keywords=tuple(core))

        return reconcile_intent(
            extracted=extracted,
            tokens=tokens,
            keywords=keyword_set,
            assistant=parse,
            settings=settings,
            lexicon=self._lexicon,
        )

    def search(
        self,
        query: str,
        tasks: Sequence[TaskRecord],
        *,
        today: date,
        mode: str = "search",
    ) -> SearchResult:
        """Filter, score, cut and sort ``tasks`` for ``query``."""

        intent = self.resolve_intent(query)
        return self.rank(intent, tasks, today=today, mode=mode)

    def rank(
        self,
        intent: QueryIntent,
        tasks: Sequence[TaskRecord],
        *,
        today: date,
        mode: str = "search",
    ) -> SearchResult:
        settings = self._settings
        sequence = resolve_sort_sequence(settings.sort.for_mode(mode), intent)
        matched = filter_tasks(tasks, intent, status_settings=settings.status, today=today)
        scored = self._scoring.score(matched, intent, sequence, today=today)
        max_score = self._scoring.max_score(intent, sequence)
        outcome = apply_quality_filter(
            scored,
            max_score=max_score,
            intent=intent,
            settings=settings.quality,
        )
        ordered = sort_scored_tasks(outcome.kept, sequence, status_settings=settings.status)
        logger.info(
            "Query ranked %s tasks (matched=%s, snapshot=%s, sort=%s)",
            len(ordered),
            len(matched),
            len(tasks),
            ",".join(criterion.value for criterion in sequence),
        )
        return SearchResult(
            intent=intent,
            sort_sequence=sequence,
            tasks=ordered,
            matched_count=len(matched),
            max_score=max_score,
            threshold=outcome.threshold,
        )

    def analyze(
        self,
        query: str,
        tasks: Sequence[TaskRecord],
        *,
        today: date,
    ) -> AnalysisResult:
        """Rank tasks in chat mode and ask the analysis assistant for a recommendation."""

        if self._analysis_assistant is None:
            raise ValueError("Analysis requires an analysis assistant.")

        search = self.search(query, tasks, today=today, mode="chat")
        limit = self._settings.assistant.max_analysis_tasks
        analyzed = [item.task for item in search.tasks[:limit]]
        if not analyzed:
            return AnalysisResult(search=search, response=ReconciledResponse(text=""))

        try:
            answer = self._analysis_assistant.analyze(
                AnalysisRequest(query=query, intent=search.intent, tasks=analyzed),
            )
        except AssistantRunError as error:
            self._raise_if_cancelled()
            logger.warning("Analysis failed: %s", error.failure.describe())
            raise AnalysisError(error.failure) from error
        self._raise_if_cancelled()

        response = reconcile_references(
            answer,
            analyzed,
            max_recommendations=self._settings.assistant.max_recommendations,
        )
        return AnalysisResult(search=search, response=response, analyzed_tasks=analyzed)

    def _parse_with_assistant(self, query: str, core: list[str]) -> AssistantParse | None:
        if self._intent_assistant is None:
            return None
        expansion = self._settings.expansion
        request = IntentRequest(
            query=query,
            core_keywords=list(core),
            languages=expansion.languages,
            expansions_per_keyword=expansion.per_keyword_budget,
            status_keys=tuple(self._settings.status.categories),
        )
        try:
            return self._intent_assistant.parse(request)
        except Exception as error:  # noqa: BLE001
            logger.warning("Intent assistant unavailable, using deterministic parse: %s", error)
            return None

    def _choose_core_keywords(
        self,
        extracted: ExtractedProperties,
        tokens: list[str],
        core: list[str],
        parse: AssistantParse | None,
    ) -> list[str]:
        if parse is None or not parse.keywords:
            return core
        vague = is_vague_query(
            extracted=extracted,
            tokens=tokens,
            assistant=parse,
            lexicon=self._lexicon,
        )
        if core and not vague:
            return core
        return filter_stop_words(deduplicate_overlaps(parse.keywords), self._lexicon)

    def _raise_if_cancelled(self) -> None:
        if self._cancel_requested is not None and self._cancel_requested():
            raise QueryCancelledError("Query cancelled.")
