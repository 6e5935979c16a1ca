"""Post-scoring quality cutoff."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tasksift.config import ADAPTIVE_THRESHOLD, QualitySettings
from tasksift.models import QueryIntent, ScoredTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QualityOutcome:
    """Tasks kept by the cutoff plus the values that produced it."""

    kept: list[ScoredTask]
    threshold_fraction: float
    threshold: float
    max_score: float


def threshold_fraction(settings: QualitySettings, intent: QueryIntent) -> float:
    """Configured fraction clamped to [0, 1], or the adaptive one for the keyword count."""

    if settings.threshold == ADAPTIVE_THRESHOLD:
        return adaptive_fraction(len(intent.core_keywords))
    return min(max(settings.threshold, 0.0), 1.0)


def adaptive_fraction(core_keyword_count: int) -> float:
    """Stricter cutoffs for longer queries; property-only queries stay permissive."""

    if core_keyword_count <= 0:
        return 0.1
    if core_keyword_count <= 2:
        return 0.2
    if core_keyword_count <= 4:
        return 0.3
    return 0.4


def apply_quality_filter(
    scored: Sequence[ScoredTask],
    *,
    max_score: float,
    intent: QueryIntent,
    settings: QualitySettings,
) -> QualityOutcome:
    """Drop tasks below ``fraction x max_score``.

    The minimum relevance cutoff only applies when the query has keywords.
    """

    fraction = threshold_fraction(settings, intent)
    threshold = fraction * max_score
    min_relevance = settings.min_relevance if intent.has_keywords else 0.0

    kept = [
        item
        for item in scored
        if item.total >= threshold and (min_relevance <= 0 or item.relevance >= min_relevance)
    ]
    logger.debug(
        "Quality filter kept %s of %s (fraction=%.2f threshold=%.2f max=%.2f)",
        len(kept),
        len(scored),
        fraction,
        threshold,
        max_score,
    )
    return QualityOutcome(
        kept=kept,
        threshold_fraction=fraction,
        threshold=threshold,
        max_score=max_score,
    )
