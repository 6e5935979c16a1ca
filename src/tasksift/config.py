"""Runtime configuration for query resolution, ranking and assistants."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

from tasksift.models import SortCriterion

ADAPTIVE_THRESHOLD = -1.0

# Status keys that can be neither removed nor renamed.
REQUIRED_STATUS_KEYS: frozenset[str] = frozenset({"open", "completed", "other"})
# Status keys that can be removed but keep their key while present.
RENAME_PROTECTED_STATUS_KEYS: frozenset[str] = frozenset({"inProgress", "cancelled"})


class ProtectedCategoryError(ValueError):
    """Raised when a mutation would break a protected status category."""


@dataclass(frozen=True, slots=True)
class StatusCategory:
    """Status category: checkbox symbols, score and query aliases."""

    display_name: str
    score: float
    symbols: frozenset[str] = frozenset()
    aliases: tuple[str, ...] = ()


def default_status_categories() -> dict[str, StatusCategory]:
    return {
        "open": StatusCategory(
            display_name="Open",
            score=1.0,
            symbols=frozenset({" ", ""}),
            aliases=("todo", "to-do", "incomplete", "unfinished", "未完成", "待办"),
        ),
        "completed": StatusCategory(
            display_name="Completed",
            score=0.2,
            symbols=frozenset({"x", "X"}),
            aliases=("done", "completed", "finished", "已完成"),
        ),
        "inProgress": StatusCategory(
            display_name="In Progress",
            score=0.75,
            symbols=frozenset({"/"}),
            aliases=("in progress", "in-progress", "ongoing", "wip", "进行中"),
        ),
        "cancelled": StatusCategory(
            display_name="Cancelled",
            score=0.1,
            symbols=frozenset({"-"}),
            aliases=("cancelled", "canceled", "abandoned", "已取消"),
        ),
        "other": StatusCategory(display_name="Other", score=0.5),
    }


@dataclass(frozen=True, slots=True)
class ScoringSettings:
    """Top-level coefficients and per-component sub-coefficients."""

    relevance_coefficient: float = 20.0
    due_date_coefficient: float = 4.0
    priority_coefficient: float = 1.0
    status_coefficient: float = 1.0
    relevance_core_weight: float = 0.2
    relevance_all_weight: float = 1.0
    due_overdue: float = 1.5
    due_within_week: float = 1.0
    due_within_month: float = 0.5
    due_later: float = 0.2
    due_none: float = 0.1
    priority_scores: dict[int, float] = field(
        default_factory=lambda: {1: 1.0, 2: 0.75, 3: 0.5, 4: 0.2},
    )
    priority_none: float = 0.1


@dataclass(frozen=True, slots=True)
class QualitySettings:
    """Post-scoring cutoff settings.

    ``threshold`` is a fraction of the maximum achievable score, or
    ``ADAPTIVE_THRESHOLD`` to pick it from the core keyword count.
    """

    threshold: float = ADAPTIVE_THRESHOLD
    min_relevance: float = 0.0


@dataclass(frozen=True, slots=True)
class SortSettings:
    """Configured sort sequences per query mode."""

    search: tuple[SortCriterion, ...] = (
        SortCriterion.AUTO,
        SortCriterion.DUE_DATE,
        SortCriterion.PRIORITY,
    )
    chat: tuple[SortCriterion, ...] = (
        SortCriterion.AUTO,
        SortCriterion.RELEVANCE,
        SortCriterion.DUE_DATE,
        SortCriterion.PRIORITY,
    )

    def for_mode(self, mode: str) -> tuple[SortCriterion, ...]:
        if mode == "chat":
            return self.chat
        return self.search


@dataclass(frozen=True, slots=True)
class ExpansionSettings:
    """Semantic keyword expansion budget."""

    enabled: bool = True
    languages: tuple[str, ...] = ("English",)
    per_language: int = 5

    @property
    def per_keyword_budget(self) -> int:
        if not self.enabled:
            return 0
        return max(0, self.per_language) * max(1, len(self.languages))


@dataclass(frozen=True, slots=True)
class LexiconSettings:
    """User additions to the built-in word tables."""

    stop_words: tuple[str, ...] = ()
    vague_words: tuple[str, ...] = ()
    vague_threshold: float = 0.7


@dataclass(frozen=True, slots=True)
class StatusSettings:
    """Ordered status categories and tag syntax."""

    categories: dict[str, StatusCategory] = field(default_factory=default_status_categories)
    tag_marker: str = "#"

    def category_for(self, key: str) -> StatusCategory:
        category = self.categories.get(key)
        if category is None:
            return self.categories["other"]
        return category


@dataclass(frozen=True, slots=True)
class AssistantSettings:
    """External language-model assistant settings."""

    command_template: str = ""
    model: str = "default"
    timeout_seconds: int = 60
    max_analysis_tasks: int = 50
    max_recommendations: int = 5


@dataclass(frozen=True, slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    quality: QualitySettings = field(default_factory=QualitySettings)
    sort: SortSettings = field(default_factory=SortSettings)
    expansion: ExpansionSettings = field(default_factory=ExpansionSettings)
    lexicon: LexiconSettings = field(default_factory=LexiconSettings)
    status: StatusSettings = field(default_factory=StatusSettings)
    assistant: AssistantSettings = field(default_factory=AssistantSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local use."""

        defaults = ScoringSettings()
        return cls(
            scoring=ScoringSettings(
                relevance_coefficient=_env_float("TASKSIFT_RELEVANCE_COEFFICIENT", 20.0),
                due_date_coefficient=_env_float("TASKSIFT_DUE_DATE_COEFFICIENT", 4.0),
                priority_coefficient=_env_float("TASKSIFT_PRIORITY_COEFFICIENT", 1.0),
                status_coefficient=_env_float("TASKSIFT_STATUS_COEFFICIENT", 1.0),
                relevance_core_weight=_env_float("TASKSIFT_RELEVANCE_CORE_WEIGHT", 0.2),
                relevance_all_weight=_env_float("TASKSIFT_RELEVANCE_ALL_WEIGHT", 1.0),
                due_overdue=_env_float("TASKSIFT_DUE_OVERDUE_SCORE", defaults.due_overdue),
                due_within_week=_env_float(
                    "TASKSIFT_DUE_WITHIN_WEEK_SCORE",
                    defaults.due_within_week,
                ),
                due_within_month=_env_float(
                    "TASKSIFT_DUE_WITHIN_MONTH_SCORE",
                    defaults.due_within_month,
                ),
                due_later=_env_float("TASKSIFT_DUE_LATER_SCORE", defaults.due_later),
                due_none=_env_float("TASKSIFT_DUE_NONE_SCORE", defaults.due_none),
                priority_scores=_collect_priority_scores(defaults.priority_scores),
                priority_none=_env_float("TASKSIFT_PRIORITY_NONE_SCORE", defaults.priority_none),
            ),
            quality=QualitySettings(
                threshold=_env_threshold("TASKSIFT_QUALITY_THRESHOLD"),
                min_relevance=_env_float("TASKSIFT_MIN_RELEVANCE", 0.0),
            ),
            sort=SortSettings(
                search=_env_sort_sequence("TASKSIFT_SORT_SEARCH", SortSettings().search),
                chat=_env_sort_sequence("TASKSIFT_SORT_CHAT", SortSettings().chat),
            ),
            expansion=ExpansionSettings(
                enabled=_env_bool("TASKSIFT_EXPANSION_ENABLED", default=True),
                languages=_env_csv("TASKSIFT_EXPANSION_LANGUAGES") or ("English",),
                per_language=int(os.getenv("TASKSIFT_EXPANSIONS_PER_LANGUAGE", "5")),
            ),
            lexicon=LexiconSettings(
                stop_words=_env_csv("TASKSIFT_STOP_WORDS"),
                vague_words=_env_csv("TASKSIFT_VAGUE_WORDS"),
                vague_threshold=_env_float("TASKSIFT_VAGUE_THRESHOLD", 0.7),
            ),
            status=StatusSettings(
                tag_marker=os.getenv("TASKSIFT_TAG_MARKER", "#").strip() or "#",
            ),
            assistant=AssistantSettings(
                command_template=os.getenv("TASKSIFT_ASSISTANT_COMMAND", "").strip(),
                model=os.getenv("TASKSIFT_ASSISTANT_MODEL", "default").strip() or "default",
                timeout_seconds=int(os.getenv("TASKSIFT_ASSISTANT_TIMEOUT_SECONDS", "60")),
                max_analysis_tasks=int(os.getenv("TASKSIFT_MAX_ANALYSIS_TASKS", "50")),
                max_recommendations=int(os.getenv("TASKSIFT_MAX_RECOMMENDATIONS", "5")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values that cannot be self-healed."""

        for name in (
            "relevance_coefficient",
            "due_date_coefficient",
            "priority_coefficient",
            "status_coefficient",
        ):
            if getattr(self.scoring, name) < 0:
                raise ValueError(f"Scoring {name} must be >= 0.")
        missing = REQUIRED_STATUS_KEYS - set(self.status.categories)
        if missing:
            raise ValueError(f"Required status categories missing: {', '.join(sorted(missing))}")
        if self.expansion.per_language < 0:
            raise ValueError("TASKSIFT_EXPANSIONS_PER_LANGUAGE must be >= 0.")
        if self.assistant.timeout_seconds <= 0:
            raise ValueError("TASKSIFT_ASSISTANT_TIMEOUT_SECONDS must be > 0.")
        if self.assistant.max_recommendations <= 0:
            raise ValueError("TASKSIFT_MAX_RECOMMENDATIONS must be > 0.")


def add_status_category(settings: Settings, key: str, category: StatusCategory) -> Settings:
    """Return settings with a new status category appended."""

    key = key.strip()
    if not key:
        raise ValueError("Status category key must be non-empty.")
    if key in settings.status.categories:
        raise ValueError(f"Status category already exists: {key!r}")
    categories = dict(settings.status.categories)
    categories[key] = category
    return replace(settings, status=replace(settings.status, categories=categories))


def remove_status_category(settings: Settings, key: str) -> Settings:
    """Return settings without ``key``; required categories cannot be removed."""

    if key in REQUIRED_STATUS_KEYS:
        raise ProtectedCategoryError(f"Status category {key!r} is required and cannot be removed.")
    if key not in settings.status.categories:
        raise KeyError(key)
    categories = {name: value for name, value in settings.status.categories.items() if name != key}
    return replace(settings, status=replace(settings.status, categories=categories))


def rename_status_category(settings: Settings, old_key: str, new_key: str) -> Settings:
    """Return settings with ``old_key`` renamed, keeping category order."""

    if old_key in REQUIRED_STATUS_KEYS or old_key in RENAME_PROTECTED_STATUS_KEYS:
        raise ProtectedCategoryError(f"Status category {old_key!r} cannot be renamed.")
    if old_key not in settings.status.categories:
        raise KeyError(old_key)
    new_key = new_key.strip()
    if not new_key:
        raise ValueError("Status category key must be non-empty.")
    if new_key != old_key and new_key in settings.status.categories:
        raise ValueError(f"Status category already exists: {new_key!r}")
    categories = {
        (new_key if name == old_key else name): value
        for name, value in settings.status.categories.items()
    }
    return replace(settings, status=replace(settings.status, categories=categories))


def update_status_category(settings: Settings, key: str, category: StatusCategory) -> Settings:
    """Return settings with the category under ``key`` replaced in place."""

    if key not in settings.status.categories:
        raise KeyError(key)
    categories = dict(settings.status.categories)
    categories[key] = category
    return replace(settings, status=replace(settings.status, categories=categories))


def _collect_priority_scores(defaults: dict[int, float]) -> dict[int, float]:
    raw = os.getenv("TASKSIFT_PRIORITY_SCORES", "").strip()
    if not raw:
        return dict(defaults)

    scores = dict(defaults)
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        if "=" not in token:
            raise ValueError(
                "Invalid TASKSIFT_PRIORITY_SCORES entry: "
                f"{token!r}. Expected format '<level>=<score>'.",
            )
        level_raw, score_raw = (value.strip() for value in token.split("=", 1))
        try:
            level = int(level_raw)
            score = float(score_raw)
        except ValueError as error:
            raise ValueError(f"Invalid TASKSIFT_PRIORITY_SCORES entry: {token!r}") from error
        if level not in {1, 2, 3, 4}:
            raise ValueError(f"Priority level must be 1-4 in TASKSIFT_PRIORITY_SCORES: {level}")
        scores[level] = score
    return scores


def _env_sort_sequence(
    name: str,
    default: tuple[SortCriterion, ...],
) -> tuple[SortCriterion, ...]:
    values = _env_csv(name)
    if not values:
        return default
    try:
        return tuple(SortCriterion(value) for value in values)
    except ValueError as error:
        raise ValueError(f"Invalid sort criterion in {name}: {error}") from error


def _env_threshold(name: str) -> float:
    value = os.getenv(name)
    if value is None or value.strip().lower() in {"", "adaptive"}:
        return ADAPTIVE_THRESHOLD
    return _parse_float(name, value)


def _env_csv(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    values: list[str] = []
    seen: set[str] = set()
    for part in raw.split(","):
        normalized = part.strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        values.append(normalized)
    return tuple(values)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return _parse_float(name, value)


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
