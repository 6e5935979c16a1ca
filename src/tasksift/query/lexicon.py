"""Multilingual stop-word and vague-indicator tables with script detection."""

from __future__ import annotations

import re
from dataclasses import dataclass

from tasksift.config import LexiconSettings

CJK_RANGES = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\u3040-\u309f\u30a0-\u30ff"
_CJK_RE = re.compile(f"[{CJK_RANGES}]")

STOP_WORDS: frozenset[str] = frozenset(
    {
        # English
        "a",
        "an",
        "the",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "from",
        "as",
        "is",
        "was",
        "are",
        "were",
        "be",
        "been",
        "it",
        "its",
        "this",
        "that",
        "these",
        "those",
        "i",
        "me",
        "my",
        "we",
        "our",
        "you",
        "your",
        "all",
        "any",
        "some",
        "about",
        "show",
        "list",
        "find",
        "please",
        "how",
        "what",
        "when",
        "where",
        "why",
        "which",
        "who",
        "whom",
        "whose",
        "do",
        "does",
        "did",
        "can",
        "could",
        "should",
        "would",
        "will",
        "have",
        "has",
        "had",
        # German
        "der",
        "die",
        "das",
        "und",
        "oder",
        "mit",
        "für",
        # French
        "le",
        "la",
        "les",
        "et",
        "ou",
        "pour",
        "avec",
        # Spanish
        "el",
        "los",
        "las",
        "y",
        "para",
        "con",
        # Chinese
        "我",
        "的",
        "了",
        "吗",
        "呢",
        "啊",
        "如何",
        "怎么",
        "怎样",
        "什么",
        "哪些",
        "哪个",
        "哪里",
        "为什么",
    },
)

VAGUE_INDICATORS: frozenset[str] = frozenset(
    {
        # English question words, generic verbs, modals and nouns
        "what",
        "when",
        "where",
        "which",
        "how",
        "why",
        "who",
        "do",
        "does",
        "did",
        "doing",
        "done",
        "make",
        "work",
        "working",
        "get",
        "go",
        "take",
        "should",
        "could",
        "would",
        "might",
        "must",
        "can",
        "may",
        "will",
        "need",
        "needs",
        "have",
        "has",
        "want",
        "task",
        "tasks",
        "item",
        "items",
        "thing",
        "things",
        "job",
        "jobs",
        "stuff",
        "next",
        "focus",
        "priorities",
        "start",
        # Chinese
        "什么",
        "怎么",
        "哪里",
        "哪个",
        "为什么",
        "怎样",
        "做",
        "可以",
        "能",
        "应该",
        "需要",
        "要",
        "处理",
        "任务",
        "事情",
        "东西",
        "工作",
        "问题",
        # German
        "was",
        "wie",
        "machen",
        "sollte",
        "aufgabe",
        "aufgaben",
        # French
        "quoi",
        "faire",
        "dois",
        "tâche",
        "tâches",
        # Spanish
        "qué",
        "hacer",
        "debería",
        "tarea",
        "tareas",
    },
)


def is_cjk(text: str) -> bool:
    """Return True when ``text`` contains any CJK ideograph or kana."""

    return bool(_CJK_RE.search(text))


@dataclass(frozen=True, slots=True)
class Lexicon:
    """Effective word tables: built-in entries merged with user additions."""

    stop_words: frozenset[str]
    vague_indicators: frozenset[str]
    compounds: frozenset[str]
    vague_threshold: float = 0.7

    @classmethod
    def from_settings(cls, settings: LexiconSettings) -> Lexicon:
        stop_words = STOP_WORDS | {word.lower() for word in settings.stop_words}
        vague = VAGUE_INDICATORS | {word.lower() for word in settings.vague_words}
        compounds = frozenset(
            word for word in stop_words | vague if len(word) > 1 and is_cjk(word)
        )
        return cls(
            stop_words=stop_words,
            vague_indicators=vague,
            compounds=compounds,
            vague_threshold=settings.vague_threshold,
        )

    def is_stop_word(self, word: str) -> bool:
        return word.lower() in self.stop_words

    def is_vague_indicator(self, word: str) -> bool:
        return word.lower() in self.vague_indicators

    def vague_ratio(self, tokens: list[str] | tuple[str, ...]) -> float:
        """Share of tokens that are vague indicators (0.0 for no tokens)."""

        counted = [token for token in tokens if len(token) > 1 or is_cjk(token)]
        if not counted:
            return 0.0
        vague = sum(1 for token in counted if self.is_vague_indicator(token))
        return vague / len(counted)
