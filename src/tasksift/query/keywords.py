"""Keyword tokenization, overlap dedup, stop-word filtering and expansion."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from tasksift.config import ExpansionSettings
from tasksift.query.lexicon import CJK_RANGES, Lexicon, is_cjk

logger = logging.getLogger(__name__)

_WORD_CHAR = rf"[^\W_{CJK_RANGES}]"
_TOKEN_RE = re.compile(
    rf"(?P<cjk>[{CJK_RANGES}]+)|(?P<word>{_WORD_CHAR}+(?:['\-]{_WORD_CHAR}+)*)",
)


@dataclass(frozen=True, slots=True)
class KeywordSet:
    """Core keywords and the operative (core plus expansion) keyword list."""

    core_keywords: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


def tokenize(text: str, lexicon: Lexicon) -> list[str]:
    """Split text into lowercase words; CJK runs become compounds, pairs and characters."""

    tokens: list[str] = []
    for match in _TOKEN_RE.finditer(text):
        cjk_run = match.group("cjk")
        if cjk_run:
            tokens.extend(_split_cjk_run(cjk_run, lexicon.compounds))
        else:
            tokens.append(match.group("word").lower())
    return tokens


def deduplicate_overlaps(tokens: Sequence[str]) -> list[str]:
    """Drop exact repeats and CJK tokens contained in a longer CJK token.

    Non-CJK substrings are different words (``chat`` vs ``chatt``) and stay.
    Order of first occurrence is preserved.
    """

    unique = list(dict.fromkeys(token.lower() for token in tokens if token))
    longer_cjk = sorted((token for token in unique if is_cjk(token)), key=len, reverse=True)
    kept: list[str] = []
    for token in unique:
        if is_cjk(token) and any(
            len(other) > len(token) and token in other for other in longer_cjk
        ):
            continue
        kept.append(token)
    return kept


def filter_stop_words(tokens: Sequence[str], lexicon: Lexicon) -> list[str]:
    """Remove stop words and single non-CJK characters."""

    filtered: list[str] = []
    for token in tokens:
        if not token:
            continue
        if len(token) == 1 and not is_cjk(token):
            continue
        if lexicon.is_stop_word(token):
            continue
        filtered.append(token)
    return filtered


def extract_core_keywords(text: str, lexicon: Lexicon) -> tuple[list[str], list[str]]:
    """Return ``(deduplicated_tokens, core_keywords)`` for residual query text.

    Overlap dedup runs before stop-word filtering so that compounds are
    judged as a whole before their pieces can leak through.
    """

    deduplicated = deduplicate_overlaps(tokenize(text, lexicon))
    return deduplicated, filter_stop_words(deduplicated, lexicon)


def expand_keywords(
    core_keywords: Sequence[str],
    expansions: Mapping[str, Sequence[str]],
    *,
    settings: ExpansionSettings,
    lexicon: Lexicon,
) -> KeywordSet:
    """Merge semantic expansions into the keyword list within the per-keyword budget."""

    core = tuple(dict.fromkeys(keyword.lower() for keyword in core_keywords if keyword))
    budget = settings.per_keyword_budget
    if budget <= 0 or not expansions:
        return KeywordSet(core_keywords=core, keywords=core)

    normalized = {key.lower(): values for key, values in expansions.items()}
    seen: set[str] = set(core)
    extra: list[str] = []
    for keyword in core:
        accepted = 0
        for candidate in normalized.get(keyword, ()):
            if accepted >= budget:
                logger.debug("Expansion budget %s reached for %r", budget, keyword)
                break
            value = candidate.strip().lower()
            if not value or value in seen:
                continue
            if not filter_stop_words([value], lexicon):
                continue
            seen.add(value)
            extra.append(value)
            accepted += 1
    return KeywordSet(core_keywords=core, keywords=core + tuple(extra))


def _split_cjk_run(run: str, compounds: frozenset[str]) -> list[str]:
    pieces: list[str] = []
    index = 0
    length = len(run)
    while index < length:
        compound = _compound_at(run, index, compounds)
        if compound is not None:
            pieces.append(compound)
            index += len(compound)
            continue
        if index + 1 < length and _compound_at(run, index + 1, compounds) is not None:
            pieces.append(run[index])
            index += 1
            continue
        pair = run[index : index + 2]
        pieces.append(pair)
        if len(pair) == 2:
            pieces.extend(pair)
        index += 2
    return pieces


def _compound_at(run: str, index: int, compounds: frozenset[str]) -> str | None:
    for size in range(min(len(run) - index, 4), 1, -1):
        candidate = run[index : index + size]
        if candidate in compounds:
            return candidate
    return None
