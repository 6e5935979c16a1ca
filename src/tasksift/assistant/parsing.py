"""Best-effort recovery of an intent parse from assistant stdout."""

from __future__ import annotations

import json
import logging
import re

from tasksift.models import AssistantParse, DueDateRange, DueOperator, PriorityFilter
from tasksift.query.properties import normalize_due_value

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def parse_intent_output(stdout_text: str) -> AssistantParse | None:
    """Recover an ``AssistantParse`` from plain stdout; invalid fields are skipped."""

    text = stdout_text.strip()
    if not text:
        return None
    payload = _parse_json_payload(text)
    if payload is None:
        return None
    return _normalize_payload(payload)


def _parse_json_payload(text: str) -> dict[str, object] | None:
    direct = _try_load_dict(text)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(text)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(text[start : end + 1])


def _try_load_dict(raw: str) -> dict[str, object] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def _normalize_payload(payload: dict[str, object]) -> AssistantParse:
    result = AssistantParse(
        keywords=_string_list(payload.get("keywords"), "keywords"),
        expansions=_expansions(payload.get("expansions")),
        priority=_priority(payload.get("priority")),
        due_date=_due_date(payload.get("dueDate", payload.get("due_date"))),
        status=_string_list(payload.get("status"), "status"),
        tags=[tag.lstrip("#") for tag in _string_list(payload.get("tags"), "tags")],
        corrected_terms=_string_list(
            payload.get("correctedTerms", payload.get("corrected_terms")),
            "correctedTerms",
        ),
    )
    folder = payload.get("folder")
    if isinstance(folder, str) and folder.strip():
        result.folder = folder.strip()
    vague = payload.get("isVague", payload.get("is_vague"))
    if isinstance(vague, bool):
        result.is_vague = vague
    confidence = payload.get("confidence")
    if isinstance(confidence, int | float) and not isinstance(confidence, bool):
        result.confidence = max(0.0, min(1.0, float(confidence)))
    return result


def _string_list(value: object, name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        logger.warning("Ignoring assistant field %s of type %s", name, type(value).__name__)
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            items.append(item.strip())
    return list(dict.fromkeys(items))


def _expansions(value: object) -> dict[str, list[str]]:
    if not isinstance(value, dict):
        if value is not None:
            logger.warning("Ignoring assistant expansions of type %s", type(value).__name__)
        return {}
    expansions: dict[str, list[str]] = {}
    for key, items in value.items():
        if not isinstance(key, str) or not key.strip():
            continue
        variations = _string_list(items, f"expansions.{key}")
        if variations:
            expansions[key.strip()] = variations
    return expansions


def _priority(value: object) -> PriorityFilter | None:  # noqa: PLR0911
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 1 <= value <= 4 else None
    if isinstance(value, str):
        normalized = value.strip().lower().removeprefix("p")
        if normalized in {"any", "all"}:
            return "any"
        if normalized == "none":
            return "none"
        if normalized in {"1", "2", "3", "4"}:
            return int(normalized)
        logger.warning("Ignoring assistant priority %r", value)
        return None
    if isinstance(value, list):
        levels = [
            item for item in value if isinstance(item, int) and not isinstance(item, bool)
        ]
        levels = [level for level in dict.fromkeys(levels) if 1 <= level <= 4]
        if not levels:
            return None
        return levels[0] if len(levels) == 1 else tuple(levels)
    logger.warning("Ignoring assistant priority of type %s", type(value).__name__)
    return None


def _due_date(value: object) -> str | DueDateRange | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        operator_raw = value.get("operator")
        anchor = value.get("anchor", value.get("date"))
        end = value.get("end")
        try:
            operator = DueOperator(operator_raw)
        except ValueError:
            logger.warning("Ignoring assistant due-date operator %r", operator_raw)
            return None
        anchor_value = normalize_due_value(anchor) if isinstance(anchor, str) else None
        end_value = normalize_due_value(end) if isinstance(end, str) else None
        if anchor_value is None or (operator is DueOperator.BETWEEN and end_value is None):
            logger.warning("Ignoring assistant due-date range %r", value)
            return None
        return DueDateRange(operator=operator, anchor=anchor_value, end=end_value)
    logger.warning("Ignoring assistant dueDate of type %s", type(value).__name__)
    return None
