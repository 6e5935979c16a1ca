"""Prompt templates for intent parsing and task recommendation."""

from __future__ import annotations

from tasksift.assistant.base import AnalysisRequest, IntentRequest
from tasksift.models import TaskRecord

INTENT_PROMPT = """\
You are parsing a task search query for a personal task manager.

Query: {query}
Keywords found so far: {core_keywords}

Return ONLY a JSON object with these fields:
{{
  "keywords": [<core search terms, no filler words>],
  "expansions": {{"<keyword>": [<semantic variations>]}},
  "priority": <1-4, list of 1-4, "any", "none" or null>,
  "dueDate": <"any", "none", "today", "tomorrow", "yesterday", "overdue", "future",
              "this-week", "next-week", "this-month", "next-month", "YYYY-MM-DD" or null>,
  "status": [<one or more of: {status_keys}>],
  "folder": <string or null>,
  "tags": [<tag names without #>],
  "isVague": <true when the query is open-ended, like "what should I do">,
  "confidence": <0.0-1.0>,
  "correctedTerms": [<typo corrections you applied, as "wrong->right">]
}}

Rules:
- Give at most {budget} expansions per keyword, spread across: {languages}.
- Do not repeat filter words (priority, due date, status) in keywords.
- Use null or [] for anything the query does not mention.
"""

ANALYSIS_PROMPT = """\
You are helping a user decide which of their tasks to work on.

User question: {query}

Tasks, most relevant first:
{task_lines}

Recommend the tasks that best answer the question. Cite every task you
mention with its exact id token, for example [TASK_1]. Do not invent ids.
Keep the answer short.
"""


def build_intent_prompt(request: IntentRequest) -> str:
    return INTENT_PROMPT.format(
        query=request.query,
        core_keywords=", ".join(request.core_keywords) or "(none)",
        status_keys=", ".join(request.status_keys) or "open",
        budget=request.expansions_per_keyword,
        languages=", ".join(request.languages),
    )


def build_analysis_prompt(request: AnalysisRequest) -> str:
    lines = [_task_line(index, task) for index, task in enumerate(request.tasks, start=1)]
    return ANALYSIS_PROMPT.format(query=request.query, task_lines="\n".join(lines))


def citation_token(citation_id: int | str) -> str:
    return f"[TASK_{citation_id}]"


def _task_line(citation_id: int, task: TaskRecord) -> str:
    details: list[str] = [f"status: {task.status}"]
    if task.priority is not None:
        details.append(f"priority: P{task.priority}")
    if task.due_date is not None:
        details.append(f"due: {task.due_date.isoformat()}")
    if task.folder:
        details.append(f"folder: {task.folder}")
    if task.tags:
        details.append(f"tags: {', '.join(task.tags)}")
    return f"{citation_token(citation_id)} {task.text} ({'; '.join(details)})"
