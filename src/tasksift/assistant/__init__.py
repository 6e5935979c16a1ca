"""External assistant adapters and response reconciliation."""

from tasksift.assistant.base import (
    AnalysisAssistant,
    AnalysisRequest,
    AssistantRunError,
    IntentAssistant,
    IntentRequest,
)

__all__ = [
    "AnalysisAssistant",
    "AnalysisRequest",
    "AssistantRunError",
    "IntentAssistant",
    "IntentRequest",
]
