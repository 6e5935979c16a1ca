"""Deterministic classification of assistant failures into user-facing guidance."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    """Failure categories reported for assistant calls."""

    TIMEOUT = "timeout"
    ACCESS_OR_AUTH = "access_or_auth"
    BILLING_OR_QUOTA = "billing_or_quota"
    RATE_LIMIT = "rate_limit"
    MODEL_NOT_AVAILABLE = "model_not_available"
    CONTEXT_LENGTH = "context_length"
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


_CONTEXT_LENGTH_PATTERNS: tuple[str, ...] = (
    "context length",
    "context_length_exceeded",
    "maximum context",
    "context window",
    "too many tokens",
    "token limit",
    "prompt is too long",
)
_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "resource_exhausted",
    "insufficient",
    "billing",
    "payment",
    "credits",
    "usage limit",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "invalid api key",
    "incorrect api key",
    "authentication",
    "401",
    "403",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "unknown model",
    "unsupported model",
    "invalid model",
    "model is not available",
    "does not exist",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "429",
    "try again later",
)
_NETWORK_PATTERNS: tuple[str, ...] = (
    "temporarily unavailable",
    "temporary failure",
    "connection reset",
    "connection refused",
    "network error",
    "could not resolve host",
    "econnrefused",
    "503",
    "502",
)

_RULES: tuple[tuple[FailureKind, tuple[str, ...]], ...] = (
    (FailureKind.CONTEXT_LENGTH, _CONTEXT_LENGTH_PATTERNS),
    (FailureKind.BILLING_OR_QUOTA, _BILLING_OR_QUOTA_PATTERNS),
    (FailureKind.ACCESS_OR_AUTH, _ACCESS_OR_AUTH_PATTERNS),
    (FailureKind.MODEL_NOT_AVAILABLE, _MODEL_NOT_AVAILABLE_PATTERNS),
    (FailureKind.RATE_LIMIT, _RATE_LIMIT_PATTERNS),
    (FailureKind.NETWORK, _NETWORK_PATTERNS),
)

_SOLUTIONS: dict[FailureKind, str] = {
    FailureKind.TIMEOUT: (
        "The assistant did not answer in time. Raise TASKSIFT_ASSISTANT_TIMEOUT_SECONDS "
        "or narrow the query."
    ),
    FailureKind.ACCESS_OR_AUTH: "Check the assistant credentials and API key.",
    FailureKind.BILLING_OR_QUOTA: "Check the provider account balance and usage limits.",
    FailureKind.RATE_LIMIT: "Wait a moment and run the query again.",
    FailureKind.MODEL_NOT_AVAILABLE: (
        "Check TASKSIFT_ASSISTANT_MODEL against the models the provider offers."
    ),
    FailureKind.CONTEXT_LENGTH: (
        "Too many tasks for the model context. Lower TASKSIFT_MAX_ANALYSIS_TASKS "
        "or use a model with a larger context window."
    ),
    FailureKind.NETWORK: "Check the network connection and the provider endpoint.",
    FailureKind.INVALID_RESPONSE: "The assistant answered in an unexpected format; try again.",
    FailureKind.UNKNOWN: "Check the assistant command output for details.",
}


@dataclass(frozen=True, slots=True)
class AnalysisFailure:
    """Structured description of an assistant failure."""

    kind: FailureKind
    message: str
    solution: str
    model: str
    matched_pattern: str | None = None
    exit_code: int | None = None

    def describe(self) -> str:
        return f"{self.message} [{self.kind.value}, model={self.model}] {self.solution}"


def classify_assistant_failure(  # noqa: PLR0913
    *,
    model: str,
    exit_code: int | None,
    stdout: str,
    stderr: str,
    timed_out: bool = False,
    message: str | None = None,
) -> AnalysisFailure:
    """Classify a failed assistant call by its output; first matching rule wins."""

    summary = message or _summary(stdout=stdout, stderr=stderr, exit_code=exit_code)
    if timed_out:
        return _failure(FailureKind.TIMEOUT, summary, model, None, exit_code)

    haystack = f"{stderr}\n{stdout}".lower()
    for kind, patterns in _RULES:
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return _failure(kind, summary, model, pattern, exit_code)
    return _failure(FailureKind.UNKNOWN, summary, model, None, exit_code)


def invalid_response_failure(*, model: str, message: str) -> AnalysisFailure:
    return _failure(FailureKind.INVALID_RESPONSE, message, model, None, None)


def _failure(
    kind: FailureKind,
    message: str,
    model: str,
    pattern: str | None,
    exit_code: int | None,
) -> AnalysisFailure:
    return AnalysisFailure(
        kind=kind,
        message=message,
        solution=_SOLUTIONS[kind],
        model=model,
        matched_pattern=pattern,
        exit_code=exit_code,
    )


def _summary(*, stdout: str, stderr: str, exit_code: int | None) -> str:
    for stream in (stderr, stdout):
        lines = [line.strip() for line in stream.splitlines() if line.strip()]
        if lines:
            return lines[-1][:300]
    if exit_code is None:
        return "Assistant call failed."
    return f"Assistant command exited with code {exit_code}."


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
