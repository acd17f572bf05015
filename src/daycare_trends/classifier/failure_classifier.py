"""Deterministic classification of CLI agent failures from exit code and output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureClass(str, Enum):
    """Normalized failure classes reported with each failed classifier call."""

    TIMEOUT = "timeout"
    BACKEND_TRANSIENT = "backend_transient"
    BACKEND_NON_RETRYABLE = "backend_non_retryable"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"
    OUTPUT_INVALID = "output_invalid"


TRANSIENT_FAILURE_CLASSES = frozenset(
    {FailureClass.TIMEOUT, FailureClass.BACKEND_TRANSIENT},
)

_RULES: tuple[tuple[str, FailureClass, tuple[str, ...]], ...] = (
    (
        "billing_or_quota",
        FailureClass.BILLING_OR_QUOTA,
        ("quota", "resource_exhausted", "insufficient", "billing", "payment", "credits"),
    ),
    (
        "access_or_auth",
        FailureClass.ACCESS_OR_AUTH,
        (
            "unauthorized",
            "forbidden",
            "permission denied",
            "invalid api key",
            "authentication",
        ),
    ),
    (
        "model_not_available",
        FailureClass.MODEL_NOT_AVAILABLE,
        ("model not found", "unknown model", "unsupported model", "invalid model"),
    ),
    (
        "rate_limit_transient",
        FailureClass.BACKEND_TRANSIENT,
        ("too many requests", "rate limit", "429", "overloaded", "try again later"),
    ),
    (
        "generic_transient",
        FailureClass.BACKEND_TRANSIENT,
        (
            "temporarily unavailable",
            "temporary failure",
            "connection reset",
            "network error",
            "could not resolve host",
        ),
    ),
)


@dataclass(slots=True)
class AgentFailureClassification:
    """Which failure class an agent exit maps to, and the rule that decided it."""

    failure_class: FailureClass
    reason_code: str
    matched_pattern: str | None

    @property
    def transient(self) -> bool:
        return self.failure_class in TRANSIENT_FAILURE_CLASSES


def classify_agent_failure(
    *,
    agent: str,
    exit_code: int,
    stdout: str,
    stderr: str,
) -> AgentFailureClassification:
    """Classify a non-zero agent exit into a failure class, first matching rule wins."""

    haystack = f"{stderr}\n{stdout}".lower()
    for rule_name, failure_class, patterns in _RULES:
        for pattern in patterns:
            if pattern in haystack:
                return AgentFailureClassification(
                    failure_class=failure_class,
                    reason_code=f"{agent}_{rule_name}",
                    matched_pattern=pattern,
                )
    return AgentFailureClassification(
        failure_class=FailureClass.BACKEND_NON_RETRYABLE,
        reason_code=f"{agent}_exit_{exit_code}",
        matched_pattern=None,
    )
