"""Classifier interface and explicit result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class ResultStatus(str, Enum):
    """Outcome of one classifier call."""

    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class ClassifierRunError(RuntimeError):
    """Classifier backend failure with retryability hint."""

    def __init__(self, message: str, *, transient: bool, reason_code: str = "") -> None:
        super().__init__(message)
        self.transient = transient
        self.reason_code = reason_code


@dataclass(slots=True)
class FriendExtractionResult:
    """Friend names found in one comment, or the reason the call failed."""

    status: ResultStatus
    names: list[str] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def found(cls, names: list[str]) -> FriendExtractionResult:
        return cls(status=ResultStatus.OK if names else ResultStatus.EMPTY, names=list(names))

    @classmethod
    def failed(cls, error: str) -> FriendExtractionResult:
        return cls(status=ResultStatus.FAILED, error=error)

    @property
    def is_failure(self) -> bool:
        return self.status is ResultStatus.FAILED


@dataclass(slots=True)
class CategorizationResult:
    """Suggested categories for unmapped labels.

    ``activities`` pairs a label with one or more activity categories;
    ``training`` pairs a label with exactly one training category.
    """

    status: ResultStatus
    activities: list[tuple[str, list[str]]] = field(default_factory=list)
    training: list[tuple[str, str]] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def resolved(
        cls,
        *,
        activities: list[tuple[str, list[str]]],
        training: list[tuple[str, str]],
    ) -> CategorizationResult:
        status = ResultStatus.OK if activities or training else ResultStatus.EMPTY
        return cls(status=status, activities=list(activities), training=list(training))

    @classmethod
    def failed(cls, error: str) -> CategorizationResult:
        return cls(status=ResultStatus.FAILED, error=error)

    @property
    def is_failure(self) -> bool:
        return self.status is ResultStatus.FAILED


class Classifier(Protocol):
    """Protocol implemented by friend-extraction and categorization backends."""

    def extract_friends(self, comment: str) -> FriendExtractionResult:
        """Return proper-noun candidates for dog friends mentioned in ``comment``."""

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        """Suggest closed-vocabulary categories for both unmapped batches in one call."""
