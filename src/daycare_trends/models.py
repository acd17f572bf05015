"""Domain models for source records, daily analyses and category vocabularies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

GRADE_VALUES: dict[str, float] = {
    "A": 4.0,
    "B": 3.0,
    "C": 2.0,
    "D": 1.0,
}


class ActivityCategory(str, Enum):
    """Closed vocabulary for "What I Did Today" activities."""

    PLAYTIME = "playtime"
    SOCIALIZATION = "socialization"
    REST = "rest"
    OUTDOOR = "outdoor"
    ENRICHMENT = "enrichment"
    TRAINING = "training"
    SPECIAL_EVENT = "special_event"


class TrainingCategory(str, Enum):
    """Closed vocabulary for practiced training skills."""

    OBEDIENCE_COMMANDS = "obedience_commands"
    IMPULSE_CONTROL_AND_FOCUS = "impulse_control_and_focus"
    PHYSICAL_SKILLS = "physical_skills"
    HANDLING_AND_MANNERS = "handling_and_manners"
    ADVANCED_TRAINING = "advanced_training"
    FUN_SKILLS = "fun_skills"


ACTIVITY_CATEGORIES: tuple[str, ...] = tuple(category.value for category in ActivityCategory)
TRAINING_CATEGORIES: tuple[str, ...] = tuple(category.value for category in TrainingCategory)


def grade_to_number(grade: str) -> float:
    """Map a letter grade to its ordinal value; unknown grades map to 0.0."""

    return GRADE_VALUES.get(grade.strip().upper(), 0.0) if grade else 0.0


def format_category_label(category: str) -> str:
    """Render a snake_case category as a display label (``impulse_control_and_focus``)."""

    return " ".join(
        word if word == "and" else word.capitalize() for word in category.split("_") if word
    )


@dataclass(slots=True)
class SourceRecord:
    """One scraped report card, reduced to the fields the pipeline reads."""

    date: str
    grade: str = ""
    comment: str = ""
    activities: list[str] = field(default_factory=list)
    training_skills: list[str] = field(default_factory=list)
    positive_behaviors: list[str] = field(default_factory=list)
    negative_behaviors: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: dict[str, Any], *, fallback_date: str) -> SourceRecord:
        """Build a record from scraper JSON, defaulting absent fields to empty."""

        raw_date = raw.get("date")
        return cls(
            date=raw_date if isinstance(raw_date, str) and raw_date.strip() else fallback_date,
            grade=_as_text(raw.get("grade")),
            comment=_as_text(raw.get("noteworthyComments")),
            activities=_as_text_list(raw.get("whatIDidToday")),
            training_skills=_as_text_list(raw.get("trainingSkills")),
            positive_behaviors=_as_text_list(raw.get("caughtBeingGood")),
            negative_behaviors=_as_text_list(raw.get("ooops")),
        )


@dataclass(slots=True, frozen=True)
class CategoryAssignment:
    """One (item, category) pair emitted for an activity or training skill."""

    item: str
    category: str

    def to_payload(self) -> dict[str, str]:
        return {"item": self.item, "category": self.category}


@dataclass(slots=True)
class DailyAnalysis:
    """Write-once enrichment of one source record."""

    date: str
    grade: str
    grade_numeric: float
    friends: list[str]
    comment: str
    raw_activities: list[str]
    raw_training_skills: list[str]
    activity_categories: list[CategoryAssignment]
    training_categories: list[CategoryAssignment]
    positive_behaviors: list[str]
    negative_behaviors: list[str]
    analyzed_at: str

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the camelCase keys read by the dashboard."""

        return {
            "date": self.date,
            "grade": self.grade,
            "gradeNumeric": self.grade_numeric,
            "friends": list(self.friends),
            "comment": self.comment,
            "rawActivities": list(self.raw_activities),
            "rawTrainingSkills": list(self.raw_training_skills),
            "aiActivityCategories": [item.to_payload() for item in self.activity_categories],
            "aiTrainingCategories": [item.to_payload() for item in self.training_categories],
            "caughtBeingGood": list(self.positive_behaviors),
            "ooops": list(self.negative_behaviors),
            "analyzedAt": self.analyzed_at,
        }

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> DailyAnalysis:
        """Deserialize a persisted analysis; raises ``ValueError`` on a bad shape."""

        date = raw.get("date")
        if not isinstance(date, str) or not date.strip():
            raise ValueError("daily analysis date must be a non-empty string")
        grade = _as_text(raw.get("grade"))
        grade_numeric = raw.get("gradeNumeric")
        if isinstance(grade_numeric, bool) or not isinstance(grade_numeric, int | float):
            grade_numeric = grade_to_number(grade)
        return cls(
            date=date,
            grade=grade,
            grade_numeric=float(grade_numeric),
            friends=_as_text_list(raw.get("friends")),
            comment=_as_text(raw.get("comment")),
            raw_activities=_as_text_list(raw.get("rawActivities")),
            raw_training_skills=_as_text_list(raw.get("rawTrainingSkills")),
            activity_categories=_as_assignments(raw.get("aiActivityCategories")),
            training_categories=_as_assignments(raw.get("aiTrainingCategories")),
            positive_behaviors=_as_text_list(raw.get("caughtBeingGood")),
            negative_behaviors=_as_text_list(raw.get("ooops")),
            analyzed_at=_as_text(raw.get("analyzedAt")),
        )


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _as_text_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _as_assignments(value: object) -> list[CategoryAssignment]:
    if not isinstance(value, list):
        return []
    assignments: list[CategoryAssignment] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        name = item.get("item")
        category = item.get("category")
        if isinstance(name, str) and isinstance(category, str):
            assignments.append(CategoryAssignment(item=name, category=category))
    return assignments
