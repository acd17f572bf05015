"""Learned label -> category mappings shared by every extraction run.

Entries are append-only from the extractor's point of view: once a label is
mapped it is reused forever and the classifier is never asked about it again.
Changing an existing entry goes through the explicit ``override_*`` and
``forget_*`` operations.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from daycare_trends.models import ACTIVITY_CATEGORIES, TRAINING_CATEGORIES
from daycare_trends.storage.json_files import MalformedDocumentError, load_json, write_json

logger = logging.getLogger(__name__)

# Fixed check-box labels of the daycare's report-card form.
DEFAULT_ACTIVITY_MAPPINGS: dict[str, list[str]] = {
    "brain building games and challenges": ["enrichment"],
    "caught bubbles": ["playtime", "enrichment"],
    "engagement games": ["enrichment"],
    "had a pool party": ["playtime", "outdoor", "socialization"],
    "hung out with my bestie": ["socialization"],
    "napped with friends": ["rest"],
    "nose work games and challenges": ["enrichment", "training"],
    "one-on-one time with the trainer": ["training"],
    "party animal": ["playtime", "socialization"],
    "played on the agility equipment": ["playtime", "training"],
    "played outdoors": ["playtime", "outdoor"],
    "played with as many buddies as possible": ["playtime", "socialization"],
    "played with my favorite toy": ["playtime"],
    "special event": ["special_event"],
}

DEFAULT_TRAINING_MAPPINGS: dict[str, str] = {
    "sit (stay)": "obedience_commands",
    "down (stay)": "obedience_commands",
    "stand (stay)": "obedience_commands",
    "recall": "obedience_commands",
    "name recognition": "obedience_commands",
    "impulse control": "impulse_control_and_focus",
    "focus work": "impulse_control_and_focus",
    "jazz up, settle down": "impulse_control_and_focus",
    "agility": "physical_skills",
    "balancing skills": "physical_skills",
    "collar grab games": "handling_and_manners",
    "handling (exam style)": "handling_and_manners",
    "loose-leash walking": "handling_and_manners",
    "boundries, door-ways, and thresholds": "handling_and_manners",
    "place work (go to matt/table)": "handling_and_manners",
    "crate training": "handling_and_manners",
    "sequence (3 different skills in varying order)": "advanced_training",
    "recall with distractions": "advanced_training",
    "hands-free work": "advanced_training",
    "trick training": "fun_skills",
}


class KnowledgeBase:
    """Two persistent maps: activity label -> categories, training label -> category."""

    def __init__(
        self,
        *,
        activity_path: Path,
        training_path: Path,
        activities: dict[str, list[str]] | None = None,
        training: dict[str, str] | None = None,
    ) -> None:
        self.activity_path = activity_path
        self.training_path = training_path
        self._activities: dict[str, list[str]] = dict(activities or {})
        self._training: dict[str, str] = dict(training or {})
        self._corrupt_paths: set[Path] = set()

    @classmethod
    def load(cls, *, activity_path: Path, training_path: Path) -> KnowledgeBase:
        """Read both maps; absent or corrupt documents start empty."""

        corrupt: set[Path] = set()
        raw_activities = _load_document(activity_path, corrupt)
        raw_training = _load_document(training_path, corrupt)

        activities: dict[str, list[str]] = {}
        for label, value in raw_activities.items():
            categories = _valid_activity_categories(value)
            if categories:
                activities[label] = categories
            else:
                logger.warning("Dropping invalid activity mapping %r -> %r", label, value)

        training: dict[str, str] = {}
        for label, value in raw_training.items():
            if isinstance(value, str) and value in TRAINING_CATEGORIES:
                training[label] = value
            else:
                logger.warning("Dropping invalid training mapping %r -> %r", label, value)

        knowledge_base = cls(
            activity_path=activity_path,
            training_path=training_path,
            activities=activities,
            training=training,
        )
        knowledge_base._corrupt_paths = corrupt
        return knowledge_base

    @property
    def activities(self) -> dict[str, list[str]]:
        return {label: list(categories) for label, categories in self._activities.items()}

    @property
    def training(self) -> dict[str, str]:
        return dict(self._training)

    def lookup_activity(self, label: str) -> list[str] | None:
        categories = self._activities.get(label)
        return list(categories) if categories is not None else None

    def lookup_training(self, label: str) -> str | None:
        return self._training.get(label)

    def record_activity(self, label: str, categories: Iterable[str]) -> bool:
        """Add a new activity mapping and flush it; existing labels are left untouched."""

        if label in self._activities:
            return False
        normalized = _valid_activity_categories(list(categories))
        if not normalized:
            return False
        self._activities[label] = normalized
        self._flush_activities()
        return True

    def record_training(self, label: str, category: str) -> bool:
        """Add a new training mapping and flush it; existing labels are left untouched."""

        if label in self._training or category not in TRAINING_CATEGORIES:
            return False
        self._training[label] = category
        self._flush_training()
        return True

    def override_activity(self, label: str, categories: Iterable[str]) -> None:
        """Replace (or create) an activity mapping on explicit request."""

        requested = list(categories)
        normalized = _valid_activity_categories(requested)
        if not normalized or len(normalized) != len(set(requested)):
            raise ValueError(
                f"Activity categories must be non-empty and drawn from: "
                f"{', '.join(ACTIVITY_CATEGORIES)}",
            )
        previous = self._activities.get(label)
        self._activities[label] = normalized
        self._flush_activities()
        logger.info("Activity mapping overridden: %r %r -> %r", label, previous, normalized)

    def override_training(self, label: str, category: str) -> None:
        """Replace (or create) a training mapping on explicit request."""

        if category not in TRAINING_CATEGORIES:
            raise ValueError(
                f"Training category must be one of: {', '.join(TRAINING_CATEGORIES)}",
            )
        previous = self._training.get(label)
        self._training[label] = category
        self._flush_training()
        logger.info("Training mapping overridden: %r %r -> %r", label, previous, category)

    def forget_activity(self, label: str) -> bool:
        if self._activities.pop(label, None) is None:
            return False
        self._flush_activities()
        return True

    def forget_training(self, label: str) -> bool:
        if self._training.pop(label, None) is None:
            return False
        self._flush_training()
        return True

    def seed_defaults(self) -> int:
        """Record the daycare's fixed form labels; returns how many entries were new."""

        added = 0
        for label, categories in DEFAULT_ACTIVITY_MAPPINGS.items():
            added += self.record_activity(label, categories)
        for label, category in DEFAULT_TRAINING_MAPPINGS.items():
            added += self.record_training(label, category)
        return added

    def activity_items_by_category(self) -> dict[str, list[str]]:
        reverse: dict[str, list[str]] = {}
        for label, categories in self._activities.items():
            for category in categories:
                reverse.setdefault(category, []).append(label)
        return {category: sorted(items) for category, items in sorted(reverse.items())}

    def training_items_by_category(self) -> dict[str, list[str]]:
        reverse: dict[str, list[str]] = {}
        for label, category in self._training.items():
            reverse.setdefault(category, []).append(label)
        return {category: sorted(items) for category, items in sorted(reverse.items())}

    def save(self) -> None:
        self._flush_activities()
        self._flush_training()

    def _flush_activities(self) -> None:
        self._preserve_corrupt(self.activity_path)
        write_json(self.activity_path, self._activities)

    def _flush_training(self) -> None:
        self._preserve_corrupt(self.training_path)
        write_json(self.training_path, self._training)

    def _preserve_corrupt(self, path: Path) -> None:
        if path not in self._corrupt_paths:
            return
        self._corrupt_paths.discard(path)
        if not path.exists():
            return
        backup = path.with_name(f"{path.name}.corrupt")
        shutil.copyfile(path, backup)
        logger.warning("Preserved unreadable mapping file as %s", backup)


def _load_document(path: Path, corrupt: set[Path]) -> dict[str, object]:
    if not path.is_file():
        return {}
    try:
        return load_json(path)
    except MalformedDocumentError as error:
        logger.warning("Ignoring unreadable mapping file %s: %s", path, error.reason)
        corrupt.add(path)
        return {}


def _valid_activity_categories(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    categories: list[str] = []
    for category in value:
        if isinstance(category, str) and category in ACTIVITY_CATEGORIES:
            if category not in categories:
                categories.append(category)
    return categories
