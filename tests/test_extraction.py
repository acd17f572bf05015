from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import allure

from daycare_trends.classifier import CategorizationResult, FriendExtractionResult
from daycare_trends.extraction import DailyExtractor, ExtractionStatus
from daycare_trends.knowledge_base import KnowledgeBase
from daycare_trends.models import ACTIVITY_CATEGORIES, CategoryAssignment, SourceRecord
from daycare_trends.storage import DailyAnalysisStore

pytestmark = [
    allure.epic("Extraction"),
    allure.feature("Daily Analysis"),
]

FIXED_NOW = datetime(2024, 6, 3, 18, 30, tzinfo=UTC)


def _extractor(knowledge_base: KnowledgeBase, classifier, data_dir: Path) -> DailyExtractor:
    return DailyExtractor(
        knowledge_base=knowledge_base,
        classifier=classifier,
        store=DailyAnalysisStore(data_dir / "analysis" / "daily"),
        subject_name="Pepper",
        clock=lambda: FIXED_NOW,
    )


def test_extract_copies_structural_fields(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier()
    record = SourceRecord(
        date="2024-06-03",
        grade="B",
        positive_behaviors=["shared toys"],
        negative_behaviors=["jumped on people"],
    )

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    analysis = report.analysis
    assert analysis.grade == "B"
    assert analysis.grade_numeric == 3.0
    assert analysis.positive_behaviors == ["shared toys"]
    assert analysis.negative_behaviors == ["jumped on people"]
    assert analysis.friends == []
    assert analysis.analyzed_at == FIXED_NOW.isoformat()
    assert report.classifier_calls == 0
    assert classifier.total_calls == 0


def test_friends_exclude_subject_and_duplicates(knowledge_base, make_classifier, data_dir) -> None:
    comment = "Pepper played with Max and Luna, then max again."
    classifier = make_classifier(friends={comment: ["Pepper", "Max", " Luna ", "max", ""]})
    record = SourceRecord(date="2024-06-03", grade="A", comment=comment)

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert report.analysis.friends == ["Max", "Luna"]
    assert classifier.friend_calls == [comment]
    assert report.classifier_calls == 1


def test_blank_comment_skips_friend_call(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier()
    record = SourceRecord(date="2024-06-03", grade="A", comment="   ")

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert report.analysis.friends == []
    assert classifier.friend_calls == []


def test_friend_failure_degrades_to_warning(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier(fail_friends=True)
    record = SourceRecord(date="2024-06-03", grade="A", comment="Played with Max.")

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert report.analysis.friends == []
    assert report.warnings == ["2024-06-03: friend extraction failed: network down"]


def test_known_labels_use_knowledge_base_only(knowledge_base, make_classifier, data_dir) -> None:
    knowledge_base.record_activity("played outdoors", ["playtime", "outdoor"])
    knowledge_base.record_training("recall", "obedience_commands")
    classifier = make_classifier()
    record = SourceRecord(
        date="2024-06-03",
        grade="A",
        activities=["played outdoors"],
        training_skills=["recall"],
    )

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert classifier.categorize_calls == []
    assert report.analysis.activity_categories == [
        CategoryAssignment("played outdoors", "playtime"),
        CategoryAssignment("played outdoors", "outdoor"),
    ]
    assert report.analysis.training_categories == [
        CategoryAssignment("recall", "obedience_commands"),
    ]


def test_unmapped_labels_are_learned_once(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier(
        activity_answers={"played with my favorite toy": ["playtime"]},
        training_answers={"spin": "fun_skills"},
    )
    extractor = _extractor(knowledge_base, classifier, data_dir)
    first = SourceRecord(
        date="2024-06-03",
        grade="A",
        activities=["played with my favorite toy", "played with my favorite toy"],
        training_skills=["spin"],
    )
    second = SourceRecord(
        date="2024-06-04",
        grade="A",
        activities=["played with my favorite toy"],
    )

    first_report = extractor.extract(first)
    second_report = extractor.extract(second)

    assert classifier.categorize_calls == [(["played with my favorite toy"], ["spin"])]
    assert knowledge_base.lookup_activity("played with my favorite toy") == ["playtime"]
    assert knowledge_base.lookup_training("spin") == "fun_skills"
    assert first_report.analysis.training_categories == [CategoryAssignment("spin", "fun_skills")]
    assert second_report.classifier_calls == 0
    assert second_report.analysis.activity_categories == [
        CategoryAssignment("played with my favorite toy", "playtime"),
    ]


def test_labels_left_unanswered_stay_uncategorized(
    knowledge_base,
    make_classifier,
    data_dir,
) -> None:
    classifier = make_classifier(activity_answers={"caught bubbles": ["playtime"]})
    record = SourceRecord(
        date="2024-06-03",
        grade="A",
        activities=["caught bubbles", "chased a squirrel"],
    )

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert report.analysis.raw_activities == ["caught bubbles", "chased a squirrel"]
    assert report.analysis.activity_categories == [CategoryAssignment("caught bubbles", "playtime")]
    assert knowledge_base.lookup_activity("chased a squirrel") is None


def test_categorization_failure_keeps_raw_labels(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier(fail_categorize=True)
    record = SourceRecord(
        date="2024-06-03",
        grade="C",
        activities=["caught bubbles"],
        training_skills=["spin"],
    )

    report = _extractor(knowledge_base, classifier, data_dir).extract(record)

    assert report.analysis.raw_activities == ["caught bubbles"]
    assert report.analysis.activity_categories == []
    assert report.analysis.training_categories == []
    assert report.warnings == ["2024-06-03: categorization failed: model overloaded"]
    assert knowledge_base.activities == {}


class _RaisingClassifier:
    def extract_friends(self, comment: str) -> FriendExtractionResult:
        raise TypeError("Could not resolve authentication method")

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        raise OSError("disk full")


class _OffVocabularyClassifier:
    def extract_friends(self, comment: str) -> FriendExtractionResult:
        return FriendExtractionResult.found([])

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        return CategorizationResult.resolved(
            activities=[
                ("chased balls", ["bogus", "obedience_commands", "outdoor", "outdoor"]),
                ("zoomies", ["cardio"]),
                ("never asked about", ["playtime"]),
            ],
            training=[("spin", "playtime"), ("sit", "obedience_commands")],
        )


def test_raising_classifier_degrades_to_warnings(knowledge_base, data_dir) -> None:
    record = SourceRecord(
        date="2024-06-03",
        grade="A",
        comment="Played with Max.",
        activities=["caught bubbles"],
    )

    outcome = _extractor(knowledge_base, _RaisingClassifier(), data_dir).run("2024-06-03", record)

    assert outcome.status is ExtractionStatus.EXTRACTED
    assert outcome.analysis.friends == []
    assert outcome.analysis.activity_categories == []
    assert outcome.analysis.raw_activities == ["caught bubbles"]
    assert outcome.warnings == [
        "2024-06-03: friend extraction failed: "
        "TypeError: Could not resolve authentication method",
        "2024-06-03: categorization failed: OSError: disk full",
    ]
    assert outcome.path.is_file()


def test_suggestions_outside_vocabulary_are_dropped(knowledge_base, data_dir) -> None:
    record = SourceRecord(
        date="2024-06-03",
        grade="A",
        activities=["chased balls", "zoomies"],
        training_skills=["spin", "sit"],
    )

    report = _extractor(knowledge_base, _OffVocabularyClassifier(), data_dir).extract(record)

    assert report.analysis.activity_categories == [CategoryAssignment("chased balls", "outdoor")]
    assert report.analysis.training_categories == [
        CategoryAssignment("sit", "obedience_commands"),
    ]
    assert all(
        assignment.category in ACTIVITY_CATEGORIES
        for assignment in report.analysis.activity_categories
    )
    assert knowledge_base.activities == {"chased balls": ["outdoor"]}
    assert knowledge_base.lookup_training("spin") is None
    assert knowledge_base.lookup_activity("never asked about") is None


def test_run_skips_existing_analysis(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier()
    extractor = _extractor(knowledge_base, classifier, data_dir)
    record = SourceRecord(date="2024-06-03", grade="A", comment="Played with Max.")

    first = extractor.run("2024-06-03", record)
    second = extractor.run("2024-06-03", record)
    forced = extractor.run("2024-06-03", record, force=True)

    assert first.status is ExtractionStatus.EXTRACTED
    assert first.path == data_dir / "analysis" / "daily" / "2024-06-03.json"
    assert second.status is ExtractionStatus.SKIPPED
    assert second.classifier_calls == 0
    assert forced.status is ExtractionStatus.EXTRACTED
    assert len(classifier.friend_calls) == 2


def test_dry_run_writes_nothing(knowledge_base, make_classifier, data_dir) -> None:
    classifier = make_classifier(activity_answers={"caught bubbles": ["playtime"]})
    extractor = _extractor(knowledge_base, classifier, data_dir)
    record = SourceRecord(date="2024-06-03", grade="A", activities=["caught bubbles"])

    outcome = extractor.run("2024-06-03", record, dry_run=True)

    assert outcome.status is ExtractionStatus.DRY_RUN
    assert outcome.analysis.activity_categories == [
        CategoryAssignment("caught bubbles", "playtime"),
    ]
    assert outcome.path is None
    assert not extractor.store.exists("2024-06-03")
    assert knowledge_base.lookup_activity("caught bubbles") is None
