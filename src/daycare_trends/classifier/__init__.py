"""Friend extraction and categorization backends."""

from __future__ import annotations

from daycare_trends.classifier.anthropic_api import AnthropicClassifier
from daycare_trends.classifier.base import (
    CategorizationResult,
    Classifier,
    ClassifierRunError,
    FriendExtractionResult,
    ResultStatus,
)
from daycare_trends.classifier.cli_agent import CliAgentClassifier
from daycare_trends.config import Settings


def build_classifier(settings: Settings) -> Classifier:
    """Instantiate the configured backend."""

    classifier_settings = settings.classifier
    if classifier_settings.backend == "anthropic":
        return AnthropicClassifier(
            model=classifier_settings.anthropic_model,
            max_tokens=classifier_settings.anthropic_max_tokens,
        )
    agent = classifier_settings.agent
    return CliAgentClassifier(
        agent=agent,
        model=classifier_settings.model_for(agent),
        command_template=classifier_settings.command_template_for(agent),
        workdir_root=settings.classifier_workdir,
        timeout_seconds=classifier_settings.timeout_seconds,
        keep_workdirs=classifier_settings.keep_workdirs,
    )


__all__ = [
    "AnthropicClassifier",
    "CategorizationResult",
    "Classifier",
    "ClassifierRunError",
    "CliAgentClassifier",
    "FriendExtractionResult",
    "ResultStatus",
    "build_classifier",
]
