"""Classifier backed by the Anthropic Messages API with forced tool use."""

from __future__ import annotations

import json
import logging
from typing import Any

import anthropic

from daycare_trends.classifier.base import CategorizationResult, FriendExtractionResult
from daycare_trends.classifier.parsing import (
    parse_categorization_payload,
    parse_friend_payload,
)
from daycare_trends.classifier.prompts import (
    CATEGORIZATION_PROMPT,
    CATEGORIZE_TOOL,
    FRIEND_EXTRACTION_PROMPT,
    RECORD_FRIENDS_TOOL,
)

logger = logging.getLogger(__name__)


class AnthropicClassifier:
    """Ask the model for structured output by forcing a single tool call.

    The API key is read by the SDK from ``ANTHROPIC_API_KEY`` unless a
    preconfigured ``client`` is supplied. The SDK raises ``TypeError`` when no
    credentials resolve, which is reported like any other API failure.
    """

    def __init__(
        self,
        *,
        model: str,
        max_tokens: int = 500,
        client: Any = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = anthropic.Anthropic()
        return self._client

    def extract_friends(self, comment: str) -> FriendExtractionResult:
        if not comment.strip():
            return FriendExtractionResult.found([])
        try:
            tool_input = self._call_tool(
                tool=RECORD_FRIENDS_TOOL,
                prompt=FRIEND_EXTRACTION_PROMPT.format(comment=comment),
            )
        except (anthropic.AnthropicError, TypeError) as error:
            logger.warning("Friend extraction API call failed: %s", type(error).__name__)
            return FriendExtractionResult.failed(f"{type(error).__name__}: {error}")
        if tool_input is None:
            return FriendExtractionResult.failed("response contained no tool call")

        names = parse_friend_payload(tool_input)
        if names is None:
            return FriendExtractionResult.failed("tool call has no 'friends' list")
        return FriendExtractionResult.found(names)

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        if not activities and not training:
            return CategorizationResult.resolved(activities=[], training=[])
        try:
            tool_input = self._call_tool(
                tool=CATEGORIZE_TOOL,
                prompt=CATEGORIZATION_PROMPT.format(
                    activities=json.dumps(activities),
                    training=json.dumps(training),
                ),
            )
        except (anthropic.AnthropicError, TypeError) as error:
            logger.warning("Categorization API call failed: %s", type(error).__name__)
            return CategorizationResult.failed(f"{type(error).__name__}: {error}")
        if tool_input is None:
            return CategorizationResult.failed("response contained no tool call")

        parsed = parse_categorization_payload(tool_input, activities=activities, training=training)
        if parsed is None:
            return CategorizationResult.failed("tool call has neither 'activities' nor 'training'")
        resolved_activities, resolved_training = parsed
        return CategorizationResult.resolved(
            activities=resolved_activities,
            training=resolved_training,
        )

    def _call_tool(self, *, tool: dict[str, Any], prompt: str) -> dict[str, object] | None:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool["name"]},
            messages=[{"role": "user", "content": prompt}],
        )
        for block in message.content:
            if getattr(block, "type", None) == "tool_use" and isinstance(block.input, dict):
                return block.input
        return None
