from __future__ import annotations

from types import SimpleNamespace

import allure
import anthropic
import httpx

from daycare_trends.classifier import AnthropicClassifier, ResultStatus

pytestmark = [
    allure.epic("Classifier"),
    allure.feature("Anthropic API Backend"),
]


class _FakeMessages:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses) -> SimpleNamespace:
    return SimpleNamespace(messages=_FakeMessages(responses))


def _tool_use(payload: dict) -> SimpleNamespace:
    return SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Recording now."),
            SimpleNamespace(type="tool_use", name="tool", input=payload),
        ],
    )


def test_extract_friends_forces_tool_call() -> None:
    client = _client(_tool_use({"friends": ["Max", " Luna "]}))
    classifier = AnthropicClassifier(model="claude-test", max_tokens=200, client=client)

    result = classifier.extract_friends("Pepper played with Max and Luna.")

    assert result.status is ResultStatus.OK
    assert result.names == ["Max", "Luna"]
    call = client.messages.calls[0]
    assert call["model"] == "claude-test"
    assert call["max_tokens"] == 200
    assert call["tool_choice"] == {"type": "tool", "name": call["tools"][0]["name"]}
    assert "Pepper played with Max and Luna." in call["messages"][0]["content"]


def test_categorize_filters_unknown_categories() -> None:
    client = _client(
        _tool_use(
            {
                "activities": [{"item": "caught bubbles", "categories": ["playtime", "cardio"]}],
                "training": [{"item": "spin", "category": "fun_skills"}],
            },
        ),
    )
    classifier = AnthropicClassifier(model="claude-test", client=client)

    result = classifier.categorize(["caught bubbles"], ["spin"])

    assert result.activities == [("caught bubbles", ["playtime"])]
    assert result.training == [("spin", "fun_skills")]


def test_api_error_becomes_failed_result() -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    client = _client(anthropic.APIConnectionError(request=request))
    classifier = AnthropicClassifier(model="claude-test", client=client)

    result = classifier.extract_friends("Max says hi.")

    assert result.status is ResultStatus.FAILED
    assert result.error.startswith("APIConnectionError")


def test_response_without_tool_call_fails() -> None:
    client = _client(SimpleNamespace(content=[SimpleNamespace(type="text", text="Max")]))
    classifier = AnthropicClassifier(model="claude-test", client=client)

    result = classifier.categorize(["caught bubbles"], [])

    assert result.status is ResultStatus.FAILED
    assert result.error == "response contained no tool call"


def test_empty_inputs_make_no_request() -> None:
    client = _client()
    classifier = AnthropicClassifier(model="claude-test", client=client)

    assert classifier.extract_friends("").status is ResultStatus.EMPTY
    assert classifier.categorize([], []).status is ResultStatus.EMPTY
    assert client.messages.calls == []


def test_missing_credentials_become_failed_result() -> None:
    client = _client(TypeError("Could not resolve authentication method."))
    classifier = AnthropicClassifier(model="claude-test", client=client)

    result = classifier.categorize(["caught bubbles"], [])

    assert result.status is ResultStatus.FAILED
    assert result.error.startswith("TypeError: Could not resolve authentication method")
