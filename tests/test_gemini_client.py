import json

import httpx
import pytest

from app.services.errors import GenerationFailure
from app.services.gemini import GeminiClient


def _client(handler, api_key="test-key"):
    return GeminiClient(api_key, model="gemini-test", transport=httpx.MockTransport(handler))


def _candidate_response(*texts):
    return httpx.Response(
        200,
        json={"candidates": [{"content": {"parts": [{"text": text} for text in texts]}}]},
    )


def test_generate_posts_prompt_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return _candidate_response('[{"a": ', "1}]")

    text = _client(handler).generate("Say hi as JSON", task="follow_up_questions", expected_items=5)

    assert text == '[{"a": 1}]'
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "test-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "Say hi as JSON"
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_missing_api_key_fails_without_calling_the_provider():
    def handler(request):
        raise AssertionError("provider should not be called")

    with pytest.raises(GenerationFailure) as excinfo:
        _client(handler, api_key="").generate("prompt", task="career_options")

    assert excinfo.value.task == "career_options"


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(429, json={"error": {"message": "quota"}}),
        lambda request: httpx.Response(200, text="<html>not json</html>"),
        lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}),
        lambda request: _candidate_response("   "),
        lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": None}]}}]}),
        lambda request: httpx.Response(200, json={"candidates": ["x"]}),
        lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": "text"}}]}),
        lambda request: httpx.Response(200, json={"candidates": {"content": {}}}),
        lambda request: httpx.Response(200, json=["not", "an", "object"]),
    ],
    ids=[
        "http-error",
        "non-json-envelope",
        "blocked",
        "empty-text",
        "null-text-part",
        "non-object-candidate",
        "non-list-parts",
        "non-list-candidates",
        "non-object-envelope",
    ],
)
def test_provider_problems_become_generation_failures(handler):
    with pytest.raises(GenerationFailure):
        _client(handler).generate("prompt", task="career_recommendations")


def test_timeouts_become_generation_failures():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GenerationFailure) as excinfo:
        _client(handler).generate("prompt", task="career_roadmap")

    assert "timed out" in str(excinfo.value)


def test_connection_errors_become_generation_failures():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GenerationFailure):
        _client(handler).generate("prompt", task="career_roadmap")
