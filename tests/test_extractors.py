import asyncio
import json
from types import SimpleNamespace

import pytest

from hunt_scraper.config import ConfigurationError, Settings
from hunt_scraper.services.extractors import (
    BUILT_ARTIFACT_TASK,
    SENTIMENT_TASK,
    EnrichmentError,
    ExtractionResult,
    LLMExtractor,
    RegexBuiltArtifactExtractor,
    build_extractors,
    parse_results,
)


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content):
    completions = FakeCompletions(content)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_regex_extractor_prefers_used_this_to_build():
    extractor = RegexBuiltArtifactExtractor()

    results = asyncio.run(extractor([
        "I used this to build Portfolio Site. Loved it",
        "We built Acme Dashboard in a weekend",
        "Nice tool, nothing else to say!",
    ]))

    assert results[0] == ExtractionResult(index=1, value="Portfolio Site. Loved it")
    assert results[1].value == "Acme Dashboard in a weekend"
    assert results[2] == ExtractionResult(index=3, value="")


def test_regex_extractor_strips_trailing_period():
    assert RegexBuiltArtifactExtractor.extract("I created Notes App.") == "Notes App"


def test_llm_extractor_requires_key_before_any_call():
    client, completions = fake_client("{}")
    extractor = LLMExtractor(SENTIMENT_TASK, api_key="", model="m", client=client)

    with pytest.raises(ConfigurationError):
        asyncio.run(extractor(["great"]))
    assert completions.requests == []


def test_llm_extractor_parses_structured_reply():
    content = json.dumps({"results": [
        {"index": 1, "usedToBuild": "a landing page"},
        {"index": 2, "usedToBuild": ""},
    ]})
    client, completions = fake_client(content)
    extractor = LLMExtractor(BUILT_ARTIFACT_TASK, api_key="key", model="gemini-x", client=client)

    results = asyncio.run(extractor(["I used this to build a landing page", "meh"]))

    assert results == [ExtractionResult(1, "a landing page"), ExtractionResult(2, "")]
    request = completions.requests[0]
    assert request["model"] == "gemini-x"
    assert "Review 2: meh" in request["messages"][0]["content"]
    assert request["response_format"]["type"] == "json_schema"


def test_sentiment_defaults_to_neutral():
    results = parse_results(SENTIMENT_TASK, json.dumps([{"index": 1}]))
    assert results == [ExtractionResult(1, "neutral")]


@pytest.mark.parametrize("content", ["not json", json.dumps({"results": "x"}), json.dumps([{"value": 1}])])
def test_malformed_reply_raises(content):
    with pytest.raises(EnrichmentError):
        parse_results(SENTIMENT_TASK, content)


def test_build_extractors_regex_without_key():
    built, sentiment = build_extractors(Settings(BUILT_EXTRACTOR="regex", GEMINI_API_KEY=""))
    assert isinstance(built, RegexBuiltArtifactExtractor)
    assert sentiment is None


def test_build_extractors_llm_without_key_fails():
    with pytest.raises(ConfigurationError):
        build_extractors(Settings(BUILT_EXTRACTOR="llm", GEMINI_API_KEY=""))


def test_build_extractors_llm_with_key():
    built, sentiment = build_extractors(Settings(BUILT_EXTRACTOR="llm", GEMINI_API_KEY="k"))
    assert built.task is BUILT_ARTIFACT_TASK
    assert sentiment.task is SENTIMENT_TASK
