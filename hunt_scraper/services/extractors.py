"""
Pluggable review extractors used by the enrichment batcher.

An extractor is an awaitable callable taking a batch of review texts and
returning one ``ExtractionResult`` per text it recognised, addressed by
1-based position within the batch.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from hunt_scraper.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)


class EnrichmentError(RuntimeError):
    """The enrichment service failed or answered with an unusable payload."""


@dataclass(frozen=True)
class ExtractionResult:
    index: int  # 1-based position in the batch
    value: str


class Extractor(Protocol):
    async def __call__(self, texts: List[str]) -> List[ExtractionResult]: ...


@dataclass(frozen=True)
class ExtractionTask:
    name: str
    field: str
    description: str
    instructions: str
    default: str = ""


BUILT_ARTIFACT_TASK = ExtractionTask(
    name="used_to_build",
    field="usedToBuild",
    description="What the user mentioned they built with the product, or empty string if not mentioned",
    instructions="""Extract "used this to build" information from the following product reviews.
If a review mentions that the user "used this to build" something, extract what they built.
If there's no such mention, leave it blank.

Example 1: "I used this to build my personal website and it was great."
Result: "personal website"

Example 2: "This product is amazing for building apps."
Result: "" (empty because it doesn't specifically say "used this to build")

Example 3: "I have used this to build a Chrome extension called 'TabManager'."
Result: "Chrome extension called 'TabManager'"

Example 4: "Used this product to create a landing page for my business."
Result: ""

Example 5: "I used this tool to build my portfolio site with animations."
Result: "portfolio site with animations"

For each review, determine if the user mentions what they built with the product.""",
)

SENTIMENT_TASK = ExtractionTask(
    name="sentiment",
    field="sentiment",
    description="The sentiment of the review: 'positive', 'negative', or 'neutral'",
    instructions="""Analyze the sentiment of the following product reviews.
Classify each review as "positive", "negative", or "neutral" based on the overall tone and content.

Example 1: "This is a great product. I love how easy it is to use."
Sentiment: "positive"

Example 2: "This product is terrible. Wasted my money."
Sentiment: "negative"

Example 3: "The product works as described. Nothing special but gets the job done."
Sentiment: "neutral"

For each review, determine the sentiment as accurately as possible.""",
    default="neutral",
)


def build_prompt(task: ExtractionTask, texts: List[str]) -> str:
    reviews = "\n\n".join(f"Review {i}: {text}" for i, text in enumerate(texts, start=1))
    return f"{task.instructions}\n\nHere are the reviews:\n\n{reviews}\n"


def response_format(task: ExtractionTask) -> dict:
    """JSON schema constraining the reply to ``{"results": [{index, <field>}]}``."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": task.name,
            "schema": {
                "type": "object",
                "properties": {
                    "results": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "index": {
                                    "type": "integer",
                                    "description": "The 1-based index of the review",
                                },
                                task.field: {"type": "string", "description": task.description},
                            },
                            "required": ["index", task.field],
                        },
                    }
                },
                "required": ["results"],
            },
        },
    }


def parse_results(task: ExtractionTask, content: Optional[str]) -> List[ExtractionResult]:
    """
    Parse the model's JSON reply.

    Accepts either ``{"results": [...]}`` or a bare array.

    Raises:
        EnrichmentError: If the reply is not JSON or does not match the shape
    """
    try:
        data: Any = json.loads(content or "")
    except json.JSONDecodeError as e:
        raise EnrichmentError(f"{task.name}: response is not valid JSON") from e

    if isinstance(data, dict):
        data = data.get("results")
    if not isinstance(data, list):
        raise EnrichmentError(f"{task.name}: expected a list of results")

    results: List[ExtractionResult] = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("index"), int):
            raise EnrichmentError(f"{task.name}: malformed result item {item!r}")
        value = item.get(task.field)
        if value is not None and not isinstance(value, str):
            raise EnrichmentError(f"{task.name}: non-string {task.field} in {item!r}")
        results.append(ExtractionResult(index=item["index"], value=(value or task.default).strip()))
    return results


class LLMExtractor:
    """Runs an extraction task through an OpenAI-compatible chat endpoint.

    Pointed at Gemini's OpenAI-compatible base URL by default.
    """

    def __init__(
        self,
        task: ExtractionTask,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        temperature: float = 0.1,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.task = task
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError(
                f"An API key is required for {self.task.name} extraction. Set GEMINI_API_KEY."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def __call__(self, texts: List[str]) -> List[ExtractionResult]:
        client = self._get_client()
        if not texts:
            return []

        logger.debug("Sending %d reviews for %s extraction", len(texts), self.task.name)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_prompt(self.task, texts)}],
                temperature=self.temperature,
                response_format=response_format(self.task),
            )
        except OpenAIError as e:
            raise EnrichmentError(f"{self.task.name}: {type(e).__name__}: {e}") from e

        if not response.choices:
            raise EnrichmentError(f"{self.task.name}: response has no choices")
        return parse_results(self.task, response.choices[0].message.content)


USED_TO_BUILD_PATTERN = re.compile(r"used this to build\s+([A-Z][a-zA-Z0-9\s.-]+)", re.IGNORECASE)
BUILT_PATTERN = re.compile(r"(?:build|built|created)\s+([A-Z][a-zA-Z0-9\s.-]+)", re.IGNORECASE)


class RegexBuiltArtifactExtractor:
    """Heuristic "used this to build X" extraction without any network call.

    Prefers the explicit "used this to build" phrase and falls back to any
    "build/built/created X". Coarse: the capture runs to the first character
    outside letters, digits, whitespace, dots and dashes.
    """

    @staticmethod
    def extract(text: str) -> str:
        match = USED_TO_BUILD_PATTERN.search(text or "") or BUILT_PATTERN.search(text or "")
        if not match:
            return ""
        return match.group(1).strip().rstrip(".").strip()

    async def __call__(self, texts: List[str]) -> List[ExtractionResult]:
        return [ExtractionResult(index=i, value=self.extract(text)) for i, text in enumerate(texts, start=1)]


def build_extractors(settings: Settings) -> tuple[Extractor, Optional[Extractor]]:
    """
    Create the built-artifact extractor and the sentiment classifier.

    Returns:
        (built-artifact extractor, sentiment classifier). The classifier is
        None when the regex extractor is selected and no API key is set.

    Raises:
        ConfigurationError: If an LLM extractor is selected without an API key
    """
    if settings.BUILT_EXTRACTOR == "regex":
        built: Extractor = RegexBuiltArtifactExtractor()
        if not settings.GEMINI_API_KEY:
            return built, None
    elif settings.BUILT_EXTRACTOR == "llm":
        built = LLMExtractor(
            BUILT_ARTIFACT_TASK,
            api_key=settings.require_gemini_key(),
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_BASE_URL,
        )
    else:
        raise ConfigurationError(f"Unknown BUILT_EXTRACTOR {settings.BUILT_EXTRACTOR!r}")

    sentiment = LLMExtractor(
        SENTIMENT_TASK,
        api_key=settings.require_gemini_key(),
        model=settings.GEMINI_MODEL,
        base_url=settings.GEMINI_BASE_URL,
    )
    return built, sentiment
