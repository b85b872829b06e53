"""AI-drafted news articles: one LLM call per configured topic, always saved as drafts."""

from __future__ import annotations

import json
import logging

import anthropic
import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.normalize import truncate_text
from gamewire.ingestion.records import MAX_EXCERPT_LENGTH, STATUS_DRAFT, CandidateRecord
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

SOURCE_LABEL = "Gamewire AI Editorial"

CATEGORIES = ("Game Updates", "Industry News", "Esports", "Hardware", "Game Releases")

SYSTEM_PROMPT = """\
You are a staff writer for a video game news site. You write timely, engaging \
and factual-sounding news articles. You always answer with a single JSON object \
and nothing else."""

_USER_PROMPT = """\
Write a gaming news article about {topic}.

Respond with JSON in exactly this shape:
{{
  "title": "catchy news headline",
  "excerpt": "2-3 sentence summary (150-200 chars)",
  "content": "full article content (500-800 words, paragraphs separated by \\n\\n)",
  "category": "{categories}"
}}"""


def format_user_prompt(topic: str) -> str:
    return _USER_PROMPT.format(topic=topic, categories="|".join(CATEGORIES))


async def _call_llm(
    client: anthropic.AsyncAnthropic,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
) -> str:
    """Call the Anthropic API and return the text response."""
    message = await client.messages.create(
        model=model,
        max_tokens=2048,
        temperature=temperature,
        system=system_prompt,
        messages=[{"role": "user", "content": user_prompt}],
    )
    return message.content[0].text


def _parse_json(raw: str) -> dict:
    """Extract and parse JSON from the LLM response.

    Handles responses that may include markdown code fences.
    """
    text = raw.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Invalid JSON: expected an object")
    return data


class AIWriterAdapter(SourceAdapter):
    """Drafts articles on configured topics for an editor to review and publish."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._topics: list[str] = []

    @property
    def name(self) -> str:
        return "ai_writer"

    def configure(self, settings: dict) -> None:
        topics = settings.get("topics", [])
        if isinstance(topics, str):
            topics = [topics]
        self._topics = [t for t in topics if t]
        if settings.get("limit"):
            self._topics = self._topics[: int(settings["limit"])]

    def missing_settings(self) -> list[str]:
        return [] if self._config.llm_api_key else ["LLM_API_KEY"]

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        raw_items = []
        async with anthropic.AsyncAnthropic(
            api_key=self._config.llm_api_key,
            max_retries=self._config.llm_max_retries,
            timeout=self._config.llm_timeout_seconds,
        ) as llm:
            for topic in self._topics:
                try:
                    text = await _call_llm(
                        llm,
                        model=self._config.llm_model,
                        system_prompt=SYSTEM_PROMPT,
                        user_prompt=format_user_prompt(topic),
                        temperature=self._config.llm_temperature,
                    )
                except anthropic.APIError as exc:
                    logger.warning("LLM call failed for topic '%s': %s", topic, exc)
                    errors.append(f"Error generating article on '{topic}': {exc}")
                    continue
                raw_items.append({"topic": topic, "response": text})
        return raw_items

    def describe(self, raw: dict) -> str:
        return f"article on '{raw['topic']}'"

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        data = _parse_json(raw["response"])
        title = str(data.get("title") or "").strip()
        content = str(data.get("content") or "").strip()
        if not title or not content:
            raise ValueError("LLM reply is missing title or content")
        category = data.get("category")
        if category not in CATEGORIES:
            category = "Industry News"
        return [
            CandidateRecord(
                content_type="news_article",
                title=title,
                slug=slugify(title),
                excerpt=truncate_text(str(data.get("excerpt") or content), MAX_EXCERPT_LENGTH),
                body=content,
                image_url=self._images.for_source(SOURCE_LABEL),
                category=category,
                source_label=SOURCE_LABEL,
                status=STATUS_DRAFT,
            )
        ]
