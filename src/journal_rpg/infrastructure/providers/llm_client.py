from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from journal_rpg.application.mappers.payload_mapper import (
    analysis_from_payload,
    quests_from_payload,
    raw_reward_from_payload,
)
from journal_rpg.domain.errors import ProviderError
from journal_rpg.domain.models.analysis import AnalysisResult
from journal_rpg.domain.models.quest import Quest, RawReward
from journal_rpg.domain.models.stats import STAT_NAMES, StatSet
from journal_rpg.domain.providers import AnalysisProvider, QuestGenerationProvider, RewardProvider
from journal_rpg.infrastructure.resilient_http import CircuitBreaker, post_json_with_retry


logger = logging.getLogger(__name__)

_STAT_LIST = ", ".join(STAT_NAMES)

ANALYSIS_PROMPT = """Analyze this journal entry and reply with a single JSON object containing:
- "mood": one of very_positive, positive, neutral, negative, very_negative
- "tags": key themes as short strings
- "growthAreas": areas for personal growth
- "statChanges": a number between -1 and 1 for each of {stats}
- "characterProgression": {{"insights": [...], "skillsImproved": [...], "relationships": [{{"name": ..., "context": ...}}]}}

Journal entry: {content}"""

QUEST_PROMPT = """Based on this journal analysis, generate 3 RPG-style quests that would help with personal growth.
Mood: {mood}
Tags: {tags}
Growth Areas: {growth_areas}
Current stats: {stats}

Reply with a JSON object {{"quests": [...]}} where each quest has title, description,
category (Personal/Professional/Social/Health), difficulty (1-5), xpReward (50-200),
statRequirements and statRewards keyed by {stat_list}."""

REWARD_PROMPT = """A player completed the quest "{title}" ({category}, difficulty {difficulty}): {description}
Current stats: {stats}

Reply with a JSON object containing "xpGained" (integer), "statUpdates" (a number between -1 and 1
per stat in {stat_list}) and "achievements" (short titles)."""


class ChatCompletionsClient:
    """Minimal OpenAI-compatible chat completions client."""

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        retries: int = 1,
        backoff_seconds: float = 0.5,
        http_client: httpx.Client | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._retries = retries
        self._backoff_seconds = backoff_seconds
        self.breaker = breaker or CircuitBreaker.from_env()
        self.client = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    @classmethod
    def from_env(cls) -> "ChatCompletionsClient":
        return cls(
            base_url=os.getenv("JOURNAL_RPG_LLM_BASE_URL", cls.DEFAULT_BASE_URL),
            api_key=os.getenv("JOURNAL_RPG_LLM_API_KEY", ""),
            model=os.getenv("JOURNAL_RPG_LLM_MODEL", cls.DEFAULT_MODEL),
            timeout=float(os.getenv("JOURNAL_RPG_LLM_TIMEOUT_S", "30")),
            retries=int(os.getenv("JOURNAL_RPG_LLM_RETRIES", "1")),
        )

    def complete(self, prompt: str, *, temperature: float = 0.7, max_tokens: int = 400) -> str:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = post_json_with_retry(
            self.client,
            "/chat/completions",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers=headers,
            retries=self._retries,
            backoff_seconds=self._backoff_seconds,
            breaker=self.breaker,
        )
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("Unexpected response format from language model") from exc
        return str(content or "")

    def close(self) -> None:
        self.client.close()


def _format_stats(stats: StatSet) -> str:
    return json.dumps({name: round(value, 2) for name, value in stats.items()}, sort_keys=True)


class LlmAnalysisProvider(AnalysisProvider):
    def __init__(self, client: ChatCompletionsClient) -> None:
        self.client = client

    def analyze(self, text: str) -> AnalysisResult:
        reply = self.client.complete(ANALYSIS_PROMPT.format(stats=_STAT_LIST, content=text), temperature=0.7)
        return analysis_from_payload(reply, entry_text=text)


class LlmQuestGenerator(QuestGenerationProvider):
    def __init__(self, client: ChatCompletionsClient) -> None:
        self.client = client

    def generate(self, analysis: AnalysisResult, stats: StatSet) -> list[Quest]:
        prompt = QUEST_PROMPT.format(
            mood=analysis.mood.value,
            tags=", ".join(analysis.tags),
            growth_areas=", ".join(analysis.growth_areas),
            stats=_format_stats(stats),
            stat_list=_STAT_LIST,
        )
        quests = quests_from_payload(self.client.complete(prompt, temperature=0.8))
        logger.debug("Generated %s candidate quests", len(quests), extra={"provider": "llm"})
        return quests


class LlmRewardProvider(RewardProvider):
    def __init__(self, client: ChatCompletionsClient) -> None:
        self.client = client

    def calculate_completion(self, quest: Quest, stats: StatSet) -> RawReward:
        prompt = REWARD_PROMPT.format(
            title=quest.title,
            category=quest.category,
            difficulty=quest.difficulty,
            description=quest.description,
            stats=_format_stats(stats),
            stat_list=_STAT_LIST,
        )
        reply: Any = self.client.complete(prompt, temperature=0.5, max_tokens=200)
        return raw_reward_from_payload(reply)
