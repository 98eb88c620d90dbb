import json
import sys
from pathlib import Path
import unittest

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.domain.errors import ProviderError
from journal_rpg.domain.models.analysis import AnalysisResult, Mood
from journal_rpg.domain.models.quest import Quest
from journal_rpg.domain.models.stats import StatSet
from journal_rpg.infrastructure.providers.llm_client import (
    ChatCompletionsClient,
    LlmAnalysisProvider,
    LlmQuestGenerator,
    LlmRewardProvider,
)
from journal_rpg.infrastructure.resilient_http import CircuitBreaker


class _ChatStub:
    def __init__(self, content, status: int = 200) -> None:
        self.base_url = "https://llm.invalid/v1"
        self.content = content
        self.status = status
        self.bodies: list[dict] = []
        self.headers: list[dict] = []

    def request(self, method, path, json=None, params=None, headers=None):
        self.bodies.append(json)
        self.headers.append(headers or {})
        payload = {"choices": [{"message": {"content": self.content}}]} if self.status == 200 else {}
        return httpx.Response(self.status, json=payload, request=httpx.Request(method, f"https://llm.invalid/v1{path}"))


def _client(stub, **kwargs) -> ChatCompletionsClient:
    return ChatCompletionsClient(http_client=stub, breaker=CircuitBreaker(enabled=False), retries=0, **kwargs)


class LlmProviderTests(unittest.TestCase):
    def test_analysis_provider_parses_reply(self) -> None:
        stub = _ChatStub(json.dumps({"mood": "positive", "tags": ["study"], "statChanges": {"intelligence": 0.4}}))
        analysis = LlmAnalysisProvider(_client(stub, api_key="secret", model="tiny")).analyze("Studied all day")

        self.assertEqual(Mood.POSITIVE, analysis.mood)
        self.assertEqual({"intelligence": 0.4}, dict(analysis.stat_changes))
        self.assertEqual("Studied all day", analysis.entry_text)
        self.assertEqual("tiny", stub.bodies[0]["model"])
        self.assertIn("Studied all day", stub.bodies[0]["messages"][0]["content"])
        self.assertEqual("Bearer secret", stub.headers[0]["Authorization"])

    def test_quest_generator_parses_quest_list(self) -> None:
        reply = json.dumps({"quests": [{"title": "Flashcards", "difficulty": 1, "xpReward": 80}, {"title": ""}]})
        quests = LlmQuestGenerator(_client(_ChatStub(reply))).generate(AnalysisResult(tags=("study",)), StatSet())
        self.assertEqual(["Flashcards"], [quest.title for quest in quests])
        self.assertEqual(80, quests[0].xp_reward)

    def test_reward_provider_parses_reward(self) -> None:
        reply = json.dumps({"xpGained": 90, "statUpdates": {"wisdom": 0.2}, "achievements": ["Scholar"]})
        reward = LlmRewardProvider(_client(_ChatStub(reply))).calculate_completion(Quest(title="Read"), StatSet())
        self.assertEqual(90, reward.xp_gained)
        self.assertEqual(("Scholar",), reward.achievements)

    def test_malformed_envelope_raises_provider_error(self) -> None:
        class _NoChoices(_ChatStub):
            def request(self, method, path, json=None, params=None, headers=None):
                return httpx.Response(200, json={"id": "x"}, request=httpx.Request(method, "https://llm.invalid/v1"))

        with self.assertRaises(ProviderError):
            _client(_NoChoices("")).complete("hi")

    def test_server_error_propagates_for_caller_fallback(self) -> None:
        with self.assertRaises(httpx.HTTPStatusError):
            LlmAnalysisProvider(_client(_ChatStub("", status=500))).analyze("hi")


if __name__ == "__main__":
    unittest.main()
