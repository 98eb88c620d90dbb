import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.application.services.seed_policy import derive_seed, seeded_choice
from journal_rpg.domain.models.analysis import Mood
from journal_rpg.domain.models.quest import Quest
from journal_rpg.domain.models.stats import StatSet
from journal_rpg.infrastructure.providers.keyword_analyzer import KeywordAnalysisProvider
from journal_rpg.infrastructure.providers.quest_reward_provider import QuestRewardProvider
from journal_rpg.infrastructure.providers.template_quests import TEMPLATE_GROUPS, TemplateQuestGenerator


class KeywordAnalysisProviderTests(unittest.TestCase):
    def test_positive_entry_nudges_matching_stats(self) -> None:
        analysis = KeywordAnalysisProvider().analyze(
            "Great day! Went to the gym for exercise, then read a book with a friend. Good progress on my health goal."
        )

        self.assertEqual(Mood.POSITIVE, analysis.mood)
        self.assertEqual(0.2, analysis.stat_changes["constitution"])
        self.assertEqual(0.2, analysis.stat_changes["intelligence"])
        self.assertEqual(0.2, analysis.stat_changes["charisma"])
        self.assertEqual(0.0, analysis.stat_changes["strength"])
        self.assertEqual(("goal", "progress", "health"), analysis.tags)
        self.assertEqual(("wellness", "relationships", "learning"), analysis.growth_areas)

    def test_negative_and_neutral_moods(self) -> None:
        analyzer = KeywordAnalysisProvider()
        self.assertEqual(Mood.NEGATIVE, analyzer.analyze("I felt sad and worried").mood)
        self.assertEqual(Mood.NEUTRAL, analyzer.analyze("Nothing much happened").mood)
        self.assertEqual(Mood.NEUTRAL, analyzer.analyze("A good day that ended bad").mood)


class TemplateQuestGeneratorTests(unittest.TestCase):
    def test_one_quest_per_relevant_category(self) -> None:
        analysis = KeywordAnalysisProvider().analyze("Exercise in the morning, then study with a friend")
        quests = TemplateQuestGenerator().generate(analysis, StatSet())

        self.assertEqual(["Health", "Social", "Personal"], [quest.category for quest in quests])
        for quest in quests:
            self.assertTrue(quest.stat_rewards)
            self.assertGreaterEqual(quest.xp_reward, 50)

    def test_same_entry_gives_same_quests(self) -> None:
        analysis = KeywordAnalysisProvider().analyze("Finished the report and read an article")
        first = TemplateQuestGenerator().generate(analysis, StatSet())
        second = TemplateQuestGenerator().generate(analysis, StatSet())
        self.assertEqual([quest.title for quest in first], [quest.title for quest in second])

    def test_irrelevant_entry_still_gets_one_quest(self) -> None:
        analysis = KeywordAnalysisProvider().analyze("Nothing much happened")
        quests = TemplateQuestGenerator().generate(analysis, StatSet())

        self.assertEqual(1, len(quests))
        titles = {template.title for group in TEMPLATE_GROUPS for template in group.templates}
        self.assertIn(quests[0].title, titles)

    def test_harder_templates_carry_requirements(self) -> None:
        for group in TEMPLATE_GROUPS:
            analysis = KeywordAnalysisProvider().analyze(group.key)
            quest = TemplateQuestGenerator().generate(analysis, StatSet())[0]
            self.assertEqual(group.category, quest.category)
            if quest.difficulty > 1:
                self.assertEqual({group.stat: float(quest.difficulty)}, quest.stat_requirements)
            else:
                self.assertEqual({}, quest.stat_requirements)


class SeedPolicyTests(unittest.TestCase):
    def test_seed_ignores_key_order(self) -> None:
        self.assertEqual(
            derive_seed("ns", {"a": 1, "b": [1, 2]}),
            derive_seed("ns", {"b": [1, 2], "a": 1}),
        )
        self.assertNotEqual(derive_seed("ns", {"a": 1}), derive_seed("other", {"a": 1}))

    def test_seeded_choice_requires_options(self) -> None:
        with self.assertRaises(ValueError):
            seeded_choice([], "ns", {})


class QuestRewardProviderTests(unittest.TestCase):
    def test_raw_reward_mirrors_quest(self) -> None:
        quest = Quest(title="Meditation", category="Health", xp_reward=80, stat_rewards={"wisdom": 0.3})
        reward = QuestRewardProvider().calculate_completion(quest, StatSet())

        self.assertEqual(80, reward.xp_gained)
        self.assertEqual({"wisdom": 0.3}, dict(reward.stat_updates))
        self.assertEqual(("Health Quest: Meditation",), reward.achievements)


if __name__ == "__main__":
    unittest.main()
