import math
import sys
from pathlib import Path
import unittest

from hypothesis import given, settings, strategies as st

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.application.services.balance_tables import DEFAULT_CONFIG
from journal_rpg.application.services.weight_calculator import (
    WeightCalculator,
    content_relevance,
    skill_matches_stat,
)
from journal_rpg.domain.models.analysis import AnalysisResult, CharacterProgression, Mood


def _analysis(**kwargs) -> AnalysisResult:
    progression = CharacterProgression(
        insights=tuple(kwargs.pop("insights", ())),
        skills_improved=tuple(kwargs.pop("skills", ())),
    )
    return AnalysisResult(progression=progression, **kwargs)


class WeightCalculatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = WeightCalculator(DEFAULT_CONFIG)

    def test_empty_analysis_only_applies_level_factor(self) -> None:
        weights = self.calculator.compute_weights(_analysis(), level=1)
        expected = 1 + math.log(2) * DEFAULT_CONFIG.level_weight_scaling
        for _, value in weights.items():
            self.assertAlmostEqual(expected, value)

    def test_relevance_counts_text_once_and_tags_at_higher_weight(self) -> None:
        analysis = _analysis(entry_text="Health check, then more health talk", tags=("health", "wellness-routine"))
        relevance = content_relevance(analysis, "constitution")
        # "health" once in text; tags: "health" matches health, "wellness-routine" matches wellness.
        self.assertAlmostEqual((1 + 1.5 * 2) / 5, relevance)
        self.assertEqual(0.0, content_relevance(analysis, "dexterity"))

    def test_insights_boost_intelligence_and_wisdom(self) -> None:
        weights = self.calculator.compute_weights(_analysis(insights=("a", "b")), level=1)
        self.assertAlmostEqual(weights.strength * 1.07**2, weights.intelligence)
        self.assertAlmostEqual(weights.intelligence, weights.wisdom)

    def test_matching_skill_boosts_only_its_stat(self) -> None:
        self.assertTrue(skill_matches_stat("Endurance running", "constitution"))
        self.assertFalse(skill_matches_stat("Endurance running", "charisma"))

        weights = self.calculator.compute_weights(_analysis(skills=("endurance",)), level=1)
        # The skill text also counts as one constitution keyword hit in the free text.
        self.assertAlmostEqual(weights.strength * (1 + 0.15 * (1 / 5)) * 1.05, weights.constitution)

    def test_mood_row_is_applied(self) -> None:
        weights = self.calculator.compute_weights(_analysis(mood=Mood.VERY_NEGATIVE), level=1)
        self.assertGreater(weights.wisdom, weights.strength)
        self.assertLess(weights.charisma, weights.strength)

    def test_weights_are_capped_at_max_weight(self) -> None:
        analysis = _analysis(insights=tuple(f"insight {index}" for index in range(25)), mood=Mood.VERY_POSITIVE)
        weights = self.calculator.compute_weights(analysis, level=40)
        self.assertEqual(DEFAULT_CONFIG.max_weight, weights.max_value())
        self.assertLess(weights.strength, weights.intelligence)

    def test_weights_are_deterministic(self) -> None:
        analysis = _analysis(
            entry_text="Studied for the exam and went to the gym",
            tags=("study", "exercise"),
            mood=Mood.POSITIVE,
            insights=("focus matters",),
            skills=("research",),
        )
        self.assertEqual(
            self.calculator.compute_weights(analysis, level=3),
            self.calculator.compute_weights(analysis, level=3),
        )

    def test_huge_insight_count_stays_finite_and_capped(self) -> None:
        weights = self.calculator.compute_weights(_analysis(insights=("idea",) * 12_000), level=1)
        self.assertEqual(DEFAULT_CONFIG.max_weight, weights.intelligence)
        self.assertEqual(DEFAULT_CONFIG.max_weight, weights.wisdom)
        self.assertTrue(all(0.0 <= value <= DEFAULT_CONFIG.max_weight for _, value in weights.items()))

    def test_huge_skill_count_does_not_produce_nan(self) -> None:
        weights = self.calculator.compute_weights(_analysis(skills=("health",) * 16_000), level=1)
        self.assertEqual(DEFAULT_CONFIG.max_weight, weights.constitution)
        self.assertTrue(all(value == value for _, value in weights.items()))
        self.assertLess(weights.strength, weights.constitution)

    @settings(max_examples=60, deadline=None)
    @given(
        insight_count=st.one_of(st.integers(min_value=0, max_value=40), st.integers(min_value=10_000, max_value=20_000)),
        skill_count=st.sampled_from([0, 1, 50, 16_000]),
        level=st.integers(min_value=1, max_value=200),
        mood=st.sampled_from(list(Mood)),
        tags=st.lists(st.sampled_from(["health", "study", "social", "meditation", "sports"]), max_size=8),
    )
    def test_weights_never_exceed_cap(self, insight_count, skill_count, level, mood, tags) -> None:
        analysis = _analysis(
            insights=("idea",) * insight_count,
            skills=("health",) * skill_count,
            mood=mood,
            tags=tuple(tags),
        )
        weights = self.calculator.compute_weights(analysis, level=level)
        for _, value in weights.items():
            self.assertFalse(math.isnan(value))
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, DEFAULT_CONFIG.max_weight)


if __name__ == "__main__":
    unittest.main()
