import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.application.services.balance_tables import (
    DEFAULT_CONFIG,
    ProgressionConfig,
    fallback_reward_xp,
    level_for_xp,
    load_progression_config,
    round_half_up,
    xp_required_for_level,
)
from journal_rpg.domain.models.analysis import Mood


class BalanceTablesTests(unittest.TestCase):
    def test_level_curve_is_sub_linear(self) -> None:
        self.assertEqual(1, level_for_xp(0))
        self.assertEqual(1, level_for_xp(999))
        self.assertEqual(2, level_for_xp(1000))
        self.assertEqual(1, level_for_xp(73))
        self.assertLess(level_for_xp(10_000), 11)

    def test_xp_required_for_level_is_exact_threshold(self) -> None:
        for level in range(2, 30):
            required = xp_required_for_level(level)
            self.assertEqual(level, level_for_xp(required))
            self.assertLess(level_for_xp(required - 1), level)
        self.assertEqual(0, xp_required_for_level(1))

    def test_round_half_up_matches_javascript_rounding(self) -> None:
        self.assertEqual(3, round_half_up(2.5))
        self.assertEqual(1, round_half_up(0.5))
        self.assertEqual(0, round_half_up(-0.5))
        self.assertEqual(73, round_half_up(73.2))

    def test_fallback_reward_scales_with_level(self) -> None:
        self.assertEqual(55, fallback_reward_xp(1))
        self.assertEqual(75, fallback_reward_xp(5))

    def test_mood_multiplier_uses_row_default(self) -> None:
        self.assertEqual(1.10, DEFAULT_CONFIG.mood_multiplier(Mood.VERY_POSITIVE, "charisma"))
        self.assertEqual(1.04, DEFAULT_CONFIG.mood_multiplier(Mood.VERY_POSITIVE, "strength"))
        self.assertEqual(1.0, DEFAULT_CONFIG.mood_multiplier(Mood.NEUTRAL, "wisdom"))

    def test_load_config_reads_prefixed_overrides(self) -> None:
        config = load_progression_config(
            {
                "JOURNAL_RPG_MAX_STAT_VALUE": "20",
                "JOURNAL_RPG_BASE_XP": "75",
                "JOURNAL_RPG_COMPOSITE_WEIGHTS": "0.5,0.3,0.2",
                "JOURNAL_RPG_RECOMMEND_THRESHOLD": " ",
            }
        )
        self.assertEqual(20.0, config.max_stat_value)
        self.assertEqual(75, config.base_xp)
        self.assertEqual((0.5, 0.3, 0.2), config.composite_weights)
        self.assertEqual(DEFAULT_CONFIG.recommend_threshold, config.recommend_threshold)

    def test_config_rejects_inverted_stat_bounds(self) -> None:
        with self.assertRaises(ValueError):
            ProgressionConfig(min_stat_value=5.0, max_stat_value=2.0)


if __name__ == "__main__":
    unittest.main()
