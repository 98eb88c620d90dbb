from __future__ import annotations

from journal_rpg.application.services.balance_tables import (
    DEFAULT_CONFIG,
    ProgressionConfig,
    fallback_reward_xp,
    round_half_up,
)
from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.quest import Quest, RawReward, ScaledReward
from journal_rpg.domain.models.stats import clamp, normalize_stat_mapping


class CompletionRewardCalculator:
    def __init__(self, config: ProgressionConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def level_scaling(self, level: int) -> float:
        return 1 + max(1, int(level)) * self.config.level_scaling

    def difficulty_multiplier(self, difficulty: int) -> float:
        return clamp(
            int(difficulty) * self.config.difficulty_scaling,
            self.config.min_difficulty_multiplier,
            self.config.max_difficulty_multiplier,
        )

    def scale(self, raw: RawReward, character: Character, quest: Quest) -> ScaledReward:
        level_scaling = self.level_scaling(character.level)
        multiplier = self.difficulty_multiplier(quest.difficulty)
        xp_gained = round_half_up(max(0, int(raw.xp_gained)) * level_scaling * multiplier)

        stat_factor = 1 + max(1, int(character.level)) * self.config.stat_bonus_scaling
        stat_updates = {
            stat: clamp(value * stat_factor * multiplier, -1.0, 1.0)
            for stat, value in normalize_stat_mapping(raw.stat_updates).items()
        }
        return ScaledReward(
            xp_gained=xp_gained,
            stat_updates=stat_updates,
            achievements=tuple(str(item) for item in raw.achievements),
        )

    def fallback(self, character: Character) -> ScaledReward:
        return ScaledReward(xp_gained=fallback_reward_xp(character.level, self.config), fallback=True)
