from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from journal_rpg.application.services.balance_tables import (
    DEFAULT_CONFIG,
    ProgressionConfig,
    level_for_xp,
    round_half_up,
)
from journal_rpg.application.services.weight_calculator import WeightCalculator
from journal_rpg.domain.models.analysis import AnalysisResult
from journal_rpg.domain.models.character import Achievement, Character
from journal_rpg.domain.models.quest import Quest, ScaledReward
from journal_rpg.domain.models.stats import clamp, normalize_stat_mapping


INSIGHT_ACHIEVEMENT_TITLE = "New Insight"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressionEngine:
    """Turns analyses and quest rewards into character growth.

    Every method returns a new ``Character``; the input is left untouched so
    callers can compare before/after and persist atomically.
    """

    def __init__(
        self,
        config: ProgressionConfig = DEFAULT_CONFIG,
        weight_calculator: WeightCalculator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.weight_calculator = weight_calculator or WeightCalculator(config)
        self._clock = clock

    def level_scaling(self, level: int) -> float:
        return (1 + self.config.level_scaling) ** (max(1, int(level)) - 1)

    def stat_deltas(self, analysis: AnalysisResult, level: int) -> dict[str, float]:
        config = self.config
        weights = self.weight_calculator.compute_weights(analysis, level)
        level_factor = 1 + max(1, int(level)) * config.stat_change_level_scaling
        deltas: dict[str, float] = {}
        for stat, raw_change in normalize_stat_mapping(analysis.stat_changes).items():
            change = clamp(raw_change, -1.0, 1.0)
            weighted = clamp(change * weights[stat], -1.0, 1.0)
            deltas[stat] = weighted * level_factor
        return deltas

    def consistency_bonus(self, character: Character, now: datetime) -> int:
        recent = character.recent_achievements(now=now, window_days=self.config.consistency_window_days)
        return self.config.consistency_bonus * len(recent)

    def xp_for_analysis(self, character: Character, analysis: AnalysisResult, now: datetime) -> int:
        config = self.config
        scaling = self.level_scaling(character.level)
        base_xp = round_half_up(config.base_xp * scaling)
        growth_bonus = len(analysis.growth_areas) * config.growth_area_bonus * scaling
        insight_bonus = len(analysis.insights) * config.insight_bonus * scaling
        skill_bonus = len(analysis.skills_improved) * config.skill_bonus * scaling
        consistency = self.consistency_bonus(character, now)
        return max(0, round_half_up(base_xp + growth_bonus + insight_bonus + skill_bonus + consistency))

    def resolve_level(self, current_level: int, xp: int) -> int:
        return max(int(current_level), level_for_xp(xp, self.config))

    def apply_analysis(self, character: Character, analysis: AnalysisResult) -> Character:
        now = self._clock()
        stats = character.stats.add_deltas(
            self.stat_deltas(analysis, character.level),
            lower=self.config.min_stat_value,
            upper=self.config.max_stat_value,
        )
        new_xp = character.xp + self.xp_for_analysis(character, analysis, now)
        achievements = list(character.achievements)
        achievements.extend(
            Achievement(title=INSIGHT_ACHIEVEMENT_TITLE, description=insight, timestamp=now)
            for insight in analysis.insights
        )
        return replace(
            character,
            stats=stats,
            xp=new_xp,
            level=self.resolve_level(character.level, new_xp),
            achievements=achievements,
        )

    def apply_reward(self, character: Character, reward: ScaledReward, quest: Quest | None = None) -> Character:
        now = self._clock()
        new_xp = character.xp + max(0, int(reward.xp_gained))
        stats = character.stats.add_deltas(
            reward.stat_updates,
            lower=self.config.min_stat_value,
            upper=self.config.max_stat_value,
        )
        description = f"Completed quest: {quest.title}" if quest is not None else None
        achievements = list(character.achievements)
        achievements.extend(
            Achievement(title=str(title), description=description, timestamp=now)
            for title in reward.achievements
            if str(title).strip()
        )
        return replace(
            character,
            stats=stats,
            xp=new_xp,
            level=self.resolve_level(character.level, new_xp),
            achievements=achievements,
        )
