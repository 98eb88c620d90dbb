from __future__ import annotations

from journal_rpg.domain.models.quest import Quest, RawReward
from journal_rpg.domain.models.stats import StatSet
from journal_rpg.domain.providers import RewardProvider


class QuestRewardProvider(RewardProvider):
    """Raw reward straight from the quest's own reward fields."""

    def calculate_completion(self, quest: Quest, stats: StatSet) -> RawReward:
        return RawReward(
            xp_gained=quest.xp_reward,
            stat_updates=dict(quest.stat_rewards),
            achievements=(f"{quest.category} Quest: {quest.title}",),
        )
