from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields, replace
from typing import Mapping

from journal_rpg.domain.models.analysis import Mood
from journal_rpg.domain.models.quest import (
    MAX_QUEST_DIFFICULTY,
    MAX_QUEST_XP_REWARD,
    MIN_QUEST_DIFFICULTY,
    MIN_QUEST_XP_REWARD,
)
from journal_rpg.domain.models.stats import MAX_STAT_VALUE, MIN_STAT_VALUE


STAT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "strength": ("exercise", "physical", "strength", "power", "lifting", "sports"),
    "dexterity": ("agility", "balance", "coordination", "reflex", "speed", "craft"),
    "constitution": ("health", "endurance", "stamina", "wellness", "resilience"),
    "intelligence": ("study", "learn", "research", "analysis", "problem-solving"),
    "wisdom": ("reflection", "meditation", "insight", "awareness", "mindfulness"),
    "charisma": ("social", "leadership", "communication", "persuasion", "empathy"),
}

# Per-stat multipliers; stats missing from a row use the row's "*" entry.
MOOD_ADJUSTMENTS: dict[Mood, dict[str, float]] = {
    Mood.VERY_POSITIVE: {"charisma": 1.10, "wisdom": 1.08, "constitution": 1.08, "*": 1.04},
    Mood.POSITIVE: {"charisma": 1.05, "wisdom": 1.04, "constitution": 1.04, "*": 1.02},
    Mood.NEUTRAL: {"*": 1.0},
    Mood.NEGATIVE: {"wisdom": 1.04, "charisma": 0.97, "constitution": 0.97, "*": 0.98},
    Mood.VERY_NEGATIVE: {"wisdom": 1.06, "charisma": 0.95, "constitution": 0.95, "*": 0.96},
}


@dataclass(frozen=True)
class ProgressionConfig:
    base_xp: int = 50
    level_scaling: float = 0.1
    difficulty_scaling: float = 0.2
    stat_bonus_scaling: float = 0.05
    min_stat_value: float = float(MIN_STAT_VALUE)
    max_stat_value: float = float(MAX_STAT_VALUE)
    xp_per_level: int = 1000
    level_curve_exponent: float = 0.8

    relevance_weight: float = 0.15
    tag_match_weight: float = 1.5
    insight_multiplier: float = 1.07
    skill_multiplier: float = 1.05
    level_weight_scaling: float = 0.05
    max_weight: float = 2.0
    stat_change_level_scaling: float = 0.05

    growth_area_bonus: int = 10
    insight_bonus: int = 5
    skill_bonus: int = 8
    consistency_bonus: int = 5
    consistency_window_days: int = 7

    composite_weights: tuple[float, float, float] = (0.4, 0.4, 0.2)
    recommend_threshold: float = 0.6
    balance_divisor: float = 5.0
    neutral_growth_score: float = 0.5

    requirement_threshold: float = 0.7
    requirement_grace: float = 2.0
    max_active_quests: int = 5

    min_quest_difficulty: int = MIN_QUEST_DIFFICULTY
    max_quest_difficulty: int = MAX_QUEST_DIFFICULTY
    min_quest_xp_reward: int = MIN_QUEST_XP_REWARD
    max_quest_xp_reward: int = MAX_QUEST_XP_REWARD
    min_difficulty_multiplier: float = 1.0
    max_difficulty_multiplier: float = 3.0
    fallback_reward_xp: int = 50

    stat_keywords: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(STAT_KEYWORDS))
    mood_adjustments: Mapping[Mood, Mapping[str, float]] = field(default_factory=lambda: dict(MOOD_ADJUSTMENTS))

    def __post_init__(self) -> None:
        if self.min_stat_value > self.max_stat_value:
            raise ValueError("min_stat_value cannot exceed max_stat_value")
        if len(self.composite_weights) != 3:
            raise ValueError("composite_weights needs exactly three entries")

    def mood_multiplier(self, mood: Mood, stat: str) -> float:
        row = self.mood_adjustments.get(mood, {})
        return float(row.get(stat, row.get("*", 1.0)))


DEFAULT_CONFIG = ProgressionConfig()

_ENV_PREFIX = "JOURNAL_RPG_"
_ENV_OVERRIDABLE = {
    "base_xp",
    "level_scaling",
    "difficulty_scaling",
    "stat_bonus_scaling",
    "min_stat_value",
    "max_stat_value",
    "xp_per_level",
    "level_curve_exponent",
    "max_weight",
    "recommend_threshold",
    "requirement_threshold",
    "requirement_grace",
    "max_active_quests",
    "fallback_reward_xp",
}


def load_progression_config(environ: Mapping[str, str] | None = None) -> ProgressionConfig:
    """Build the config from ``JOURNAL_RPG_<FIELD>`` overrides (e.g. ``JOURNAL_RPG_MAX_STAT_VALUE``)."""

    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}
    for item in fields(ProgressionConfig):
        if item.name not in _ENV_OVERRIDABLE:
            continue
        raw = env.get(f"{_ENV_PREFIX}{item.name.upper()}")
        if raw is None or not str(raw).strip():
            continue
        default = getattr(DEFAULT_CONFIG, item.name)
        overrides[item.name] = int(raw) if isinstance(default, int) and not isinstance(default, bool) else float(raw)

    weights_raw = env.get(f"{_ENV_PREFIX}COMPOSITE_WEIGHTS")
    if weights_raw:
        parts = tuple(float(part) for part in str(weights_raw).split(",") if part.strip())
        overrides["composite_weights"] = parts
    return replace(DEFAULT_CONFIG, **overrides)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def level_for_xp(xp: int, config: ProgressionConfig = DEFAULT_CONFIG) -> int:
    safe_xp = max(0, int(xp))
    return int(math.floor((safe_xp / config.xp_per_level) ** config.level_curve_exponent)) + 1


def xp_required_for_level(level: int, config: ProgressionConfig = DEFAULT_CONFIG) -> int:
    """Smallest xp total at which ``level_for_xp`` reaches ``level``."""

    safe_level = max(1, int(level))
    if safe_level == 1:
        return 0
    estimate = int(math.ceil(config.xp_per_level * (safe_level - 1) ** (1.0 / config.level_curve_exponent)))
    # Float error can land one either side of the boundary.
    while estimate > 0 and level_for_xp(estimate - 1, config) >= safe_level:
        estimate -= 1
    while level_for_xp(estimate, config) < safe_level:
        estimate += 1
    return estimate


def fallback_reward_xp(level: int, config: ProgressionConfig = DEFAULT_CONFIG) -> int:
    return round_half_up(config.fallback_reward_xp * (1 + max(1, int(level)) * config.level_scaling))
