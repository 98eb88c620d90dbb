from __future__ import annotations

import math

from journal_rpg.application.services.balance_tables import DEFAULT_CONFIG, ProgressionConfig
from journal_rpg.domain.models.analysis import AnalysisResult
from journal_rpg.domain.models.stats import STAT_NAMES, StatSet


def content_relevance(analysis: AnalysisResult, stat: str, config: ProgressionConfig = DEFAULT_CONFIG) -> float:
    """Keyword relevance of an entry to one stat.

    Each keyword found in the free text counts once; each tag containing a
    keyword counts ``tag_match_weight``. The sum is divided by the size of the
    stat's keyword set.
    """

    keywords = tuple(config.stat_keywords.get(stat, ()))
    if not keywords:
        return 0.0
    text = analysis.free_text()
    tags = [str(tag).strip().lower() for tag in analysis.tags if str(tag).strip()]

    text_hits = 0
    tag_hits = 0
    for keyword in keywords:
        if keyword in text:
            text_hits += 1
        tag_hits += sum(1 for tag in tags if keyword in tag)
    return (text_hits + config.tag_match_weight * tag_hits) / len(keywords)


def skill_matches_stat(skill: str, stat: str, config: ProgressionConfig = DEFAULT_CONFIG) -> bool:
    lowered = str(skill or "").lower()
    return any(keyword in lowered for keyword in config.stat_keywords.get(stat, ()))


class WeightCalculator:
    """Per-stat growth weights for one analysed entry.

    Factors are summed as logarithms so large insight or skill counts stay
    finite; the cap then rescales every weight by the same ratio.
    """

    def __init__(self, config: ProgressionConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def compute_weights(self, analysis: AnalysisResult, level: int) -> StatSet:
        config = self.config
        safe_level = max(1, int(level))
        log_weights = {name: 0.0 for name in STAT_NAMES}

        for stat in STAT_NAMES:
            relevance = content_relevance(analysis, stat, config)
            log_weights[stat] += _log(1 + config.relevance_weight * relevance)
            log_weights[stat] += _log(config.mood_multiplier(analysis.mood, stat))

        if analysis.insights:
            insight_log = len(analysis.insights) * _log(config.insight_multiplier)
            log_weights["intelligence"] += insight_log
            log_weights["wisdom"] += insight_log

        skill_log = _log(config.skill_multiplier)
        for stat in STAT_NAMES:
            matches = sum(1 for skill in analysis.skills_improved if skill_matches_stat(skill, stat, config))
            if matches:
                log_weights[stat] += matches * skill_log

        level_log = _log(1 + math.log(safe_level + 1) * config.level_weight_scaling)
        for stat in STAT_NAMES:
            log_weights[stat] += level_log

        top = max(log_weights, key=lambda stat: log_weights[stat])
        cap_log = _log(config.max_weight)
        shift = min(0.0, cap_log - log_weights[top]) if log_weights[top] != -math.inf else 0.0
        weights = {stat: _exp(value + shift) for stat, value in log_weights.items()}
        if shift < 0.0:
            # Pin the maximum exactly; exp can leave it a ulp off.
            for stat, value in weights.items():
                if value > config.max_weight or log_weights[stat] == log_weights[top]:
                    weights[stat] = config.max_weight

        return StatSet(**weights)


def _log(value: float) -> float:
    return math.log(value) if value > 0 else -math.inf


def _exp(value: float) -> float:
    return math.exp(value) if value != -math.inf else 0.0
