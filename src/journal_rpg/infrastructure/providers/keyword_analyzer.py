from __future__ import annotations

from journal_rpg.domain.models.analysis import AnalysisResult, CharacterProgression, Mood
from journal_rpg.domain.models.stats import STAT_NAMES
from journal_rpg.domain.providers import AnalysisProvider


POSITIVE_WORDS = ("happy", "great", "awesome", "good", "excellent", "proud", "achieved")
NEGATIVE_WORDS = ("sad", "bad", "difficult", "hard", "frustrated", "worried", "failed")

TAG_TERMS = (
    "goal",
    "achievement",
    "challenge",
    "progress",
    "milestone",
    "wellness",
    "health",
    "social",
    "growth",
    "learning",
    "success",
)

# Stat nudged when any trigger word appears in the entry.
STAT_TRIGGERS: dict[str, tuple[str, ...]] = {
    "constitution": ("health", "exercise", "sleep"),
    "charisma": ("friend", "family", "people"),
    "intelligence": ("learn", "read", "study"),
    "strength": ("complete", "finish", "accomplish"),
}

GROWTH_AREA_BY_STAT = {
    "constitution": "wellness",
    "charisma": "relationships",
    "intelligence": "learning",
    "strength": "achievement",
}

KEYWORD_STAT_DELTA = 0.2


class KeywordAnalysisProvider(AnalysisProvider):
    """Offline analyser: word-list sentiment and keyword stat nudges."""

    def analyze(self, text: str) -> AnalysisResult:
        lowered = str(text or "").lower()
        positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
        negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
        if positive > negative:
            mood = Mood.POSITIVE
        elif negative > positive:
            mood = Mood.NEGATIVE
        else:
            mood = Mood.NEUTRAL

        stat_changes = {name: 0.0 for name in STAT_NAMES}
        growth_areas: list[str] = []
        for stat, triggers in STAT_TRIGGERS.items():
            if any(trigger in lowered for trigger in triggers):
                stat_changes[stat] = KEYWORD_STAT_DELTA
                growth_areas.append(GROWTH_AREA_BY_STAT[stat])

        return AnalysisResult(
            mood=mood,
            tags=tuple(term for term in TAG_TERMS if term in lowered),
            growth_areas=tuple(growth_areas),
            stat_changes=stat_changes,
            progression=CharacterProgression(),
            entry_text=str(text or ""),
        )
