from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from journal_rpg.domain.models.stats import STAT_NAMES


class Mood(str, Enum):
    VERY_POSITIVE = "very_positive"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    VERY_NEGATIVE = "very_negative"

    @classmethod
    def normalize(cls, value: object) -> "Mood":
        raw = str(value.value if isinstance(value, Mood) else value or "").strip().lower()
        raw = raw.replace("-", " ").replace("_", " ")
        raw = " ".join(raw.split())
        aliases = {
            "very positive": cls.VERY_POSITIVE,
            "very happy": cls.VERY_POSITIVE,
            "excited": cls.VERY_POSITIVE,
            "ecstatic": cls.VERY_POSITIVE,
            "joyful": cls.VERY_POSITIVE,
            "positive": cls.POSITIVE,
            "happy": cls.POSITIVE,
            "content": cls.POSITIVE,
            "hopeful": cls.POSITIVE,
            "grateful": cls.POSITIVE,
            "neutral": cls.NEUTRAL,
            "calm": cls.NEUTRAL,
            "mixed": cls.NEUTRAL,
            "negative": cls.NEGATIVE,
            "sad": cls.NEGATIVE,
            "anxious": cls.NEGATIVE,
            "tired": cls.NEGATIVE,
            "stressed": cls.NEGATIVE,
            "very negative": cls.VERY_NEGATIVE,
            "very sad": cls.VERY_NEGATIVE,
            "angry": cls.VERY_NEGATIVE,
            "devastated": cls.VERY_NEGATIVE,
        }
        return aliases.get(raw, cls.NEUTRAL)


@dataclass(frozen=True)
class Relationship:
    name: str
    context: str = ""


@dataclass(frozen=True)
class CharacterProgression:
    insights: tuple[str, ...] = ()
    skills_improved: tuple[str, ...] = ()
    relationships: tuple[Relationship, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Semantic reading of one journal entry.

    ``stat_changes`` holds raw per-stat deltas in ``[-1, 1]``; the payload
    mappers clamp anything an upstream model sends outside that range.
    """

    mood: Mood = Mood.NEUTRAL
    tags: tuple[str, ...] = ()
    growth_areas: tuple[str, ...] = ()
    stat_changes: Mapping[str, float] = field(default_factory=dict)
    progression: CharacterProgression = field(default_factory=CharacterProgression)
    entry_text: str = ""

    @property
    def insights(self) -> tuple[str, ...]:
        return self.progression.insights

    @property
    def skills_improved(self) -> tuple[str, ...]:
        return self.progression.skills_improved

    def free_text(self) -> str:
        """Lower-cased text used for keyword relevance (tags excluded)."""

        parts: list[str] = [self.entry_text]
        parts.extend(self.growth_areas)
        parts.extend(self.progression.insights)
        parts.extend(self.progression.skills_improved)
        parts.extend(item.context for item in self.progression.relationships)
        return " ".join(part for part in parts if part).lower()

    def to_dict(self) -> dict[str, object]:
        return {
            "mood": self.mood.value,
            "tags": list(self.tags),
            "growthAreas": list(self.growth_areas),
            "statChanges": dict(self.stat_changes),
            "characterProgression": {
                "insights": list(self.progression.insights),
                "skillsImproved": list(self.progression.skills_improved),
                "relationships": [
                    {"name": item.name, "context": item.context} for item in self.progression.relationships
                ],
            },
        }


def neutral_analysis(entry_text: str = "") -> AnalysisResult:
    return AnalysisResult(
        stat_changes={name: 0.0 for name in STAT_NAMES},
        entry_text=entry_text,
    )
