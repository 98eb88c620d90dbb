"""Coerce loosely-shaped provider payloads into domain objects.

Language-model replies are untrusted: fields go missing, come back with the
wrong type, or hold numbers out of range. Everything here degrades to a
documented default instead of raising.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from journal_rpg.domain.models.analysis import AnalysisResult, CharacterProgression, Mood, Relationship
from journal_rpg.domain.models.quest import Quest, QuestStatus, RawReward
from journal_rpg.domain.models.stats import clamp, normalize_stat_mapping


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _string_list(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [segment for segment in raw.split(",")]
    if not isinstance(raw, (list, tuple)):
        return ()
    values: list[str] = []
    for item in raw:
        if isinstance(item, (dict, list, tuple)):
            continue
        text = str(item).strip()
        if text:
            values.append(text)
    return tuple(values)


def _relationships(raw: Any) -> tuple[Relationship, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    rows: list[Relationship] = []
    for item in raw:
        if isinstance(item, Mapping):
            name = str(item.get("name", "") or "").strip()
            if name:
                rows.append(Relationship(name=name, context=str(item.get("context", "") or "").strip()))
        elif isinstance(item, str) and item.strip():
            rows.append(Relationship(name=item.strip()))
    return tuple(rows)


def decode_json_object(raw: Any) -> Any:
    """Parse JSON text, tolerating markdown code fences around it."""

    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def analysis_from_payload(payload: Any, *, entry_text: str = "") -> AnalysisResult:
    data = decode_json_object(payload)
    if not isinstance(data, Mapping):
        data = {}
    progression_raw = _first(data, "characterProgression", "character_progression", "progression")
    progression = progression_raw if isinstance(progression_raw, Mapping) else {}
    stat_changes = {
        stat: clamp(value, -1.0, 1.0)
        for stat, value in normalize_stat_mapping(_first(data, "statChanges", "stat_changes")).items()
    }
    return AnalysisResult(
        mood=Mood.normalize(data.get("mood")),
        tags=_string_list(data.get("tags")),
        growth_areas=_string_list(_first(data, "growthAreas", "growth_areas")),
        stat_changes=stat_changes,
        progression=CharacterProgression(
            insights=_string_list(progression.get("insights")),
            skills_improved=_string_list(_first(progression, "skillsImproved", "skills_improved")),
            relationships=_relationships(progression.get("relationships")),
        ),
        entry_text=entry_text,
    )


def quest_from_payload(payload: Any, *, user_id: int | None = None) -> Quest | None:
    if not isinstance(payload, Mapping):
        return None
    title = str(payload.get("title", "") or "").strip()
    if not title:
        return None
    return Quest(
        title=title,
        description=str(payload.get("description", "") or ""),
        category=str(payload.get("category", "") or ""),
        difficulty=payload.get("difficulty", 1),
        xp_reward=_first(payload, "xpReward", "xp_reward") or 0,
        stat_requirements=_first(payload, "statRequirements", "stat_requirements") or {},
        stat_rewards=_first(payload, "statRewards", "stat_rewards") or {},
        status=QuestStatus.ACTIVE,
        user_id=user_id,
    )


def quests_from_payload(payload: Any, *, user_id: int | None = None) -> list[Quest]:
    data = decode_json_object(payload)
    if isinstance(data, Mapping):
        data = data.get("quests", [data])
    if not isinstance(data, (list, tuple)):
        return []
    quests: list[Quest] = []
    for item in data:
        quest = quest_from_payload(item, user_id=user_id)
        if quest is not None:
            quests.append(quest)
    return quests


def raw_reward_from_payload(payload: Any) -> RawReward:
    data = decode_json_object(payload)
    if not isinstance(data, Mapping):
        data = {}
    try:
        xp_gained = max(0, int(round(float(_first(data, "xpGained", "xp_gained") or 0))))
    except (TypeError, ValueError, OverflowError):
        xp_gained = 0
    return RawReward(
        xp_gained=xp_gained,
        stat_updates=normalize_stat_mapping(_first(data, "statUpdates", "stat_updates")),
        achievements=_string_list(data.get("achievements")),
    )
