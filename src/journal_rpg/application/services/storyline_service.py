from __future__ import annotations

from collections import OrderedDict
from dataclasses import replace
from typing import Iterable, Sequence

from journal_rpg.domain.models.quest import Quest, QuestChain
from journal_rpg.domain.models.stats import StatSet


def storyline_id_for(category: str) -> str:
    slug = "-".join(str(category or "").strip().lower().split())
    return f"storyline-{slug or 'general'}"


def _group_by_category(quests: Iterable[Quest]) -> "OrderedDict[str, list[Quest]]":
    groups: OrderedDict[str, list[Quest]] = OrderedDict()
    for quest in quests:
        groups.setdefault(quest.category, []).append(quest)
    return groups


def assign_storyline(quests: Sequence[Quest]) -> list[Quest]:
    return [replace(quest, storyline_id=storyline_id_for(quest.category)) for quest in quests]


def link_storylines(quests: Sequence[Quest]) -> list[Quest]:
    """Return copies with previous/next references filled in.

    Quests are chained per storyline (falling back to category) in order of
    difficulty, ties broken by id. Output order matches input order.
    """

    groups: OrderedDict[str, list[Quest]] = OrderedDict()
    for quest in quests:
        key = quest.storyline_id or storyline_id_for(quest.category)
        groups.setdefault(key, []).append(quest)

    links: dict[int, tuple[int | None, int | None]] = {}
    for members in groups.values():
        ordered = sorted(members, key=lambda quest: (quest.difficulty, quest.id if quest.id is not None else 0))
        for index, quest in enumerate(ordered):
            previous_id = ordered[index - 1].id if index > 0 else None
            next_id = ordered[index + 1].id if index < len(ordered) - 1 else None
            links[id(quest)] = (previous_id, next_id)

    return [
        replace(quest, previous_quest_id=links[id(quest)][0], next_quest_id=links[id(quest)][1])
        for quest in quests
    ]


def organize_quest_chains(quests: Sequence[Quest]) -> list[QuestChain]:
    chains: list[QuestChain] = []
    for category, members in _group_by_category(quests).items():
        ordered = tuple(sorted(members, key=lambda quest: quest.difficulty))
        requirements: dict[str, float] = {}
        for quest in ordered:
            for stat, value in quest.stat_requirements.items():
                requirements[stat] = max(requirements.get(stat, 0.0), value)
        chains.append(
            QuestChain(
                id=f"chain-{storyline_id_for(category).removeprefix('storyline-')}",
                title=f"{category} Journey",
                description=f"Progress through {category} related challenges",
                category=category,
                quests=ordered,
                min_level=max(1, max(quest.difficulty for quest in ordered) - 2),
                stat_requirements=requirements,
            )
        )
    return chains


def storyline_progress(quests: Sequence[Quest], storyline_id: str | None) -> float:
    if not storyline_id:
        return 0.0
    members = [quest for quest in quests if quest.storyline_id == storyline_id]
    if not members:
        return 0.0
    completed = sum(1 for quest in members if quest.is_completed)
    return completed / len(members) * 100


def next_quests_in_chain(completed: Quest, quests: Sequence[Quest], limit: int = 3) -> list[Quest]:
    candidates = [
        quest
        for quest in quests
        if quest.user_id == completed.user_id
        and quest.category == completed.category
        and not quest.is_completed
        and quest.difficulty > completed.difficulty
    ]
    return sorted(candidates, key=lambda quest: quest.difficulty)[: max(0, int(limit))]


def is_quest_available(
    quest: Quest,
    completed_quest_ids: Iterable[int],
    stats: StatSet,
    level: int,
) -> bool:
    if quest.difficulty > level:
        return False
    for stat, required in quest.stat_requirements.items():
        if stats.get(stat) < required:
            return False
    if quest.previous_quest_id is not None and quest.previous_quest_id not in set(completed_quest_ids):
        return False
    return True
