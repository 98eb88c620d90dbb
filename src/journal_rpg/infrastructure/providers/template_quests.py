from __future__ import annotations

from dataclasses import dataclass

from journal_rpg.application.services.seed_policy import seeded_choice
from journal_rpg.domain.models.analysis import AnalysisResult
from journal_rpg.domain.models.quest import MAX_QUEST_XP_REWARD, Quest
from journal_rpg.domain.models.stats import StatSet
from journal_rpg.domain.providers import QuestGenerationProvider


@dataclass(frozen=True)
class QuestTemplate:
    title: str
    description: str
    difficulty: int


@dataclass(frozen=True)
class TemplateGroup:
    key: str
    category: str
    stat: str
    templates: tuple[QuestTemplate, ...]


TEMPLATE_GROUPS: tuple[TemplateGroup, ...] = (
    TemplateGroup(
        key="wellness",
        category="Health",
        stat="constitution",
        templates=(
            QuestTemplate("Morning Exercise", "Complete a morning workout routine", 2),
            QuestTemplate("Healthy Meal", "Prepare a balanced, nutritious meal", 1),
            QuestTemplate("Meditation", "Practice mindfulness for 10 minutes", 1),
        ),
    ),
    TemplateGroup(
        key="social",
        category="Social",
        stat="charisma",
        templates=(
            QuestTemplate("Social Connection", "Reach out to a friend or family member", 1),
            QuestTemplate("Group Activity", "Participate in a group activity or event", 2),
            QuestTemplate("Kind Gesture", "Perform a random act of kindness", 1),
        ),
    ),
    TemplateGroup(
        key="growth",
        category="Personal",
        stat="intelligence",
        templates=(
            QuestTemplate("Skill Development", "Learn something new or practice a skill", 2),
            QuestTemplate("Reading Quest", "Read a book or article for personal growth", 1),
            QuestTemplate("Creative Expression", "Express yourself through art, writing, or music", 2),
        ),
    ),
    TemplateGroup(
        key="achievement",
        category="Professional",
        stat="strength",
        templates=(
            QuestTemplate("Goal Setting", "Set and achieve a personal or professional goal", 2),
            QuestTemplate("Task Completion", "Complete an important task or project", 2),
            QuestTemplate("Skill Mastery", "Master a specific skill or technique", 3),
        ),
    ),
)

TEMPLATE_STAT_REWARD = 0.3


def _quest_from_template(group: TemplateGroup, template: QuestTemplate) -> Quest:
    requirements = {group.stat: float(template.difficulty)} if template.difficulty > 1 else {}
    return Quest(
        title=template.title,
        description=template.description,
        category=group.category,
        difficulty=template.difficulty,
        xp_reward=min(MAX_QUEST_XP_REWARD, 50 * template.difficulty),
        stat_requirements=requirements,
        stat_rewards={group.stat: TEMPLATE_STAT_REWARD},
    )


class TemplateQuestGenerator(QuestGenerationProvider):
    """Offline quest source: one template per relevant category.

    A category is relevant when the analysis nudged its stat upward or tagged
    it. With nothing relevant a single category is picked. Every pick is
    seeded from the entry so the same entry always yields the same quests.
    """

    def generate(self, analysis: AnalysisResult, stats: StatSet) -> list[Quest]:
        context = {"text": analysis.entry_text, "tags": list(analysis.tags)}
        relevant = [
            group
            for group in TEMPLATE_GROUPS
            if float(analysis.stat_changes.get(group.stat, 0.0) or 0.0) > 0 or group.key in analysis.tags
        ]
        if not relevant:
            relevant = [seeded_choice(TEMPLATE_GROUPS, "template_quests.category", context)]

        quests: list[Quest] = []
        for group in relevant:
            template = seeded_choice(group.templates, f"template_quests.{group.key}", context)
            quests.append(_quest_from_template(group, template))
        return quests
