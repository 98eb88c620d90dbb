from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from journal_rpg.application.mappers.payload_mapper import analysis_from_payload
from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest
from journal_rpg.domain.repositories import (
    CharacterRepository,
    JournalRepository,
    PersistOperation,
    QuestRepository,
)


def _dialect(session) -> str:
    return session.bind.dialect.name if session.bind is not None else "mysql"


def _parse_json(raw_value, default):
    if raw_value is None:
        return default
    if isinstance(raw_value, (dict, list)):
        return raw_value
    try:
        parsed = json.loads(raw_value)
    except (TypeError, ValueError):
        return default
    return parsed if isinstance(parsed, type(default)) else default


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(raw_value) -> datetime | None:
    if raw_value in (None, ""):
        return None
    if isinstance(raw_value, datetime):
        parsed = raw_value
    else:
        try:
            parsed = datetime.fromisoformat(str(raw_value))
        except ValueError:
            return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


def _row_to_quest(row) -> Quest:
    return Quest(
        id=int(row.quest_id),
        user_id=int(row.user_id),
        title=row.title,
        description=row.description,
        category=row.category,
        difficulty=row.difficulty,
        xp_reward=row.xp_reward,
        stat_requirements=_parse_json(row.stat_requirements_json, {}),
        stat_rewards=_parse_json(row.stat_rewards_json, {}),
        status=row.status,
        storyline_id=row.storyline_id,
        created_at=_parse_datetime(row.created_at),
        completed_at=_parse_datetime(row.completed_at),
    )


_QUEST_COLUMNS = (
    "quest_id, user_id, title, description, category, difficulty, xp_reward, "
    "stat_requirements_json, stat_rewards_json, status, storyline_id, created_at, completed_at"
)


def _quest_params(quest: Quest) -> dict[str, object]:
    return {
        "user_id": int(quest.user_id) if quest.user_id is not None else None,
        "title": quest.title,
        "description": quest.description,
        "category": quest.category,
        "difficulty": int(quest.difficulty),
        "xp_reward": int(quest.xp_reward),
        "requirements": json.dumps(quest.stat_requirements, sort_keys=True),
        "rewards": json.dumps(quest.stat_rewards, sort_keys=True),
        "status": quest.status.value,
        "storyline_id": quest.storyline_id,
        "created_at": _iso(quest.created_at),
        "completed_at": _iso(quest.completed_at),
    }


class SqlCharacterRepository(CharacterRepository):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, user_id: int) -> Optional[Character]:
        with self._session_factory() as session:
            row = session.execute(
                text(
                    """
                    SELECT user_id, name, class_name, level, xp, stats_json, achievements_json
                    FROM rpg_character
                    WHERE user_id = :uid
                    """
                ),
                {"uid": int(user_id)},
            ).first()
        if row is None:
            return None
        return Character.from_mapping(
            int(row.user_id),
            {
                "name": row.name,
                "class": row.class_name,
                "level": row.level,
                "xp": row.xp,
                "stats": _parse_json(row.stats_json, {}),
                "achievements": _parse_json(row.achievements_json, []),
            },
        )

    def save(self, character: Character) -> None:
        with self._session_factory.begin() as session:
            self.upsert(session, character)

    def upsert(self, session, character: Character) -> None:
        if _dialect(session) == "mysql":
            statement = text(
                """
                INSERT INTO rpg_character (user_id, name, class_name, level, xp, stats_json, achievements_json)
                VALUES (:uid, :name, :class_name, :level, :xp, :stats, :achievements)
                ON DUPLICATE KEY UPDATE
                    name = VALUES(name),
                    class_name = VALUES(class_name),
                    level = VALUES(level),
                    xp = VALUES(xp),
                    stats_json = VALUES(stats_json),
                    achievements_json = VALUES(achievements_json)
                """
            )
        else:
            statement = text(
                """
                INSERT INTO rpg_character (user_id, name, class_name, level, xp, stats_json, achievements_json)
                VALUES (:uid, :name, :class_name, :level, :xp, :stats, :achievements)
                ON CONFLICT(user_id) DO UPDATE SET
                    name = excluded.name,
                    class_name = excluded.class_name,
                    level = excluded.level,
                    xp = excluded.xp,
                    stats_json = excluded.stats_json,
                    achievements_json = excluded.achievements_json
                """
            )
        session.execute(
            statement,
            {
                "uid": int(character.user_id),
                "name": character.name,
                "class_name": character.class_name,
                "level": int(character.level),
                "xp": int(character.xp),
                "stats": json.dumps(character.stats.as_dict(), sort_keys=True),
                "achievements": json.dumps([item.to_dict() for item in character.achievements]),
            },
        )


class SqlQuestRepository(QuestRepository):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, quest_id: int) -> Optional[Quest]:
        with self._session_factory() as session:
            row = session.execute(
                text(f"SELECT {_QUEST_COLUMNS} FROM quest WHERE quest_id = :qid"),
                {"qid": int(quest_id)},
            ).first()
        return _row_to_quest(row) if row is not None else None

    def list_for_user(self, user_id: int) -> List[Quest]:
        with self._session_factory() as session:
            rows = session.execute(
                text(f"SELECT {_QUEST_COLUMNS} FROM quest WHERE user_id = :uid ORDER BY quest_id"),
                {"uid": int(user_id)},
            ).all()
        return [_row_to_quest(row) for row in rows]

    def build_add_quests_operation(self, user_id: int, quests: List[Quest], stored: List[Quest]) -> PersistOperation:
        def _operation(session) -> None:
            if session is None:
                with self._session_factory.begin() as internal_session:
                    _operation(internal_session)
                return

            for quest in quests:
                params = _quest_params(replace(quest, user_id=int(user_id)))
                result = session.execute(
                    text(
                        """
                        INSERT INTO quest (
                            user_id, title, description, category, difficulty, xp_reward,
                            stat_requirements_json, stat_rewards_json, status, storyline_id,
                            created_at, completed_at
                        )
                        VALUES (
                            :user_id, :title, :description, :category, :difficulty, :xp_reward,
                            :requirements, :rewards, :status, :storyline_id,
                            :created_at, :completed_at
                        )
                        """
                    ),
                    params,
                )
                stored.append(replace(quest, id=int(result.lastrowid), user_id=int(user_id)))

        return _operation

    def build_save_quest_operation(self, quest: Quest) -> PersistOperation:
        def _operation(session) -> None:
            if session is None:
                with self._session_factory.begin() as internal_session:
                    _operation(internal_session)
                return
            if quest.id is None:
                raise ValueError("Cannot save a quest without an id")

            params = _quest_params(quest)
            params["qid"] = int(quest.id)
            session.execute(
                text(
                    """
                    UPDATE quest SET
                        title = :title,
                        description = :description,
                        category = :category,
                        difficulty = :difficulty,
                        xp_reward = :xp_reward,
                        stat_requirements_json = :requirements,
                        stat_rewards_json = :rewards,
                        status = :status,
                        storyline_id = :storyline_id,
                        completed_at = :completed_at
                    WHERE quest_id = :qid
                    """
                ),
                params,
            )

        return _operation


class SqlJournalRepository(JournalRepository):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_for_user(self, user_id: int) -> List[JournalEntry]:
        with self._session_factory() as session:
            rows = session.execute(
                text(
                    """
                    SELECT journal_id, user_id, content, analysis_json, created_at
                    FROM journal_entry
                    WHERE user_id = :uid
                    ORDER BY created_at DESC, journal_id DESC
                    """
                ),
                {"uid": int(user_id)},
            ).all()
        return [
            JournalEntry(
                id=int(row.journal_id),
                user_id=int(row.user_id),
                content=row.content,
                created_at=_parse_datetime(row.created_at),
                analysis=analysis_from_payload(_parse_json(row.analysis_json, {}), entry_text=row.content),
            )
            for row in rows
        ]

    def build_add_entry_operation(self, entry: JournalEntry, stored: List[JournalEntry]) -> PersistOperation:
        def _operation(session) -> None:
            if session is None:
                with self._session_factory.begin() as internal_session:
                    _operation(internal_session)
                return

            result = session.execute(
                text(
                    """
                    INSERT INTO journal_entry (user_id, content, mood, tags_json, analysis_json, created_at)
                    VALUES (:uid, :content, :mood, :tags, :analysis, :created_at)
                    """
                ),
                {
                    "uid": int(entry.user_id),
                    "content": entry.content,
                    "mood": entry.mood,
                    "tags": json.dumps(entry.tags),
                    "analysis": json.dumps(entry.analysis.to_dict(), sort_keys=True),
                    "created_at": _iso(entry.created_at),
                },
            )
            stored.append(replace(entry, id=int(result.lastrowid)))

        return _operation
