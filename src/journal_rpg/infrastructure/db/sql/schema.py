from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Engine

from journal_rpg.domain.models.quest import MAX_QUEST_CATEGORY_LENGTH, MAX_QUEST_TITLE_LENGTH


def _id_column(dialect: str) -> str:
    if dialect == "sqlite":
        return "INTEGER PRIMARY KEY AUTOINCREMENT"
    return "INTEGER PRIMARY KEY AUTO_INCREMENT"


def schema_statements(dialect: str) -> list[str]:
    id_column = _id_column(dialect)
    return [
        """
        CREATE TABLE IF NOT EXISTS rpg_character (
            user_id INTEGER PRIMARY KEY,
            name VARCHAR(120) NOT NULL,
            class_name VARCHAR(60) NOT NULL,
            level INTEGER NOT NULL DEFAULT 1,
            xp INTEGER NOT NULL DEFAULT 0,
            stats_json TEXT NOT NULL,
            achievements_json TEXT NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS quest (
            quest_id {id_column},
            user_id INTEGER NOT NULL,
            title VARCHAR({MAX_QUEST_TITLE_LENGTH}) NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR({MAX_QUEST_CATEGORY_LENGTH}) NOT NULL,
            difficulty INTEGER NOT NULL,
            xp_reward INTEGER NOT NULL,
            stat_requirements_json TEXT NOT NULL,
            stat_rewards_json TEXT NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'active',
            storyline_id VARCHAR(120) NULL,
            created_at VARCHAR(40) NULL,
            completed_at VARCHAR(40) NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS journal_entry (
            journal_id {id_column},
            user_id INTEGER NOT NULL,
            content TEXT NOT NULL,
            mood VARCHAR(20) NOT NULL,
            tags_json TEXT NOT NULL,
            analysis_json TEXT NOT NULL,
            created_at VARCHAR(40) NOT NULL
        )
        """,
    ]


def ensure_schema(engine: Engine) -> int:
    """Create missing tables; returns the number of statements executed."""

    statements = schema_statements(engine.dialect.name)
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))
    return len(statements)
