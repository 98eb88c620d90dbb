import logging
import os

from journal_rpg.application.services.balance_tables import ProgressionConfig, load_progression_config
from journal_rpg.application.services.event_bus import EventBus
from journal_rpg.application.services.journal_service import JournalService
from journal_rpg.application.services.retry_policy import RetryPolicy
from journal_rpg.infrastructure.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from journal_rpg.infrastructure.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryJournalRepository,
    InMemoryQuestRepository,
)
from journal_rpg.infrastructure.providers.keyword_analyzer import KeywordAnalysisProvider
from journal_rpg.infrastructure.providers.llm_client import (
    ChatCompletionsClient,
    LlmAnalysisProvider,
    LlmQuestGenerator,
    LlmRewardProvider,
)
from journal_rpg.infrastructure.providers.quest_reward_provider import QuestRewardProvider
from journal_rpg.infrastructure.providers.template_quests import TemplateQuestGenerator


logger = logging.getLogger(__name__)


def _retry_policy_from_env() -> RetryPolicy:
    return RetryPolicy(
        attempts=max(1, int(os.getenv("JOURNAL_RPG_QUEST_ATTEMPTS", "3"))),
        base_delay_seconds=max(0.0, float(os.getenv("JOURNAL_RPG_QUEST_BACKOFF_S", "1.0"))),
    )


def _build_providers():
    if os.getenv("JOURNAL_RPG_LLM_BASE_URL", "").strip():
        client = ChatCompletionsClient.from_env()
        return LlmAnalysisProvider(client), LlmQuestGenerator(client), LlmRewardProvider(client)
    return KeywordAnalysisProvider(), TemplateQuestGenerator(), QuestRewardProvider()


def _build_inmemory_journal_service(config: ProgressionConfig, event_bus: EventBus) -> JournalService:
    character_repo = InMemoryCharacterRepository()
    quest_repo = InMemoryQuestRepository()
    journal_repo = InMemoryJournalRepository()
    analysis_provider, quest_generator, reward_provider = _build_providers()
    return JournalService(
        character_repo=character_repo,
        quest_repo=quest_repo,
        journal_repo=journal_repo,
        persist=create_inmemory_atomic_persistor(character_repo, quest_repo, journal_repo),
        analysis_provider=analysis_provider,
        quest_generator=quest_generator,
        reward_provider=reward_provider,
        event_bus=event_bus,
        config=config,
        retry_policy=_retry_policy_from_env(),
    )


def _build_sql_journal_service(database_url: str, config: ProgressionConfig, event_bus: EventBus) -> JournalService:
    from journal_rpg.infrastructure.db.sql.atomic_persistence import create_sql_atomic_persistor
    from journal_rpg.infrastructure.db.sql.connection import create_db_engine, create_session_factory
    from journal_rpg.infrastructure.db.sql.repos import (
        SqlCharacterRepository,
        SqlJournalRepository,
        SqlQuestRepository,
    )
    from journal_rpg.infrastructure.db.sql.schema import ensure_schema

    engine = create_db_engine(database_url)
    ensure_schema(engine)
    session_factory = create_session_factory(engine)
    analysis_provider, quest_generator, reward_provider = _build_providers()
    return JournalService(
        character_repo=SqlCharacterRepository(session_factory),
        quest_repo=SqlQuestRepository(session_factory),
        journal_repo=SqlJournalRepository(session_factory),
        persist=create_sql_atomic_persistor(session_factory),
        analysis_provider=analysis_provider,
        quest_generator=quest_generator,
        reward_provider=reward_provider,
        event_bus=event_bus,
        config=config,
        retry_policy=_retry_policy_from_env(),
    )


def create_journal_service(event_bus: EventBus | None = None) -> JournalService:
    config = load_progression_config()
    bus = event_bus or EventBus()
    database_url = os.getenv("JOURNAL_RPG_DATABASE_URL", "").strip()
    if database_url:
        try:
            return _build_sql_journal_service(database_url, config, bus)
        except Exception as exc:  # pragma: no cover - best-effort fallback
            logger.warning("Database unavailable, falling back to in-memory. Reason: %s", exc)

    return _build_inmemory_journal_service(config, bus)
