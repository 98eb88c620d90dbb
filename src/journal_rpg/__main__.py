from pathlib import Path
import argparse
import logging
import os
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from journal_rpg.application.dtos import CharacterSheetView, QuestLogView
from journal_rpg.application.services.event_bus import EventBus
from journal_rpg.bootstrap import create_journal_service
from journal_rpg.domain.errors import NotFoundError, QuestAlreadyCompleted
from journal_rpg.domain.events import LevelUpAppliedEvent
from journal_rpg.domain.models.journal import JournalEntry


_CONSOLE = Console()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="journal_rpg", description="Turn a journal entry into character progress.")
    parser.add_argument("entry", nargs="?", help="journal entry text")
    parser.add_argument("--user", type=int, default=1, help="user id (default: 1)")
    parser.add_argument("--name", default=None, help="character name for a new user")
    parser.add_argument("--complete", type=int, default=None, metavar="QUEST_ID", help="complete a quest")
    parser.add_argument("--history", type=int, default=0, metavar="N", help="show the N most recent journal entries")
    return parser.parse_args(argv)


def _render_sheet(sheet: CharacterSheetView) -> None:
    table = Table(title=f"{escape(sheet.name)} the {escape(sheet.class_name)}", show_header=True)
    table.add_column("Stat")
    table.add_column("Value", justify="right")
    for stat, value in sheet.stats.items():
        table.add_row(stat.capitalize(), f"{value:.2f}")
    _CONSOLE.print(table)
    _CONSOLE.print(
        f"Level [bold]{sheet.level}[/bold]  XP {sheet.xp} / {sheet.next_level_xp} "
        f"({sheet.xp_to_next_level} to next level)  Achievements: {sheet.achievement_count}"
    )


def _render_quests(log: QuestLogView) -> None:
    if not log.quests:
        _CONSOLE.print("[dim]No quests yet.[/dim]")
        return
    available = set(log.available_quest_ids)
    table = Table(title="Quest Log", show_header=True)
    for column in ("ID", "Title", "Category", "Difficulty", "XP", "Status", "Score"):
        table.add_column(column)
    for quest in log.quests:
        score = f"{quest.metadata.composite:.2f}" if quest.metadata else "-"
        if quest.metadata and quest.metadata.recommended:
            score += " *"
        status = quest.status.value
        if not quest.is_completed and quest.id not in available:
            status += " (locked)"
        table.add_row(
            str(quest.id),
            escape(quest.title),
            escape(quest.category),
            str(quest.difficulty),
            str(quest.xp_reward),
            status,
            score,
        )
    _CONSOLE.print(table)


def _render_history(entries: list[JournalEntry], limit: int) -> None:
    if not entries:
        _CONSOLE.print("[dim]No journal entries yet.[/dim]")
        return
    table = Table(title="Journal", show_header=True)
    for column in ("When", "Mood", "Tags", "Entry"):
        table.add_column(column)
    for entry in entries[: max(1, limit)]:
        when = entry.created_at.strftime("%Y-%m-%d %H:%M") if entry.created_at else "-"
        table.add_row(when, entry.mood, escape(", ".join(entry.tags)), escape(entry.content))
    _CONSOLE.print(table)


def _render_warnings(warnings: list[str]) -> None:
    for warning in warnings:
        _CONSOLE.print(f"[yellow]! {escape(warning)}[/yellow]")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("JOURNAL_RPG_LOG_LEVEL", "WARNING").upper())
    args = _parse_args(argv)

    event_bus = EventBus()
    event_bus.subscribe(
        LevelUpAppliedEvent,
        lambda event: _CONSOLE.print(
            Panel.fit(f"Level up! {event.from_level} -> {event.to_level}", border_style="green")
        ),
    )
    service = create_journal_service(event_bus=event_bus)
    service.register_character(args.user, name=args.name)

    try:
        if args.entry:
            submission = service.submit_entry(args.user, args.entry)
            _CONSOLE.print(
                f"Entry recorded: mood [bold]{escape(submission.journal.mood)}[/bold], +{submission.xp_gained} XP, "
                f"{len(submission.quests)} new quest(s)"
            )
            _render_warnings(submission.warnings)
        if args.complete is not None:
            completion = service.complete_quest(args.user, args.complete)
            _CONSOLE.print(
                f"Completed [bold]{escape(completion.quest.title)}[/bold]: +{completion.reward.xp_gained} XP, "
                f"storyline {completion.storyline_progress:.0f}% done"
            )
            _render_warnings(completion.warnings)
    except (ValueError, NotFoundError, QuestAlreadyCompleted) as exc:
        _CONSOLE.print(f"[red]{escape(str(exc))}[/red]")
        return 1
    except KeyboardInterrupt:
        _CONSOLE.print("\nSession ended.")
        return 130

    _render_sheet(service.character_sheet(args.user))
    _render_quests(service.list_quests(args.user))
    if args.history:
        _render_history(service.list_entries(args.user), args.history)
    return 0


if __name__ == "__main__":
    sys.exit(main())
