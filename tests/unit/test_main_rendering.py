import sys
from pathlib import Path
import unittest
from unittest import mock

from rich.console import Console

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import journal_rpg.__main__ as cli
from journal_rpg.application.dtos import QuestLogView
from journal_rpg.domain.models.quest import Quest


class MainRenderingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.console = Console(record=True, width=200, color_system=None)
        patcher = mock.patch.object(cli, "_CONSOLE", self.console)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_quest_titles_are_printed_literally(self) -> None:
        quests = [
            Quest(title="[bold] Trap", category="Health", id=1),
            Quest(title="Second step", category="Health", id=2),
        ]
        cli._render_quests(QuestLogView(quests=quests, available_quest_ids=[1]))

        output = self.console.export_text()
        self.assertIn("[bold] Trap", output)
        self.assertIn("active (locked)", output)

    def test_warnings_are_printed_literally(self) -> None:
        cli._render_warnings(["Provider said [red oops"])
        self.assertIn("! Provider said [red oops", self.console.export_text())

    def test_main_renders_journal_history(self) -> None:
        exit_code = cli.main(["Went for a run with friends", "--user", "3", "--history", "5"])

        output = self.console.export_text()
        self.assertEqual(0, exit_code)
        self.assertIn("Entry recorded", output)
        self.assertIn("Journal", output)
        self.assertIn("Went for a run with friends", output)

    def test_unknown_quest_returns_error_code(self) -> None:
        self.assertEqual(1, cli.main(["--user", "4", "--complete", "999"]))


if __name__ == "__main__":
    unittest.main()
