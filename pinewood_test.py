import tempfile
import unittest
from pathlib import Path

from database import DerbyDatabase
from derby.bracket import BracketRound
from derby.category import Category
from derby.settings import DerbyConfig
from pinewood import ConfirmClearScreen, Pinewood


class TestPinewoodApp(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self.tmpdir.name) / "derby.db")
        self.app = Pinewood(config=DerbyConfig(db_path=self.db_path))
        self.app.session.load_test_data()
        self.app.save_state()

    def tearDown(self):
        self.app.db.close()
        self.tmpdir.cleanup()

    def saved_snapshot(self):
        with DerbyDatabase(self.db_path) as db:
            return db.load()

    async def test_clear_all_cancelled_keeps_data(self):
        async with self.app.run_test() as pilot:
            self.app.action_clear_all()
            await pilot.pause()
            self.assertIsInstance(self.app.screen, ConfirmClearScreen)

            await pilot.click("#cancel-clear-btn")
            await pilot.pause()

        self.assertEqual(len(self.app.session.contestants), 15)
        self.assertIsNotNone(self.saved_snapshot())

    async def test_clear_all_confirmed_wipes_data(self):
        async with self.app.run_test() as pilot:
            self.app.action_clear_all()
            await pilot.pause()
            await pilot.click("#confirm-clear-btn")
            await pilot.pause()

        self.assertEqual(self.app.session.contestants, [])
        self.assertIsNone(self.saved_snapshot())

    async def test_decided_matchup_is_left_alone(self):
        self.app.session.start_championship()
        async with self.app.run_test() as pilot:
            self.app.record_winner((BracketRound.QUARTERFINALS, 0, 1))
            first_winner = self.app.session.championship.bracket.quarterfinals[0].winner

            self.app.record_winner((BracketRound.QUARTERFINALS, 0, 2))
            await pilot.pause()

        self.assertEqual(self.app.session.championship.bracket.quarterfinals[0].winner, first_winner)
        self.assertEqual(self.app.session.championship.bracket.semifinals[0].racer1, first_winner)


class TestPinewoodStartup(unittest.TestCase):
    def test_bad_roster_entries_are_skipped(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config = DerbyConfig(
                db_path=str(Path(tmpdir) / "derby.db"),
                contestants=[
                    {"name": "Noah", "category": "deacon"},
                    {"name": "Levi", "category": None},
                    {"name": None, "category": "priest"},
                    {"name": "Ruth", "category": "elder"},
                ],
            )
            app = Pinewood(config=config)
            app.db.close()

        self.assertEqual([c.name for c in app.session.contestants], ["Noah"])
        self.assertEqual(app.session.contestants[0].category, Category.DEACON)


if __name__ == "__main__":
    unittest.main()
