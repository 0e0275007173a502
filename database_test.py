import tempfile
import unittest
from pathlib import Path

from database import DerbyDatabase
from derby.category import Category
from derby.heat import FinishOrder
from derby.session import DerbySession


class TestDerbyDatabase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db = DerbyDatabase(str(Path(self.tmpdir.name) / "derby.db"))

    def tearDown(self):
        self.db.close()
        self.tmpdir.cleanup()

    def test_load_with_nothing_saved(self):
        self.assertIsNone(self.db.load())
        self.assertIsNone(self.db.saved_at())

    def test_save_and_load_session(self):
        session = DerbySession()
        for name in ("A", "B", "C"):
            session.add_contestant(name, Category.TEACHER)
        session.generate_heats()
        session.record_result(FinishOrder(1, 2, 3))

        self.assertTrue(self.db.save(session.to_dict()))
        restored = DerbySession.from_dict(self.db.load())
        self.assertEqual(restored.to_dict(), session.to_dict())
        self.assertIsNotNone(self.db.saved_at())

    def test_save_replaces_previous_snapshot(self):
        self.db.save({"contestants": [], "current_heat_index": 0})
        self.db.save({"contestants": [], "current_heat_index": 2})
        self.assertEqual(self.db.load()["current_heat_index"], 2)

    def test_unserializable_snapshot_is_not_fatal(self):
        self.db.save({"current_heat_index": 1})
        self.assertFalse(self.db.save({"bad": object()}))
        # The earlier snapshot is untouched.
        self.assertEqual(self.db.load(), {"current_heat_index": 1})

    def test_clear(self):
        self.db.save({"current_heat_index": 1})
        self.db.clear()
        self.assertIsNone(self.db.load())

    def test_snapshot_survives_reopen(self):
        self.db.save({"current_heat_index": 5})
        self.db.close()
        with DerbyDatabase(str(Path(self.tmpdir.name) / "derby.db")) as reopened:
            self.assertEqual(reopened.load(), {"current_heat_index": 5})
        self.db = DerbyDatabase(str(Path(self.tmpdir.name) / "derby.db"))


if __name__ == "__main__":
    unittest.main()
