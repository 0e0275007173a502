import json
import tempfile
import unittest
from pathlib import Path

from derby.settings import DB_PATH, WEB_PORT, load_config


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.tmpdir.name) / "config.json"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_gives_defaults(self):
        config = load_config(self.config_path)
        self.assertEqual(config.db_path, DB_PATH)
        self.assertEqual(config.runs_per_position, 2)
        self.assertEqual(config.contestants, [])

    def test_values_from_file(self):
        self.config_path.write_text(json.dumps({
            "db_path": "spring.db",
            "runs_per_position": 1,
            "web_port": 9000,
            "contestants": [{"name": "Noah", "category": "teacher"}],
        }))
        config = load_config(self.config_path)
        self.assertEqual(config.db_path, "spring.db")
        self.assertEqual(config.runs_per_position, 1)
        self.assertEqual(config.web_port, 9000)
        self.assertEqual(config.contestants, [{"name": "Noah", "category": "teacher"}])

    def test_unreadable_file_gives_defaults(self):
        self.config_path.write_text("{not json")
        config = load_config(self.config_path)
        self.assertEqual(config.db_path, DB_PATH)

    def test_file_that_is_not_an_object_gives_defaults(self):
        self.config_path.write_text("[1, 2]")
        config = load_config(self.config_path)
        self.assertEqual(config.runs_per_position, 2)
        self.assertEqual(config.contestants, [])

    def test_bad_value_falls_back_to_its_default(self):
        self.config_path.write_text(json.dumps({
            "db_path": None,
            "runs_per_position": "two",
            "web_port": 9000,
            "contestants": [{"name": "Noah", "category": "teacher"}, "Levi", None],
        }))
        config = load_config(self.config_path)
        self.assertEqual(config.db_path, DB_PATH)
        self.assertEqual(config.runs_per_position, 2)
        self.assertEqual(config.web_port, 9000)
        self.assertEqual(config.contestants, [{"name": "Noah", "category": "teacher"}])

    def test_runs_per_position_must_be_positive(self):
        self.config_path.write_text(json.dumps({"runs_per_position": 0, "web_port": True}))
        config = load_config(self.config_path)
        self.assertEqual(config.runs_per_position, 2)
        self.assertEqual(config.web_port, WEB_PORT)

    def test_contestants_must_be_a_list(self):
        self.config_path.write_text(json.dumps({"contestants": {"name": "Noah"}}))
        self.assertEqual(load_config(self.config_path).contestants, [])


if __name__ == "__main__":
    unittest.main()
