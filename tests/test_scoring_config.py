import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config.scoring import get_scoring_config, get_scoring_value, reset_scoring_config_cache


class ScoringConfigTests(unittest.TestCase):
    def setUp(self):
        reset_scoring_config_cache()

    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("heuristic.base"), 50)
        self.assertEqual(get_scoring_value("heuristic.sections.education"), 8)
        self.assertEqual(get_scoring_value("heuristic.min_score"), 10)
        self.assertEqual(get_scoring_value("heuristic.max_score"), 95)

    def test_missing_paths_return_default(self):
        self.assertIsNone(get_scoring_value("heuristic.unknown"))
        self.assertEqual(get_scoring_value("heuristic.base.deeper", 7), 7)
        self.assertEqual(get_scoring_value("", "fallback"), "fallback")

    def test_config_is_cached(self):
        self.assertIs(get_scoring_config(), get_scoring_config())


if __name__ == "__main__":
    unittest.main()
