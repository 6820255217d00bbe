import os
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

import app.main  # noqa: F401,E402
from app.core.config.scoring import get_scoring_value  # noqa: E402
from app.services.ats_scoring_service import ATSScoringConfig  # noqa: E402


class PipelineSmokeTests(unittest.TestCase):
    def test_safe_imports_and_scoring_config_lookup(self):
        self.assertEqual(get_scoring_value("heuristic.sections.skills"), 10)

    def test_default_attempt_plan_shrinks_input(self):
        plan = ATSScoringConfig().attempt_plan()
        self.assertEqual([attempt.name for attempt in plan], ["primary", "secondary", "followup"])
        self.assertEqual([attempt.max_chars for attempt in plan], [8000, 2000, 1400])
        self.assertEqual([attempt.max_output_tokens for attempt in plan], [800, 800, 120])


if __name__ == "__main__":
    unittest.main()
