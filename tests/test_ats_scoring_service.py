import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.errors import (  # noqa: E402
    AIServiceError,
    PersistError,
    ProfileNotFoundError,
    ResumeFetchError,
    ResumeMissingError,
)
from app.core.profile_store import ProfileStore  # noqa: E402
from app.schemas.ats import ResumeDocument  # noqa: E402
from app.schemas.profile import UserProfile  # noqa: E402
from app.services.ats_heuristic import generate_recommendations  # noqa: E402
from app.services.ats_scoring_service import (  # noqa: E402
    FOLLOWUP_INSTRUCTION,
    FOLLOWUP_SYSTEM_PROMPT,
    HEURISTIC_NOTICE,
    NO_SCORE_NOTICE,
    ATSScoringConfig,
    ATSScoringService,
)

RESUME_URL = "https://res.example.com/raw/upload/resumes/resume_jane.txt"
RESUME_TEXT = (
    "Jane Doe\n"
    "Email jane@example.com | LinkedIn linkedin.com/in/jane\n"
    "Professional Experience\n"
    "- Built Python services for payments used by 1.2M users.\n"
    "Education\n"
    "BSc Computer Science, State University\n"
    "Skills: Python, SQL, Docker\n"
)


def _gemini(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


EMPTY_PAYLOAD = {"candidates": [{"content": {"role": "model"}, "finishReason": "MAX_TOKENS"}]}


class FakeAIClient:
    model = "fake-model"

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeFetcher:
    def __init__(self, document=None, error=None):
        self._document = document
        self._error = error
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        if self._error is not None:
            raise self._error
        return self._document


class ATSScoringServiceTests(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.store = ProfileStore(str(Path(self._tmpdir.name) / "profiles.db"))
        self.profile = UserProfile(
            user_id="user-1",
            fullname="Jane Doe",
            email="jane@example.com",
            phone_number="+1 555 0100",
            bio="Backend engineer",
            skills=["python", "sql"],
            resume_url=RESUME_URL,
            resume_original_name="resume_jane.txt",
        )
        self.store.save_profile(self.profile)
        self.sleeps = []
        self.attempts = []
        self.fetcher = FakeFetcher(
            ResumeDocument(url=RESUME_URL, content=RESUME_TEXT.encode("utf-8"), content_type="text/plain")
        )

    def tearDown(self):
        self.store.close()
        self._tmpdir.cleanup()

    def _service(self, ai_client, fetcher=None, config=None) -> ATSScoringService:
        return ATSScoringService(
            config=config or ATSScoringConfig(),
            ai_client=ai_client,
            resume_fetcher=fetcher or self.fetcher,
            profile_store=self.store,
            sleep=self.sleeps.append,
            attempt_logger=lambda **fields: self.attempts.append(fields),
        )

    def test_first_attempt_json_reply_is_used(self):
        ai = FakeAIClient(_gemini('{"score": 87, "summary": "ok", "recommendations": ["a", "b"]}'))
        result = self._service(ai).score_user("user-1")

        self.assertTrue(result.success)
        self.assertEqual(result.score, 87)
        self.assertFalse(result.heuristic)
        self.assertIsNone(result.notice)
        self.assertEqual(result.recommendations, ["a", "b"])
        self.assertEqual(result.parsed["summary"], "ok")
        self.assertEqual(len(ai.requests), 1)
        self.assertEqual(self.sleeps, [])
        self.assertEqual(self.fetcher.urls, [RESUME_URL])

        request = ai.requests[0]
        self.assertEqual(request.temperature, 0.0)
        self.assertEqual(request.max_output_tokens, 800)
        self.assertEqual(list(request.contents), [RESUME_TEXT.strip()])

        record = self.store.get_scoring_record("user-1")
        self.assertEqual(record.score, 87)
        self.assertFalse(record.heuristic)
        self.assertEqual(record.reply, '{"score": 87, "summary": "ok", "recommendations": ["a", "b"]}')
        self.assertEqual(record.raw["candidates"][0]["finishReason"], "STOP")
        self.assertEqual(self.attempts[0]["status"], "success")

    def test_empty_replies_fall_back_to_heuristic(self):
        ai = FakeAIClient(EMPTY_PAYLOAD, EMPTY_PAYLOAD, EMPTY_PAYLOAD)
        result = self._service(ai).score_user("user-1")

        self.assertTrue(result.heuristic)
        self.assertIsNotNone(result.score)
        self.assertGreaterEqual(result.score, 10)
        self.assertLessEqual(result.score, 95)
        self.assertEqual(result.notice, HEURISTIC_NOTICE)
        self.assertEqual(result.reply, "")
        self.assertIsNone(result.parsed)
        self.assertEqual(result.recommendations, generate_recommendations(RESUME_TEXT.strip(), ["python", "sql"]))

        self.assertEqual(len(ai.requests), 3)
        self.assertEqual(self.sleeps, [0.25, 0.25])
        followup = ai.requests[2]
        self.assertEqual(followup.system_instruction, FOLLOWUP_SYSTEM_PROMPT)
        self.assertEqual(followup.contents[0], FOLLOWUP_INSTRUCTION)
        self.assertEqual(followup.max_output_tokens, 120)
        self.assertEqual([attempt["status"] for attempt in self.attempts], ["empty", "empty", "empty"])
        self.assertEqual(self.attempts[0]["finish_reason"], "MAX_TOKENS")

        record = self.store.get_scoring_record("user-1")
        self.assertTrue(record.heuristic)
        self.assertEqual(record.score, result.score)

    def test_chunks_shrink_between_attempts(self):
        long_text = "Experience " + "achievement " * 2000
        fetcher = FakeFetcher(ResumeDocument(url=RESUME_URL, content=long_text.encode(), content_type="text/plain"))
        ai = FakeAIClient(EMPTY_PAYLOAD, EMPTY_PAYLOAD, _gemini('{"score": 61}'))
        result = self._service(ai, fetcher=fetcher).score_user("user-1")

        self.assertEqual(result.score, 61)
        self.assertFalse(result.heuristic)
        self.assertEqual(len(ai.requests[0].contents[0]), 8000)
        self.assertEqual(len(ai.requests[1].contents[0]), 2000)
        self.assertEqual(len(ai.requests[2].contents[1]), 1400)

    def test_second_attempt_stops_the_loop(self):
        ai = FakeAIClient(EMPTY_PAYLOAD, _gemini("Sure. The score is 72 out of 100."))
        result = self._service(ai).score_user("user-1")

        self.assertEqual(result.score, 72)
        self.assertFalse(result.heuristic)
        self.assertEqual(len(ai.requests), 2)
        self.assertEqual(self.sleeps, [0.25])
        self.assertIsNone(result.parsed)
        self.assertEqual(result.recommendations, generate_recommendations(RESUME_TEXT.strip(), ["python", "sql"]))

    def test_ai_error_on_first_attempt_is_fatal(self):
        ai = FakeAIClient(AIServiceError("AI service error", upstream_status=500), _gemini('{"score": 90}'))
        with patch("app.services.ats_scoring_service.compute_heuristic_score") as heuristic:
            with self.assertRaises(AIServiceError):
                self._service(ai).score_user("user-1")

        heuristic.assert_not_called()
        self.assertEqual(len(ai.requests), 1)
        self.assertIsNone(self.store.get_scoring_record("user-1"))
        self.assertEqual(self.attempts[0]["status"], "error")

    def test_ai_error_on_followup_is_fatal(self):
        ai = FakeAIClient(EMPTY_PAYLOAD, EMPTY_PAYLOAD, AIServiceError("AI service error", upstream_status=429))
        with self.assertRaises(AIServiceError):
            self._service(ai).score_user("user-1")
        self.assertIsNone(self.store.get_scoring_record("user-1"))

    def test_parsed_reply_without_score_keeps_ai_recommendations(self):
        ai = FakeAIClient(_gemini('{"summary": "Solid", "recommendations": ["Add metrics"]}'))
        result = self._service(ai).score_user("user-1")

        self.assertTrue(result.heuristic)
        self.assertEqual(result.notice, HEURISTIC_NOTICE)
        self.assertEqual(result.recommendations, ["Add metrics"])
        self.assertEqual(result.parsed, {"summary": "Solid", "recommendations": ["Add metrics"]})

    def test_extraction_failure_uses_profile_fallback_text(self):
        fetcher = FakeFetcher(ResumeDocument(url=RESUME_URL, content=b"\x89PNG\r\n", content_type="image/png"))
        profile = self.profile.model_copy(update={"resume_original_name": "photo.png"})
        self.store.save_profile(profile)
        ai = FakeAIClient(_gemini('{"score": 40}'))

        result = self._service(ai, fetcher=fetcher).score_user("user-1")

        self.assertEqual(result.score, 40)
        prompt = ai.requests[0].contents[0]
        self.assertTrue(prompt.startswith("Profile fallback: Fullname: Jane Doe"))
        self.assertIn("Skills: python, sql", prompt)
        self.assertIn("Bio: Backend engineer", prompt)

    def test_heuristic_failure_reports_null_score(self):
        ai = FakeAIClient(EMPTY_PAYLOAD, EMPTY_PAYLOAD, EMPTY_PAYLOAD)
        with patch(
            "app.services.ats_scoring_service.compute_heuristic_score",
            side_effect=RuntimeError("Scoring config missing"),
        ):
            result = self._service(ai).score_user("user-1")

        self.assertIsNone(result.score)
        self.assertFalse(result.heuristic)
        self.assertEqual(result.notice, NO_SCORE_NOTICE)
        self.assertEqual(result.raw, EMPTY_PAYLOAD)
        self.assertTrue(result.recommendations)
        record = self.store.get_scoring_record("user-1")
        self.assertIsNone(record.score)

    def test_rescoring_overwrites_record(self):
        self._service(FakeAIClient(_gemini('{"score": 30}'))).score_user("user-1")
        self._service(FakeAIClient(_gemini('{"score": 80}'))).score_user("user-1")
        self.assertEqual(self.store.get_scoring_record("user-1").score, 80)

    def test_missing_resume_and_unknown_user(self):
        self.store.save_profile(UserProfile(user_id="no-resume"))
        ai = FakeAIClient()
        with self.assertRaises(ResumeMissingError):
            self._service(ai).score_user("no-resume")
        with self.assertRaises(ProfileNotFoundError):
            self._service(ai).score_user("ghost")
        self.assertEqual(ai.requests, [])

    def test_resume_fetch_error_skips_ai(self):
        ai = FakeAIClient()
        fetcher = FakeFetcher(error=ResumeFetchError("Failed to download resume"))
        with self.assertRaises(ResumeFetchError):
            self._service(ai, fetcher=fetcher).score_user("user-1")
        self.assertEqual(ai.requests, [])

    def test_persist_failure_ends_the_request(self):
        ai = FakeAIClient(_gemini('{"score": 70}'))
        with patch.object(
            self.store, "save_scoring_record", side_effect=PersistError("Failed to save profile")
        ):
            with self.assertRaises(PersistError):
                self._service(ai).score_user("user-1")
        self.assertIsNone(self.store.get_scoring_record("user-1"))

    def test_zero_delay_never_sleeps(self):
        ai = FakeAIClient(EMPTY_PAYLOAD, EMPTY_PAYLOAD, EMPTY_PAYLOAD)
        self._service(ai, config=ATSScoringConfig(attempt_delay_ms=0)).score_user("user-1")
        self.assertEqual(self.sleeps, [])


if __name__ == "__main__":
    unittest.main()
