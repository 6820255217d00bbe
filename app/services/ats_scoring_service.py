from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from app.ai.response import extract_generated_text, finish_reason
from app.ai.types import AIClient, GenerationRequest
from app.analytics.db import log_ai_attempt
from app.core.config import Settings
from app.core.errors import AIServiceError, ExtractionFailure, ProfileNotFoundError, ResumeMissingError
from app.core.profile_store import ProfileStore
from app.parsing.parse import parse_resume_bytes
from app.schemas.ats import ATSScoreResponse, ResumeDocument, ScoringRecord
from app.schemas.profile import UserProfile
from app.services.ats_heuristic import compute_heuristic_score, generate_recommendations
from app.services.ats_parser import parse_score_reply

logger = logging.getLogger(__name__)

SCORING_SYSTEM_PROMPT = """You are an expert ATS reviewer. Given resume text, return ONLY a single JSON object (no surrounding text, no explanation) with exactly these keys:
{
  "score": <integer 0-100>,
  "summary": "<2-3 sentence summary>",
  "recommendations": ["short tip 1", "short tip 2"]
}
Make "score" an integer between 0 and 100. Do not include any other keys or commentary."""

FOLLOWUP_SYSTEM_PROMPT = "You are an ATS scoring assistant. Output only the required JSON."
FOLLOWUP_INSTRUCTION = (
    'Return ONLY a single JSON object with exactly this key: {"score":<integer 0-100>}. '
    "No explanatory text. Use the resume snippet provided to determine the score."
)

HEURISTIC_NOTICE = "Returned heuristic ATS score because AI did not provide numeric score."
NO_SCORE_NOTICE = "Could not extract numeric score and heuristic failed. See raw for details."


class ResumeFetcher(Protocol):
    def fetch(self, url: str) -> ResumeDocument: ...


AttemptLogger = Callable[..., None]


@dataclass(frozen=True)
class ScoringAttempt:
    name: str
    max_chars: int
    system_instruction: str
    max_output_tokens: int
    lead_instruction: str | None = None

    def build_request(self, resume_text: str, temperature: float) -> GenerationRequest:
        contents = [resume_text[: self.max_chars]]
        if self.lead_instruction:
            contents.insert(0, self.lead_instruction)
        return GenerationRequest(
            system_instruction=self.system_instruction,
            contents=contents,
            temperature=temperature,
            max_output_tokens=self.max_output_tokens,
        )


@dataclass(frozen=True)
class ATSScoringConfig:
    primary_chunk_chars: int = 8000
    secondary_chunk_chars: int = 2000
    followup_chunk_chars: int = 1400
    max_output_tokens: int = 800
    followup_max_output_tokens: int = 120
    attempt_delay_ms: int = 250
    max_resume_chars: int = 40000
    temperature: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ATSScoringConfig":
        return cls(
            primary_chunk_chars=settings.ats_primary_chunk_chars,
            secondary_chunk_chars=settings.ats_secondary_chunk_chars,
            followup_chunk_chars=settings.ats_followup_chunk_chars,
            max_output_tokens=settings.ats_max_output_tokens,
            followup_max_output_tokens=settings.ats_followup_max_output_tokens,
            attempt_delay_ms=settings.ats_attempt_delay_ms,
            max_resume_chars=settings.ats_max_resume_chars,
        )

    def attempt_plan(self) -> tuple[ScoringAttempt, ...]:
        """Large chunk, then small chunk, then a score-only follow-up.

        The loop stops at the first attempt that yields text, so the follow-up
        only runs when both chunk attempts came back empty.
        """
        return (
            ScoringAttempt(
                name="primary",
                max_chars=self.primary_chunk_chars,
                system_instruction=SCORING_SYSTEM_PROMPT,
                max_output_tokens=self.max_output_tokens,
            ),
            ScoringAttempt(
                name="secondary",
                max_chars=self.secondary_chunk_chars,
                system_instruction=SCORING_SYSTEM_PROMPT,
                max_output_tokens=self.max_output_tokens,
            ),
            ScoringAttempt(
                name="followup",
                max_chars=self.followup_chunk_chars,
                system_instruction=FOLLOWUP_SYSTEM_PROMPT,
                max_output_tokens=self.followup_max_output_tokens,
                lead_instruction=FOLLOWUP_INSTRUCTION,
            ),
        )


def profile_fallback_text(profile: UserProfile) -> str:
    return (
        f"Profile fallback: Fullname: {profile.fullname}\n"
        f"Email: {profile.email}\n"
        f"Phone: {profile.phone_number}\n"
        f"Skills: {', '.join(profile.skills)}\n"
        f"Bio: {profile.bio}"
    )


def _log_attempt_safely(attempt_logger: AttemptLogger, **fields: Any) -> None:
    try:
        attempt_logger(**fields)
    except Exception:  # pragma: no cover - analytics must not break scoring
        logger.debug("ats_attempt_logging_failed", exc_info=True)


class ATSScoringService:
    def __init__(
        self,
        *,
        config: ATSScoringConfig,
        ai_client: AIClient,
        resume_fetcher: ResumeFetcher,
        profile_store: ProfileStore,
        sleep: Callable[[float], None] = time.sleep,
        attempt_logger: AttemptLogger = log_ai_attempt,
    ):
        self._config = config
        self._ai = ai_client
        self._fetcher = resume_fetcher
        self._store = profile_store
        self._sleep = sleep
        self._attempt_logger = attempt_logger

    def resume_text_for(self, profile: UserProfile, document: ResumeDocument) -> str:
        text = ""
        try:
            parsed = parse_resume_bytes(
                document.content,
                document.content_type,
                profile.resume_original_name or document.url,
            )
            if not parsed.is_empty:
                text = parsed.text.strip()
        except ExtractionFailure as exc:
            logger.warning("ats_resume_extraction_failed user_id=%s: %s", profile.user_id, exc)

        if not text:
            logger.info("ats_resume_text_fallback user_id=%s", profile.user_id)
            return profile_fallback_text(profile)
        return text[: self._config.max_resume_chars]

    def request_reply(self, resume_text: str, *, run_id: str) -> tuple[str, Any]:
        """Walk the attempt plan until one yields text.

        Returns ``(reply, raw_payload)``; the reply is ``""`` when every attempt
        came back empty. ``AIServiceError`` from any attempt ends the run.
        """
        plan = self._config.attempt_plan()
        raw: Any = None
        for index, attempt in enumerate(plan):
            request = attempt.build_request(resume_text, self._config.temperature)
            started = time.perf_counter()
            try:
                payload = self._ai.generate(request)
            except AIServiceError as exc:
                _log_attempt_safely(
                    self._attempt_logger,
                    run_id=run_id,
                    attempt=attempt.name,
                    model=self._ai.model,
                    status="error",
                    error_code=exc.code,
                    latency_ms=int((time.perf_counter() - started) * 1000),
                )
                raise

            raw = payload
            reply = extract_generated_text(payload).strip()
            reason = finish_reason(payload)
            _log_attempt_safely(
                self._attempt_logger,
                run_id=run_id,
                attempt=attempt.name,
                model=self._ai.model,
                status="success" if reply else "empty",
                finish_reason=reason,
                reply_chars=len(reply),
                latency_ms=int((time.perf_counter() - started) * 1000),
            )
            if reply:
                return reply, raw

            logger.warning(
                "ats_ai_attempt_empty attempt=%s finish_reason=%s",
                attempt.name,
                reason,
            )
            if index < len(plan) - 1 and self._config.attempt_delay_ms > 0:
                self._sleep(self._config.attempt_delay_ms / 1000)
        return "", raw

    def score_profile(self, profile: UserProfile) -> ATSScoreResponse:
        if not profile.resume_url:
            raise ResumeMissingError("No resume uploaded")

        run_id = uuid.uuid4().hex
        document = self._fetcher.fetch(profile.resume_url)
        resume_text = self.resume_text_for(profile, document)

        reply, raw = self.request_reply(resume_text, run_id=run_id)
        outcome = parse_score_reply(reply, raw)

        score = outcome.result.score
        heuristic = False
        if score is None:
            try:
                score = compute_heuristic_score(resume_text, profile.skills)
                heuristic = True
            except RuntimeError as exc:
                logger.error("ats_heuristic_failed user_id=%s: %s", profile.user_id, exc)

        if outcome.has_recommendations:
            recommendations = outcome.result.recommendations
        else:
            recommendations = generate_recommendations(resume_text, profile.skills)

        record = ScoringRecord(
            computed_at=datetime.now(timezone.utc),
            raw=raw,
            reply=reply,
            parsed=outcome.parsed,
            score=score,
            heuristic=heuristic,
            recommendations=recommendations,
        )
        self._store.save_scoring_record(profile, record)
        logger.info(
            "ats_score_computed user_id=%s run_id=%s score=%s heuristic=%s",
            profile.user_id,
            run_id,
            score,
            heuristic,
        )

        if score is None:
            return ATSScoreResponse(
                score=None,
                reply=reply,
                parsed=outcome.parsed,
                recommendations=recommendations,
                notice=NO_SCORE_NOTICE,
                raw=raw,
            )
        return ATSScoreResponse(
            score=score,
            reply=reply,
            parsed=outcome.parsed,
            recommendations=recommendations,
            heuristic=heuristic,
            notice=HEURISTIC_NOTICE if heuristic else None,
        )

    def score_user(self, user_id: str) -> ATSScoreResponse:
        profile = self._store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError("User not found")
        return self.score_profile(profile)

