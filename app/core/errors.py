from __future__ import annotations


class ATSScoringError(RuntimeError):
    """Base for failures that end an ATS scoring request."""

    default_code = "ats_error"
    default_status = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status


class ProfileNotFoundError(ATSScoringError):
    default_code = "profile_not_found"
    default_status = 404


class ResumeMissingError(ATSScoringError):
    default_code = "resume_missing"
    default_status = 400


class ResumeFetchError(ATSScoringError):
    default_code = "resume_fetch_failed"
    default_status = 502


class AIConfigurationError(ATSScoringError):
    default_code = "ai_not_configured"
    default_status = 500


class AIServiceError(ATSScoringError):
    default_code = "ai_service_error"
    default_status = 502

    def __init__(self, message: str, *, upstream_status: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status


class PersistError(ATSScoringError):
    default_code = "persist_failed"
    default_status = 500


class ExtractionFailure(Exception):
    """Resume bytes could not be turned into text. Recovered by the caller."""
