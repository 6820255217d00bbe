from __future__ import annotations

import logging

import httpx

from app.core.errors import ResumeFetchError
from app.schemas.ats import ResumeDocument

logger = logging.getLogger(__name__)

MAX_RESUME_BYTES = 10 * 1024 * 1024  # 10 MB

_HEADERS = {
    "Accept": (
        "application/pdf,application/vnd.openxmlformats-officedocument.wordprocessingml.document,"
        "text/plain,*/*;q=0.8"
    ),
}


class HttpResumeFetcher:
    def __init__(self, timeout_s: float = 15.0):
        self._timeout_s = timeout_s

    def fetch(self, url: str) -> ResumeDocument:
        try:
            with httpx.Client(timeout=self._timeout_s, follow_redirects=True, headers=_HEADERS) as client:
                response = client.get(url)
        except httpx.HTTPError as exc:
            logger.error("resume_fetch_failed url=%s: %s", url, exc)
            raise ResumeFetchError("Failed to download resume") from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                "resume_fetch_non_ok url=%s status=%s body=%s",
                url,
                response.status_code,
                (response.text or "")[:300],
            )
            raise ResumeFetchError("Failed to download resume")

        body = response.content or b""
        if len(body) > MAX_RESUME_BYTES:
            raise ResumeFetchError("Resume file is too large. Maximum allowed size is 10 MB.")

        return ResumeDocument(
            url=str(response.url),
            content=body,
            content_type=response.headers.get("content-type", "application/octet-stream"),
        )
