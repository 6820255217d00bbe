from __future__ import annotations

import logging
from typing import Any

import httpx

from app.ai.types import GenerationRequest
from app.core.errors import AIServiceError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def build_generate_content_body(request: GenerationRequest) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": text}]} for text in request.contents],
        "systemInstruction": {"parts": [{"text": request.system_instruction}]},
        "generationConfig": {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_output_tokens,
        },
    }


class GeminiProvider:
    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: str | None = None,
        timeout_s: float = 60.0,
    ):
        self.model = model
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout_s = timeout_s

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self.model}:generateContent"

    def generate(self, request: GenerationRequest) -> Any:
        body = build_generate_content_body(request)
        try:
            with httpx.Client(timeout=self._timeout_s) as client:
                response = client.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.error("gemini_request_failed model=%s: %s", self.model, exc)
            raise AIServiceError("AI service error") from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                "gemini_api_error model=%s status=%s body=%s",
                self.model,
                response.status_code,
                (response.text or "")[:500],
            )
            raise AIServiceError("AI service error", upstream_status=response.status_code)

        try:
            return response.json()
        except ValueError:
            # Non-JSON 2xx body; the text extractor accepts plain strings.
            return response.text
