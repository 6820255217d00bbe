from __future__ import annotations

import logging
from typing import Any

from openai import APIConnectionError, APIStatusError, OpenAI

from app.ai.types import GenerationRequest
from app.core.errors import AIServiceError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: str | None = None,
        timeout_s: float = 60.0,
    ):
        self.model = model
        # Retries are driven by the scoring attempt plan, not the SDK.
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=0,
        )

    def generate(self, request: GenerationRequest) -> Any:
        messages = [{"role": "system", "content": request.system_instruction}]
        messages.extend({"role": "user", "content": text} for text in request.contents)
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_output_tokens,
            )
        except APIStatusError as exc:
            logger.error("openai_api_error model=%s status=%s: %s", self.model, exc.status_code, exc)
            raise AIServiceError("AI service error", upstream_status=exc.status_code) from exc
        except APIConnectionError as exc:
            logger.error("openai_request_failed model=%s: %s", self.model, exc)
            raise AIServiceError("AI service error") from exc
        return response.model_dump()
