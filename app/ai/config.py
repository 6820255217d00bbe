import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    api_key: str
    base_url: str | None
    timeout_s: float


_DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash-preview-09-2025",
    "openai": "gpt-4o-mini",
}


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "gemini").strip().lower()
    model = (os.getenv("AI_MODEL") or _DEFAULT_MODELS.get(provider, "")).strip()
    if provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY", "")
        base_url = os.getenv("OPENAI_BASE_URL", "")
    else:
        api_key = os.getenv("GEMINI_API_KEY", "")
        base_url = os.getenv("GEMINI_BASE_URL", "")
    return AIConfig(
        provider=provider,
        model=model,
        api_key=api_key.strip(),
        base_url=base_url.strip() or None,
        timeout_s=float(os.getenv("AI_TIMEOUT_S", "60")),
    )
