from app.ai.config import AIConfig, load_ai_config
from app.ai.types import AIClient
from app.core.errors import AIConfigurationError

from app.ai.providers.gemini_provider import GeminiProvider
from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client(cfg: AIConfig | None = None) -> AIClient:
    cfg = cfg or load_ai_config()

    if not cfg.api_key:
        raise AIConfigurationError("AI key not configured on server")

    if cfg.provider == "gemini":
        return GeminiProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
        )

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
        )

    raise AIConfigurationError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
