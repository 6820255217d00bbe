from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import settings


def scoring_client_key(request: Request) -> str:
    # Callers behind one gateway share an address but not an API key.
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return f"key:{api_key[-8:]}"
    return get_remote_address(request)


limiter = Limiter(key_func=scoring_client_key)


def rate_limit(limit: str | None = None):
    """Per-client limit for AI-backed routes; a no-op when RATE_LIMIT_ENABLED is off."""
    if settings.rate_limit_enabled:
        return limiter.limit(limit or settings.rate_limit)

    def passthrough(func):
        return func

    return passthrough
