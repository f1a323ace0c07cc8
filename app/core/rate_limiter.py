"""
app/core/rate_limiter.py — slowapi rate limiting configuration + client identity
Burst limits per endpoint category. Lifetime per-client quotas live in
app/core/quota_tracker.py and use the same client key.
"""
from __future__ import annotations

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings

settings = get_settings()


def get_client_key(request: Request) -> str:
    """Stable client key for quota scoping: the peer network address."""
    return get_remote_address(request)


# Single shared limiter instance — imported by main.py and routers
limiter = Limiter(key_func=get_client_key)

# These string values are used as decorators on individual route handlers.
RATE_LIMITS: dict[str, str] = dict(settings.request_rate_limits)
