"""
app/core/auth.py — Admin gate
A fixed shared secret is exchanged for a fixed bearer token. The token is the
same on every login, never expires and is not tied to a person. Everything
else in the app only asks AdminGate.authorize(), so the mechanism can be
replaced without touching the topic service.
"""
from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import AuthFailed, Forbidden


def _safe_equals(given: str, expected: str) -> bool:
    """Constant-time comparison that tolerates non-ASCII input."""
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


class AdminGate:
    def __init__(self, secret: str, token: str) -> None:
        self._secret = secret
        self._token = token

    def login(self, secret: Optional[str]) -> str:
        """Return the admin token if `secret` matches, else raise AuthFailed."""
        if not isinstance(secret, str) or not _safe_equals(secret, self._secret):
            app_logging.log_admin_action("login", success=False)
            raise AuthFailed()
        app_logging.log_admin_action("login", success=True)
        return self._token

    def authorize(self, authorization: Optional[str]) -> bool:
        """True only for an exact `Bearer <token>` header."""
        if not authorization:
            return False
        return _safe_equals(authorization, f"Bearer {self._token}")


@lru_cache()
def get_admin_gate() -> AdminGate:
    settings = get_settings()
    return AdminGate(secret=settings.admin_secret, token=settings.admin_token)


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI dependencies
# ──────────────────────────────────────────────────────────────────────────────

async def optional_admin(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    gate: AdminGate = Depends(get_admin_gate),
) -> bool:
    """Admin flag for endpoints open to everyone (suggestion quota bypass)."""
    return gate.authorize(authorization)


async def require_admin(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    gate: AdminGate = Depends(get_admin_gate),
) -> bool:
    """Reject with 403 unless the request carries the admin bearer token."""
    if not gate.authorize(authorization):
        raise Forbidden()
    return True
