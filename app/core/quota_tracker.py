"""
app/core/quota_tracker.py — Per-client lifetime quotas for suggestions and votes
Counters live for the process lifetime: no window, no decay, no persistence.
All check-and-append steps run under one lock so concurrent requests from the
same client can never push a record past its ceiling.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from typing import Iterator

from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import QuotaExceeded
from app.models import QuotaKind
from app.utils.timezone import utc_iso, utc_now

DENIED_MESSAGES: dict[QuotaKind, str] = {
    QuotaKind.SUGGESTION: "Limite de sugestões atingido.",
    QuotaKind.VOTE: "Limite de votos atingido.",
}


class QuotaTracker:
    """
    Keyed table of timestamp lists, one list per (client key, kind).

    Besides committed timestamps the tracker counts in-flight reservations, so a
    slot held by a request that has not finished persisting still counts
    against the ceiling but is handed back if that request fails.
    """

    def __init__(self, suggestion_limit: int = 3, vote_limit: int = 5) -> None:
        self._limits: dict[QuotaKind, int] = {
            QuotaKind.SUGGESTION: suggestion_limit,
            QuotaKind.VOTE: vote_limit,
        }
        self._records: dict[str, dict[QuotaKind, list[datetime]]] = {}
        self._pending: dict[tuple[str, QuotaKind], int] = {}
        self._lock = threading.Lock()

    def ceiling(self, kind: QuotaKind) -> int:
        return self._limits[kind]

    # Caller must hold self._lock
    def _entries(self, client_key: str, kind: QuotaKind) -> list[datetime]:
        record = self._records.setdefault(
            client_key, {QuotaKind.SUGGESTION: [], QuotaKind.VOTE: []}
        )
        return record[kind]

    def _used(self, client_key: str, kind: QuotaKind) -> int:
        return len(self._entries(client_key, kind)) + self._pending.get((client_key, kind), 0)

    def try_consume(self, client_key: str, kind: QuotaKind) -> bool:
        """Append a timestamp if capacity remains. Returns False without mutation otherwise."""
        with self._lock:
            if self._used(client_key, kind) >= self._limits[kind]:
                denied = True
            else:
                self._entries(client_key, kind).append(utc_now())
                denied = False
        if denied:
            app_logging.log_quota_denied(client_key, kind.value, self._limits[kind])
        return not denied

    def has_capacity(self, client_key: str, kind: QuotaKind) -> bool:
        with self._lock:
            return self._used(client_key, kind) < self._limits[kind]

    def remaining(self, client_key: str, kind: QuotaKind) -> int:
        with self._lock:
            return max(0, self._limits[kind] - self._used(client_key, kind))

    @contextmanager
    def reserve(self, client_key: str, kind: QuotaKind) -> Iterator[None]:
        """
        Hold one slot for the duration of the block.

        Raises QuotaExceeded up front when no slot is free. The slot is committed
        (timestamp appended) only if the block completes; any exception inside
        the block releases it untouched.
        """
        pending_key = (client_key, kind)
        with self._lock:
            if self._used(client_key, kind) >= self._limits[kind]:
                denied = True
            else:
                self._pending[pending_key] = self._pending.get(pending_key, 0) + 1
                denied = False
        if denied:
            app_logging.log_quota_denied(client_key, kind.value, self._limits[kind])
            raise QuotaExceeded(DENIED_MESSAGES[kind])

        try:
            yield
        except BaseException:
            with self._lock:
                self._release(pending_key)
            raise
        with self._lock:
            self._release(pending_key)
            self._entries(client_key, kind).append(utc_now())

    def _release(self, pending_key: tuple[str, QuotaKind]) -> None:
        count = self._pending.get(pending_key, 0) - 1
        if count > 0:
            self._pending[pending_key] = count
        else:
            self._pending.pop(pending_key, None)

    def snapshot(self, client_key: str) -> dict[str, list[str]]:
        """Committed timestamps for one client, as ISO strings."""
        with self._lock:
            record = self._records.get(client_key, {})
            return {
                kind.value: [utc_iso(ts) for ts in record.get(kind, [])]
                for kind in QuotaKind
            }

    def reset(self) -> None:
        """Forget every client. Only useful for tests and maintenance."""
        with self._lock:
            self._records.clear()
            self._pending.clear()


@lru_cache()
def get_quota_tracker() -> QuotaTracker:
    """Process-wide tracker built from settings."""
    settings = get_settings()
    return QuotaTracker(
        suggestion_limit=settings.suggestion_limit,
        vote_limit=settings.vote_limit,
    )
