"""
app/clients/topic_store.py — Topic persistence interface + in-memory backend
The service talks to any object satisfying TopicStore. Two backends ship:
InMemoryTopicStore (default, seeded with demo topics) and SupabaseTopicStore
(PostgREST over httpx, app/clients/supabase_client.py).
"""
from __future__ import annotations

import threading
import time
from functools import lru_cache
from typing import Any, Optional, Protocol

from loguru import logger

from app.config import get_settings
from app.core import logging as app_logging
from app.models import NewTopic, Topic
from app.utils.similarity import find_similar


class StoreError(Exception):
    """Raised by a backend when the underlying storage call fails."""


class TopicStore(Protocol):
    backend_name: str

    def list_topics(self) -> list[Topic]:
        """All topics, votes descending (ties keep store order)."""
        ...

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        ...

    def search_titles(self, query: str) -> list[Topic]:
        """Case-insensitive substring search on titles, votes descending."""
        ...

    def insert_topic(self, topic: NewTopic) -> Topic:
        ...

    def update_topic(self, topic_id: int, fields: dict[str, Any]) -> Optional[Topic]:
        """Apply `fields` and return the updated topic, or None if absent."""
        ...

    def delete_topic(self, topic_id: int) -> bool:
        ...


# ──────────────────────────────────────────────────────────────────────────────
# Demo data for the in-memory backend
# ──────────────────────────────────────────────────────────────────────────────

DEMO_TOPICS: list[dict[str, Any]] = [
    {"titulo": "Integração com WhatsApp", "votos": 10},
    {"titulo": "Banco de dados para iniciantes", "votos": 7},
    {"titulo": "Como usar IA no dia a dia", "votos": 15},
]


class InMemoryTopicStore:
    """Dict-backed store with a monotonic id counter. Ids are never reused."""

    backend_name = "memory"

    def __init__(self, seed: Optional[list[dict[str, Any]]] = None) -> None:
        self._topics: dict[int, Topic] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        for entry in seed or []:
            self.insert_topic(NewTopic(**entry))

    def _sorted(self) -> list[Topic]:
        # sorted() is stable, so equal vote counts keep insertion order
        return sorted(self._topics.values(), key=lambda t: t.votos, reverse=True)

    def list_topics(self) -> list[Topic]:
        with self._lock:
            return [t.model_copy() for t in self._sorted()]

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        with self._lock:
            topic = self._topics.get(topic_id)
            return topic.model_copy() if topic else None

    def search_titles(self, query: str) -> list[Topic]:
        return find_similar(query, self.list_topics())

    def insert_topic(self, topic: NewTopic) -> Topic:
        with self._lock:
            created = Topic(id=self._next_id, **topic.model_dump())
            self._topics[created.id] = created
            self._next_id += 1
            return created.model_copy()

    def update_topic(self, topic_id: int, fields: dict[str, Any]) -> Optional[Topic]:
        with self._lock:
            current = self._topics.get(topic_id)
            if current is None:
                return None
            updated = Topic(**{**current.model_dump(), **fields, "id": topic_id})
            self._topics[topic_id] = updated
            return updated.model_copy()

    def delete_topic(self, topic_id: int) -> bool:
        with self._lock:
            return self._topics.pop(topic_id, None) is not None


# ──────────────────────────────────────────────────────────────────────────────
# Backend selection
# ──────────────────────────────────────────────────────────────────────────────

def build_topic_store() -> TopicStore:
    """Build the backend named by settings.store_backend."""
    settings = get_settings()
    start = time.monotonic()
    if settings.store_backend == "supabase":
        from app.clients.supabase_client import SupabaseTopicStore

        store: TopicStore = SupabaseTopicStore(
            url=settings.supabase_url,
            key=settings.supabase_key,
            table=settings.supabase_table,
            timeout=settings.supabase_timeout_seconds,
        )
    else:
        store = InMemoryTopicStore(seed=DEMO_TOPICS if settings.seed_demo_topics else None)
    app_logging.log_store_operation(
        store.backend_name, "init", True, (time.monotonic() - start) * 1000
    )
    logger.info(f"Topic store ready: backend={store.backend_name}")
    return store


@lru_cache()
def get_topic_store() -> TopicStore:
    """Return the process-wide store. Use this everywhere."""
    return build_topic_store()
