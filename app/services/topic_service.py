"""
app/services/topic_service.py — Topic lifecycle: list, filter, suggest, vote, edit, delete
Composes the topic store, the per-client quota tracker and the similarity checks.

Suggest runs validate → reserve quota slot → duplicate check → persist → commit
slot. A rejected or failed suggestion never spends quota. Votes serialize the
read-modify-write per topic id, so concurrent votes are never lost.
"""
from __future__ import annotations

import threading
from contextlib import nullcontext
from functools import lru_cache
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from app.clients.topic_store import StoreError, TopicStore, get_topic_store
from app.core import logging as app_logging
from app.core.errors import DuplicateFound, InvalidInput, NotFound, StoreFailure
from app.core.quota_tracker import QuotaTracker, get_quota_tracker
from app.models import (
    FILTER_TOKENS,
    NewTopic,
    QuotaKind,
    QuotaStatus,
    Topic,
    TopicFilter,
    TopicStatus,
)
from app.utils.similarity import find_duplicates

T = TypeVar("T")

TOPIC_LOCK_POOL_SIZE = 64


def _clean_text(value: Any) -> str:
    """Trimmed string, or "" for anything that is not a string."""
    return value.strip() if isinstance(value, str) else ""


def parse_topic_id(raw: Any) -> int:
    """
    Accept JSON integers only. Booleans are rejected even though they are ints
    in Python; integral floats such as 3.0 are accepted.
    """
    if isinstance(raw, bool):
        raise InvalidInput("ID inválido.")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    raise InvalidInput("ID inválido.")


class TopicService:
    def __init__(self, store: TopicStore, quota: QuotaTracker) -> None:
        self.store = store
        self.quota = quota
        # Fixed pool: ids share locks by modulo, so the pool never grows
        self._topic_locks: tuple[threading.Lock, ...] = tuple(
            threading.Lock() for _ in range(TOPIC_LOCK_POOL_SIZE)
        )
        # Duplicate check and insert run as one step
        self._suggest_lock = threading.Lock()

    # ──────────────────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────────────────

    def _topic_lock(self, topic_id: int) -> threading.Lock:
        return self._topic_locks[topic_id % TOPIC_LOCK_POOL_SIZE]

    def _call_store(
        self,
        operation: str,
        message: str,
        fn: Callable[..., T],
        *args: Any,
    ) -> T:
        """Run a store call, turning backend failures into StoreFailure."""
        try:
            return fn(*args)
        except StoreError as exc:
            app_logging.log_error(
                "topic_service", operation, exc, {"backend": self.store.backend_name}
            )
            raise StoreFailure(message) from exc

    # ──────────────────────────────────────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────────────────────────────────────

    def list_topics(self) -> list[Topic]:
        """All topics, most voted first."""
        return self._call_store("list", "Erro ao buscar temas.", self.store.list_topics)

    def filter_topics(self, token: Optional[str]) -> list[Topic]:
        """
        Apply one of the named filters. Unknown or missing tokens return the
        full list untouched.
        """
        topics = self.list_topics()
        selected = FILTER_TOKENS.get(token or "")
        if selected == TopicFilter.MOST_VOTED:
            return sorted(topics, key=lambda t: t.votos, reverse=True)
        if selected == TopicFilter.MOST_RECENT:
            return sorted(topics, key=lambda t: t.id, reverse=True)
        if selected == TopicFilter.PUBLISHED:
            return [t for t in topics if t.status == TopicStatus.PUBLISHED]
        if selected == TopicFilter.COMING_SOON:
            return [t for t in topics if t.status == TopicStatus.COMING_SOON]
        return topics

    def similar(self, query: Optional[str]) -> list[Topic]:
        """Topics whose title contains `query`; [] when the query is empty."""
        needle = _clean_text(query)
        if not needle:
            return []
        return self._call_store(
            "search", "Erro ao buscar temas similares.", self.store.search_titles, needle
        )

    def quota_status(self, client_key: str, is_admin: bool = False) -> QuotaStatus:
        return QuotaStatus(
            sugestoes_restantes=None
            if is_admin
            else self.quota.remaining(client_key, QuotaKind.SUGGESTION),
            votos_restantes=self.quota.remaining(client_key, QuotaKind.VOTE),
            limite_sugestoes=self.quota.ceiling(QuotaKind.SUGGESTION),
            limite_votos=self.quota.ceiling(QuotaKind.VOTE),
        )

    # ──────────────────────────────────────────────────────────────────────────
    # Suggest
    # ──────────────────────────────────────────────────────────────────────────

    def suggest(
        self,
        titulo: Any,
        descricao: Any,
        client_key: str,
        is_admin: bool = False,
    ) -> Topic:
        title = _clean_text(titulo)
        if not title:
            raise InvalidInput("Título inválido.")
        description = _clean_text(descricao)

        # Admins skip the suggestion ceiling entirely
        slot = nullcontext() if is_admin else self.quota.reserve(client_key, QuotaKind.SUGGESTION)
        with slot, self._suggest_lock:
            existing = self._call_store(
                "duplicate_check", "Erro ao buscar temas similares.", self.store.list_topics
            )
            duplicates = find_duplicates(title, existing)
            if duplicates:
                app_logging.log_suggestion(
                    client_key, None, is_admin, accepted=False, reason="duplicate"
                )
                raise DuplicateFound(duplicates)

            created = self._call_store(
                "insert",
                "Erro ao adicionar tema.",
                self.store.insert_topic,
                NewTopic(titulo=title, descricao=description),
            )

        app_logging.log_suggestion(client_key, created.id, is_admin, accepted=True)
        return created

    # ──────────────────────────────────────────────────────────────────────────
    # Vote
    # ──────────────────────────────────────────────────────────────────────────

    def vote(self, raw_topic_id: Any, client_key: str) -> int:
        """Add one vote and return the new count. The vote ceiling applies to admins too."""
        topic_id = parse_topic_id(raw_topic_id)

        with self.quota.reserve(client_key, QuotaKind.VOTE):
            with self._topic_lock(topic_id):
                topic = self._call_store(
                    "get", "Erro ao buscar tema.", self.store.get_topic, topic_id
                )
                if topic is None:
                    raise NotFound()
                updated = self._call_store(
                    "vote",
                    "Erro ao registrar voto.",
                    self.store.update_topic,
                    topic_id,
                    {"votos": topic.votos + 1},
                )
                if updated is None:
                    raise NotFound()

        app_logging.log_vote(client_key, topic_id, updated.votos)
        return updated.votos

    # ──────────────────────────────────────────────────────────────────────────
    # Admin
    # ──────────────────────────────────────────────────────────────────────────

    def edit(self, topic_id: int, titulo: Any = None, descricao: Any = None) -> Topic:
        """Apply only the supplied fields that are non-empty after trimming."""
        fields: dict[str, Any] = {}
        title = _clean_text(titulo)
        if title:
            fields["titulo"] = title
        description = _clean_text(descricao)
        if description:
            fields["descricao"] = description

        with self._topic_lock(topic_id):
            if fields:
                topic = self._call_store(
                    "edit", "Erro ao editar tema.", self.store.update_topic, topic_id, fields
                )
            else:
                topic = self._call_store(
                    "get", "Erro ao buscar tema.", self.store.get_topic, topic_id
                )
        if topic is None:
            app_logging.log_admin_action("edit", topic_id, success=False)
            raise NotFound()

        app_logging.log_admin_action("edit", topic_id, fields=sorted(fields))
        return topic

    def delete(self, topic_id: int) -> None:
        with self._topic_lock(topic_id):
            deleted = self._call_store(
                "delete", "Erro ao excluir tema.", self.store.delete_topic, topic_id
            )
        if not deleted:
            app_logging.log_admin_action("delete", topic_id, success=False)
            raise NotFound()
        app_logging.log_admin_action("delete", topic_id)
        logger.info(f"Topic {topic_id} deleted.")


@lru_cache()
def get_topic_service() -> TopicService:
    """Process-wide service wired to the configured store and tracker."""
    return TopicService(store=get_topic_store(), quota=get_quota_tracker())
