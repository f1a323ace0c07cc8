"""
tests/test_topic_service.py — Unit tests for the topic lifecycle service
"""
from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from app.clients.topic_store import DEMO_TOPICS, InMemoryTopicStore, StoreError
from app.core.errors import (
    DuplicateFound,
    InvalidInput,
    NotFound,
    QuotaExceeded,
    StoreFailure,
)
from app.core.quota_tracker import QuotaTracker
from app.models import QuotaKind, TopicStatus
from app.services.topic_service import (
    TOPIC_LOCK_POOL_SIZE,
    TopicService,
    parse_topic_id,
)


def _failing_store(method: str) -> MagicMock:
    failing = MagicMock(wraps=InMemoryTopicStore(seed=DEMO_TOPICS))
    failing.backend_name = "memory"
    getattr(failing, method).side_effect = StoreError("connection refused")
    return failing


# ── List / filter ────────────────────────────────────────────────────────────

def test_list_is_most_voted_first(service):
    assert [t.votos for t in service.list_topics()] == [15, 10, 7]


def test_filter_most_voted(service):
    assert [t.votos for t in service.filter_topics("most_voted")] == [15, 10, 7]
    assert [t.votos for t in service.filter_topics("mais_votados")] == [15, 10, 7]


def test_filter_most_recent(service):
    assert [t.id for t in service.filter_topics("most_recent")] == [3, 2, 1]


def test_filter_published_and_coming_soon(service, store):
    store.update_topic(1, {"status": TopicStatus.PUBLISHED})
    store.update_topic(2, {"status": TopicStatus.COMING_SOON})
    assert [t.id for t in service.filter_topics("respondidos")] == [1]
    assert [t.id for t in service.filter_topics("published")] == [1]
    assert [t.id for t in service.filter_topics("em_breve")] == [2]


def test_unknown_filter_returns_full_list(service):
    assert [t.id for t in service.filter_topics("whatever")] == [3, 1, 2]
    assert [t.id for t in service.filter_topics(None)] == [3, 1, 2]


def test_similar_lookup(service):
    assert [t.id for t in service.similar("whatsapp")] == [1]
    assert service.similar("") == []
    assert service.similar(None) == []


# ── Suggest ──────────────────────────────────────────────────────────────────

def test_suggest_creates_topic(service):
    topic = service.suggest("  Testes automatizados  ", "  com pytest ", "c1")
    assert topic.titulo == "Testes automatizados"
    assert topic.descricao == "com pytest"
    assert topic.votos == 0
    assert topic.status == TopicStatus.SUGGESTION
    assert topic.id == 4


@pytest.mark.parametrize("title", ["", "   ", None, 42])
def test_suggest_rejects_invalid_title(service, quota, title):
    with pytest.raises(InvalidInput):
        service.suggest(title, None, "c1")
    assert quota.remaining("c1", QuotaKind.SUGGESTION) == 3


def test_fourth_suggestion_exceeds_quota(service):
    for i in range(3):
        service.suggest(f"Tema novo {i}", None, "c1")
    with pytest.raises(QuotaExceeded):
        service.suggest("Mais um tema diferente", None, "c1")


def test_admin_bypasses_suggestion_quota(service, quota):
    for i in range(5):
        service.suggest(f"Tema do admin {i}", None, "admin-ip", is_admin=True)
    assert quota.remaining("admin-ip", QuotaKind.SUGGESTION) == 3


def test_duplicate_suggestion_is_rejected_with_matches(service, quota):
    with pytest.raises(DuplicateFound) as exc_info:
        service.suggest("banco de dados", None, "c1")
    assert [t.id for t in exc_info.value.similares] == [2]
    # No quota spent on a rejected suggestion
    assert quota.remaining("c1", QuotaKind.SUGGESTION) == 3


def test_exhausted_quota_is_reported_before_duplicates(service):
    for i in range(3):
        service.suggest(f"Tema novo {i}", None, "c1")
    with pytest.raises(QuotaExceeded):
        service.suggest("banco de dados", None, "c1")


def test_store_failure_on_insert_keeps_quota(quota):
    service = TopicService(store=_failing_store("insert_topic"), quota=quota)
    with pytest.raises(StoreFailure):
        service.suggest("Tema inédito", None, "c1")
    assert quota.remaining("c1", QuotaKind.SUGGESTION) == 3


def test_concurrent_same_title_is_inserted_once(service, store):
    outcomes = []
    outcomes_lock = threading.Lock()

    def submit(i):
        try:
            service.suggest("Kubernetes na prática", None, f"client-{i}")
            result = "ok"
        except DuplicateFound:
            result = "duplicate"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=submit, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == 9
    assert [t.titulo for t in store.list_topics()].count("Kubernetes na prática") == 1


# ── Vote ─────────────────────────────────────────────────────────────────────

def test_vote_increments_by_one(service, store):
    assert service.vote(2, "c1") == 8
    assert service.vote(2, "c1") == 9
    assert store.get_topic(2).votos == 9


def test_sixth_vote_exceeds_quota(service):
    for _ in range(5):
        service.vote(1, "c1")
    with pytest.raises(QuotaExceeded):
        service.vote(1, "c1")


def test_vote_unknown_topic(service, quota):
    with pytest.raises(NotFound):
        service.vote(999999, "c1")
    assert quota.remaining("c1", QuotaKind.VOTE) == 5


@pytest.mark.parametrize("raw", ["1", None, True, 1.5, [1]])
def test_vote_rejects_non_integer_id(service, raw):
    with pytest.raises(InvalidInput):
        service.vote(raw, "c1")


def test_parse_topic_id_accepts_integral_float():
    assert parse_topic_id(3.0) == 3


def test_store_failure_on_vote_keeps_quota(quota):
    service = TopicService(store=_failing_store("update_topic"), quota=quota)
    with pytest.raises(StoreFailure):
        service.vote(1, "c1")
    assert quota.remaining("c1", QuotaKind.VOTE) == 5


def test_concurrent_votes_are_not_lost(store):
    service = TopicService(store=store, quota=QuotaTracker(vote_limit=5))
    threads = [
        threading.Thread(target=service.vote, args=(2, f"client-{i}"))
        for i in range(40)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.get_topic(2).votos == 7 + 40


def test_concurrent_votes_from_one_client_respect_ceiling(service, store):
    outcomes = []
    outcomes_lock = threading.Lock()

    def cast():
        try:
            service.vote(2, "same-client")
            result = "ok"
        except QuotaExceeded:
            result = "denied"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=cast) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert outcomes.count("ok") == 5
    assert outcomes.count("denied") == 45
    assert store.get_topic(2).votos == 12


def test_topic_locks_stay_bounded(service, quota):
    for topic_id in range(1000, 1000 + 3 * TOPIC_LOCK_POOL_SIZE):
        with pytest.raises(NotFound):
            service.vote(topic_id, "scanner")
    assert len(service._topic_locks) == TOPIC_LOCK_POOL_SIZE
    assert quota.remaining("scanner", QuotaKind.VOTE) == 5
    assert service._topic_lock(5) is service._topic_lock(5 + TOPIC_LOCK_POOL_SIZE)



# ── Edit / delete ────────────────────────────────────────────────────────────

def test_edit_only_supplied_fields(service):
    topic = service.edit(1, titulo="  WhatsApp Business  ")
    assert topic.titulo == "WhatsApp Business"
    assert topic.descricao == ""
    assert topic.votos == 10


def test_edit_ignores_blank_fields(service):
    topic = service.edit(2, titulo="   ", descricao="Do zero")
    assert topic.titulo == "Banco de dados para iniciantes"
    assert topic.descricao == "Do zero"


def test_edit_unknown_topic(service):
    with pytest.raises(NotFound):
        service.edit(999999, titulo="x")
    with pytest.raises(NotFound):
        service.edit(999999)


def test_delete_removes_topic(service):
    service.delete(3)
    assert [t.id for t in service.list_topics()] == [1, 2]
    with pytest.raises(NotFound):
        service.delete(3)


def test_quota_status(service):
    service.vote(1, "c1")
    status = service.quota_status("c1")
    assert status.votos_restantes == 4
    assert status.sugestoes_restantes == 3
    assert service.quota_status("c1", is_admin=True).sugestoes_restantes is None
