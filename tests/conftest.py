"""
tests/conftest.py — Shared pytest fixtures
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.clients.topic_store import DEMO_TOPICS, InMemoryTopicStore
from app.core.auth import AdminGate, get_admin_gate
from app.core.quota_tracker import QuotaTracker
from app.core.rate_limiter import limiter
from app.main import app
from app.services.topic_service import TopicService, get_topic_service

ADMIN_SECRET = "segredo-de-teste"
ADMIN_TOKEN = "token-de-teste"


@pytest.fixture
def store() -> InMemoryTopicStore:
    # ids: 1 = WhatsApp (10 votes), 2 = Banco de dados (7), 3 = IA (15)
    return InMemoryTopicStore(seed=DEMO_TOPICS)


@pytest.fixture
def quota() -> QuotaTracker:
    return QuotaTracker(suggestion_limit=3, vote_limit=5)


@pytest.fixture
def service(store, quota) -> TopicService:
    return TopicService(store=store, quota=quota)


@pytest.fixture
def gate() -> AdminGate:
    return AdminGate(secret=ADMIN_SECRET, token=ADMIN_TOKEN)


@pytest.fixture
def client(service, gate):
    app.dependency_overrides[get_topic_service] = lambda: service
    app.dependency_overrides[get_admin_gate] = lambda: gate
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        limiter.enabled = True
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def admin_secret() -> str:
    return ADMIN_SECRET
